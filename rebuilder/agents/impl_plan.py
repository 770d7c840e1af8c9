import json
import logging
from rebuilder.agents.base import BaseAgent, AgentResult
from rebuilder.builders.plan import build_rebuild_plan
from rebuilder.core.workflow import ImportStage

log = logging.getLogger(__name__)


class BuildPlanAgent(BaseAgent):
    stage = ImportStage.BUILD_PLAN

    def run(self, job, ws):
        try:
            if job.analysis is None:
                return self.failure("No analysis available to plan from")

            plan = build_rebuild_plan(job.analysis, job.request.options)
            job.plan = plan

            artifact_path = ws.artifacts_dir / "rebuild-plan.json"
            artifact_path.write_text(json.dumps(plan.to_dict(), indent=2), encoding="utf-8")

            return AgentResult(
                self.stage,
                True,
                f"Planned {plan.target.architecture} rebuild with modules {plan.target.module_ids()}",
                {"rebuild_plan": str(artifact_path.relative_to(ws.root))},
            )
        except Exception as e:
            log.exception(f"Failed to build rebuild plan: {e}")
            return self.failure(f"Failed to build rebuild plan: {e}")

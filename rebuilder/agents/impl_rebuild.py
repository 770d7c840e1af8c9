import json
import logging
from rebuilder.agents.base import BaseAgent, AgentResult
from rebuilder.core.workflow import ImportStage
from rebuilder.generators.orchestrator import RegenerationOrchestrator

log = logging.getLogger(__name__)


class RegenerateAgent(BaseAgent):
    stage = ImportStage.REGENERATE

    def __init__(self, orchestrator: RegenerationOrchestrator = None):
        self.orchestrator = orchestrator or RegenerationOrchestrator()

    def run(self, job, ws):
        if job.plan is None:
            return self.failure("No rebuild plan available")

        result = self.orchestrator.rebuild(
            job.plan,
            job.request.output_path,
            options=job.request.options,
            source_root=job.plan.source_root,
        )
        job.rebuild = result

        artifact_path = ws.artifacts_dir / "rebuild-result.json"
        artifact_path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
        artifacts = {"rebuild_result": str(artifact_path.relative_to(ws.root))}

        if not result.success:
            return self.failure(f"Rebuild failed: {result.error}", artifacts)
        return AgentResult(
            self.stage,
            True,
            f"Rebuilt project into {result.output_path} "
            f"({result.files_generated} generated, {result.files_copied} copied)",
            artifacts,
        )

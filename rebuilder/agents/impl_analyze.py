import json
import logging
from rebuilder.agents.base import BaseAgent, AgentResult
from rebuilder.analyzers.project import analyze_project
from rebuilder.core.workflow import ImportStage

log = logging.getLogger(__name__)


class AnalyzeSourceAgent(BaseAgent):
    stage = ImportStage.ANALYZE_SOURCE

    def run(self, job, ws):
        try:
            if job.source_root is None or not job.source_root.exists():
                return self.failure(f"Source directory does not exist: {job.source_root}")

            log.info(f"Analyzing source tree at {job.source_root}")
            analysis = analyze_project(job.source_root, job.request.analysis_depth)
            job.analysis = analysis

            artifact_path = ws.artifacts_dir / "analysis.json"
            artifact_path.write_text(json.dumps(analysis.summary(), indent=2), encoding="utf-8")

            return AgentResult(
                self.stage,
                True,
                f"Detected {analysis.architecture.detected} architecture "
                f"({analysis.architecture.confidence}%) with {len(analysis.entities)} entities",
                {"analysis": str(artifact_path.relative_to(ws.root))},
            )
        except Exception as e:
            log.exception(f"Failed to analyze source: {e}")
            return self.failure(f"Failed to analyze source: {e}")

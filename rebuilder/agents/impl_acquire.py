import logging
from pathlib import Path
from rebuilder.agents.base import BaseAgent, AgentResult
from rebuilder.core.repository import clone_repository, format_bytes
from rebuilder.core.workflow import ImportStage

log = logging.getLogger(__name__)


class AcquireSourceAgent(BaseAgent):
    stage = ImportStage.ACQUIRE_SOURCE

    def run(self, job, ws):
        request = job.request
        if request.source_path:
            path = Path(request.source_path)
            if not path.is_dir():
                return self.failure(f"Source path does not exist: {path}")
            job.source_root = path
            return AgentResult(self.stage, True, "Using local source tree", {"source_dir": str(path)})

        try:
            clone = clone_repository(
                request.source_url,
                branch=request.branch,
                depth=request.depth,
                dest_root=ws.source_dir,
            )
        except Exception as e:
            return self.failure(f"Failed to clone source repo: {e}")

        job.clone = clone
        if not clone.success:
            return self.failure(f"Failed to clone source repo: {clone.error}")

        job.source_root = Path(clone.local_path)
        log.info(f"Cloned {clone.repo_name}@{clone.commit[:8]} ({format_bytes(clone.size_bytes)})")
        return AgentResult(
            self.stage,
            True,
            f"Cloned {clone.repo_name} ({format_bytes(clone.size_bytes)})",
            {"source_dir": clone.local_path, "commit": clone.commit},
        )

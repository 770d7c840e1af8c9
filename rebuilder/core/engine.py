from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from rebuilder.core.config import settings
from rebuilder.core.context import ImportContext
from rebuilder.core.workflow import ImportStage, PIPELINE_STAGES
from rebuilder.core.workspace import Workspace
from rebuilder.agents.registry import AgentRegistry
from rebuilder.schemas.imports import ImportRequest

log = logging.getLogger(__name__)


@dataclass
class ImportResult:
    success: bool
    stage: ImportStage
    error: Optional[str] = None
    clone_info: Optional[Dict[str, Any]] = None
    analysis_info: Optional[Dict[str, Any]] = None
    plan: Optional[Dict[str, Any]] = None
    rebuild: Optional[Dict[str, Any]] = None
    warnings: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)
    artifacts: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "stage": self.stage.value,
            "error": self.error,
            "cloneInfo": self.clone_info,
            "analysisInfo": self.analysis_info,
            "plan": self.plan,
            "rebuild": self.rebuild,
            "warnings": self.warnings,
            "nextSteps": self.next_steps,
            "artifacts": self.artifacts,
        }


class ImportEngine:
    def __init__(
        self,
        workspace: Optional[Workspace] = None,
        registry: Optional[AgentRegistry] = None,
        on_stage: Optional[Callable[[ImportStage], None]] = None,
        keep_workspace: Optional[bool] = None,
    ):
        self.ws = workspace or Workspace()
        self.job_id = self.ws.job_id
        self.registry = registry or AgentRegistry.default()
        self.on_stage = on_stage
        self.keep_workspace = settings.keep_workspace if keep_workspace is None else keep_workspace

    def _set_stage(self, stage: ImportStage) -> None:
        if not self.on_stage:
            return
        try:
            self.on_stage(stage)
        except Exception:
            log.exception("Stage callback failed", extra={"job_id": self.job_id, "stage": stage.value})

    def run(self, request: ImportRequest) -> ImportResult:
        """Run every stage in order; failures come back as a failed ImportResult."""
        ctx = ImportContext(request=request)
        stage = PIPELINE_STAGES[0]
        try:
            self.ws.ensure()
            for stage in PIPELINE_STAGES:
                self._set_stage(stage)
                log.info("Running stage", extra={"job_id": self.job_id, "stage": stage.value})

                agent = self.registry.get(stage)
                result = agent.run(job=ctx, ws=self.ws)
                ctx.artifacts.update(result.artifacts_index)

                if not result.ok:
                    log.error(f"Stage failed: {result.message}", extra={"job_id": self.job_id, "stage": stage.value})
                    self._set_stage(ImportStage.FAILED)
                    return self._result(ctx, False, stage, result.message)

            self._set_stage(ImportStage.DONE)
            log.info("Import completed successfully", extra={"job_id": self.job_id, "stage": "DONE"})
            return self._result(ctx, True, ImportStage.DONE)
        except Exception as e:
            log.exception("Import failed", extra={"job_id": self.job_id, "stage": stage.value})
            self._set_stage(ImportStage.FAILED)
            return self._result(ctx, False, stage, f"{stage.value}: {e}")
        finally:
            if not self.keep_workspace:
                self.ws.remove_source()

    def _result(self, ctx: ImportContext, success: bool, stage: ImportStage, error: Optional[str] = None) -> ImportResult:
        clone_info = None
        if ctx.clone is not None:
            clone_info = {
                "repoName": ctx.clone.repo_name,
                "branch": ctx.clone.branch,
                "commit": ctx.clone.commit,
                "sizeBytes": ctx.clone.size_bytes,
            }

        analysis_info = None
        if ctx.analysis is not None:
            analysis_info = {
                "name": ctx.analysis.name,
                "architecture": ctx.analysis.architecture.detected,
                "confidence": ctx.analysis.architecture.confidence,
                "stateManagement": ctx.analysis.dependencies.state_management,
                "entities": len(ctx.analysis.entities),
                "screens": len(ctx.analysis.screens),
                "widgets": len(ctx.analysis.widgets),
                "stats": ctx.analysis.stats,
            }

        warnings = list(ctx.warnings)
        next_steps: List[str] = []
        rebuild = None
        if ctx.rebuild is not None:
            rebuild = ctx.rebuild.to_dict()
            warnings.extend(ctx.rebuild.warnings)
            next_steps = list(ctx.rebuild.next_steps)
        elif ctx.plan is not None:
            warnings.extend(ctx.plan.warnings)

        return ImportResult(
            success=success,
            stage=stage,
            error=error,
            clone_info=clone_info,
            analysis_info=analysis_info,
            plan=ctx.plan.to_dict() if ctx.plan is not None else None,
            rebuild=rebuild,
            warnings=warnings,
            next_steps=next_steps,
            artifacts=dict(ctx.artifacts),
        )

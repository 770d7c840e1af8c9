from __future__ import annotations
import logging
import shutil
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from rebuilder.core.config import settings

log = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Per-run scratch area holding the source checkout and JSON artifacts."""
    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    base_dir: Path | None = None

    def __post_init__(self):
        base = Path(self.base_dir) if self.base_dir else Path(settings.workspaces_dir)
        self.root = base / self.job_id
        self.source_dir = self.root / "source"
        self.artifacts_dir = self.root / "artifacts"

    def ensure(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)

    def remove_source(self) -> None:
        if self.source_dir.exists():
            shutil.rmtree(self.source_dir, ignore_errors=True)
            log.info(f"Removed source checkout {self.source_dir}")

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from rebuilder.schemas.imports import ImportRequest


@dataclass
class ImportContext:
    """Everything one import run has produced so far; filled in stage by stage."""
    request: ImportRequest
    source_root: Optional[Path] = None
    clone: Optional[Any] = None  # CloneResult
    analysis: Optional[Any] = None  # AnalysisResult
    plan: Optional[Any] = None  # RebuildPlan
    rebuild: Optional[Any] = None  # RebuildResult
    warnings: List[str] = field(default_factory=list)
    artifacts: Dict[str, Any] = field(default_factory=dict)

from pydantic import BaseModel, Field, model_validator
from typing import Literal, Optional, Dict, Any, List
from rebuilder.core.workflow import ImportStage


class RebuildOptions(BaseModel):
    keep_entities: bool = True
    keep_screen_structure: bool = True
    apply_design_system: bool = True
    add_offline_support: bool = True
    target_architecture: Literal["clean", "feature-first", "layer-first", "keep"] = "keep"
    target_state_approach: Literal["riverpod", "bloc", "keep"] = "keep"

    generate_tests: bool = True
    run_bootstrap: bool = True
    format_code: bool = True
    enable_encryption: bool = False


class ImportRequest(BaseModel):
    source_url: Optional[str] = Field(None, examples=["https://github.com/flutter/samples.git"])
    source_path: Optional[str] = None
    branch: str = "main"
    depth: int = Field(1, ge=1)
    output_path: str
    analysis_depth: Literal["shallow", "medium", "deep"] = "deep"
    options: RebuildOptions = Field(default_factory=RebuildOptions)

    @model_validator(mode="after")
    def check_source(self) -> "ImportRequest":
        if bool(self.source_url) == bool(self.source_path):
            raise ValueError("Exactly one of source_url or source_path is required")
        return self

    @property
    def source(self) -> str:
        return self.source_url or self.source_path or ""


class ImportJobResponse(BaseModel):
    id: str
    source: str
    branch: str
    output_path: str
    stage: ImportStage
    status: str
    error_message: Optional[str] = None
    result: Dict[str, Any] = {}
    warnings: List[str] = []

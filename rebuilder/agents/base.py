from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from rebuilder.core.workflow import ImportStage

@dataclass
class AgentResult:
    stage: ImportStage
    ok: bool
    message: str
    artifacts_index: Dict[str, Any] = field(default_factory=dict)

class BaseAgent:
    """One pipeline stage; reads and fills the shared ImportContext."""
    stage: ImportStage

    def run(self, job, ws) -> AgentResult:
        raise NotImplementedError

    def failure(self, message: str, artifacts: Optional[Dict[str, Any]] = None) -> AgentResult:
        return AgentResult(self.stage, False, message, artifacts or {})

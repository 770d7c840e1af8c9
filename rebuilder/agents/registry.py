from dataclasses import dataclass
from typing import Dict, Optional
from rebuilder.core.workflow import ImportStage
from rebuilder.agents.base import BaseAgent
from rebuilder.agents.impl_acquire import AcquireSourceAgent
from rebuilder.agents.impl_analyze import AnalyzeSourceAgent
from rebuilder.agents.impl_plan import BuildPlanAgent
from rebuilder.agents.impl_rebuild import RegenerateAgent
from rebuilder.generators.orchestrator import RegenerationOrchestrator
from rebuilder.generators.providers import ToolInvoker

@dataclass
class AgentRegistry:
    mapping: Dict[ImportStage, BaseAgent]

    def get(self, stage: ImportStage) -> BaseAgent:
        return self.mapping[stage]

    @staticmethod
    def default(invoke: Optional[ToolInvoker] = None) -> "AgentRegistry":
        return AgentRegistry(mapping={
            ImportStage.ACQUIRE_SOURCE: AcquireSourceAgent(),
            ImportStage.ANALYZE_SOURCE: AnalyzeSourceAgent(),
            ImportStage.BUILD_PLAN: BuildPlanAgent(),
            ImportStage.REGENERATE: RegenerateAgent(RegenerationOrchestrator(invoke=invoke)),
        })

"""Lifecycle hook execution for installed modules."""
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from rebuilder.generators.types import GeneratedFile
from rebuilder.modules.registry import ModuleDescriptor

log = logging.getLogger(__name__)


class LifecyclePhase(str, Enum):
    INSTALL = "install"
    BEFORE_GENERATE = "before_generate"
    GENERATE = "generate"
    AFTER_GENERATE = "after_generate"
    BEFORE_BUILD = "before_build"
    AFTER_BUILD = "after_build"
    UNINSTALL = "uninstall"


@dataclass
class HookContext:
    project: Any  # ProjectDefinition
    module: ModuleDescriptor
    output_dir: Optional[Path] = None
    # Shared between hooks of one run
    state: Dict[str, Any] = field(default_factory=dict)


class HookExecutor:
    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = output_dir
        self.state: Dict[str, Any] = {}

    def _context(self, project, module: ModuleDescriptor) -> HookContext:
        return HookContext(project=project, module=module, output_dir=self.output_dir, state=self.state)

    def run_phase(self, phase: LifecyclePhase, project, modules: Iterable[ModuleDescriptor]) -> List[GeneratedFile]:
        """
        Invoke each module's hook for phase, strictly in the given order.

        A module without a hook for the phase is skipped. Files returned by
        generate hooks are concatenated in module order.
        """
        files: List[GeneratedFile] = []
        for module in modules:
            hook = module.hooks.get(phase.value)
            if hook is None:
                continue
            log.debug(f"Running {phase.value} hook of {module.id}")
            result = hook(self._context(project, module))
            if phase is LifecyclePhase.GENERATE and result:
                files.extend(result)
        return files

    def on_install(self, project, module: ModuleDescriptor) -> None:
        self.run_phase(LifecyclePhase.INSTALL, project, [module])

    def before_generate(self, project, modules: Iterable[ModuleDescriptor]) -> None:
        self.run_phase(LifecyclePhase.BEFORE_GENERATE, project, modules)

    def generate(self, project, modules: Iterable[ModuleDescriptor]) -> List[GeneratedFile]:
        return self.run_phase(LifecyclePhase.GENERATE, project, modules)

    def after_generate(self, project, modules: Iterable[ModuleDescriptor]) -> None:
        self.run_phase(LifecyclePhase.AFTER_GENERATE, project, modules)

    def before_build(self, project, modules: Iterable[ModuleDescriptor]) -> None:
        self.run_phase(LifecyclePhase.BEFORE_BUILD, project, modules)

    def after_build(self, project, modules: Iterable[ModuleDescriptor]) -> None:
        self.run_phase(LifecyclePhase.AFTER_BUILD, project, modules)

    def on_uninstall(self, project, module: ModuleDescriptor) -> None:
        self.run_phase(LifecyclePhase.UNINSTALL, project, [module])

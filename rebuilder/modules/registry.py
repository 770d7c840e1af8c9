"""
Module registry and per-project installation records.

The registry is an explicit object passed to whoever needs it. Install and
uninstall calls for one project are serialized by a per-project lock;
different projects never share a lock.
"""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

log = logging.getLogger(__name__)


class ModuleError(Exception):
    """Base class for registry, install and resolution failures."""


class ModuleValidationError(ModuleError):
    pass


class UnknownModuleError(ModuleError):
    def __init__(self, module_id: str):
        super().__init__(f"Module not found: {module_id}")
        self.module_id = module_id


class ModuleConflictError(ModuleError):
    pass


class ModuleDependencyError(ModuleError):
    pass


class CircularDependencyError(ModuleError):
    def __init__(self, module_id: str):
        super().__init__(f"Circular dependency detected: {module_id}")
        self.module_id = module_id


@dataclass(frozen=True)
class ModuleDependency:
    id: str
    optional: bool = False


@dataclass(frozen=True)
class ModuleDescriptor:
    id: str
    name: str
    version: str
    description: str = ""
    dependencies: Tuple[ModuleDependency, ...] = ()
    conflicts: Tuple[str, ...] = ()
    # phase name -> callable(HookContext)
    hooks: Dict[str, Callable] = field(default_factory=dict, compare=False, hash=False)

    def required_ids(self) -> List[str]:
        return [d.id for d in self.dependencies if not d.optional]


class ModuleRegistry:
    def __init__(self):
        self._modules: Dict[str, ModuleDescriptor] = {}
        self._installed: Dict[str, Set[str]] = {}
        self._project_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def _project_lock(self, project_id: str) -> threading.Lock:
        with self._lock:
            return self._project_locks.setdefault(project_id, threading.Lock())

    @staticmethod
    def validate(module: ModuleDescriptor) -> None:
        if not module.id:
            raise ModuleValidationError("Module must have an id")
        if not module.name:
            raise ModuleValidationError("Module must have a name")
        if not module.version:
            raise ModuleValidationError("Module must have a version")

    def register(self, module: ModuleDescriptor) -> None:
        self.validate(module)
        with self._lock:
            for existing in self._modules.values():
                if module.id in existing.conflicts or existing.id in module.conflicts:
                    raise ModuleConflictError(
                        f"Module {module.id} conflicts with existing module {existing.id}"
                    )
            self._modules[module.id] = module
        log.debug(f"Registered module {module.id}@{module.version}")

    def unregister(self, module_id: str) -> None:
        with self._lock:
            for project_id, installed in self._installed.items():
                if module_id in installed:
                    raise ModuleError(
                        f"Cannot unregister module {module_id}: still installed in project {project_id}"
                    )
            self._modules.pop(module_id, None)

    def get(self, module_id: str) -> Optional[ModuleDescriptor]:
        return self._modules.get(module_id)

    def list(self) -> List[ModuleDescriptor]:
        return list(self._modules.values())

    def install(self, project_id: str, module_id: str) -> ModuleDescriptor:
        """Record module_id as installed; the record is untouched on failure."""
        module = self.get(module_id)
        if module is None:
            raise UnknownModuleError(module_id)

        with self._project_lock(project_id):
            installed = self._installed.get(project_id, set())
            for dep_id in module.required_ids():
                if dep_id not in installed:
                    raise ModuleDependencyError(
                        f"Module {module_id} requires {dep_id} which is not installed"
                    )
            for conflict in module.conflicts:
                if conflict in installed:
                    raise ModuleConflictError(
                        f"Module {module_id} conflicts with installed module {conflict}"
                    )
            self._installed.setdefault(project_id, set()).add(module_id)

        log.info(f"Installed module {module_id} in project {project_id}")
        return module

    def uninstall(self, project_id: str, module_id: str) -> None:
        with self._project_lock(project_id):
            installed = self._installed.get(project_id, set())
            if module_id not in installed:
                raise ModuleError(f"Module {module_id} is not installed in project {project_id}")

            for other_id in installed:
                if other_id == module_id:
                    continue
                other = self.get(other_id)
                if other and module_id in other.required_ids():
                    raise ModuleDependencyError(f"Cannot uninstall {module_id}: required by {other_id}")

            installed.discard(module_id)
        log.info(f"Uninstalled module {module_id} from project {project_id}")

    def get_installed(self, project_id: str) -> List[ModuleDescriptor]:
        installed = sorted(self._installed.get(project_id, set()))
        return [self._modules[i] for i in installed if i in self._modules]

    def is_installed(self, project_id: str, module_id: str) -> bool:
        return module_id in self._installed.get(project_id, set())

"""Dependency ordering for requested modules."""
from typing import Dict, List, Sequence, Set

from rebuilder.modules.registry import (
    CircularDependencyError,
    ModuleDescriptor,
    ModuleRegistry,
    UnknownModuleError,
)


class DependencyResolver:
    def __init__(self, registry: ModuleRegistry):
        self.registry = registry

    def resolve(self, module_ids: Sequence[str]) -> List[ModuleDescriptor]:
        """
        Order module_ids so every module follows its required dependencies.

        Only dependencies that are themselves requested are followed. Raises
        CircularDependencyError or UnknownModuleError; no partial order is
        ever returned.
        """
        requested = set(module_ids)
        resolved: List[ModuleDescriptor] = []
        visited: Set[str] = set()
        visiting: Set[str] = set()

        def visit(module_id: str) -> None:
            if module_id in visited:
                return
            if module_id in visiting:
                raise CircularDependencyError(module_id)

            visiting.add(module_id)
            module = self.registry.get(module_id)
            if module is None:
                raise UnknownModuleError(module_id)

            for dep_id in module.required_ids():
                if dep_id in requested:
                    visit(dep_id)

            visiting.discard(module_id)
            visited.add(module_id)
            resolved.append(module)

        for module_id in module_ids:
            visit(module_id)
        return resolved

    def check_dependencies(self, module_ids: Sequence[str]) -> Dict[str, object]:
        """Required dependencies missing from module_ids; unknown ids are ignored."""
        missing: List[str] = []
        for module_id in module_ids:
            module = self.registry.get(module_id)
            if module is None:
                continue
            for dep_id in module.required_ids():
                if dep_id not in module_ids and dep_id not in missing:
                    missing.append(dep_id)
        return {"satisfied": not missing, "missing": missing}

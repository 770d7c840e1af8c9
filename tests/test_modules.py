"""Tests for the module registry, dependency resolver and hook executor."""
import json
from unittest.mock import MagicMock

import pytest

from rebuilder.builders.plan import ProjectDefinition
from rebuilder.generators.types import GeneratedFile
from rebuilder.modules.builtin import default_registry
from rebuilder.modules.hooks import HookExecutor, LifecyclePhase
from rebuilder.modules.registry import (
    CircularDependencyError,
    ModuleConflictError,
    ModuleDependency,
    ModuleDependencyError,
    ModuleDescriptor,
    ModuleError,
    ModuleRegistry,
    ModuleValidationError,
    UnknownModuleError,
)
from rebuilder.modules.resolver import DependencyResolver


def module(module_id, requires=(), optional=(), conflicts=(), hooks=None):
    deps = tuple(ModuleDependency(d) for d in requires) + tuple(ModuleDependency(d, optional=True) for d in optional)
    return ModuleDescriptor(
        id=module_id,
        name=module_id.upper(),
        version="1.0.0",
        dependencies=deps,
        conflicts=tuple(conflicts),
        hooks=hooks or {},
    )


def project():
    return ProjectDefinition(
        name="demo_app",
        description="Demo",
        architecture="clean",
        state_approach="riverpod",
        flutter_version="3.16.0",
    )


@pytest.fixture
def registry():
    return ModuleRegistry()


class TestRegistry:
    def test_register_and_lookup(self, registry):
        registry.register(module("a"))
        assert registry.get("a").name == "A"
        assert registry.get("missing") is None
        assert [m.id for m in registry.list()] == ["a"]

    def test_validation(self, registry):
        with pytest.raises(ModuleValidationError):
            registry.register(ModuleDescriptor(id="", name="x", version="1"))
        with pytest.raises(ModuleValidationError):
            registry.register(ModuleDescriptor(id="x", name="x", version=""))

    def test_conflicts_checked_in_both_directions(self, registry):
        registry.register(module("a", conflicts=["b"]))
        with pytest.raises(ModuleConflictError):
            registry.register(module("b"))

        other = ModuleRegistry()
        other.register(module("b"))
        with pytest.raises(ModuleConflictError):
            other.register(module("a", conflicts=["b"]))

    def test_install_requires_installed_dependencies(self, registry):
        registry.register(module("b", requires=["a"]))

        with pytest.raises(ModuleDependencyError, match="requires a which is not installed"):
            registry.install("p1", "b")
        assert registry.get_installed("p1") == []

    def test_install_unknown_module(self, registry):
        with pytest.raises(UnknownModuleError, match="Module not found: ghost"):
            registry.install("p1", "ghost")

    def test_install_order_and_project_isolation(self, registry):
        registry.register(module("a"))
        registry.register(module("b", requires=["a"]))

        registry.install("p1", "a")
        registry.install("p1", "b")

        assert registry.is_installed("p1", "b")
        assert not registry.is_installed("p2", "a")
        assert [m.id for m in registry.get_installed("p1")] == ["a", "b"]

    def test_optional_dependency_does_not_block_install(self, registry):
        registry.register(module("pwa", optional=["drift"]))
        registry.install("p1", "pwa")
        assert registry.is_installed("p1", "pwa")

    def test_uninstall_blocked_by_dependent(self, registry):
        registry.register(module("a"))
        registry.register(module("b", requires=["a"]))
        registry.install("p1", "a")
        registry.install("p1", "b")

        with pytest.raises(ModuleDependencyError, match="required by b"):
            registry.uninstall("p1", "a")

        registry.uninstall("p1", "b")
        registry.uninstall("p1", "a")
        assert registry.get_installed("p1") == []

    def test_uninstall_not_installed(self, registry):
        registry.register(module("a"))
        with pytest.raises(ModuleError):
            registry.uninstall("p1", "a")

    def test_unregister_blocked_while_installed(self, registry):
        registry.register(module("a"))
        registry.install("p1", "a")
        with pytest.raises(ModuleError):
            registry.unregister("a")

        registry.uninstall("p1", "a")
        registry.unregister("a")
        assert registry.get("a") is None


class TestResolver:
    """Topological ordering over requested modules."""

    def test_dependencies_come_first(self, registry):
        registry.register(module("c", requires=["b"]))
        registry.register(module("b", requires=["a"]))
        registry.register(module("a"))

        ordered = DependencyResolver(registry).resolve(["c", "a", "b"])
        assert [m.id for m in ordered] == ["a", "b", "c"]

    def test_unrequested_dependencies_are_not_pulled_in(self, registry):
        registry.register(module("a"))
        registry.register(module("b", requires=["a"]))
        assert [m.id for m in DependencyResolver(registry).resolve(["b"])] == ["b"]

    def test_each_module_once(self, registry):
        registry.register(module("a"))
        registry.register(module("b", requires=["a"]))
        registry.register(module("c", requires=["a"]))
        ordered = DependencyResolver(registry).resolve(["b", "c", "a"])
        assert [m.id for m in ordered] == ["a", "b", "c"]

    def test_resolving_twice_gives_the_same_order(self, registry):
        registry.register(module("a"))
        registry.register(module("b", requires=["a"]))
        registry.register(module("c", requires=["a"]))
        registry.register(module("d", requires=["b", "c"]))
        resolver = DependencyResolver(registry)

        first = [m.id for m in resolver.resolve(["d", "c", "b", "a"])]
        second = [m.id for m in resolver.resolve(["d", "c", "b", "a"])]

        assert first == second == ["a", "b", "c", "d"]

    def test_cycle(self, registry):
        registry.register(module("a", requires=["b"]))
        registry.register(module("b", requires=["a"]))
        with pytest.raises(CircularDependencyError, match="Circular dependency detected"):
            DependencyResolver(registry).resolve(["a", "b"])

    def test_unknown_module(self, registry):
        with pytest.raises(UnknownModuleError):
            DependencyResolver(registry).resolve(["ghost"])

    def test_check_dependencies(self, registry):
        registry.register(module("a"))
        registry.register(module("b", requires=["a"], optional=["x"]))
        resolver = DependencyResolver(registry)

        assert resolver.check_dependencies(["a", "b"]) == {"satisfied": True, "missing": []}
        assert resolver.check_dependencies(["b", "ghost"]) == {"satisfied": False, "missing": ["a"]}


class TestHookExecutor:
    def test_phase_runs_in_module_order_and_collects_files(self):
        calls = []

        def gen(name):
            def hook(ctx):
                calls.append(ctx.module.id)
                return [GeneratedFile(f"{name}.txt", name)]
            return hook

        modules = [
            module("a", hooks={"generate": gen("a")}),
            module("b"),
            module("c", hooks={"generate": gen("c")}),
        ]
        files = HookExecutor().generate(project(), modules)

        assert calls == ["a", "c"]
        assert [f.path for f in files] == ["a.txt", "c.txt"]

    def test_state_is_shared_across_hooks(self, tmp_path):
        def before(ctx):
            ctx.state["seen"] = ctx.module.id

        after = MagicMock()
        modules = [module("a", hooks={"before_generate": before, "after_generate": after})]
        executor = HookExecutor(output_dir=tmp_path)

        executor.before_generate(project(), modules)
        executor.after_generate(project(), modules)

        (ctx,), _ = after.call_args
        assert ctx.state == {"seen": "a"}
        assert ctx.output_dir == tmp_path

    def test_missing_phase_is_a_no_op(self):
        assert HookExecutor().run_phase(LifecyclePhase.BEFORE_BUILD, project(), [module("a")]) == []

    def test_install_and_uninstall_hooks(self):
        install, uninstall = MagicMock(), MagicMock()
        m = module("a", hooks={"install": install, "uninstall": uninstall})
        executor = HookExecutor()

        executor.on_install(project(), m)
        executor.on_uninstall(project(), m)

        install.assert_called_once()
        uninstall.assert_called_once()


class TestBuiltinModules:
    def test_default_registry(self):
        registry = default_registry()
        assert {m.id for m in registry.list()} == {"drift", "pwa", "design", "state"}

    def test_builtin_generate_hooks(self):
        registry = default_registry()
        modules = DependencyResolver(registry).resolve(["pwa", "drift", "design", "state"])
        executor = HookExecutor()

        executor.before_generate(project(), modules)
        files = {f.path: f.content for f in executor.generate(project(), modules)}

        assert set(files) == {"build.yaml", "web/manifest.json", "lib/theme/spacing.dart"}
        manifest = json.loads(files["web/manifest.json"])
        assert manifest["name"] == "demo_app"
        assert manifest["display"] == "standalone"
        assert manifest["theme_color"] == "#6366F1"
        assert "drift_dev" in files["build.yaml"]
        assert executor.state["state_approach"] == "riverpod"

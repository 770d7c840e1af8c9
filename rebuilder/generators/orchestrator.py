"""
Regeneration orchestrator.

Executes a ``RebuildPlan`` against an output directory: skeleton, metadata
files, preserved sources, module hooks, storage, theme, state and
placeholders, then the optional post-processing commands. The outcome is
always a ``RebuildResult``; nothing raised inside a run escapes ``rebuild``.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Set

from rebuilder.builders.plan import RebuildPlan
from rebuilder.builders.utils import to_snake_case
from rebuilder.core.config import settings
from rebuilder.generators import render
from rebuilder.generators.providers import (
    CommandRunner,
    DelegatingProvider,
    GenerationContext,
    GenerationProvider,
    LocalProvider,
    ToolInvoker,
)
from rebuilder.generators.types import GeneratedFile
from rebuilder.generators.writer import copy_file, write_files
from rebuilder.modules.builtin import default_registry
from rebuilder.modules.hooks import HookExecutor
from rebuilder.modules.registry import ModuleRegistry
from rebuilder.modules.resolver import DependencyResolver
from rebuilder.schemas.imports import RebuildOptions

log = logging.getLogger(__name__)

OUTPUT_DIRS = [
    "lib",
    "lib/models",
    "lib/screens",
    "lib/widgets",
    "lib/providers",
    "lib/theme",
    "lib/services",
    "lib/utils",
    "lib/config",
    "assets/images",
    "assets/fonts",
    "test/models",
    "test/screens",
    "test/widgets",
]

# Source folder name -> folder under lib/ in the output
CATEGORY_DIRS = {
    "models": "models",
    "entities": "models",
    "screens": "screens",
    "pages": "screens",
    "widgets": "widgets",
    "components": "widgets",
    "providers": "providers",
    "theme": "theme",
    "themes": "theme",
    "utils": "utils",
    "services": "services",
    "config": "config",
}


@dataclass
class RebuildResult:
    success: bool
    output_path: str
    project_id: Optional[str] = None
    files_generated: int = 0
    files_copied: int = 0
    modules_installed: int = 0
    warnings: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "success": self.success,
            "outputPath": self.output_path,
            "projectId": self.project_id,
            "filesGenerated": self.files_generated,
            "filesCopied": self.files_copied,
            "modulesInstalled": self.modules_installed,
            "warnings": self.warnings,
            "nextSteps": self.next_steps,
            "error": self.error,
        }


def preserved_target_path(rel_path: str) -> str:
    """
    Output path for a preserved source file.

    Everything up to and including the first category folder is replaced by
    ``lib/<category>``; files outside any category keep their path under lib/.
    """
    parts = PurePosixPath(rel_path).parts
    if parts and parts[0] == "lib":
        parts = parts[1:]
    for i, part in enumerate(parts[:-1]):
        category = CATEGORY_DIRS.get(part)
        if category:
            return str(PurePosixPath("lib", category, *parts[i + 1:]))
    return str(PurePosixPath("lib", *parts))


def path_category(output_path: str) -> Optional[str]:
    parts = PurePosixPath(output_path).parts
    return parts[1] if len(parts) > 2 and parts[0] == "lib" else None


class RegenerationOrchestrator:
    def __init__(
        self,
        invoke: Optional[ToolInvoker] = None,
        provider: Optional[GenerationProvider] = None,
        registry: Optional[ModuleRegistry] = None,
        runner: Optional[CommandRunner] = None,
    ):
        if provider is None:
            provider = DelegatingProvider(invoke) if invoke else LocalProvider()
        self.provider = provider
        self.registry = registry or default_registry()
        self.resolver = DependencyResolver(self.registry)
        self.runner = runner or CommandRunner(flutter_bin=settings.flutter_bin, dart_bin=settings.dart_bin)

    def rebuild(
        self,
        plan: RebuildPlan,
        output_path: Path | str,
        options: Optional[RebuildOptions] = None,
        source_root: Optional[Path | str] = None,
    ) -> RebuildResult:
        options = options or RebuildOptions()
        out = Path(output_path)
        warnings = list(plan.warnings)
        try:
            return self._rebuild(plan, out, options, source_root, warnings)
        except Exception as e:
            log.exception(f"Rebuild into {out} failed: {e}")
            return RebuildResult(
                success=False,
                output_path=str(out),
                warnings=warnings,
                error=str(e) or e.__class__.__name__,
            )

    def _rebuild(
        self,
        plan: RebuildPlan,
        out: Path,
        options: RebuildOptions,
        source_root: Optional[Path | str],
        warnings: List[str],
    ) -> RebuildResult:
        target = plan.target
        project_id = to_snake_case(target.name) or "rebuilt_project"
        module_ids = target.module_ids()
        ctx = GenerationContext(project_id=project_id, output_dir=out, target=target, manifest=plan.manifest)

        log.info(f"Creating output skeleton in {out}")
        for d in OUTPUT_DIRS:
            (out / d).mkdir(parents=True, exist_ok=True)

        written: Set[str] = set()
        generated = 0

        metadata = [
            GeneratedFile("pubspec.yaml", render.render_pubspec(
                target.name, target.description, target.state_approach, module_ids)),
            GeneratedFile("analysis_options.yaml", render.render_analysis_options()),
            GeneratedFile("README.md", render.render_readme(
                target.name, target.description, target.architecture,
                target.state_approach, module_ids, warnings)),
        ]
        written.update(write_files(metadata, out))
        generated += len(metadata)

        root = Path(source_root or plan.source_root or ".")
        copied, preserved_categories = self._copy_preserved(plan, root, out, written, warnings)

        modules = self.resolver.resolve(module_ids)
        executor = HookExecutor(output_dir=out)
        for module in modules:
            if not self.registry.is_installed(project_id, module.id):
                self.registry.install(project_id, module.id)
                executor.on_install(target, module)

        executor.before_generate(target, modules)
        hook_files = executor.generate(target, modules)
        written.update(write_files(hook_files, out))
        generated += len(hook_files)
        executor.after_generate(target, modules)

        has_database = bool(plan.storage_schemas)
        if has_database:
            generated += self.provider.generate_storage(ctx, plan.storage_schemas, target.encryption)

        if "lib/main.dart" not in written:
            written.update(write_files([GeneratedFile(
                "lib/main.dart",
                render.render_main_dart(target.name, target.state_approach, has_database),
            )], out))
            generated += 1

        if plan.manifest.theme_files and "theme" not in preserved_categories:
            generated += self.provider.generate_theme(ctx)

        placeholders = self._placeholders(plan, written, copied)
        written.update(write_files(placeholders, out))
        generated += len(placeholders)

        if plan.manifest.state_files and "providers" not in preserved_categories:
            generated += self.provider.generate_state(ctx)

        if options.run_bootstrap and not self.runner.bootstrap(out).ok:
            warnings.append("flutter create failed - you may need to run it manually")
        if options.format_code and not self.runner.format(out).ok:
            warnings.append("dart format failed - you may need to run it manually")

        if options.generate_tests:
            package = to_snake_case(target.name).replace("-", "_")
            write_files([GeneratedFile(
                "test/widget_test.dart",
                render.render_widget_test(package, target.state_approach),
            )], out)
            generated += 1

        next_steps = [
            f"cd {out}",
            "flutter pub get" if options.run_bootstrap else "flutter create . && flutter pub get",
        ]
        if has_database:
            next_steps.append("dart run build_runner build --delete-conflicting-outputs")
        next_steps.append("flutter run -d chrome")

        log.info(f"Rebuilt {target.name}: {generated} generated, {len(copied)} copied, {len(modules)} modules")
        return RebuildResult(
            success=True,
            output_path=str(out),
            project_id=project_id,
            files_generated=generated,
            files_copied=len(copied),
            modules_installed=len(modules),
            warnings=warnings,
            next_steps=next_steps,
        )

    def _copy_preserved(self, plan: RebuildPlan, root: Path, out: Path, written: Set[str], warnings: List[str]):
        copied: Set[str] = set()
        categories: Set[str] = set()
        for rel_path in plan.preserved_files:
            source = root / rel_path
            if not source.is_file():
                warnings.append(f"Preserved file not found: {rel_path}")
                continue
            dest = preserved_target_path(rel_path)
            copy_file(source, out / dest)
            written.add(dest)
            category = path_category(dest)
            if category:
                categories.add(category)
            copied.add(rel_path)
        return copied, categories

    def _placeholders(self, plan: RebuildPlan, written: Set[str], copied: Set[str]) -> List[GeneratedFile]:
        """Entity and screen files from the manifest that no preserved file satisfies."""
        files: List[GeneratedFile] = []
        migrated = {m.name: m for m in plan.entity_migrations if m.action == "migrate"}
        fields = {}
        for schema in plan.storage_schemas or []:
            fields[schema.source_entity_name] = [
                {"name": c.source_name, "type": _dart_type(c.storage_type, c.nullable)}
                for c in schema.columns
            ]

        for name, migration in migrated.items():
            path = f"lib/models/{to_snake_case(name)}.dart"
            if path in plan.manifest.entity_files and path not in written:
                files.append(GeneratedFile(
                    path, render.render_entity_placeholder(name, migration.source, fields.get(name, []))
                ))

        for screen in plan.screen_migrations:
            if screen.source in copied:
                continue
            path = f"lib/screens/{to_snake_case(screen.name)}.dart"
            if path in plan.manifest.screen_files and path not in written:
                files.append(GeneratedFile(path, render.render_screen_placeholder(screen.name, screen.source)))
                written.add(path)
        return files


DART_TYPES = {
    "integer": "int",
    "real": "double",
    "boolean": "bool",
    "dateTime": "DateTime",
    "blob": "List<int>",
    "text": "String",
}


def _dart_type(storage_type: str, nullable: bool) -> str:
    dart = DART_TYPES.get(storage_type, "String")
    return f"{dart}?" if nullable else dart

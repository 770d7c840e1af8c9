"""
Rebuild plan construction.

Combines the analysis with the user's ``RebuildOptions`` into one
``RebuildPlan``: the target project definition, per-item migration actions,
the generation manifest and the files to carry over unchanged. Problems are
reported as warnings on the plan, never raised.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rebuilder.analyzers.architecture import CUSTOM, LAYER_FIRST
from rebuilder.analyzers.project import AnalysisResult
from rebuilder.builders.schema_mapper import TableSchema, entities_to_table_schemas
from rebuilder.builders.utils import to_snake_case
from rebuilder.schemas.imports import RebuildOptions

log = logging.getLogger(__name__)

FALLBACK_ARCHITECTURE = LAYER_FIRST
DEFAULT_STATE_APPROACH = "riverpod"
LOW_CONFIDENCE_THRESHOLD = 70
LARGE_MIGRATION_THRESHOLD = 20
DEFAULT_PRIMARY_COLOR = "#6366F1"

THEME_FILES = [
    "lib/theme/app_theme.dart",
    "lib/theme/design_tokens.dart",
    "lib/theme/gradients.dart",
    "lib/theme/glass_components.dart",
]
STATE_FILES = ["lib/providers/app_providers.dart"]


@dataclass
class ModuleRequest:
    id: str
    enabled: bool = True
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ProjectDefinition:
    name: str
    description: str
    architecture: str
    state_approach: str
    flutter_version: str
    targets: List[str] = field(default_factory=lambda: ["web"])
    offline: bool = False
    encryption: bool = False
    primary_color: str = DEFAULT_PRIMARY_COLOR
    modules: List[ModuleRequest] = field(default_factory=list)

    def module_ids(self) -> List[str]:
        return [m.id for m in self.modules if m.enabled]


@dataclass
class Migration:
    action: str  # preserve | migrate | preserve-structure | regenerate
    source: str
    name: str


@dataclass
class GenerationManifest:
    theme_files: List[str] = field(default_factory=list)
    entity_files: List[str] = field(default_factory=list)
    screen_files: List[str] = field(default_factory=list)
    widget_files: List[str] = field(default_factory=list)
    state_files: List[str] = field(default_factory=list)


@dataclass
class RebuildPlan:
    target: ProjectDefinition
    entity_migrations: List[Migration] = field(default_factory=list)
    screen_migrations: List[Migration] = field(default_factory=list)
    widget_migrations: List[Migration] = field(default_factory=list)
    manifest: GenerationManifest = field(default_factory=GenerationManifest)
    preserved_files: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    storage_schemas: Optional[List[TableSchema]] = None
    # Directory preserved_files are relative to
    source_root: str = ""

    def to_dict(self) -> Dict[str, Any]:
        def migrations(items: List[Migration]) -> List[Dict[str, str]]:
            return [{"action": m.action, "source": m.source, "name": m.name} for m in items]

        return {
            "target": {
                "name": self.target.name,
                "description": self.target.description,
                "architecture": self.target.architecture,
                "stateApproach": self.target.state_approach,
                "flutterVersion": self.target.flutter_version,
                "targets": self.target.targets,
                "offline": self.target.offline,
                "encryption": self.target.encryption,
                "primaryColor": self.target.primary_color,
                "modules": self.target.module_ids(),
            },
            "migrations": {
                "entities": migrations(self.entity_migrations),
                "screens": migrations(self.screen_migrations),
                "widgets": migrations(self.widget_migrations),
            },
            "generationManifest": {
                "themeFiles": self.manifest.theme_files,
                "entityFiles": self.manifest.entity_files,
                "screenFiles": self.manifest.screen_files,
                "widgetFiles": self.manifest.widget_files,
                "stateFiles": self.manifest.state_files,
            },
            "preservedFiles": self.preserved_files,
            "warnings": self.warnings,
            "storageSchemas": (
                [s.to_dict() for s in self.storage_schemas]
                if self.storage_schemas is not None else None
            ),
        }


def resolve_architecture(detected: str, requested: str) -> str:
    architecture = detected if requested == "keep" else requested
    return FALLBACK_ARCHITECTURE if architecture == CUSTOM else architecture


def resolve_state_approach(detected: str, requested: str) -> str:
    if requested != "keep":
        return requested
    return DEFAULT_STATE_APPROACH if detected == "none" else detected


def build_rebuild_plan(analysis: AnalysisResult, options: Optional[RebuildOptions] = None) -> RebuildPlan:
    """Combine an analysis and options into a rebuild plan."""
    options = options or RebuildOptions()
    architecture = analysis.architecture
    detected_state = analysis.dependencies.state_management
    theme = analysis.theme
    source_theme_files = list(theme.theme_files) if theme else []

    modules: List[ModuleRequest] = []
    if options.add_offline_support:
        modules.append(ModuleRequest("drift"))
        modules.append(ModuleRequest("pwa"))
    if options.apply_design_system:
        modules.append(ModuleRequest("design"))
    modules.append(ModuleRequest("state"))

    target = ProjectDefinition(
        name=analysis.name,
        description=analysis.description,
        architecture=resolve_architecture(architecture.detected, options.target_architecture),
        state_approach=resolve_state_approach(detected_state, options.target_state_approach),
        flutter_version=analysis.flutter_version or "3.10.0",
        offline=options.add_offline_support,
        encryption=options.add_offline_support and options.enable_encryption,
        primary_color=(theme.primary_color if theme and theme.primary_color else DEFAULT_PRIMARY_COLOR),
        modules=modules,
    )

    entity_action = "preserve" if options.keep_entities else "migrate"
    screen_action = "preserve-structure" if options.keep_screen_structure else "regenerate"

    plan = RebuildPlan(
        target=target,
        entity_migrations=[Migration(entity_action, e.source_path, e.name) for e in analysis.entities],
        screen_migrations=[Migration(screen_action, s.source_path, s.name) for s in analysis.screens],
        widget_migrations=[Migration("preserve", w.source_path, w.name) for w in analysis.widgets],
        manifest=GenerationManifest(
            # A source theme is carried over instead of generating one
            theme_files=list(THEME_FILES) if options.apply_design_system and not source_theme_files else [],
            entity_files=(
                [] if options.keep_entities
                else [f"lib/models/{to_snake_case(e.name)}.dart" for e in analysis.entities]
            ),
            screen_files=[f"lib/screens/{to_snake_case(s.name)}.dart" for s in analysis.screens],
            widget_files=[],
            state_files=list(STATE_FILES),
        ),
        source_root=analysis.scan_root or analysis.root,
    )

    preserved: List[str] = []
    if options.keep_entities:
        preserved.extend(e.source_path for e in analysis.entities)
    if options.keep_screen_structure:
        preserved.extend(s.source_path for s in analysis.screens)
    preserved.extend(w.source_path for w in analysis.widgets)
    preserved.extend(source_theme_files)
    # One file may declare several classes
    plan.preserved_files = list(dict.fromkeys(preserved))

    if options.add_offline_support:
        plan.storage_schemas = entities_to_table_schemas(analysis.entities)

    if architecture.confidence < LOW_CONFIDENCE_THRESHOLD:
        plan.warnings.append(
            f"Low architecture confidence ({architecture.confidence}%). Manual review recommended."
        )
    if detected_state == "none":
        plan.warnings.append(f"No state management detected. Adding {DEFAULT_STATE_APPROACH} by default.")
    if not options.keep_entities and len(analysis.entities) > LARGE_MIGRATION_THRESHOLD:
        plan.warnings.append(
            f"Migrating {len(analysis.entities)} entities. This may require manual adjustments."
        )

    log.info(
        f"Rebuild plan for {target.name}: {target.architecture}/{target.state_approach}, "
        f"modules={target.module_ids()}, {len(plan.preserved_files)} preserved files"
    )
    return plan

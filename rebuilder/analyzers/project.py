"""Whole-project analysis: classifier, extractors and dependency inventory."""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from rebuilder.analyzers.architecture import ArchitectureResult, detect_architecture
from rebuilder.analyzers.entities import EntityDefinition, discover_entities
from rebuilder.analyzers.pubspec import DependencyInventory, PubspecInfo, parse_pubspec
from rebuilder.analyzers.screens import (
    ScreenDefinition,
    WidgetDefinition,
    extract_screens,
    extract_widgets,
)
from rebuilder.analyzers.theme import ThemeInfo, extract_theme
from rebuilder.core.config import settings

log = logging.getLogger(__name__)

ANALYSIS_DEPTHS = ("shallow", "medium", "deep")


@dataclass
class AnalysisResult:
    name: str
    description: str
    flutter_version: str
    dart_version: str
    architecture: ArchitectureResult
    dependencies: DependencyInventory
    entities: List[EntityDefinition] = field(default_factory=list)
    screens: List[ScreenDefinition] = field(default_factory=list)
    widgets: List[WidgetDefinition] = field(default_factory=list)
    theme: Optional[ThemeInfo] = None
    stats: Dict[str, int] = field(default_factory=dict)
    notes: List[str] = field(default_factory=list)
    root: str = ""
    # Directory that entity, screen and widget paths are relative to
    scan_root: str = ""

    def summary(self) -> Dict[str, Any]:
        """JSON-friendly view written to analysis.json."""
        return {
            "name": self.name,
            "description": self.description,
            "flutterVersion": self.flutter_version,
            "dartVersion": self.dart_version,
            "architecture": {
                "detected": self.architecture.detected,
                "confidence": self.architecture.confidence,
                "reasoning": list(self.architecture.reasoning),
            },
            "stateManagement": self.dependencies.state_management,
            "database": self.dependencies.database,
            "entities": [
                {
                    "name": e.name,
                    "sourcePath": e.source_path,
                    "fields": [{"name": f.name, "type": f.type, "nullable": f.nullable} for f in e.fields],
                    "relationships": [
                        {"kind": r.kind, "target": r.target, "fieldName": r.field_name}
                        for r in e.relationships
                    ],
                    "isImmutable": e.is_immutable,
                    "hasSerializationMarkers": e.has_serialization_markers,
                }
                for e in self.entities
            ],
            "screens": [{"name": s.name, "sourcePath": s.source_path, "route": s.route} for s in self.screens],
            "widgets": [{"name": w.name, "sourcePath": w.source_path} for w in self.widgets],
            "theme": self.theme.to_dict() if self.theme else None,
            "stats": self.stats,
            "notes": self.notes,
        }


def collect_stats(root: Path) -> Dict[str, int]:
    dart_files = 0
    test_files = 0
    lines = 0
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if not d.startswith(".") and d != "build"]
        for filename in filenames:
            if not filename.endswith(".dart"):
                continue
            dart_files += 1
            if filename.endswith("_test.dart"):
                test_files += 1
            try:
                with open(os.path.join(dirpath, filename), encoding="utf-8", errors="ignore") as f:
                    lines += sum(1 for _ in f)
            except OSError:
                continue
    return {"totalDartFiles": dart_files, "testFiles": test_files, "linesOfCode": lines}


def analyze_project(root: Path, analysis_depth: str = "deep") -> AnalysisResult:
    """
    Analyze a Flutter project tree.

    shallow extracts entities only, medium adds screens, deep adds widgets
    and the theme.
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Project root not found: {root}")
    if analysis_depth not in ANALYSIS_DEPTHS:
        raise ValueError(f"Unknown analysis depth: {analysis_depth}")

    notes: List[str] = []
    try:
        pubspec = parse_pubspec(root)
    except FileNotFoundError as e:
        log.warning(str(e))
        pubspec = PubspecInfo(name=root.name)
        notes.append("No pubspec.yaml found; using default dependency inventory.")
    except (yaml.YAMLError, ValueError) as e:
        log.warning(f"Unreadable pubspec.yaml in {root}: {e}")
        pubspec = PubspecInfo(name=root.name)
        notes.append("pubspec.yaml could not be parsed; using default dependency inventory.")

    lib_dir = root / "lib"
    scan_root = lib_dir if lib_dir.is_dir() else root
    architecture = detect_architecture(scan_root, settings.classifier_depth)

    entity_result = discover_entities(scan_root)
    if entity_result.files_failed:
        notes.append(f"Failed to read {len(entity_result.files_failed)} entity file(s).")
    if not entity_result.entities:
        notes.append("No entities found in conventional model/entity locations.")

    screens: List[ScreenDefinition] = []
    widgets: List[WidgetDefinition] = []
    theme: Optional[ThemeInfo] = None
    if analysis_depth in ("medium", "deep"):
        screens = extract_screens(scan_root)
    if analysis_depth == "deep":
        widgets = extract_widgets(scan_root)
        theme = extract_theme(scan_root)

    dart_version = pubspec.dart_min_version
    if pubspec.dart_max_version:
        dart_version = f"{dart_version} <{pubspec.dart_max_version}"

    log.info(
        f"Analyzed {pubspec.name}: {architecture.detected} ({architecture.confidence}%), "
        f"{len(entity_result.entities)} entities, {len(screens)} screens, {len(widgets)} widgets"
    )

    return AnalysisResult(
        name=pubspec.name,
        description=pubspec.description,
        flutter_version=pubspec.flutter_version,
        dart_version=dart_version,
        architecture=architecture,
        dependencies=pubspec.dependencies,
        entities=entity_result.entities,
        screens=screens,
        widgets=widgets,
        theme=theme,
        stats=collect_stats(root),
        notes=notes,
        root=str(root),
        scan_root=str(scan_root),
    )

"""pubspec.yaml parsing and dependency inventory."""
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

log = logging.getLogger(__name__)

STATE_PACKAGES: Dict[str, List[str]] = {
    "riverpod": ["flutter_riverpod", "riverpod", "hooks_riverpod"],
    "bloc": ["flutter_bloc", "bloc", "hydrated_bloc"],
    "provider": ["provider"],
    "getx": ["get", "getx"],
    "mobx": ["flutter_mobx", "mobx"],
}

DATABASE_PACKAGES: Dict[str, List[str]] = {
    "drift": ["drift", "drift_flutter", "moor", "moor_flutter"],
    "sqflite": ["sqflite"],
    "hive": ["hive", "hive_flutter"],
    "isar": ["isar", "isar_flutter_libs"],
}

NETWORK_PACKAGES: Dict[str, List[str]] = {
    "dio": ["dio"],
    "http": ["http"],
    "chopper": ["chopper"],
    "retrofit": ["retrofit"],
}

NAVIGATION_PACKAGES: Dict[str, List[str]] = {
    "go_router": ["go_router"],
    "auto_route": ["auto_route"],
}

MIN_VERSION_PATTERN = re.compile(r">=?\s*([\d.]+)")
MAX_VERSION_PATTERN = re.compile(r"<\s*([\d.]+)")


@dataclass
class DependencyInventory:
    state_management: str = "none"
    state_packages: List[str] = field(default_factory=list)
    database: str = "none"
    database_packages: List[str] = field(default_factory=list)
    networking: str = "none"
    network_packages: List[str] = field(default_factory=list)
    navigation: str = "none"
    navigation_packages: List[str] = field(default_factory=list)
    uses_freezed: bool = False
    uses_json_serializable: bool = False
    uses_build_runner: bool = False
    dependencies: Dict[str, Any] = field(default_factory=dict)
    dev_dependencies: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PubspecInfo:
    name: str
    description: str = ""
    version: str = "1.0.0"
    flutter_version: str = "3.0.0"
    dart_min_version: str = "3.0.0"
    dart_max_version: Optional[str] = None
    dependencies: DependencyInventory = field(default_factory=DependencyInventory)
    assets: List[str] = field(default_factory=list)
    fonts: List[str] = field(default_factory=list)


def detect_category(deps: Dict[str, Any], categories: Dict[str, List[str]]) -> str:
    """First category whose package list intersects deps, else 'none'."""
    for category, packages in categories.items():
        if any(pkg in deps for pkg in packages):
            return category
    return "none"


def matching_packages(deps: Dict[str, Any], categories: Dict[str, List[str]]) -> List[str]:
    return [pkg for packages in categories.values() for pkg in packages if pkg in deps]


def _min_version(constraint: Any, default: str) -> str:
    match = MIN_VERSION_PATTERN.search(str(constraint or ""))
    return match.group(1) if match else default


def build_inventory(dependencies: Dict[str, Any], dev_dependencies: Dict[str, Any]) -> DependencyInventory:
    all_deps = {**dependencies, **dev_dependencies}
    return DependencyInventory(
        state_management=detect_category(all_deps, STATE_PACKAGES),
        state_packages=matching_packages(all_deps, STATE_PACKAGES),
        database=detect_category(all_deps, DATABASE_PACKAGES),
        database_packages=matching_packages(all_deps, DATABASE_PACKAGES),
        networking=detect_category(all_deps, NETWORK_PACKAGES),
        network_packages=matching_packages(all_deps, NETWORK_PACKAGES),
        navigation=detect_category(all_deps, NAVIGATION_PACKAGES),
        navigation_packages=matching_packages(all_deps, NAVIGATION_PACKAGES),
        uses_freezed="freezed" in all_deps or "freezed_annotation" in all_deps,
        uses_json_serializable="json_serializable" in all_deps or "json_annotation" in all_deps,
        uses_build_runner="build_runner" in all_deps,
        dependencies=dependencies,
        dev_dependencies=dev_dependencies,
    )


def _mapping(value: Any, key: str) -> Dict[str, Any]:
    if not value:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"pubspec.yaml '{key}' must be a mapping, got {type(value).__name__}")
    return value


def parse_pubspec(project_root: Path) -> PubspecInfo:
    """
    Read pubspec.yaml from project_root.

    Raises:
        FileNotFoundError: if the project has no pubspec.yaml
        yaml.YAMLError: if the file is not valid YAML
        ValueError: if the document or one of its sections is not a mapping
    """
    pubspec_path = Path(project_root) / "pubspec.yaml"
    if not pubspec_path.exists():
        raise FileNotFoundError(f"pubspec.yaml not found at {pubspec_path}")

    data = _mapping(yaml.safe_load(pubspec_path.read_text(encoding="utf-8")), "document")
    environment = _mapping(data.get("environment"), "environment")
    flutter_section = _mapping(data.get("flutter"), "flutter")
    sdk = str(environment.get("sdk") or ">=3.0.0 <4.0.0")
    max_match = MAX_VERSION_PATTERN.search(sdk)

    return PubspecInfo(
        name=data.get("name") or "unknown",
        description=data.get("description") or "",
        version=str(data.get("version") or "1.0.0"),
        flutter_version=_min_version(environment.get("flutter"), "3.0.0"),
        dart_min_version=_min_version(sdk, "3.0.0"),
        dart_max_version=max_match.group(1) if max_match else None,
        dependencies=build_inventory(
            _mapping(data.get("dependencies"), "dependencies"),
            _mapping(data.get("dev_dependencies"), "dev_dependencies"),
        ),
        assets=list(flutter_section.get("assets") or []),
        fonts=[f["family"] for f in flutter_section.get("fonts") or [] if isinstance(f, dict) and f.get("family")],
    )

"""Modules shipped with the platform."""
import json
import logging
from typing import List

import yaml

from rebuilder.generators.types import GeneratedFile
from rebuilder.modules.hooks import HookContext
from rebuilder.modules.registry import ModuleDependency, ModuleDescriptor, ModuleRegistry

log = logging.getLogger(__name__)

BACKGROUND_COLOR = "#FFFFFF"


def _drift_generate(ctx: HookContext) -> List[GeneratedFile]:
    config = {
        "targets": {
            "$default": {
                "builders": {
                    "drift_dev": {
                        "options": {
                            "store_date_time_values_as_text": True,
                            "named_parameters": True,
                        }
                    }
                }
            }
        }
    }
    return [GeneratedFile("build.yaml", yaml.safe_dump(config, sort_keys=False))]


def _pwa_generate(ctx: HookContext) -> List[GeneratedFile]:
    project = ctx.project
    manifest = {
        "name": project.name,
        "short_name": project.name[:12],
        "description": project.description,
        "start_url": "/",
        "scope": "/",
        "display": "standalone",
        "orientation": "any",
        "theme_color": project.primary_color,
        "background_color": BACKGROUND_COLOR,
        "icons": [],
    }
    if ctx.state.get("offline_storage"):
        manifest["description"] = (manifest["description"] + " (offline-first)").strip()
    return [GeneratedFile("web/manifest.json", json.dumps(manifest, indent=2) + "\n")]


def _drift_before_generate(ctx: HookContext) -> None:
    ctx.state["offline_storage"] = "drift"


def _design_generate(ctx: HookContext) -> List[GeneratedFile]:
    content = "\n".join([
        "import 'package:flutter/widgets.dart';",
        "",
        "class Spacing {",
        "  static const double xs = 4;",
        "  static const double sm = 8;",
        "  static const double md = 16;",
        "  static const double lg = 24;",
        "  static const double xl = 32;",
        "}",
        "",
        "class Radii {",
        "  static const Radius card = Radius.circular(16);",
        "  static const Radius button = Radius.circular(12);",
        "}",
        "",
    ])
    return [GeneratedFile("lib/theme/spacing.dart", content)]


def _state_before_generate(ctx: HookContext) -> None:
    ctx.state["state_approach"] = ctx.project.state_approach
    log.debug(f"State approach for {ctx.project.name}: {ctx.project.state_approach}")


DRIFT_MODULE = ModuleDescriptor(
    id="drift",
    name="Drift offline storage",
    version="1.0.0",
    description="SQLite tables and DAOs through Drift, with web (WASM/OPFS) support",
    hooks={"before_generate": _drift_before_generate, "generate": _drift_generate},
)

PWA_MODULE = ModuleDescriptor(
    id="pwa",
    name="Progressive web app",
    version="1.0.0",
    description="Web manifest and installability",
    dependencies=(ModuleDependency("drift", optional=True),),
    hooks={"generate": _pwa_generate},
)

DESIGN_MODULE = ModuleDescriptor(
    id="design",
    name="Design system",
    version="1.0.0",
    description="Theme, design tokens and glass components",
    hooks={"generate": _design_generate},
)

STATE_MODULE = ModuleDescriptor(
    id="state",
    name="State management",
    version="1.0.0",
    description="Riverpod or Bloc application state",
    hooks={"before_generate": _state_before_generate},
)

BUILTIN_MODULES = (DRIFT_MODULE, PWA_MODULE, DESIGN_MODULE, STATE_MODULE)


def default_registry() -> ModuleRegistry:
    registry = ModuleRegistry()
    for module in BUILTIN_MODULES:
        registry.register(module)
    return registry

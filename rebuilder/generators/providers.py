"""
Generation collaborators used by the orchestrator.

``GenerationProvider`` produces storage, theme and state code. The
delegating implementation forwards each request to a tool-invocation
callback; the local implementation renders simplified Dart sources itself.
``CommandRunner`` runs the post-processing commands.
"""
from __future__ import annotations
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from rebuilder.builders.plan import GenerationManifest, ProjectDefinition
from rebuilder.builders.schema_mapper import TableSchema
from rebuilder.generators import render
from rebuilder.generators.render_storage import storage_files
from rebuilder.generators.types import GeneratedFile
from rebuilder.generators.writer import write_files

log = logging.getLogger(__name__)

ToolInvoker = Callable[[str, Dict[str, Any]], Any]


@dataclass
class GenerationContext:
    project_id: str
    output_dir: Path
    target: ProjectDefinition
    manifest: GenerationManifest


class GenerationProvider:
    """Produces code for one capability; returns the number of files produced."""

    def generate_storage(self, ctx: GenerationContext, schemas: List[TableSchema], encryption: bool) -> int:
        raise NotImplementedError

    def generate_theme(self, ctx: GenerationContext) -> int:
        raise NotImplementedError

    def generate_state(self, ctx: GenerationContext) -> int:
        raise NotImplementedError


class DelegatingProvider(GenerationProvider):
    """Forwards generation to the surrounding tool system."""

    def __init__(self, invoke: ToolInvoker):
        self.invoke = invoke

    def generate_storage(self, ctx, schemas, encryption):
        for schema in schemas:
            log.info(f"Delegating table {schema.name} to drift_add_table")
            self.invoke("drift_add_table", {
                "projectId": ctx.project_id,
                "name": schema.name,
                "columns": schema.to_dict()["columns"],
                "timestamps": schema.has_timestamps,
                "softDelete": schema.has_soft_delete,
            })
        if encryption:
            self.invoke("drift_enable_encryption", {"projectId": ctx.project_id, "strategy": "stored"})
        return len(schemas)

    def generate_theme(self, ctx):
        self.invoke("design_generate_theme", {
            "projectId": ctx.project_id,
            "primaryColor": ctx.target.primary_color,
            "darkMode": True,
            "glassmorph": True,
        })
        return 1

    def generate_state(self, ctx):
        count = 0
        for path in ctx.manifest.state_files:
            name = Path(path).stem
            if ctx.target.state_approach == "bloc":
                self.invoke("state_create_bloc", {
                    "projectId": ctx.project_id,
                    "name": name,
                    "events": ["LoadData", "UpdateData"],
                    "states": ["Initial", "Loading", "Loaded", "Error"],
                    "useEquatable": True,
                })
            else:
                self.invoke("state_create_provider", {
                    "projectId": ctx.project_id,
                    "name": name,
                    "stateType": "Map<String, dynamic>",
                    "autoDispose": True,
                })
            count += 1
        return count


class LocalProvider(GenerationProvider):
    """Writes simplified Dart sources directly into the output directory."""

    def generate_storage(self, ctx, schemas, encryption):
        if not schemas:
            return 0
        files = storage_files(schemas, ctx.target.name, encryption)
        return len(write_files(files, ctx.output_dir))

    def generate_theme(self, ctx):
        files = []
        for path in ctx.manifest.theme_files:
            renderer = render.THEME_RENDERERS.get(Path(path).name)
            if renderer is None:
                log.warning(f"No local renderer for theme file {path}")
                continue
            files.append(GeneratedFile(path, renderer(ctx.target.primary_color)))
        return len(write_files(files, ctx.output_dir))

    def generate_state(self, ctx):
        if ctx.target.state_approach == "bloc":
            content = render.render_bloc_providers(ctx.target.name)
        else:
            content = render.render_riverpod_providers(ctx.target.name)
        files = [GeneratedFile(path, content) for path in ctx.manifest.state_files]
        return len(write_files(files, ctx.output_dir))


@dataclass
class CommandOutcome:
    ok: bool
    stdout: str = ""
    stderr: str = ""


@dataclass
class CommandRunner:
    """Runs external commands with captured output; failures are returned, not raised."""
    flutter_bin: str = "flutter"
    dart_bin: str = "dart"
    timeout: Optional[int] = 600

    def run(self, cmd: Sequence[str], cwd: Path) -> CommandOutcome:
        log.info(f"Running {' '.join(cmd)} in {cwd}")
        try:
            proc = subprocess.run(
                list(cmd),
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            log.warning(f"Command {cmd[0]} could not run: {e}")
            return CommandOutcome(False, "", str(e))
        if proc.returncode != 0:
            log.warning(f"Command {' '.join(cmd)} exited with {proc.returncode}: {proc.stderr.strip()}")
        return CommandOutcome(proc.returncode == 0, proc.stdout, proc.stderr)

    def bootstrap(self, cwd: Path) -> CommandOutcome:
        return self.run([self.flutter_bin, "create", ".", "--platforms=web,android,ios"], cwd)

    def format(self, cwd: Path) -> CommandOutcome:
        return self.run([self.dart_bin, "format", "."], cwd)

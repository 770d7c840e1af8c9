"""Shared fixtures: source trees written into temporary directories."""
from pathlib import Path
from typing import Dict

import pytest

from rebuilder.analyzers.architecture import ArchitectureResult, FolderNode
from rebuilder.analyzers.entities import EntityDefinition, FieldDefinition
from rebuilder.analyzers.project import AnalysisResult
from rebuilder.analyzers.pubspec import DependencyInventory


def write_tree(root: Path, files: Dict[str, str]) -> Path:
    """Create files (relative path -> content) under root; a trailing '/' makes a directory."""
    for rel_path, content in files.items():
        path = root / rel_path
        if rel_path.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_tree(tmp_path):
    def _make(files: Dict[str, str], name: str = "source") -> Path:
        return write_tree(tmp_path / name, files)
    return _make


USER_ENTITY = "class User { final int id; final String name; }\n"

CLEAN_TREE = {
    "domain/user.dart": USER_ENTITY,
    "data/": "",
    "presentation/": "",
}


def make_analysis(
    architecture="clean",
    confidence=90,
    state="riverpod",
    entities=None,
    screens=None,
    widgets=None,
    scan_root="/src/lib",
    theme=None,
):
    """AnalysisResult built directly, without scanning a tree."""
    if entities is None:
        entities = [EntityDefinition(
            name="User",
            source_path="domain/user.dart",
            fields=(FieldDefinition("id", "int", False), FieldDefinition("name", "String", False)),
        )]
    return AnalysisResult(
        name="demo_app",
        description="Demo",
        flutter_version="3.16.0",
        dart_version="3.2.0",
        architecture=ArchitectureResult(
            detected=architecture,
            confidence=confidence,
            structure=FolderNode(name="lib", path=str(scan_root), kind="directory", children=[]),
        ),
        dependencies=DependencyInventory(state_management=state),
        entities=entities,
        screens=screens or [],
        widgets=widgets or [],
        theme=theme,
        root=str(scan_root),
        scan_root=str(scan_root),
    )

"""File writer for generated project files."""
import shutil
from pathlib import Path
from typing import List
from rebuilder.generators.types import GeneratedFile


def write_files(files: List[GeneratedFile], out_dir: Path) -> List[str]:
    """
    Write generated files to the output directory.

    Args:
        files: List of GeneratedFile objects to write
        out_dir: Base output directory path

    Returns:
        Relative paths written, in order
    """
    out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for file in files:
        file_path = out_dir / file.path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(file.content, encoding="utf-8")
        written.append(file.path)
    return written


def copy_file(source: Path, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, destination)

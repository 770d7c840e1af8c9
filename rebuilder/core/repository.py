"""Repository acquisition: shallow clones of the source project."""
from __future__ import annotations
import logging
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from git import Repo

log = logging.getLogger(__name__)

REPO_NAME_PATTERN = re.compile(r"/([^/]+?)(?:\.git)?/?$")


@dataclass
class CloneResult:
    success: bool
    local_path: str
    repo_name: str
    branch: str
    commit: str
    size_bytes: int
    error: Optional[str] = None


def extract_repo_name(url: str) -> str:
    """Derive the repository name from a clone URL."""
    match = REPO_NAME_PATTERN.search(url)
    return match.group(1) if match else "repo"


def directory_size(path: Path) -> int:
    """Total size in bytes of all files below path, ignoring .git."""
    size = 0
    for item in path.iterdir():
        if item.is_dir():
            if item.name != ".git":
                size += directory_size(item)
        elif item.is_file():
            size += item.stat().st_size
    return size


def clone_repository(
    url: str,
    branch: str = "main",
    depth: int = 1,
    dest_root: Optional[Path] = None,
) -> CloneResult:
    """
    Shallow-clone a single branch of a repository.

    Args:
        url: Remote URL (or local path) of the repository
        branch: Branch to check out
        depth: Clone depth
        dest_root: Directory the checkout is created in; a temp dir when omitted

    Returns:
        CloneResult describing the checkout, or the failure
    """
    repo_name = extract_repo_name(url)
    if dest_root is None:
        dest_root = Path(tempfile.mkdtemp(prefix="rebuilder-"))
    local_path = Path(dest_root) / repo_name

    try:
        log.info(f"Cloning {url} (branch={branch}, depth={depth}) into {local_path}")
        repo = Repo.clone_from(
            url,
            local_path,
            branch=branch,
            depth=depth,
            single_branch=True,
        )
        commit = repo.head.commit.hexsha
        size = directory_size(local_path)
        return CloneResult(
            success=True,
            local_path=str(local_path),
            repo_name=repo_name,
            branch=branch,
            commit=commit,
            size_bytes=size,
        )
    except Exception as e:
        log.warning(f"Clone of {url} failed: {e}")
        cleanup_clone(local_path)
        return CloneResult(
            success=False,
            local_path="",
            repo_name=repo_name,
            branch=branch,
            commit="",
            size_bytes=0,
            error=str(e) or "Clone failed",
        )


def cleanup_clone(local_path: Path | str) -> None:
    path = Path(local_path)
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        log.warning(f"Failed to cleanup {path}: {e}")


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"

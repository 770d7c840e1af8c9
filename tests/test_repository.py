"""Tests for repository acquisition with GitPython mocked out."""
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from git.exc import GitCommandError

from rebuilder.core.repository import (
    cleanup_clone,
    clone_repository,
    directory_size,
    extract_repo_name,
    format_bytes,
)


def fake_checkout(url, to_path, **kwargs):
    """Stands in for Repo.clone_from: writes a small tree and returns a repo handle."""
    root = Path(to_path)
    (root / ".git").mkdir(parents=True)
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n" * 100)
    (root / "lib").mkdir()
    (root / "lib" / "main.dart").write_text("void main() {}\n")
    (root / "pubspec.yaml").write_text("name: app\n")
    repo = MagicMock()
    repo.head.commit.hexsha = "0123456789abcdef"
    return repo


class TestCloneRepository:
    def test_successful_clone(self, tmp_path):
        with patch("rebuilder.core.repository.Repo") as repo_cls:
            repo_cls.clone_from.side_effect = fake_checkout
            result = clone_repository("https://github.com/org/notes_app.git", "develop", 1, tmp_path)

        assert result.success is True
        assert result.repo_name == "notes_app"
        assert result.branch == "develop"
        assert result.commit == "0123456789abcdef"
        assert result.local_path == str(tmp_path / "notes_app")
        # .git is not counted
        assert result.size_bytes == len("void main() {}\n") + len("name: app\n")

        repo_cls.clone_from.assert_called_once_with(
            "https://github.com/org/notes_app.git",
            tmp_path / "notes_app",
            branch="develop",
            depth=1,
            single_branch=True,
        )

    def test_failed_clone_cleans_up(self, tmp_path):
        def fail(url, to_path, **kwargs):
            Path(to_path).mkdir(parents=True)
            raise GitCommandError("clone", 128, stderr="Remote branch nope not found")

        with patch("rebuilder.core.repository.Repo") as repo_cls:
            repo_cls.clone_from.side_effect = fail
            result = clone_repository("https://github.com/org/app", "nope", 1, tmp_path)

        assert result.success is False
        assert result.repo_name == "app"
        assert result.local_path == ""
        assert "Remote branch nope not found" in result.error
        assert not (tmp_path / "app").exists()

    def test_temp_destination_when_none_given(self):
        with patch("rebuilder.core.repository.Repo") as repo_cls:
            repo_cls.clone_from.side_effect = fake_checkout
            result = clone_repository("https://github.com/org/app.git")
        try:
            assert result.success is True
            assert Path(result.local_path).name == "app"
        finally:
            cleanup_clone(Path(result.local_path).parent)


@pytest.mark.parametrize("url,expected", [
    ("https://github.com/org/notes_app.git", "notes_app"),
    ("https://github.com/org/notes_app", "notes_app"),
    ("https://github.com/org/notes_app/", "notes_app"),
    ("git@github.com:org/shop.git", "shop"),
    ("notes", "repo"),
])
def test_extract_repo_name(url, expected):
    assert extract_repo_name(url) == expected


def test_directory_size_and_format(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "f.txt").write_bytes(b"x" * 1500)
    (tmp_path / "g.txt").write_bytes(b"y" * 100)

    assert directory_size(tmp_path) == 1600
    assert format_bytes(100) == "100 B"
    assert format_bytes(1600) == "1.6 KB"
    assert format_bytes(3 * 1024 * 1024) == "3.0 MB"


def test_cleanup_missing_path_is_a_no_op(tmp_path):
    cleanup_clone(tmp_path / "never-created")

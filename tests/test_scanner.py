import logging
import os
from pathlib import Path

import pytest

from canonkit.scanner import RootNotFoundError, find_directories, find_files, scan_basenames


def _make_dirs(root: Path, *relatives: str) -> None:
    for relative in relatives:
        (root / relative).mkdir(parents=True, exist_ok=True)


def test_find_directories_skips_ignored_subtrees(tmp_path: Path):
    _make_dirs(
        tmp_path,
        "src/components",
        "lib/components",
        "node_modules/pkg/components",
        ".git/components",
        "src/componentsx",
    )

    found = find_directories(tmp_path, "components")

    root = tmp_path.resolve()
    assert found == [root / "lib" / "components", root / "src" / "components"]


def test_find_directories_honors_custom_ignore_globs(tmp_path: Path):
    _make_dirs(tmp_path, "src/components", "build-output/components", "node_modules/components")

    found = find_directories(tmp_path, "components", ignore=("build-*",))

    root = tmp_path.resolve()
    assert found == [root / "node_modules" / "components", root / "src" / "components"]


def test_missing_root_raises_not_found(tmp_path: Path):
    with pytest.raises(RootNotFoundError):
        find_directories(tmp_path / "missing", "components")

    (tmp_path / "file.txt").write_text("not a directory", encoding="utf-8")
    with pytest.raises(RootNotFoundError):
        find_directories(tmp_path / "file.txt", "components")


def test_unreadable_subtree_is_skipped_with_warning(tmp_path: Path, monkeypatch, caplog):
    _make_dirs(tmp_path, "open/components", "locked/components")
    locked = (tmp_path / "locked").resolve()
    real_scandir = os.scandir

    def fake_scandir(path="."):
        if Path(path) == locked:
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", fake_scandir)
    with caplog.at_level(logging.WARNING, logger="canonkit.scanner"):
        found = find_directories(tmp_path, "components")

    assert found == [tmp_path.resolve() / "open" / "components"]
    assert "Permission denied" in caplog.text


def test_symlink_cycles_are_not_followed_forever(tmp_path: Path):
    _make_dirs(tmp_path, "src/components")
    (tmp_path / "src" / "loop").symlink_to(tmp_path, target_is_directory=True)

    found = find_directories(tmp_path, "components", follow_symlinks=True)

    assert found == [tmp_path.resolve() / "src" / "components"]


def test_symlinked_directory_is_not_a_match_by_default(tmp_path: Path):
    _make_dirs(tmp_path, "src/components")
    (tmp_path / "components").symlink_to(tmp_path / "src" / "components", target_is_directory=True)

    found = find_directories(tmp_path, "components")

    assert found == [tmp_path.resolve() / "src" / "components"]


def test_scan_basenames_omits_empty_entries(tmp_path: Path):
    _make_dirs(tmp_path, "docs", "packages/api/docs")

    scan = scan_basenames(tmp_path, ("components", "docs"))

    root = tmp_path.resolve()
    assert scan == {"docs": [root / "docs", root / "packages" / "api" / "docs"]}


def test_find_files_limits_to_named_parent_directories(tmp_path: Path):
    _make_dirs(tmp_path, "src/components/forms", "src/pages")
    (tmp_path / "src" / "components" / "Button.tsx").write_text("", encoding="utf-8")
    (tmp_path / "src" / "components" / "forms" / "LoginForm.tsx").write_text("", encoding="utf-8")
    (tmp_path / "src" / "pages" / "Home.tsx").write_text("", encoding="utf-8")

    files = find_files(tmp_path, ("*.tsx",), within=("components",))

    assert sorted(path.name for path in files) == ["Button.tsx", "LoginForm.tsx"]


def test_symlink_alias_sorting_first_does_not_hide_real_directory(tmp_path: Path):
    _make_dirs(tmp_path, "src/components")
    (tmp_path / "a").symlink_to(tmp_path / "src", target_is_directory=True)

    found = find_directories(tmp_path, "components", follow_symlinks=True)

    root = tmp_path.resolve()
    assert found == [root / "a" / "components", root / "src" / "components"]


def test_symlink_cycle_through_sibling_links_terminates(tmp_path: Path):
    _make_dirs(tmp_path, "x/components", "y")
    (tmp_path / "x" / "to_y").symlink_to(tmp_path / "y", target_is_directory=True)
    (tmp_path / "y" / "to_x").symlink_to(tmp_path / "x", target_is_directory=True)

    found = find_directories(tmp_path, "components", follow_symlinks=True)

    root = tmp_path.resolve()
    assert root / "x" / "components" in found
    assert root / "y" / "to_x" / "components" in found

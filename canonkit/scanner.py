from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

from .config import SKIP_DIRS

logger = logging.getLogger(__name__)

ScanResult = dict[str, list[Path]]


class ScanError(RuntimeError):
    pass


class RootNotFoundError(ScanError):
    pass


def _validate_root(root: Path) -> Path:
    resolved = root.resolve()
    if not resolved.exists() or not resolved.is_dir():
        raise RootNotFoundError(f"Root path does not exist or is not a directory: {resolved}")
    return resolved


def _is_ignored(name: str, relative: str, ignore: Iterable[str]) -> bool:
    return any(fnmatch.fnmatch(name, pattern) or fnmatch.fnmatch(relative, pattern) for pattern in ignore)


def _warn_unreadable(error: OSError) -> None:
    if isinstance(error, PermissionError):
        logger.warning("Permission denied, skipping %s", error.filename)
    else:
        logger.warning("Could not read %s: %s", error.filename, error.strerror or error)


def relative_posix(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def walk_tree(
    root: Path,
    ignore: Iterable[str] = SKIP_DIRS,
    follow_symlinks: bool = False,
) -> Iterator[tuple[Path, list[str], list[str]]]:
    """Walk ``root`` top-down, pruning ignored directories in place.

    Unreadable subtrees are logged and skipped. Symlinked directories are only
    entered with ``follow_symlinks``. A link whose real path is already on the
    chain of directories leading to it is a cycle and is not entered; aliases
    of directories elsewhere in the tree are walked like any other directory.
    """
    base = _validate_root(root)
    patterns = tuple(ignore)
    chains: dict[Path, frozenset[str]] = {base: frozenset({os.path.realpath(base)})}

    for current, dirnames, filenames in os.walk(base, onerror=_warn_unreadable, followlinks=follow_symlinks):
        current_path = Path(current)
        chain = chains.pop(current_path, frozenset())
        kept = []
        for dirname in sorted(dirnames):
            child = current_path / dirname
            if _is_ignored(dirname, relative_posix(child, base), patterns):
                continue
            if follow_symlinks:
                real = os.path.realpath(child)
                if real in chain:
                    logger.debug("Skipping symlink cycle at %s", child)
                    continue
                chains[child] = chain | {real}
            kept.append(dirname)
        dirnames[:] = kept
        yield current_path, list(dirnames), sorted(filenames)


def scan_basenames(
    root: Path,
    basenames: Iterable[str],
    ignore: Iterable[str] = SKIP_DIRS,
    follow_symlinks: bool = False,
) -> ScanResult:
    base = _validate_root(root)
    wanted = set(basenames)
    found: ScanResult = {}

    for current, dirnames, _ in walk_tree(base, ignore=ignore, follow_symlinks=follow_symlinks):
        for dirname in dirnames:
            if dirname not in wanted:
                continue
            candidate = current / dirname
            if not follow_symlinks and candidate.is_symlink():
                continue
            found.setdefault(dirname, []).append(candidate)

    return {
        name: sorted(set(paths), key=lambda path: relative_posix(path, base))
        for name, paths in sorted(found.items())
        if paths
    }


def find_directories(
    root: Path,
    basename: str,
    ignore: Iterable[str] = SKIP_DIRS,
    follow_symlinks: bool = False,
) -> list[Path]:
    return scan_basenames(root, (basename,), ignore=ignore, follow_symlinks=follow_symlinks).get(basename, [])


def find_files(
    root: Path,
    patterns: Iterable[str],
    within: Iterable[str] | None = None,
    ignore: Iterable[str] = SKIP_DIRS,
) -> list[Path]:
    base = _validate_root(root)
    globs = tuple(patterns)
    skip = tuple(ignore)
    parents = set(within) if within is not None else None

    hits: list[Path] = []
    for current, _, filenames in walk_tree(base, ignore=skip):
        relative_parts = current.relative_to(base).parts
        if parents is not None and not parents.intersection(relative_parts):
            continue
        for filename in filenames:
            if not any(fnmatch.fnmatch(filename, pattern) for pattern in globs):
                continue
            if _is_ignored(filename, relative_posix(current / filename, base), skip):
                continue
            hits.append(current / filename)
    return hits

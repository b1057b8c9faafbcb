from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .config import CODE_EXTENSIONS, FEATURE_DIRS, SKIP_DIRS
from .naming import strip_extension
from .scanner import walk_tree


@dataclass(frozen=True)
class CodeHit:
    path: Path
    line: int
    snippet: str


@dataclass(frozen=True)
class SearchResult:
    term: str
    code: tuple[CodeHit, ...]
    files: tuple[Path, ...]
    directories: tuple[Path, ...]

    @property
    def empty(self) -> bool:
        return not (self.code or self.files or self.directories)


def _iter_code_files(root: Path, ignore: Iterable[str]):
    for current, _, filenames in walk_tree(root, ignore=ignore):
        for filename in filenames:
            if filename.endswith(CODE_EXTENSIONS):
                yield current / filename


def catalog_features(root: Path, ignore: Iterable[str] = SKIP_DIRS) -> tuple[str, ...]:
    """Names of existing features: code file stems found under feature directories."""
    features: set[str] = set()
    for path in _iter_code_files(root, ignore):
        relative_parts = path.relative_to(root.resolve()).parts[:-1]
        if not set(relative_parts).intersection(FEATURE_DIRS):
            continue
        stem = strip_extension(path.name)
        if stem and stem != "index":
            features.add(stem)
    return tuple(sorted(features))


def find_similar(name: str, features: Iterable[str]) -> list[str]:
    wanted = name.strip().lower()
    if not wanted:
        return []
    return sorted(
        feature
        for feature in features
        if wanted in feature.lower() or feature.lower() in wanted
    )


def _first_hit(path: Path, term: str) -> CodeHit | None:
    try:
        content = path.read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return None
    for idx, line in enumerate(content.splitlines(), start=1):
        if term in line:
            return CodeHit(path=path, line=idx, snippet=line.strip()[:200])
    return None


def search_functionality(
    root: Path,
    term: str,
    ignore: Iterable[str] = SKIP_DIRS,
    limit: int = 5,
) -> SearchResult:
    needle = term.strip()
    if not needle:
        return SearchResult(term=term, code=(), files=(), directories=())

    skip = tuple(ignore)
    lowered = needle.lower()
    code: list[CodeHit] = []
    files: list[Path] = []
    directories: list[Path] = []

    for current, dirnames, filenames in walk_tree(root, ignore=skip):
        directories.extend(current / name for name in dirnames if lowered in name.lower())
        for filename in filenames:
            path = current / filename
            if lowered in filename.lower():
                files.append(path)
            if filename.endswith(CODE_EXTENSIONS) and len(code) < limit:
                hit = _first_hit(path, needle)
                if hit is not None:
                    code.append(hit)

    return SearchResult(
        term=needle,
        code=tuple(code),
        files=tuple(files[:limit]),
        directories=tuple(directories[:limit]),
    )

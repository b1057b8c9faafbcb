from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from .config import RoleRule
from .scanner import ScanResult, relative_posix


@dataclass(frozen=True)
class Violation:
    role: str
    path: Path


@dataclass(frozen=True)
class DuplicateReport:
    canonical: dict[str, Path]
    violations: tuple[Violation, ...]
    forbidden: tuple[Path, ...]

    @property
    def has_issues(self) -> bool:
        return bool(self.violations or self.forbidden)


def select_canonical(paths: Sequence[Path], preferred: str, root: Path) -> Path:
    """Pick the authoritative directory among ``paths``.

    Candidates are compared by their root-relative POSIX form, in
    lexicographic order. An exact match of ``preferred`` wins, then the first
    candidate containing ``preferred``, then the first candidate overall.
    An empty list falls back to ``root / preferred``.
    """
    if not paths:
        return root / preferred

    ordered = sorted(paths, key=lambda path: relative_posix(path, root))
    wanted = preferred.strip("/")
    for path in ordered:
        if relative_posix(path, root) == wanted:
            return path
    for path in ordered:
        if wanted in relative_posix(path, root):
            return path
    return ordered[0]


def role_paths(scan: ScanResult, rule: RoleRule) -> list[Path]:
    paths: set[Path] = set()
    for basename in rule.basenames:
        paths.update(scan.get(basename, ()))
    return list(paths)


def detect_duplicates(
    scan: ScanResult,
    roles: Iterable[RoleRule],
    root: Path,
    forbidden: Iterable[str] = (),
) -> DuplicateReport:
    canonical: dict[str, Path] = {}
    violations: list[Violation] = []

    for rule in roles:
        paths = role_paths(scan, rule)
        chosen = select_canonical(paths, rule.preferred, root)
        canonical[rule.role] = chosen
        violations.extend(Violation(role=rule.role, path=path) for path in paths if path != chosen)

    violations.sort(key=lambda item: (item.role, relative_posix(item.path, root)))

    flagged = sorted(
        {root / location for location in forbidden if location and (root / location).is_dir()},
        key=lambda path: relative_posix(path, root),
    )

    return DuplicateReport(
        canonical=canonical,
        violations=tuple(violations),
        forbidden=tuple(flagged),
    )

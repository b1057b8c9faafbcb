from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .config import SKIP_DIRS
from .scanner import find_files

logger = logging.getLogger(__name__)

# Marker file -> (project type, package manager label). Later entries win the
# project type.
PACKAGE_MARKERS = (
    ("package.json", "node", "npm"),
    ("pyproject.toml", "python", "pyproject"),
    ("requirements.txt", "python", "pip"),
    ("Cargo.toml", "rust", "cargo"),
    ("go.mod", "go", "go modules"),
)

JS_FRAMEWORKS = ("next", "react", "vue", "angular", "express", "fastify")
PY_FRAMEWORKS = ("django", "flask", "fastapi")
JS_TEST_FRAMEWORKS = ("vitest", "jest", "mocha")


@dataclass(frozen=True)
class ProjectProfile:
    project_type: str = "unknown"
    framework: str = "unknown"
    language: str = "unknown"
    testing_framework: str = "unknown"
    styling_framework: str = "unknown"
    test_pattern: str = ".test.*"
    package_managers: tuple[str, ...] = ()


def _load_package_json(root: Path) -> dict:
    path = root / "package.json"
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        logger.warning("Ignoring unreadable %s: %s", path, error)
        return {}
    return data if isinstance(data, dict) else {}


def _dependency_names(package: dict) -> set[str]:
    names: set[str] = set()
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        section = package.get(key)
        if isinstance(section, dict):
            names.update(section)
    return names


def _python_requirements(root: Path) -> str:
    chunks = []
    for filename in ("requirements.txt", "pyproject.toml"):
        path = root / filename
        if path.exists():
            chunks.append(path.read_text(encoding="utf-8", errors="ignore").lower())
    return "\n".join(chunks)


def _first_mentioned(candidates: Iterable[str], text: str) -> str | None:
    for candidate in candidates:
        if re.search(rf"(?<![\w-]){re.escape(candidate)}(?![\w-])", text):
            return candidate
    return None


def _js_framework(dependencies: set[str]) -> str | None:
    aliases = {"angular": "@angular/core"}
    for framework in JS_FRAMEWORKS:
        if framework in dependencies or aliases.get(framework) in dependencies:
            return "nextjs" if framework == "next" else framework
    return None


def detect_test_pattern(root: Path, ignore: Iterable[str] = SKIP_DIRS) -> str:
    files = find_files(root, ("*.test.*", "*.spec.*"), ignore=ignore)
    if any(".test." in path.name for path in files):
        return ".test.*"
    if any(".spec." in path.name for path in files):
        return ".spec.*"
    return ".test.*"


def detect_profile(root: Path, ignore: Iterable[str] = SKIP_DIRS) -> ProjectProfile:
    project_type = "unknown"
    managers: list[str] = []
    for filename, kind, manager in PACKAGE_MARKERS:
        if (root / filename).exists():
            project_type = kind
            managers.append(manager)

    package = _load_package_json(root)
    dependencies = _dependency_names(package)
    requirements = _python_requirements(root)

    framework = _js_framework(dependencies) or _first_mentioned(PY_FRAMEWORKS, requirements) or "unknown"

    testing = next((name for name in JS_TEST_FRAMEWORKS if name in dependencies), None)
    if testing is None and ((root / "jest.config.js").exists() or (root / "jest.config.ts").exists()):
        testing = "jest"
    if testing is None and (_first_mentioned(("pytest",), requirements) or (root / "pytest.ini").exists()):
        testing = "pytest"

    styling = "tailwind" if "tailwindcss" in dependencies or (root / "tailwind.config.js").exists() else "unknown"

    if (root / "tsconfig.json").exists():
        language = "typescript"
    else:
        language = {"node": "javascript", "python": "python", "rust": "rust", "go": "go"}.get(project_type, "unknown")

    return ProjectProfile(
        project_type=project_type,
        framework=framework,
        language=language,
        testing_framework=testing or "unknown",
        styling_framework=styling,
        test_pattern=detect_test_pattern(root, ignore=ignore),
        package_managers=tuple(managers),
    )

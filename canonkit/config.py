from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

import yaml

from .naming import Convention

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "project-config.yml"
CONTEXT_FILENAME = ".project_context.md"

FEATURE_KINDS = ("component", "utility", "api", "hook")

SKIP_DIRS = (".git", ".hg", ".svn", ".venv", "venv", "node_modules", "__pycache__", ".mypy_cache", ".pytest_cache", ".next", "dist", "build")

CODE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py")


@dataclass(frozen=True)
class RoleRule:
    role: str
    basenames: tuple[str, ...]
    preferred: str


DEFAULT_ROLES = (
    RoleRule(role="components", basenames=("components",), preferred="src/components"),
    RoleRule(role="docs", basenames=("docs",), preferred="docs"),
    RoleRule(role="lib", basenames=("lib",), preferred="src/lib"),
    RoleRule(role="tests", basenames=("__tests__", "tests", "test"), preferred="__tests__"),
)

DEFAULT_FORBIDDEN = ("components", "lib", "utils", "docs/nested")

# Naming category -> (directory names to look in, file globs, default convention).
NAMING_CATEGORIES = {
    "components": (("components",), ("*.tsx", "*.jsx", "*.vue"), Convention.pascal),
    "utilities": (("lib", "utils"), ("*.ts", "*.js", "*.py"), Convention.camel),
    "hooks": (("hooks",), ("*.ts", "*.tsx"), Convention.camel),
    "api": (("api",), ("*.ts", "*.js"), Convention.kebab),
}

FEATURE_DIRS = ("components", "lib", "utils", "hooks", "api")


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class ProjectConfig:
    roles: tuple[RoleRule, ...] = DEFAULT_ROLES
    forbidden_locations: tuple[str, ...] = DEFAULT_FORBIDDEN
    naming: dict[str, Convention] = field(
        default_factory=lambda: {category: spec[2] for category, spec in NAMING_CATEGORIES.items()}
    )
    ignore: tuple[str, ...] = SKIP_DIRS
    source: Path | None = None

    def role(self, name: str) -> RoleRule | None:
        for rule in self.roles:
            if rule.role == name:
                return rule
        return None

    @property
    def basenames(self) -> tuple[str, ...]:
        seen: list[str] = []
        for rule in self.roles:
            for basename in rule.basenames:
                if basename not in seen:
                    seen.append(basename)
        return tuple(seen)


def templates_root() -> Path:
    return Path(__file__).resolve().parent / "templates"


def _as_mapping(value: object, key: str, source: Path) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping in {source}")
    return value


def _as_strings(value: object, key: str, source: Path) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list in {source}")
    return tuple(str(item).strip().strip("/") for item in value if str(item).strip())


def _role_for_basename(roles: dict[str, RoleRule], basename: str) -> RoleRule | None:
    for rule in roles.values():
        if basename in rule.basenames:
            return rule
    return None


def _merge_roles(mappings: dict, source: Path) -> tuple[RoleRule, ...]:
    """Apply ``canonical_mappings`` on top of the built-in roles.

    A key naming a built-in role moves its preferred path. Any other key
    whose path ends in a basename an existing role already owns
    (``utilities: src/lib``, ``documentation: docs``) updates that role
    instead of adding a second one for the same directories. Everything
    else becomes a new role.
    """
    roles = {rule.role: rule for rule in DEFAULT_ROLES}
    for role, raw_path in mappings.items():
        preferred = str(raw_path or "").strip().strip("/")
        if not preferred:
            raise ConfigError(f"Canonical mapping for '{role}' is empty in {source}")
        basename = PurePosixPath(preferred).name
        existing = roles.get(str(role)) or _role_for_basename(roles, basename)
        if existing is not None:
            if existing.role != str(role):
                logger.debug("Canonical mapping '%s' applies to role '%s'", role, existing.role)
            roles[existing.role] = RoleRule(role=existing.role, basenames=existing.basenames, preferred=preferred)
        else:
            roles[str(role)] = RoleRule(role=str(role), basenames=(basename,), preferred=preferred)
    return tuple(roles.values())


def _merge_naming(files: dict, source: Path) -> dict[str, Convention]:
    naming = {category: spec[2] for category, spec in NAMING_CATEGORIES.items()}
    for category, raw in files.items():
        try:
            naming[str(category)] = Convention.parse(str(raw))
        except ValueError as error:
            if category in NAMING_CATEGORIES:
                raise ConfigError(f"{error} (category '{category}' in {source})") from error
            logger.warning("Ignoring naming convention %r for '%s' in %s", raw, category, source)
    return naming


def load_project_config(root: Path) -> ProjectConfig:
    source = root / CONFIG_FILENAME
    if not source.exists():
        return ProjectConfig()

    try:
        data = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Could not parse {source}: {error}") from error
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {source}")

    prevention = _as_mapping(data.get("duplicate_prevention"), "duplicate_prevention", source)
    conventions = _as_mapping(data.get("naming_conventions"), "naming_conventions", source)

    roles = _merge_roles(_as_mapping(prevention.get("canonical_mappings"), "canonical_mappings", source), source)
    forbidden = prevention.get("forbidden_locations")
    ignore = data.get("ignore")

    return ProjectConfig(
        roles=roles,
        forbidden_locations=DEFAULT_FORBIDDEN if forbidden is None else _as_strings(forbidden, "forbidden_locations", source),
        naming=_merge_naming(_as_mapping(conventions.get("files"), "files", source), source),
        ignore=SKIP_DIRS if ignore is None else _as_strings(ignore, "ignore", source),
        source=source,
    )

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .config import CONFIG_FILENAME, CONTEXT_FILENAME, NAMING_CATEGORIES, ProjectConfig, templates_root
from .detect import ProjectProfile, detect_profile
from .duplicates import DuplicateReport, detect_duplicates
from .naming import Convention, infer_convention
from .scanner import ScanResult, find_files, relative_posix, scan_basenames
from .search import SearchResult, catalog_features, search_functionality

logger = logging.getLogger(__name__)


class ConfigExistsError(RuntimeError):
    pass


@dataclass(frozen=True)
class ProjectReport:
    root: Path
    profile: ProjectProfile
    scan: ScanResult
    duplicates: DuplicateReport
    conventions: dict[str, Convention]
    features: tuple[str, ...]
    search: SearchResult | None = None

    def relative(self, path: Path) -> str:
        return relative_posix(path, self.root) or "."

    def locations(self) -> dict[str, str]:
        """Canonical directory per role, relative to the project root."""
        return {role: self.relative(path) for role, path in self.duplicates.canonical.items()}


def infer_conventions(root: Path, config: ProjectConfig) -> dict[str, Convention]:
    conventions: dict[str, Convention] = {}
    for category, (directories, patterns, fallback) in NAMING_CATEGORIES.items():
        default = config.naming.get(category, fallback)
        files = find_files(root, patterns, within=directories, ignore=config.ignore)
        conventions[category] = infer_convention((path.name for path in files), default=default)
        logger.debug("Inferred %s for %s from %d files", conventions[category].value, category, len(files))
    return conventions


def discover_project(root: Path, config: ProjectConfig, search_term: str | None = None) -> ProjectReport:
    base = root.resolve()
    scan = scan_basenames(base, config.basenames, ignore=config.ignore)
    duplicates = detect_duplicates(scan, config.roles, base, forbidden=config.forbidden_locations)
    for violation in duplicates.violations:
        logger.debug("Duplicate %s directory: %s", violation.role, violation.path)

    return ProjectReport(
        root=base,
        profile=detect_profile(base, ignore=config.ignore),
        scan=scan,
        duplicates=duplicates,
        conventions=infer_conventions(base, config),
        features=catalog_features(base, ignore=config.ignore),
        search=search_functionality(base, search_term, ignore=config.ignore) if search_term else None,
    )


def render_context(report: ProjectReport) -> str:
    env = Environment(
        loader=FileSystemLoader(str(templates_root())),
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    return env.get_template("project/project_context.md.j2").render(
        report=report,
        generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        canonical={role: report.relative(path) for role, path in report.duplicates.canonical.items()},
        violations=[(item.role, report.relative(item.path)) for item in report.duplicates.violations],
        forbidden=[report.relative(path) for path in report.duplicates.forbidden],
        conventions={category: convention.value for category, convention in report.conventions.items()},
    )


def write_context_file(report: ProjectReport) -> Path:
    target = report.root / CONTEXT_FILENAME
    rendered = render_context(report)
    target.write_text(rendered + ("\n" if not rendered.endswith("\n") else ""), encoding="utf-8")
    return target


def write_project_config(report: ProjectReport, config: ProjectConfig, project_name: str = "", force: bool = False) -> Path:
    target = report.root / CONFIG_FILENAME
    if target.exists() and not force:
        raise ConfigExistsError(f"Config already exists: {target}. Pass --force to regenerate it.")

    data = {
        "project": {
            "name": project_name or report.root.name,
            "type": report.profile.project_type,
            "language": report.profile.language,
            "framework": report.profile.framework,
            "generated_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        },
        "duplicate_prevention": {
            "canonical_mappings": {rule.role: rule.preferred for rule in config.roles},
            "forbidden_locations": list(config.forbidden_locations),
        },
        "naming_conventions": {
            "files": {category: convention.value for category, convention in report.conventions.items()},
        },
        "ignore": list(config.ignore),
    }
    target.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return target

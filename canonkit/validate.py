from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import ProjectConfig
from .discovery import ProjectReport, discover_project
from .emitter import FeatureSpec, feature_stem, kind_template
from .naming import Convention, matches_convention, strip_extension, suggest_name
from .search import find_similar, search_functionality


@dataclass(frozen=True)
class ValidationReport:
    feature: str
    kind: str | None
    issues: tuple[str, ...]
    suggestions: tuple[str, ...]

    @property
    def ok(self) -> bool:
        return not self.issues


class ValidationError(RuntimeError):
    pass


def _structure_issues(report: ProjectReport) -> tuple[list[str], list[str]]:
    issues: list[str] = []
    suggestions: list[str] = []
    canonical = report.locations()

    for violation in report.duplicates.violations:
        issues.append(f"Duplicate {violation.role} directory: {report.relative(violation.path)}")
        suggestions.append(f"Consolidate {report.relative(violation.path)} into {canonical[violation.role]}")

    for path in report.duplicates.forbidden:
        issues.append(f"Forbidden location in use: {report.relative(path)}")

    return issues, suggestions


def _naming_issues(name: str, kind: str, report: ProjectReport) -> tuple[list[str], list[str]]:
    template = kind_template(kind)
    stem = feature_stem(FeatureSpec(name=name, kind=kind))
    convention = report.conventions.get(template.naming_category, Convention.pascal)
    if matches_convention(stem, convention):
        return [], []

    # Hooks are prefixed with "use", so the bare name is PascalCase.
    suggested = suggest_name(name, Convention.pascal if kind == "hook" else convention)
    return (
        [f"Name '{stem}' does not match the {convention.value} convention used for {template.naming_category}"],
        [f"Consider: {suggested}"],
    )


def validate_feature(root: Path, name: str, config: ProjectConfig, kind: str | None = None) -> ValidationReport:
    feature = name.strip()
    if not feature:
        raise ValidationError("Feature name cannot be empty.")

    report = discover_project(root, config)
    issues, suggestions = _structure_issues(report)

    similar = find_similar(feature, report.features)
    if similar:
        issues.append(f"Similar feature already exists: {', '.join(similar)}")
        suggestions.append(f"Consider extending existing: {similar[0]}")

    matches = search_functionality(report.root, feature, ignore=config.ignore)
    named = [report.relative(path) for path in matches.files if strip_extension(path.name) not in similar]
    if named:
        issues.append(f"Files already named after {feature}: {', '.join(named)}")

    if kind is not None:
        naming_issues, naming_suggestions = _naming_issues(feature, kind, report)
        issues.extend(naming_issues)
        suggestions.extend(naming_suggestions)

    return ValidationReport(
        feature=feature,
        kind=kind,
        issues=tuple(issues),
        suggestions=tuple(suggestions),
    )

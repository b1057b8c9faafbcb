from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import FEATURE_KINDS, ConfigError, ProjectConfig, load_project_config
from .discovery import ConfigExistsError, ProjectReport, discover_project, write_context_file, write_project_config
from .emitter import AlreadyExistsError, EmitError, FeatureSpec, UnsupportedKindError, emit_feature
from .scanner import ScanError
from .validate import ValidationError, validate_feature

app = typer.Typer(help="Discover, validate and scaffold against a project's canonical structure.")
console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_ERROR = 1


class OutputFormat(str, Enum):
    table = "table"
    json = "json"
    md = "md"


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details to stderr.")) -> None:
    """Convention enforcement for project layouts."""
    logger = logging.getLogger("canonkit")
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=err_console, show_path=False, show_time=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _json_print(payload: dict) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=True, sort_keys=True))


def _print_key_value_table(title: str, rows: list[tuple[str, str]]) -> None:
    table = Table(title=title)
    table.add_column("Field")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, value)
    console.print(table)


def _emit_success(
    command: str,
    output_format: OutputFormat,
    data: dict,
    md_renderer: Callable[[dict], str] | None = None,
    table_renderer: Callable[[dict], None] | None = None,
) -> None:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": True,
                "command": command,
                "exit_code": EXIT_OK,
                "data": data,
            }
        )
        return

    if output_format == OutputFormat.md and md_renderer is not None:
        console.print(md_renderer(data))
        return

    if output_format == OutputFormat.table and table_renderer is not None:
        table_renderer(data)
        return

    # Fallback for simple commands without dedicated renderer.
    if output_format == OutputFormat.md:
        lines = [f"# {command}", ""]
        lines.extend(f"- **{key}**: {value}" for key, value in data.items())
        console.print("\n".join(lines))
    else:
        _print_key_value_table(
            title=command,
            rows=[(str(key), str(value)) for key, value in data.items()],
        )


def _emit_error(
    command: str,
    output_format: OutputFormat,
    exit_code: int,
    code: str,
    message: str,
    details: list[str] | None = None,
) -> None:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": False,
                "command": command,
                "exit_code": exit_code,
                "error": {
                    "code": code,
                    "message": message,
                    "details": list(details or []),
                },
            }
        )
    elif output_format == OutputFormat.md:
        lines = [f"# {command}", "", "- **status**: error", f"- **code**: {code}", f"- **message**: {message}"]
        lines.extend(f"  - {item}" for item in details or [])
        console.print("\n".join(lines))
    else:
        console.print(f"[red]Error ({code}):[/red] {message}")
        for item in details or []:
            console.print(f"- {item}")

    raise typer.Exit(code=exit_code)


def _load_config(command: str, root: Path, output_format: OutputFormat) -> ProjectConfig:
    if not root.exists() or not root.is_dir():
        _emit_error(
            command=command,
            output_format=output_format,
            exit_code=EXIT_ERROR,
            code="not_found",
            message=f"Root path does not exist or is not a directory: {root}",
        )
    try:
        return load_project_config(root)
    except ConfigError as error:
        _emit_error(
            command=command,
            output_format=output_format,
            exit_code=EXIT_ERROR,
            code="config_error",
            message=str(error),
        )
        raise


def _discover(command: str, root: Path, config: ProjectConfig, output_format: OutputFormat, search_term: str | None = None) -> ProjectReport:
    try:
        return discover_project(root, config, search_term=search_term)
    except ScanError as error:
        _emit_error(
            command=command,
            output_format=output_format,
            exit_code=EXIT_ERROR,
            code="not_found",
            message=str(error),
        )
        raise


@app.command("discover")
def discover(
    search_term: Optional[str] = typer.Argument(None, help="Optional: search for existing functionality."),
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root to analyze."),
    write_context: bool = typer.Option(True, "--context/--no-context", help="Regenerate .project_context.md."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Report structure, duplicate directories and naming conventions."""
    resolved = root.resolve()
    config = _load_config("discover", resolved, output_format)
    report = _discover("discover", resolved, config, output_format, search_term=search_term)
    context_path = write_context_file(report) if write_context else None

    data = {
        "root": str(report.root),
        "project": {
            "type": report.profile.project_type,
            "language": report.profile.language,
            "framework": report.profile.framework,
            "testing": report.profile.testing_framework,
            "styling": report.profile.styling_framework,
            "test_pattern": report.profile.test_pattern,
            "package_managers": list(report.profile.package_managers),
        },
        "scan": {name: [report.relative(path) for path in paths] for name, paths in report.scan.items()},
        "canonical": report.locations(),
        "violations": [
            {"role": item.role, "path": report.relative(item.path)} for item in report.duplicates.violations
        ],
        "forbidden": [report.relative(path) for path in report.duplicates.forbidden],
        "conventions": {category: convention.value for category, convention in report.conventions.items()},
        "features": list(report.features),
        "context_file": str(context_path) if context_path else "",
    }
    if report.search is not None:
        data["search"] = {
            "term": report.search.term,
            "code": [
                {"path": report.relative(hit.path), "line": hit.line, "snippet": hit.snippet}
                for hit in report.search.code
            ],
            "files": [report.relative(path) for path in report.search.files],
            "directories": [report.relative(path) for path in report.search.directories],
        }

    def render_md(payload: dict) -> str:
        project = payload["project"]
        lines = [f"# Discovery: `{payload['root']}`", ""]
        lines.append(f"- **type**: {project['type']}")
        lines.append(f"- **language**: {project['language']}")
        lines.append(f"- **framework**: {project['framework']}")
        lines.append(f"- **testing**: {project['testing']}")
        lines.append("\n## Canonical locations")
        lines.extend(f"- `{role}` -> `{path}`" for role, path in payload["canonical"].items())
        lines.append("\n## Duplicates")
        if payload["violations"]:
            lines.extend(f"- `{item['path']}` ({item['role']})" for item in payload["violations"])
        else:
            lines.append("- none")
        if payload["forbidden"]:
            lines.append("\n## Forbidden locations")
            lines.extend(f"- `{path}`" for path in payload["forbidden"])
        lines.append("\n## Naming conventions")
        lines.extend(f"- {category}: {value}" for category, value in payload["conventions"].items())
        if "search" in payload:
            search = payload["search"]
            lines.append(f"\n## Search: `{search['term']}`")
            lines.extend(f"- `{hit['path']}:{hit['line']}` | {hit['snippet']}" for hit in search["code"])
            lines.extend(f"- file `{path}`" for path in search["files"])
            lines.extend(f"- directory `{path}`" for path in search["directories"])
        return "\n".join(lines)

    def render_table(payload: dict) -> None:
        project = payload["project"]
        _print_key_value_table(
            title=f"Project: {payload['root']}",
            rows=[
                ("type", project["type"]),
                ("language", project["language"]),
                ("framework", project["framework"]),
                ("testing", f"{project['testing']} ({project['test_pattern']})"),
                ("styling", project["styling"]),
                ("package managers", ", ".join(project["package_managers"]) or "-"),
            ],
        )

        table = Table(title="Canonical locations")
        table.add_column("Role")
        table.add_column("Canonical")
        table.add_column("Duplicates")
        for role, path in payload["canonical"].items():
            duplicates = [item["path"] for item in payload["violations"] if item["role"] == role]
            table.add_row(role, path, ", ".join(duplicates) or "-")
        console.print(table)

        if payload["forbidden"]:
            console.print("[yellow]Forbidden locations present:[/yellow]")
            for path in payload["forbidden"]:
                console.print(f"- {path}")

        conventions = Table(title="Naming conventions")
        conventions.add_column("Category")
        conventions.add_column("Convention")
        for category, value in payload["conventions"].items():
            conventions.add_row(category, value)
        console.print(conventions)

        if "search" in payload:
            search = payload["search"]
            hits = Table(title=f"Search results for: {search['term']}")
            hits.add_column("Match")
            hits.add_column("Location")
            hits.add_column("Snippet")
            for hit in search["code"]:
                hits.add_row("code", f"{hit['path']}:{hit['line']}", hit["snippet"])
            for path in search["files"]:
                hits.add_row("file", path, "")
            for path in search["directories"]:
                hits.add_row("directory", path, "")
            console.print(hits)

        if payload["context_file"]:
            console.print(f"[green]Context written to {payload['context_file']}[/green]")

    _emit_success(
        command="discover",
        output_format=output_format,
        data=data,
        md_renderer=render_md,
        table_renderer=render_table,
    )


@app.command("validate")
def validate(
    feature_name: str = typer.Argument(..., help="Feature name to check before creating it."),
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help=f"Check naming for: {', '.join(FEATURE_KINDS)}"),
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root to check."),
    force: bool = typer.Option(False, "--force", help="Report issues but always exit 0."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Check for duplicate structure and existing features before creating one."""
    resolved = root.resolve()
    config = _load_config("validate", resolved, output_format)
    try:
        report = validate_feature(resolved, feature_name, config, kind=kind)
    except (ValidationError, UnsupportedKindError, ScanError) as error:
        _emit_error(
            command="validate",
            output_format=output_format,
            exit_code=EXIT_ERROR,
            code="invalid_input",
            message=str(error),
        )
        raise

    if not report.ok and not force:
        _emit_error(
            command="validate",
            output_format=output_format,
            exit_code=EXIT_ERROR,
            code="validation_failed",
            message=f"{len(report.issues)} issue(s) found for {report.feature}.",
            details=list(report.issues) + [f"suggestion: {item}" for item in report.suggestions],
        )

    data = {
        "feature": report.feature,
        "kind": report.kind or "",
        "valid": report.ok,
        "forced": force and not report.ok,
        "issues": list(report.issues),
        "suggestions": list(report.suggestions),
    }

    def render_md(payload: dict) -> str:
        lines = [f"# Validate: `{payload['feature']}`", ""]
        lines.append(f"- **valid**: {payload['valid']}")
        if payload["issues"]:
            lines.append("\n## Issues")
            lines.extend(f"- {item}" for item in payload["issues"])
        if payload["suggestions"]:
            lines.append("\n## Suggestions")
            lines.extend(f"- {item}" for item in payload["suggestions"])
        return "\n".join(lines)

    def render_table(payload: dict) -> None:
        if payload["valid"]:
            console.print(f"[green]No conflicts found for {payload['feature']}.[/green]")
            return
        console.print(f"[yellow]Issues for {payload['feature']} (ignored with --force):[/yellow]")
        for item in payload["issues"]:
            console.print(f"- {item}")
        for item in payload["suggestions"]:
            console.print(f"  suggestion: {item}")

    _emit_success(
        command="validate",
        output_format=output_format,
        data=data,
        md_renderer=render_md,
        table_renderer=render_table,
    )


@app.command("generate")
def generate(
    feature_name: str = typer.Argument(..., help="Feature name, e.g. LoginForm."),
    kind: str = typer.Argument(..., help=f"One of: {', '.join(FEATURE_KINDS)}"),
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root to write into."),
    description: str = typer.Option("", "--description", help="One-line description for the skeleton."),
    inputs: Optional[List[str]] = typer.Option(None, "--input", help="Input name (repeatable)."),
    outputs: Optional[List[str]] = typer.Option(None, "--output", help="Output name (repeatable)."),
    error_cases: Optional[List[str]] = typer.Option(None, "--error-case", help="Error case name (repeatable)."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace existing files."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Write a test skeleton and an implementation skeleton for a feature."""
    resolved = root.resolve()
    config = _load_config("generate", resolved, output_format)
    report = _discover("generate", resolved, config, output_format)

    spec = FeatureSpec(
        name=feature_name,
        kind=kind,
        description=description,
        inputs=tuple(inputs or ()),
        outputs=tuple(outputs or ()),
        error_cases=tuple(error_cases or ()),
    )
    try:
        emitted = emit_feature(spec, resolved, locations=report.locations(), overwrite=overwrite)
    except AlreadyExistsError as error:
        _emit_error(
            command="generate",
            output_format=output_format,
            exit_code=EXIT_ERROR,
            code="already_exists",
            message=str(error),
            details=[str(path) for path in error.paths],
        )
        raise
    except UnsupportedKindError as error:
        _emit_error(
            command="generate",
            output_format=output_format,
            exit_code=EXIT_ERROR,
            code="unsupported_kind",
            message=str(error),
        )
        raise
    except EmitError as error:
        _emit_error(
            command="generate",
            output_format=output_format,
            exit_code=EXIT_ERROR,
            code="emit_error",
            message=str(error),
        )
        raise

    data = {
        "feature": spec.name,
        "kind": spec.kind,
        "test": str(emitted.test_path),
        "implementation": str(emitted.implementation_path),
        "overwritten": [str(path) for path in emitted.overwritten],
    }
    _emit_success(command="generate", output_format=output_format, data=data)


@app.command("init")
def init(
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root."),
    name: str = typer.Option("", "--name", help="Project name recorded in the config."),
    force: bool = typer.Option(False, "--force", help="Regenerate an existing project-config.yml."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Write project-config.yml from the detected structure."""
    resolved = root.resolve()
    config = _load_config("init", resolved, output_format)
    report = _discover("init", resolved, config, output_format)
    try:
        target = write_project_config(report, config, project_name=name, force=force)
    except ConfigExistsError as error:
        _emit_error(
            command="init",
            output_format=output_format,
            exit_code=EXIT_ERROR,
            code="already_exists",
            message=str(error),
        )
        raise

    data = {"path": str(target), "type": report.profile.project_type, "framework": report.profile.framework}
    _emit_success(command="init", output_format=output_format, data=data)


@app.command("version")
def version(
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
) -> None:
    """Print version."""
    _emit_success(command="version", output_format=output_format, data={"version": __version__})


if __name__ == "__main__":
    app()

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Mapping

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .config import DEFAULT_ROLES, templates_root
from .naming import split_words

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KindTemplate:
    test_template: str
    implementation_template: str
    test_path: str
    implementation_path: str
    stem: str
    naming_category: str
    prefix: str = ""


# Path patterns accept role locations ({components}, {lib}, {tests}, ...) plus
# {name} and {slug}. Adding a kind only needs a row here and two templates.
# A name already carrying the row's prefix ("useAuth" for a hook) is stripped
# of it before substitution.
KIND_TEMPLATES = {
    "component": KindTemplate(
        test_template="features/component/test.tsx.j2",
        implementation_template="features/component/implementation.tsx.j2",
        test_path="{tests}/{name}.test.tsx",
        implementation_path="{components}/{name}.tsx",
        stem="{name}",
        naming_category="components",
    ),
    "utility": KindTemplate(
        test_template="features/utility/test.ts.j2",
        implementation_template="features/utility/implementation.ts.j2",
        test_path="{tests}/{name}.test.ts",
        implementation_path="{lib}/{name}.ts",
        stem="{name}",
        naming_category="utilities",
    ),
    "api": KindTemplate(
        test_template="features/api/test.ts.j2",
        implementation_template="features/api/implementation.ts.j2",
        test_path="{tests}/{slug}.route.test.ts",
        implementation_path="src/app/api/{slug}/route.ts",
        stem="{slug}",
        naming_category="api",
    ),
    "hook": KindTemplate(
        test_template="features/hook/test.ts.j2",
        implementation_template="features/hook/implementation.ts.j2",
        test_path="{tests}/use{name}.test.ts",
        implementation_path="src/hooks/use{name}.ts",
        stem="use{name}",
        naming_category="hooks",
        prefix="use",
    ),
}

DEFAULT_LOCATIONS = {rule.role: rule.preferred for rule in DEFAULT_ROLES}


@dataclass(frozen=True)
class FeatureSpec:
    name: str
    kind: str
    description: str = ""
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    error_cases: tuple[str, ...] = ()


@dataclass(frozen=True)
class RenderedFeature:
    test_path: PurePosixPath
    test_content: str
    implementation_path: PurePosixPath
    implementation_content: str


@dataclass(frozen=True)
class EmitReport:
    test_path: Path
    implementation_path: Path
    overwritten: tuple[Path, ...]


class EmitError(RuntimeError):
    pass


class UnsupportedKindError(EmitError):
    pass


class AlreadyExistsError(EmitError):
    def __init__(self, paths: tuple[Path, ...]):
        self.paths = paths
        listed = ", ".join(str(path) for path in paths)
        super().__init__(f"Target path already exists: {listed}. Pass --overwrite to replace it.")


def _slugify(value: str) -> str:
    return "-".join(split_words(value))


def kind_template(kind: str) -> KindTemplate:
    try:
        return KIND_TEMPLATES[kind]
    except KeyError:
        raise UnsupportedKindError(
            f"Unsupported feature kind: {kind} (expected one of: {', '.join(KIND_TEMPLATES)})"
        ) from None


def _bare_name(name: str, template: KindTemplate) -> str:
    prefix = template.prefix
    if prefix and name.startswith(prefix) and name[len(prefix):][:1].isupper():
        return name[len(prefix):]
    return name


def feature_stem(spec: FeatureSpec) -> str:
    template = kind_template(spec.kind)
    name = _bare_name(spec.name.strip(), template)
    return template.stem.format(name=name, slug=_slugify(name))


def _import_path(test_path: PurePosixPath, implementation_path: PurePosixPath) -> str:
    target = implementation_path.with_suffix("")
    relative = os.path.relpath(str(target), str(test_path.parent)).replace(os.sep, "/")
    return relative if relative.startswith(".") else f"./{relative}"


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_root())),
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_feature(spec: FeatureSpec, locations: Mapping[str, str] | None = None) -> RenderedFeature:
    if not spec.name.strip():
        raise EmitError("Feature name cannot be empty.")
    template = kind_template(spec.kind)
    name = _bare_name(spec.name.strip(), template)

    placeholders = dict(DEFAULT_LOCATIONS)
    placeholders.update(locations or {})
    placeholders.update(name=name, slug=_slugify(name))

    test_path = PurePosixPath(template.test_path.format(**placeholders))
    implementation_path = PurePosixPath(template.implementation_path.format(**placeholders))

    context = {
        "name": name,
        "slug": placeholders["slug"],
        "kind": spec.kind,
        "description": spec.description or f"{name} {spec.kind}",
        "inputs": list(spec.inputs),
        "outputs": list(spec.outputs),
        "error_cases": list(spec.error_cases),
        "import_path": _import_path(test_path, implementation_path),
    }

    env = _environment()
    return RenderedFeature(
        test_path=test_path,
        test_content=env.get_template(template.test_template).render(**context),
        implementation_path=implementation_path,
        implementation_content=env.get_template(template.implementation_template).render(**context),
    )


def emit_feature(
    spec: FeatureSpec,
    root: Path,
    locations: Mapping[str, str] | None = None,
    overwrite: bool = False,
) -> EmitReport:
    rendered = render_feature(spec, locations)
    targets = (
        (root / rendered.test_path, rendered.test_content),
        (root / rendered.implementation_path, rendered.implementation_content),
    )

    existing = tuple(path for path, _ in targets if path.exists())
    if existing and not overwrite:
        raise AlreadyExistsError(existing)

    for path, content in targets:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content + ("\n" if not content.endswith("\n") else ""), encoding="utf-8")
        logger.debug("Wrote %s", path)

    return EmitReport(
        test_path=targets[0][0],
        implementation_path=targets[1][0],
        overwritten=existing,
    )

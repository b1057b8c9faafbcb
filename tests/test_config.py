from pathlib import Path

import pytest

from canonkit.config import DEFAULT_FORBIDDEN, ConfigError, ProjectConfig, load_project_config
from canonkit.duplicates import detect_duplicates
from canonkit.naming import Convention
from canonkit.scanner import scan_basenames

INSTALLER_CONFIG = """\
project:
  name: "shop"
  type: "node"
  framework: "nextjs"
  language: "typescript"
  description: "Auto-detected project configuration"

source_structure:
  main_dir: "src"
  components_dir: "src/components"
  utils_dir: "src/lib"
  tests_dir: "__tests__"
  docs_dir: "docs"
  scripts_dir: "scripts"

duplicate_prevention:
  forbidden_locations:
    - "components"
    - "lib"
    - "utils"
    - "docs/nested"

  canonical_mappings:
    components: "src/components"
    utilities: "src/lib"
    documentation: "docs"
    tests: "__tests__"
    scripts: "scripts"

naming_conventions:
  files:
    components: "PascalCase"
    utilities: "camelCase"
    tests: "kebab-case.test"
    documentation: "UPPER_CASE"

  code:
    functions: "camelCase"
    classes: "PascalCase"
    constants: "UPPER_SNAKE_CASE"
    variables: "camelCase"

testing:
  framework: "auto-detect"
  test_pattern: "*.test.*"
  test_location: "__tests__"
  coverage_threshold: 80
"""


def test_missing_config_uses_defaults(tmp_path: Path):
    config = load_project_config(tmp_path)

    assert config == ProjectConfig()
    assert config.role("components").preferred == "src/components"
    assert config.forbidden_locations == DEFAULT_FORBIDDEN
    assert config.naming["components"] == Convention.pascal


def test_config_overrides_and_extends_roles(tmp_path: Path):
    (tmp_path / "project-config.yml").write_text(
        "\n".join(
            [
                "duplicate_prevention:",
                "  canonical_mappings:",
                "    components: app/components",
                "    scripts: tools/scripts",
                "  forbidden_locations: []",
                "naming_conventions:",
                "  files:",
                "    components: kebab-case",
                "ignore:",
                "  - vendor",
            ]
        ),
        encoding="utf-8",
    )

    config = load_project_config(tmp_path)

    assert config.role("components").preferred == "app/components"
    assert config.role("components").basenames == ("components",)
    assert config.role("scripts").basenames == ("scripts",)
    assert config.forbidden_locations == ()
    assert config.naming["components"] == Convention.kebab
    assert config.naming["utilities"] == Convention.camel
    assert config.ignore == ("vendor",)
    assert "scripts" in config.basenames


def test_unknown_convention_is_a_config_error(tmp_path: Path):
    (tmp_path / "project-config.yml").write_text(
        "naming_conventions:\n  files:\n    components: SCREAMING\n", encoding="utf-8"
    )

    with pytest.raises(ConfigError):
        load_project_config(tmp_path)


def test_malformed_config_is_a_config_error(tmp_path: Path):
    (tmp_path / "project-config.yml").write_text("duplicate_prevention: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_project_config(tmp_path)

    (tmp_path / "project-config.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_project_config(tmp_path)


def test_installer_generated_config_loads(tmp_path: Path, caplog):
    (tmp_path / "project-config.yml").write_text(INSTALLER_CONFIG, encoding="utf-8")

    config = load_project_config(tmp_path)

    assert [rule.role for rule in config.roles] == ["components", "docs", "lib", "tests", "scripts"]
    assert config.role("lib").preferred == "src/lib"
    assert config.role("docs").preferred == "docs"
    assert config.role("utilities") is None
    assert config.role("documentation") is None
    assert config.naming["tests"] == Convention.kebab
    assert "documentation" not in config.naming
    assert "UPPER_CASE" in caplog.text


def test_aliased_mapping_reports_each_duplicate_once(tmp_path: Path):
    (tmp_path / "project-config.yml").write_text(INSTALLER_CONFIG, encoding="utf-8")
    for relative in ("src/lib", "app/lib", "docs", "app/docs"):
        (tmp_path / relative).mkdir(parents=True)
    root = tmp_path.resolve()
    config = load_project_config(root)

    scan = scan_basenames(root, config.basenames, ignore=config.ignore)
    report = detect_duplicates(scan, config.roles, root)

    assert [(item.role, item.path) for item in report.violations] == [
        ("docs", root / "app" / "docs"),
        ("lib", root / "app" / "lib"),
    ]
    assert report.canonical["lib"] == root / "src" / "lib"

from pathlib import Path

import pytest

from canonkit.config import load_project_config
from canonkit.emitter import UnsupportedKindError
from canonkit.validate import ValidationError, validate_feature


def _write(root: Path, relative: str, content: str = "") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_existing_component_is_reported_as_conflict(tmp_path: Path):
    _write(tmp_path, "src/components/LoginForm.tsx")

    report = validate_feature(tmp_path, "LoginForm", load_project_config(tmp_path))

    assert report.ok is False
    assert any("LoginForm" in issue for issue in report.issues)
    assert "Consider extending existing: LoginForm" in report.suggestions


def test_empty_tree_has_no_conflict(tmp_path: Path):
    report = validate_feature(tmp_path, "LoginForm", load_project_config(tmp_path))

    assert report.ok is True
    assert report.issues == ()


def test_duplicate_directories_are_issues(tmp_path: Path):
    (tmp_path / "src" / "components").mkdir(parents=True)
    (tmp_path / "app" / "components").mkdir(parents=True)

    report = validate_feature(tmp_path, "Sidebar", load_project_config(tmp_path))

    assert "Duplicate components directory: app/components" in report.issues


def test_name_not_matching_convention_gets_a_suggestion(tmp_path: Path):
    report = validate_feature(tmp_path, "login-form", load_project_config(tmp_path), kind="component")

    assert any("PascalCase" in issue for issue in report.issues)
    assert "Consider: LoginForm" in report.suggestions


def test_hook_names_are_checked_with_use_prefix(tmp_path: Path):
    assert validate_feature(tmp_path, "Auth", load_project_config(tmp_path), kind="hook").ok
    report = validate_feature(tmp_path, "auth-state", load_project_config(tmp_path), kind="hook")

    assert "Consider: AuthState" in report.suggestions


def test_invalid_input_raises(tmp_path: Path):
    with pytest.raises(ValidationError):
        validate_feature(tmp_path, " ", load_project_config(tmp_path))
    with pytest.raises(UnsupportedKindError):
        validate_feature(tmp_path, "Widget", load_project_config(tmp_path), kind="widget")

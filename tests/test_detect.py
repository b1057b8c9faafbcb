import json
from pathlib import Path

from canonkit.detect import ProjectProfile, detect_profile


def test_detects_next_typescript_project(tmp_path: Path):
    (tmp_path / "package.json").write_text(
        json.dumps(
            {
                "dependencies": {"next": "14.0.0", "react": "18.2.0", "tailwindcss": "3.4.0"},
                "devDependencies": {"jest": "29.0.0"},
            }
        ),
        encoding="utf-8",
    )
    (tmp_path / "tsconfig.json").write_text("{}", encoding="utf-8")

    profile = detect_profile(tmp_path)

    assert profile.project_type == "node"
    assert profile.framework == "nextjs"
    assert profile.language == "typescript"
    assert profile.testing_framework == "jest"
    assert profile.styling_framework == "tailwind"
    assert profile.package_managers == ("npm",)


def test_detects_python_project_from_requirements(tmp_path: Path):
    (tmp_path / "requirements.txt").write_text("flask==3.0.0\npytest\n", encoding="utf-8")

    profile = detect_profile(tmp_path)

    assert profile.project_type == "python"
    assert profile.framework == "flask"
    assert profile.language == "python"
    assert profile.testing_framework == "pytest"
    assert profile.package_managers == ("pip",)


def test_empty_project_is_unknown(tmp_path: Path):
    assert detect_profile(tmp_path) == ProjectProfile()


def test_spec_files_set_the_test_pattern(tmp_path: Path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "auth.spec.ts").write_text("", encoding="utf-8")

    assert detect_profile(tmp_path).test_pattern == ".spec.*"

import os
from pathlib import Path

import pytest

from stagepack.errors import ToolNotFoundError
from stagepack.settings import DEFAULT_TEMPLATE_DIR, ToolPaths


def test_explicit_environment_overrides_path_lookup(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr("stagepack.settings.shutil.which", lambda _: "/usr/bin/should-not-win")

    tools = ToolPaths.from_env(
        {
            "STAGEPACK_APP_BUILDER": str(tmp_path / "app-builder"),
            "STAGEPACK_7ZA": str(tmp_path / "7zip" / "7za"),
            "STAGEPACK_TEMPLATE_DIR": str(tmp_path / "template"),
        }
    )

    assert tools.app_builder == tmp_path / "app-builder"
    assert tools.sevenzip == tmp_path / "7zip" / "7za"
    assert tools.template_dir == tmp_path / "template"


def test_falls_back_to_path_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    found = {"app-builder": "/opt/bin/app-builder", "7za": None}
    monkeypatch.setattr("stagepack.settings.shutil.which", lambda name: found[name])

    tools = ToolPaths.from_env({})

    assert tools.app_builder == Path("/opt/bin/app-builder")
    assert tools.sevenzip is None
    assert tools.template_dir == DEFAULT_TEMPLATE_DIR


def test_packaged_template_directory_exists() -> None:
    assert DEFAULT_TEMPLATE_DIR.is_dir()


def test_missing_app_builder_has_hint() -> None:
    with pytest.raises(ToolNotFoundError) as excinfo:
        ToolPaths().require_app_builder()

    assert "STAGEPACK_APP_BUILDER" in (excinfo.value.hint or "")
    assert excinfo.value.code == "E_TOOL_NOT_FOUND"


def test_process_env_prepends_sevenzip_directory(tmp_path: Path) -> None:
    tools = ToolPaths(sevenzip=tmp_path / "7zip" / "7za")

    env = tools.process_env({"PATH": "/usr/bin", "HOME": "/home/user"})

    assert env["PATH"] == os.pathsep.join([str(tmp_path / "7zip"), "/usr/bin"])
    assert env["HOME"] == "/home/user"


def test_process_env_without_sevenzip_is_a_copy() -> None:
    base = {"PATH": "/usr/bin"}

    env = ToolPaths().process_env(base)

    assert env == base
    assert env is not base

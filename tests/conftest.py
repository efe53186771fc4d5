"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from fake_tools import write_fake_app_builder
from stagepack.models import PackageOptions, Target
from stagepack.settings import ToolPaths


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    template = tmp_path / "template"
    (template / "usr" / "share").mkdir(parents=True)
    (template / "usr" / "share" / "readme.txt").write_text("template\n", encoding="utf-8")
    return template


@pytest.fixture
def make_tools(tmp_path: Path, template_dir: Path) -> Callable[[str], ToolPaths]:
    """Provide tool paths backed by a fake app-builder in the given mode."""

    def factory(mode: str = "ok") -> ToolPaths:
        sevenzip_dir = tmp_path / "7zip"
        sevenzip_dir.mkdir(exist_ok=True)
        sevenzip = sevenzip_dir / "7za"
        sevenzip.write_text("", encoding="utf-8")
        return ToolPaths(
            app_builder=write_fake_app_builder(tmp_path / f"tool-{mode}", mode),
            sevenzip=sevenzip,
            template_dir=template_dir,
        )

    return factory


@pytest.fixture
def binary(tmp_path: Path) -> Path:
    path = tmp_path / "build" / "myapp"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x7fELF fake binary\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def target(tmp_path: Path, binary: Path) -> Target:
    return Target(output=tmp_path / "out", binary=binary)


@pytest.fixture
def options() -> PackageOptions:
    return PackageOptions(product_name="My App", product_file_name="MyApp", executable_name="myapp")

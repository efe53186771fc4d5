import json
from pathlib import Path

import pytest

from stagepack.errors import (
    ErrorCode,
    OutputParseError,
    PackagingError,
    StagingError,
    ToolNotFoundError,
    ValidationError,
)
from stagepack.models import (
    BuildResult,
    Configuration,
    DirectoryMapping,
    PackageOptions,
    SymlinkMapping,
    Target,
)


def test_configuration_defaults_are_neutral() -> None:
    payload = Configuration().to_payload()
    assert payload == {
        "productName": "",
        "productFileName": "",
        "executableName": "",
        "systemIntegration": "",
        "desktopEntry": "",
        "fileAssociations": [],
        "icons": [],
    }


def test_configuration_json_uses_camel_case_keys() -> None:
    configuration = Configuration(
        product_name="My App",
        product_file_name="MyApp",
        icons=({"file": "icon.png", "size": 256},),
    )
    decoded = json.loads(configuration.to_json())
    assert decoded["productName"] == "My App"
    assert decoded["productFileName"] == "MyApp"
    assert decoded["icons"] == [{"file": "icon.png", "size": 256}]


def test_options_accept_host_and_snake_case_keys() -> None:
    options = PackageOptions.from_mapping(
        {
            "productFileName": "MyApp",
            "executable_name": "myapp",
            "fileAssociations": [{"ext": "myx", "name": "My Document"}],
            "license": "LICENSE.txt",
            "debug": 1,
            "desktopEntry": None,
        }
    )
    assert options.product_file_name == "MyApp"
    assert options.executable_name == "myapp"
    assert options.file_associations == ({"ext": "myx", "name": "My Document"},)
    assert options.license == Path("LICENSE.txt")
    assert options.debug is True
    assert options.desktop_entry == ""
    assert options.configuration().product_file_name == "MyApp"


def test_options_reject_unknown_keys() -> None:
    with pytest.raises(ValidationError) as excinfo:
        PackageOptions.from_mapping({"productFilename": "typo"})

    assert excinfo.value.context["option"] == "productFilename"
    assert excinfo.value.hint is not None


def test_options_reject_non_list_icons() -> None:
    with pytest.raises(ValidationError):
        PackageOptions.from_mapping({"icons": {"file": "icon.png"}})


def test_target_from_host_descriptor() -> None:
    target = Target.from_mapping(
        {
            "output": "/tmp/out",
            "binary": "/tmp/build/myapp",
            "directories": [{"from": "/tmp/assets"}, {"from": "/tmp/lib", "to": "usr/lib"}],
            "symlinks": [{"from": "myapp", "to": "AppRun"}],
        }
    )
    assert target.directories == (
        DirectoryMapping(source=Path("/tmp/assets")),
        DirectoryMapping(source=Path("/tmp/lib"), destination=Path("usr/lib")),
    )
    assert target.symlinks == (SymlinkMapping(source=Path("myapp"), destination=Path("AppRun")),)
    assert target.app_dir == Path("/tmp/out/app")
    assert target.stage_dir == Path("/tmp/out/stage")


def test_target_requires_binary_and_symlink_destination() -> None:
    with pytest.raises(ValidationError):
        Target.from_mapping({"output": "/tmp/out"})
    with pytest.raises(ValidationError):
        Target.from_mapping(
            {"output": "/tmp/out", "binary": "/tmp/app", "symlinks": [{"from": "a"}]}
        )


def test_artifact_path_uses_product_file_name() -> None:
    target = Target(output=Path("/tmp/out"), binary=Path("/tmp/build/myapp"))
    configuration = Configuration(product_file_name="MyApp")
    assert target.artifact_path(configuration) == Path("/tmp/out/MyApp.AppImage")


def test_directory_destination_defaults_to_source_basename() -> None:
    app_dir = Path("/tmp/out/app")
    assert DirectoryMapping(source=Path("/data/assets")).resolve_destination(app_dir) == (
        app_dir / "assets"
    )
    assert DirectoryMapping(
        source=Path("/data/assets"), destination=Path("usr/share/assets")
    ).resolve_destination(app_dir) == app_dir / "usr/share/assets"


def test_build_result_merges_name_over_payload() -> None:
    result = BuildResult(name=Path("/tmp/out/MyApp.AppImage"), payload={"size": 1, "name": "x"})
    assert result.to_dict() == {"size": 1, "name": "/tmp/out/MyApp.AppImage"}


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ValidationError("bad input"),
        ToolNotFoundError("missing tool"),
        StagingError("copy failed"),
        PackagingError("app-builder failed"),
        OutputParseError("bad json"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.VALIDATION.value,
        ErrorCode.TOOL_NOT_FOUND.value,
        ErrorCode.STAGING.value,
        ErrorCode.PACKAGING.value,
        ErrorCode.OUTPUT_PARSE.value,
    ]


def test_error_rendering_includes_hint_and_context() -> None:
    error = PackagingError(
        "app-builder exited with code 3.",
        hint="Check stderr.",
        context={"returncode": "3", "stderr": "boom", "empty": ""},
    )
    rendered = str(error)
    assert "Hint: Check stderr." in rendered
    assert "  stderr: boom" in rendered
    assert "empty" not in rendered
    assert error.stderr == "boom"
    assert error.to_dict()["hint"] == "Check stderr."

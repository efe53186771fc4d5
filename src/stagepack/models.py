"""Core typed dataclasses for packaging options, targets and results."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from stagepack.errors import ValidationError

APPIMAGE_SUFFIX = ".AppImage"
APP_DIRNAME = "app"
STAGE_DIRNAME = "stage"

# Host options use camelCase keys; both spellings are accepted.
_OPTION_ALIASES: dict[str, str] = {
    "productName": "product_name",
    "productFileName": "product_file_name",
    "executableName": "executable_name",
    "systemIntegration": "system_integration",
    "desktopEntry": "desktop_entry",
    "fileAssociations": "file_associations",
}

_OPTION_FIELDS = (
    "product_name",
    "product_file_name",
    "executable_name",
    "system_integration",
    "desktop_entry",
    "file_associations",
    "icons",
    "license",
    "debug",
)


@dataclass(frozen=True, slots=True)
class Configuration:
    """Configuration handed verbatim to ``app-builder appimage``."""

    product_name: str = ""
    product_file_name: str = ""
    executable_name: str = ""
    system_integration: str = ""
    desktop_entry: str = ""
    file_associations: tuple[Mapping[str, Any], ...] = ()
    icons: tuple[Mapping[str, Any], ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "productName": self.product_name,
            "productFileName": self.product_file_name,
            "executableName": self.executable_name,
            "systemIntegration": self.system_integration,
            "desktopEntry": self.desktop_entry,
            "fileAssociations": [dict(item) for item in self.file_associations],
            "icons": [dict(item) for item in self.icons],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True, slots=True)
class PackageOptions:
    product_name: str = ""
    product_file_name: str = ""
    executable_name: str = ""
    system_integration: str = ""
    desktop_entry: str = ""
    file_associations: tuple[Mapping[str, Any], ...] = ()
    icons: tuple[Mapping[str, Any], ...] = ()
    license: Path | None = None
    debug: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PackageOptions:
        """Build options from a host options mapping.

        Missing keys and ``None`` values fall back to the neutral defaults.
        Unknown keys are rejected so typos surface before a build starts.
        """
        values: dict[str, Any] = {}
        for key, value in raw.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in _OPTION_FIELDS:
                raise ValidationError(
                    f"Unknown packaging option `{key}`.",
                    hint=f"Supported options: {', '.join(_OPTION_FIELDS)}.",
                    context={"operation": "options", "option": key},
                )
            if value is None:
                continue
            values[name] = value

        for name in ("file_associations", "icons"):
            if name in values:
                values[name] = _mapping_tuple(values[name], option=name)
        if "license" in values:
            values["license"] = Path(values["license"])
        if "debug" in values:
            values["debug"] = bool(values["debug"])
        return cls(**values)

    def configuration(self) -> Configuration:
        return Configuration(
            product_name=self.product_name,
            product_file_name=self.product_file_name,
            executable_name=self.executable_name,
            system_integration=self.system_integration,
            desktop_entry=self.desktop_entry,
            file_associations=self.file_associations,
            icons=self.icons,
        )


@dataclass(frozen=True, slots=True)
class DirectoryMapping:
    source: Path
    destination: Path | None = None

    def resolve_destination(self, app_dir: Path) -> Path:
        """Destination under *app_dir*; defaults to the source basename."""
        return app_dir / (self.destination or self.source.name)


@dataclass(frozen=True, slots=True)
class SymlinkMapping:
    source: Path
    destination: Path


@dataclass(frozen=True, slots=True)
class Target:
    """Build target descriptor supplied by the host."""

    output: Path
    binary: Path
    directories: tuple[DirectoryMapping, ...] = ()
    symlinks: tuple[SymlinkMapping, ...] = ()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Target:
        for key in ("output", "binary"):
            if not raw.get(key):
                raise ValidationError(
                    f"Target is missing `{key}`.",
                    context={"operation": "target", "field": key},
                )

        directories = tuple(
            DirectoryMapping(
                source=Path(_require(entry, "from", kind="directories")),
                destination=Path(entry["to"]) if entry.get("to") else None,
            )
            for entry in raw.get("directories") or ()
        )
        symlinks = tuple(
            SymlinkMapping(
                source=Path(_require(entry, "from", kind="symlinks")),
                destination=Path(_require(entry, "to", kind="symlinks")),
            )
            for entry in raw.get("symlinks") or ()
        )
        return cls(
            output=Path(raw["output"]),
            binary=Path(raw["binary"]),
            directories=directories,
            symlinks=symlinks,
        )

    @property
    def app_dir(self) -> Path:
        return self.output.absolute() / APP_DIRNAME

    @property
    def stage_dir(self) -> Path:
        return self.output.absolute() / STAGE_DIRNAME

    def artifact_path(self, configuration: Configuration) -> Path:
        return self.output.absolute() / f"{configuration.product_file_name}{APPIMAGE_SUFFIX}"


@dataclass(frozen=True, slots=True)
class BuildResult:
    name: Path
    payload: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {**self.payload, "name": str(self.name)}


def _mapping_tuple(value: Any, *, option: str) -> tuple[Mapping[str, Any], ...]:
    if isinstance(value, Mapping) or not isinstance(value, (list, tuple)):
        raise ValidationError(
            f"Option `{option}` must be a list of objects.",
            context={"operation": "options", "option": option},
        )
    items = tuple(value)
    for item in items:
        if not isinstance(item, Mapping):
            raise ValidationError(
                f"Option `{option}` must be a list of objects.",
                context={"operation": "options", "option": option, "item": repr(item)},
            )
    return items


def _require(entry: Mapping[str, Any], key: str, *, kind: str) -> Any:
    value = entry.get(key)
    if not value:
        raise ValidationError(
            f"Target {kind} entry is missing `{key}`.",
            context={"operation": "target", "field": kind, "entry": repr(dict(entry))},
        )
    return value

"""Tool location settings resolved from the environment."""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from stagepack.errors import ToolNotFoundError

APP_BUILDER_ENV = "STAGEPACK_APP_BUILDER"
SEVENZIP_ENV = "STAGEPACK_7ZA"
TEMPLATE_DIR_ENV = "STAGEPACK_TEMPLATE_DIR"

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent / "template"


@dataclass(frozen=True, slots=True)
class ToolPaths:
    app_builder: Path | None = None
    sevenzip: Path | None = None
    template_dir: Path = DEFAULT_TEMPLATE_DIR

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ToolPaths:
        env = os.environ if environ is None else environ
        return cls(
            app_builder=_locate(env.get(APP_BUILDER_ENV), "app-builder"),
            sevenzip=_locate(env.get(SEVENZIP_ENV), "7za"),
            template_dir=Path(env[TEMPLATE_DIR_ENV]) if env.get(TEMPLATE_DIR_ENV) else DEFAULT_TEMPLATE_DIR,
        )

    def require_app_builder(self) -> Path:
        if self.app_builder is None:
            raise ToolNotFoundError(
                "Packaging requires the `app-builder` binary.",
                hint=f"Install app-builder in PATH or set {APP_BUILDER_ENV}.",
                context={"operation": "open", "tool": "app-builder"},
            )
        return self.app_builder

    def process_env(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Child environment: *base* with the 7za directory first in PATH."""
        env = dict(os.environ if base is None else base)
        if self.sevenzip is not None:
            parts = [str(self.sevenzip.parent)]
            if env.get("PATH"):
                parts.append(env["PATH"])
            env["PATH"] = os.pathsep.join(parts)
        return env


def _locate(explicit: str | None, command: str) -> Path | None:
    if explicit:
        return Path(explicit)
    found = shutil.which(command)
    return Path(found) if found else None

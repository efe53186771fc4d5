"""Protocol for packager plugin builders."""

from __future__ import annotations

from typing import Protocol

from stagepack.models import BuildResult


class Builder(Protocol):
    name: str

    async def init(self) -> None:
        """Prepare working directories for the build."""

    async def build(self) -> BuildResult | None:
        """Stage files and, when this call is the last one in, run the packager."""

    async def cleanup(self) -> None:
        """Release working directories."""

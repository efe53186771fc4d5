"""Public package entrypoint for the stagepack AppImage packager plugin."""

from .builders import AppImageBuilder, Builder, appimage_builder
from .errors import (
    ErrorCode,
    OutputParseError,
    PackagingError,
    StagepackError,
    StagingError,
    ToolNotFoundError,
    ValidationError,
)
from .models import (
    BuildResult,
    Configuration,
    DirectoryMapping,
    PackageOptions,
    SymlinkMapping,
    Target,
)
from .observability import StructuredLogger
from .process import ManagedProcess, ProcessRegistry
from .settings import ToolPaths

__all__ = [
    "AppImageBuilder",
    "BuildResult",
    "Builder",
    "Configuration",
    "DirectoryMapping",
    "ErrorCode",
    "ManagedProcess",
    "OutputParseError",
    "PackageOptions",
    "PackagingError",
    "ProcessRegistry",
    "StagepackError",
    "StagingError",
    "StructuredLogger",
    "SymlinkMapping",
    "Target",
    "ToolNotFoundError",
    "ToolPaths",
    "ValidationError",
    "appimage_builder",
]

"""AppImage builder driving ``app-builder appimage``.

Files are staged under ``<output>/app`` and mirrored into ``<output>/stage``.
Builds that share a stage directory share one ``app-builder`` process through
the :class:`~stagepack.process.ProcessRegistry`; it is spawned once every
concurrent build has finished staging.
"""

from __future__ import annotations

import stat
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any

from stagepack import fsops
from stagepack.errors import ValidationError
from stagepack.models import BuildResult, Configuration, PackageOptions, Target
from stagepack.observability import StructuredLogger
from stagepack.pipeline import StepBatch
from stagepack.process import ManagedProcess, ProcessRegistry
from stagepack.settings import ToolPaths


@dataclass(slots=True)
class AppImageBuilder:
    target: Target
    options: PackageOptions
    registry: ProcessRegistry = field(default_factory=ProcessRegistry)
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    tools: ToolPaths = field(default_factory=ToolPaths.from_env)
    name: str = "appimage"

    def __post_init__(self) -> None:
        if not self.options.product_file_name:
            raise ValidationError(
                "AppImage builds require a product file name.",
                hint="Set the `productFileName` option.",
                context={"operation": "configure", "builder": self.name},
            )

    @property
    def configuration(self) -> Configuration:
        return self.options.configuration()

    @property
    def app_dir(self) -> Path:
        return self.target.app_dir

    @property
    def stage_dir(self) -> Path:
        return self.target.stage_dir

    @property
    def output_name(self) -> Path:
        return self.target.artifact_path(self.configuration)

    async def init(self) -> None:
        steps = self._batch("init")
        steps.push("remove-artifact", partial(fsops.remove_path, self.output_name))
        steps.push("make-stage-dir", partial(fsops.make_dirs, self.stage_dir))
        steps.push("make-app-dir", partial(fsops.make_dirs, self.app_dir))
        steps.push("mirror-template", partial(fsops.mirror, self.tools.template_dir, self.app_dir))
        await steps.run()

    async def build(self) -> BuildResult | None:
        process = self.registry.lookup_or_create(self.stage_dir, self._create_process)
        process.active()

        staged = False
        try:
            await self._staging_steps().run()
            staged = True
        finally:
            remaining = process.inactive()
            if not staged and remaining == 0 and not process.opened:
                self.registry.remove(self.stage_dir, process)

        if not process.ready:
            self.logger.log(
                operation="build",
                stage=str(self.stage_dir),
                step="share",
                message="packaging process left to another build",
                level="debug",
                extra={"actives": process.actives, "opened": process.opened},
            )
            return None
        return await self._run_process(process)

    async def cleanup(self) -> None:
        if self.options.debug:
            self.logger.log(
                operation="cleanup",
                stage=str(self.stage_dir),
                step=None,
                message="debug set, keeping working directories",
                level="debug",
            )
            return
        steps = self._batch("cleanup")
        steps.push("remove-stage-dir", partial(fsops.remove_path, self.stage_dir))
        steps.push("remove-app-dir", partial(fsops.remove_path, self.app_dir))
        await steps.run()

    def _batch(self, operation: str) -> StepBatch:
        return StepBatch(operation=operation, stage=str(self.stage_dir), logger=self.logger)

    def _create_process(self) -> ManagedProcess:
        process = ManagedProcess(
            self.tools.require_app_builder(),
            [
                "appimage",
                "--no-remove-stage",
                f"--configuration={self.configuration.to_json()}",
                "--output",
                str(self.output_name),
                "--stage",
                str(self.stage_dir),
                "--app",
                str(self.app_dir),
            ],
            output_name=self.output_name,
            env=self.tools.process_env(),
        )
        if self.options.license is not None:
            process.add_args("--license", str(self.options.license))
        return process

    def _staging_steps(self) -> StepBatch:
        steps = self._batch("build")
        binary = self.target.binary
        steps.push("copy-binary", partial(fsops.copy_file, binary, self.app_dir / binary.name))
        steps.push("mirror-app", partial(fsops.mirror, self.app_dir, self.stage_dir))

        for directory in self.target.directories:
            reason = _not_a_directory(directory.source)
            if reason is not None:
                self.logger.log(
                    operation="build",
                    stage=str(self.stage_dir),
                    step="directory",
                    message="skipping extra directory",
                    level="debug",
                    extra={"source": str(directory.source), "reason": reason},
                )
                continue
            destination = directory.resolve_destination(self.app_dir)
            steps.push(f"make-dir:{destination}", partial(fsops.make_dirs, destination))
            steps.push(f"mirror-dir:{destination}", partial(fsops.mirror, directory.source, destination))

        for symlink in self.target.symlinks:
            link = self.app_dir / symlink.destination
            link_target = fsops.relative_link_target(self.app_dir / symlink.source, link)
            steps.push(f"symlink:{link}", partial(fsops.create_symlink, link, link_target))

        return steps

    async def _run_process(self, process: ManagedProcess) -> BuildResult | None:
        self.logger.log(
            operation="build",
            stage=str(self.stage_dir),
            step="open",
            message="spawning app-builder",
            extra={"argv": process.argv},
        )
        try:
            result = await process.run()
        finally:
            self.registry.remove(self.stage_dir, process)
            self.logger.log(
                operation="build",
                stage=str(self.stage_dir),
                step="close",
                message="app-builder closed",
                extra={"returncode": process.process.returncode if process.process else None},
            )
        return result


def appimage_builder(
    target: Target | Mapping[str, Any],
    options: PackageOptions | Mapping[str, Any] | None = None,
    *,
    registry: ProcessRegistry | None = None,
    logger: StructuredLogger | None = None,
    tools: ToolPaths | None = None,
) -> AppImageBuilder:
    """Create an AppImage builder from typed objects or host mappings."""
    if not isinstance(target, Target):
        target = Target.from_mapping(target)
    if options is None:
        options = PackageOptions()
    elif not isinstance(options, PackageOptions):
        options = PackageOptions.from_mapping(options)
    return AppImageBuilder(
        target=target,
        options=options,
        registry=registry if registry is not None else ProcessRegistry(),
        logger=logger if logger is not None else StructuredLogger(),
        tools=tools if tools is not None else ToolPaths.from_env(),
    )


def _not_a_directory(path: Path) -> str | None:
    try:
        mode = path.stat().st_mode
    except OSError as exc:
        return str(exc)
    if not stat.S_ISDIR(mode):
        return "not a directory"
    return None

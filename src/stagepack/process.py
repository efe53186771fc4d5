"""Shared ``app-builder`` child processes keyed by stage directory.

Several builds may stage into the same directory. They share one
:class:`ManagedProcess`, counted with :meth:`ManagedProcess.active` and
:meth:`ManagedProcess.inactive`; whichever build brings the count back to zero
first spawns the process. A process is spawned at most once.
"""

from __future__ import annotations

import asyncio
import json
import signal
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from stagepack.errors import OutputParseError, PackagingError
from stagepack.models import BuildResult

# Stream buffer size; longer result lines are read in several pieces.
STDOUT_LIMIT = 1024 * 1024
STDERR_CHUNK = 4096


class ManagedProcess:
    def __init__(
        self,
        command: Path,
        args: list[str],
        *,
        output_name: Path,
        env: dict[str, str] | None = None,
    ) -> None:
        self.command = command
        self.args = list(args)
        self.output_name = output_name
        self.env = env
        self.actives = 0
        self.opened = False
        self.closed = False
        self.terminated = False
        self.stderr = ""
        self.process: asyncio.subprocess.Process | None = None

    @property
    def argv(self) -> list[str]:
        return [str(self.command), *self.args]

    @property
    def ready(self) -> bool:
        return self.actives == 0 and not self.opened

    def add_args(self, *args: str) -> None:
        if self.opened:
            raise PackagingError(
                "Cannot change arguments of an opened packaging process.",
                context={"operation": "add_args", "command": " ".join(self.argv)},
            )
        self.args.extend(args)

    def active(self) -> int:
        self.actives += 1
        return self.actives

    def inactive(self) -> int:
        if self.actives == 0:
            raise PackagingError(
                "Packaging process has no active callers.",
                hint="Every inactive() must follow a matching active().",
                context={"operation": "inactive", "command": " ".join(self.argv)},
            )
        self.actives -= 1
        return self.actives

    async def open(self) -> asyncio.subprocess.Process:
        if self.opened:
            raise PackagingError(
                "Packaging process was already opened.",
                context={"operation": "open", "command": " ".join(self.argv)},
            )
        self.opened = True
        try:
            self.process = await asyncio.create_subprocess_exec(
                *self.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.env,
                limit=STDOUT_LIMIT,
            )
        except OSError as exc:
            self.closed = True
            raise PackagingError(
                "Failed to start the packaging process.",
                hint="Check that app-builder is executable.",
                context={"operation": "open", "command": " ".join(self.argv), "error": str(exc)},
            ) from exc
        return self.process

    async def close(self) -> int | None:
        """Terminate the process if it is still running and reap it."""
        if self.process is None:
            self.closed = True
            return None
        if self.process.returncode is None and not self.closed:
            try:
                self.process.terminate()
                self.terminated = True
            except ProcessLookupError:
                pass
        returncode = await self.process.wait()
        self.closed = True
        return returncode

    async def run(self) -> BuildResult | None:
        """Spawn, read the first stdout line as JSON, close, check the exit."""
        process = await self.open()
        if process.stdout is None or process.stderr is None:
            await self.close()
            raise PackagingError(
                "Packaging process was started without output pipes.",
                context={"operation": "run", "command": " ".join(self.argv)},
            )
        stderr_task = asyncio.create_task(self._collect_stderr(process.stderr))
        try:
            line = await _read_line(process.stdout)
            # EOF on stdout: let the process exit on its own before closing.
            if not line.strip():
                await process.wait()
            payload = self._parse_output(line) if line.strip() else None
        finally:
            returncode = await self.close()
            await stderr_task

        if returncode and not (self.terminated and returncode == -signal.SIGTERM):
            raise PackagingError(
                f"app-builder exited with code {returncode}.",
                hint="Check the app-builder stderr output for details.",
                context={
                    "operation": "run",
                    "returncode": str(returncode),
                    "stderr": self.stderr,
                    "command": " ".join(self.argv),
                },
            )
        if payload is None:
            return None
        return BuildResult(name=self.output_name, payload=payload)

    async def _collect_stderr(self, stream: asyncio.StreamReader) -> str:
        while chunk := await stream.read(STDERR_CHUNK):
            self.stderr = f"{self.stderr}\n{chunk.decode('utf-8', errors='replace')}"
        return self.stderr

    def _parse_output(self, line: bytes) -> dict[str, Any]:
        try:
            parsed = json.loads(line.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise OutputParseError(
                "app-builder output is not valid JSON.",
                context={"operation": "run", "output": line[:2000].decode("utf-8", errors="replace")},
            ) from exc
        if not isinstance(parsed, dict):
            raise OutputParseError(
                "app-builder output is not a JSON object.",
                context={"operation": "run", "output": line[:2000].decode("utf-8", errors="replace")},
            )
        return parsed


async def _read_line(stream: asyncio.StreamReader) -> bytes:
    """Read one newline-terminated line of any length, or the rest up to EOF."""
    chunks: list[bytes] = []
    while True:
        try:
            chunks.append(await stream.readuntil(b"\n"))
        except asyncio.IncompleteReadError as exc:
            chunks.append(exc.partial)
        except asyncio.LimitOverrunError as exc:
            chunks.append(await stream.readexactly(exc.consumed))
            continue
        return b"".join(chunks)


class ProcessRegistry:
    """Maps stage directories to their live :class:`ManagedProcess`."""

    def __init__(self) -> None:
        self._processes: dict[Path, ManagedProcess] = {}

    def lookup_or_create(
        self, stage_key: Path, factory: Callable[[], ManagedProcess]
    ) -> ManagedProcess:
        process = self._processes.get(stage_key)
        if process is None:
            process = factory()
            self._processes[stage_key] = process
        return process

    def get(self, stage_key: Path) -> ManagedProcess | None:
        return self._processes.get(stage_key)

    def remove(self, stage_key: Path, process: ManagedProcess | None = None) -> bool:
        """Drop the entry; with *process*, only if it is still the registered one."""
        current = self._processes.get(stage_key)
        if current is None or (process is not None and current is not process):
            return False
        del self._processes[stage_key]
        return True

    def __contains__(self, stage_key: object) -> bool:
        return stage_key in self._processes

    def __len__(self) -> int:
        return len(self._processes)

    def __iter__(self) -> Iterator[Path]:
        return iter(self._processes)

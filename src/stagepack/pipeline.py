"""Ordered, fail-fast execution of asynchronous staging steps."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from stagepack.errors import StagepackError, StagingError
from stagepack.observability import StructuredLogger

StepFn = Callable[[], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class Step:
    name: str
    run: StepFn


@dataclass(slots=True)
class StepBatch:
    """Runs pushed steps one at a time in push order.

    The first failing step aborts the batch. ``OSError`` failures are raised
    as :class:`StagingError` with the original exception chained; package
    errors pass through unchanged.
    """

    operation: str
    stage: str | None = None
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    steps: list[Step] = field(default_factory=list)

    def push(self, name: str, run: StepFn) -> None:
        self.steps.append(Step(name=name, run=run))

    def __len__(self) -> int:
        return len(self.steps)

    async def run(self) -> list[Any]:
        results: list[Any] = []
        for step in self.steps:
            self.logger.log(
                operation=self.operation,
                stage=self.stage,
                step=step.name,
                message="step started",
                level="debug",
            )
            try:
                results.append(await step.run())
            except StagepackError:
                self._log_failure(step)
                raise
            except OSError as exc:
                self._log_failure(step)
                raise StagingError(
                    f"Staging step `{step.name}` failed.",
                    hint="Check permissions and free space in the output directory.",
                    context={
                        "operation": self.operation,
                        "step": step.name,
                        "stage": self.stage or "",
                        "error": str(exc),
                    },
                ) from exc
            self.logger.log(
                operation=self.operation,
                stage=self.stage,
                step=step.name,
                message="step finished",
                level="debug",
            )
        return results

    def _log_failure(self, step: Step) -> None:
        self.logger.log(
            operation=self.operation,
            stage=self.stage,
            step=step.name,
            message="step failed",
            level="error",
        )

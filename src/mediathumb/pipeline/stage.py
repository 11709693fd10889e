"""Pipeline stage and pipeline definitions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from mediathumb.tools import require_tool

if TYPE_CHECKING:
    from mediathumb.pipeline.runner import PipelineRunner


@dataclass(frozen=True)
class PipelineStage:
    """One external program in a pipeline.

    Standard input is the previous stage's standard output (or the pipeline
    input for the first stage), standard output feeds the next stage.

    Attributes:
        program: Tool name, resolved through tool detection unless
            executable is given.
        args: Arguments passed after the executable.
        executable: Explicit executable path, bypassing tool detection.
    """

    program: str
    args: tuple[str, ...] = ()
    executable: Path | str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))

    def argv(self) -> list[str]:
        """Build the full command line.

        Raises:
            ToolNotFoundError: If the program cannot be located.
        """
        executable = self.executable or require_tool(self.program)
        return [str(executable), *self.args]


class Pipeline:
    """An ordered chain of stages, executed at most once."""

    def __init__(self, stages: Iterable[PipelineStage] = ()) -> None:
        self._stages: list[PipelineStage] = list(stages)
        self._executed = False

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        return "Pipeline(" + " | ".join(s.program for s in self._stages) + ")"

    @property
    def stages(self) -> tuple[PipelineStage, ...]:
        """The stages in execution order."""
        return tuple(self._stages)

    @property
    def executed(self) -> bool:
        """True once execute() has been called."""
        return self._executed

    def then(self, stage: PipelineStage) -> Pipeline:
        """Append a stage. Returns self for chaining."""
        if self._executed:
            raise RuntimeError("cannot extend a pipeline that has already run")
        self._stages.append(stage)
        return self

    def execute(
        self,
        stdin: BinaryIO | None = None,
        runner: PipelineRunner | None = None,
    ) -> bytes:
        """Run every stage in order and return the final standard output.

        Args:
            stdin: Seekable stream fed to the first stage, rewound first.
                None gives the first stage no input.
            runner: Runner to use. Defaults to a runner on the shared pool.

        Raises:
            RuntimeError: If the pipeline has already been executed.
            StageError: If any stage fails.
        """
        if self._executed:
            raise RuntimeError("pipeline has already been executed")
        self._executed = True

        if runner is None:
            from mediathumb.pipeline.runner import PipelineRunner

            runner = PipelineRunner()
        return runner.run(self._stages, stdin)

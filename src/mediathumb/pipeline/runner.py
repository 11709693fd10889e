"""Execution of external process pipelines.

Each stage runs as a child process. Its standard output is collected into a
pooled buffer, which becomes the standard input of the next stage. Two
buffers are enough for any pipeline length: after every stage boundary the
input and output buffers swap roles instead of allocating a new one.

A failing stage aborts the pipeline. Later stages never start, partial
output is discarded, and the error carries the stage's captured stderr.

Cancellation is the caller's responsibility: a running stage can only be
interrupted by closing the input stream or killing the child process.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for pipeline stages
import threading
import time
from collections.abc import Sequence
from typing import BinaryIO

from mediathumb.buffers import (
    READ_CHUNK_SIZE,
    BufferPool,
    PooledBuffer,
    get_buffer_pool,
)
from mediathumb.errors import StageError, StageSpawnError, StageTimeoutError
from mediathumb.pipeline.stage import PipelineStage

logger = logging.getLogger(__name__)

# Seconds to wait for helper threads after a stage has exited
THREAD_JOIN_TIMEOUT = 5.0


def _stream_fileno(stream: BinaryIO) -> int | None:
    """Return the OS file descriptor of a real file, or None."""
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


class PipelineRunner:
    """Runs pipeline stages, moving bytes between them through pooled buffers.

    Args:
        pool: Buffer pool for stage output. Defaults to the shared pool.
        timeout: Seconds a single stage may run. None uses the configured
            stage timeout.
    """

    def __init__(
        self, pool: BufferPool | None = None, timeout: float | None = None
    ) -> None:
        self._pool = pool
        self._timeout = timeout

    @property
    def pool(self) -> BufferPool:
        if self._pool is None:
            self._pool = get_buffer_pool()
        return self._pool

    @property
    def timeout(self) -> float:
        if self._timeout is None:
            from mediathumb.config import get_config

            self._timeout = get_config().pipeline.stage_timeout
        return self._timeout

    def run(
        self, stages: Sequence[PipelineStage], stdin: BinaryIO | None = None
    ) -> bytes:
        """Execute stages in order and return the last stage's output.

        Args:
            stages: Stages to run; must not be empty.
            stdin: Seekable input for the first stage. It is rewound first.

        Returns:
            Standard output of the final stage.

        Raises:
            StageError: If a stage fails to start, exits non-zero or times out.
        """
        if not stages:
            raise ValueError("pipeline has no stages")

        if stdin is not None:
            stdin.seek(0)

        pool = self.pool
        in_buf: PooledBuffer | None = None
        out_buf = pool.get()
        try:
            for i, stage in enumerate(stages):
                source: BinaryIO | PooledBuffer | None = stdin if i == 0 else in_buf
                self._run_stage(stage, source, out_buf)

                # Output of this stage is the input of the next
                if in_buf is None:
                    in_buf = pool.get()
                in_buf.clear()
                in_buf, out_buf = out_buf, in_buf

            assert in_buf is not None
            return in_buf.getvalue()
        finally:
            out_buf.release()
            if in_buf is not None:
                in_buf.release()

    def _run_stage(
        self,
        stage: PipelineStage,
        source: BinaryIO | PooledBuffer | None,
        out: PooledBuffer,
    ) -> None:
        argv = stage.argv()
        logger.debug("Running stage %s: %s", stage.program, " ".join(argv))

        # Real files are handed to the child directly
        fileno = None
        if source is not None and not isinstance(source, PooledBuffer):
            fileno = _stream_fileno(source)
        if fileno is not None:
            stdin_arg: int = fileno
        elif source is not None:
            stdin_arg = subprocess.PIPE
        else:
            stdin_arg = subprocess.DEVNULL

        try:
            process = subprocess.Popen(  # nosec B603 - argv from resolved tools
                argv,
                stdin=stdin_arg,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise StageSpawnError(stage.program, str(e)) from e

        stderr_chunks: list[bytes] = []
        threads: list[threading.Thread] = []

        def read_stderr() -> None:
            assert process.stderr is not None
            try:
                stderr_chunks.append(process.stderr.read())
            except (OSError, ValueError) as e:
                logger.debug("Stderr reader stopped: %s", e)

        threads.append(threading.Thread(target=read_stderr, daemon=True))

        if stdin_arg == subprocess.PIPE:
            assert source is not None
            threads.append(
                threading.Thread(
                    target=self._feed, args=(process, source), daemon=True
                )
            )

        timed_out = threading.Event()

        def kill() -> None:
            timed_out.set()
            process.kill()

        timer = threading.Timer(self.timeout, kill)
        timer.daemon = True

        start = time.monotonic()
        for thread in threads:
            thread.start()
        timer.start()
        try:
            assert process.stdout is not None
            out.read_from(process.stdout)
            process.wait()
        finally:
            timer.cancel()
            if process.poll() is None:
                process.kill()
                process.wait()
            for thread in threads:
                thread.join(timeout=THREAD_JOIN_TIMEOUT)
            if process.stdout:
                process.stdout.close()
            if process.stderr:
                process.stderr.close()

        stderr = b"".join(stderr_chunks).decode("utf-8", errors="replace").strip()
        if timed_out.is_set():
            raise StageTimeoutError(stage.program, self.timeout, stderr)
        if process.returncode != 0:
            raise StageError(stage.program, process.returncode, stderr)

        logger.debug(
            "Stage %s produced %d bytes in %.3fs",
            stage.program,
            len(out),
            time.monotonic() - start,
        )

    @staticmethod
    def _feed(
        process: subprocess.Popen[bytes], source: BinaryIO | PooledBuffer
    ) -> None:
        """Write stage input to the child's stdin, then close it."""
        stdin = process.stdin
        assert stdin is not None
        try:
            if isinstance(source, PooledBuffer):
                with source.view() as view:
                    stdin.write(view)
            else:
                while chunk := source.read(READ_CHUNK_SIZE):
                    stdin.write(chunk)
        except (BrokenPipeError, ConnectionResetError):
            # The child stopped reading; its exit status tells the story
            logger.debug("Stage closed its input early")
        except (OSError, ValueError) as e:
            logger.debug("Input feeder stopped: %s", e)
        finally:
            try:
                stdin.close()
            except OSError:
                logger.debug("Stage input already closed")


def run_command(
    stage: PipelineStage,
    stdin: BinaryIO | None = None,
    runner: PipelineRunner | None = None,
) -> bytes:
    """Run a single stage with the given input and return its output."""
    return (runner or PipelineRunner()).run([stage], stdin)

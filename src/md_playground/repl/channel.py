"""REPL channel: one interpreter subprocess and its three standard streams."""

from __future__ import annotations

import asyncio
import logging
from asyncio.subprocess import PIPE, Process, SubprocessStreamProtocol
from collections.abc import Callable
from enum import Enum

from md_playground.config import ChannelConfig
from md_playground.errors import ChannelClosedError, ChannelSpawnError
from md_playground.repl.line_buffer import LineBuffer

logger = logging.getLogger(__name__)

Sink = Callable[[str], None]

# asyncio's default StreamReader buffer limit.
_STREAM_LIMIT = 2**16


class ChannelState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    TERMINATED = "terminated"


class _InterpreterProtocol(SubprocessStreamProtocol):
    """Stream protocol that also resolves a future when the process exits.

    `Process.wait()` only returns once every pipe is disconnected, which never
    happens while a grandchild keeps the interpreter's pipes open.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__(limit=_STREAM_LIMIT, loop=loop)
        self.exited: asyncio.Future[None] = loop.create_future()

    def process_exited(self) -> None:
        super().process_exited()
        if not self.exited.done():
            self.exited.set_result(None)


class ReplChannel:
    """Owns one interpreter process and streams its output to two sinks.

    `execute` only writes to the interpreter's stdin; it is never paired with
    a response. Output arrives through the sinks whenever the interpreter
    produces complete lines, in the order the process wrote them per stream.
    Waiting for one result before sending the next statement is up to the
    caller.

    Each output stream is serviced by its own reader task on the running
    event loop. A task waits until data is available, frames it with a
    `LineBuffer`, runs the sink to completion and only then waits again, so
    a stream's buffer is never touched by two reads at once.

    The lifecycle is `NOT_STARTED -> RUNNING -> TERMINATED` with no way back.
    Once terminated (explicitly, or because the process exited), `execute`
    raises `ChannelClosedError` and the sinks are never called again. Await
    `wait_closed` (or use `aclose`) so the pipes are released before the
    event loop shuts down.
    """

    def __init__(
        self,
        on_stdout: Sink,
        on_stderr: Sink,
        *,
        config: ChannelConfig | None = None,
    ) -> None:
        self.config = config or ChannelConfig()
        self._sinks = {"stdout": on_stdout, "stderr": on_stderr}
        self._buffers = {
            "stdout": LineBuffer(self.config.encoding),
            "stderr": LineBuffer(self.config.encoding),
        }
        self._state = ChannelState.NOT_STARTED
        self._transport: asyncio.SubprocessTransport | None = None
        self._process: Process | None = None
        self._readers: list[asyncio.Task[None]] = []
        self._closed: asyncio.Task[int | None] | None = None

    @classmethod
    async def start(
        cls,
        on_stdout: Sink,
        on_stderr: Sink,
        *,
        config: ChannelConfig | None = None,
    ) -> "ReplChannel":
        """Spawn the interpreter and return a running channel.

        Raises `ChannelSpawnError` when the interpreter cannot be launched;
        no handle is returned in that case.
        """
        channel = cls(on_stdout, on_stderr, config=config)
        await channel._spawn()
        return channel

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process is not None else None

    def execute(self, text: str) -> None:
        """Write `text` to the interpreter's stdin and return immediately.

        asyncio pipe transports never raise on write; a closed pipe shows up
        as a closing transport, which terminates the channel.
        """
        stdin = self._open_stdin()
        stdin.write(text.encode(self.config.encoding))

    async def drain(self) -> None:
        """Wait until buffered input has been handed to the interpreter."""
        stdin = self._open_stdin()
        try:
            await stdin.drain()
        except ConnectionResetError as exc:
            logger.warning("Interpreter stdin was lost while draining (pid=%s)", self.pid)
            self.terminate()
            raise ChannelClosedError("Interpreter input stream is closed") from exc

    def terminate(self) -> None:
        """Stop the channel. Safe to call in any state, any number of times.

        Output buffered but not yet flushed is discarded.
        """
        if self._state is ChannelState.TERMINATED:
            return
        self._state = ChannelState.TERMINATED

        for reader in self._readers:
            reader.cancel()
        for buffer in self._buffers.values():
            buffer.reset()

        process = self._process
        if process is None:
            return
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        elif self._transport is not None:
            # Closing a live process's transport would race the child watcher;
            # `_watch_exit` closes it once the kill is observed.
            self._transport.close()
        logger.info("Terminated interpreter (pid=%s)", process.pid)

    async def wait_closed(self) -> int | None:
        """Wait for the process to exit and its pipes to be released."""
        if self._closed is None:
            return None
        return await asyncio.shield(self._closed)

    async def aclose(self) -> int | None:
        self.terminate()
        return await self.wait_closed()

    async def __aenter__(self) -> "ReplChannel":
        if self._state is ChannelState.NOT_STARTED:
            await self._spawn()
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()

    def _open_stdin(self) -> asyncio.StreamWriter:
        if self._state is not ChannelState.RUNNING or self._process is None:
            raise ChannelClosedError(f"Channel is {self._state.value}")

        stdin = self._process.stdin
        if stdin is None or stdin.is_closing():
            logger.warning("Interpreter stdin is closed (pid=%s)", self.pid)
            self.terminate()
            raise ChannelClosedError("Interpreter input stream is closed")
        return stdin

    async def _spawn(self) -> None:
        if self._state is not ChannelState.NOT_STARTED:
            raise ChannelClosedError(f"Cannot start a {self._state.value} channel")

        loop = asyncio.get_running_loop()
        command = self.config.command
        try:
            transport, protocol = await loop.subprocess_exec(
                lambda: _InterpreterProtocol(loop),
                *command,
                stdin=PIPE,
                stdout=PIPE,
                stderr=PIPE,
                cwd=self.config.cwd,
                env=self.config.env,
            )
        except OSError as exc:
            self._state = ChannelState.TERMINATED
            raise ChannelSpawnError(f"Failed to launch interpreter {command[0]!r}: {exc}") from exc

        self._transport = transport
        self._process = Process(transport, protocol, loop)
        stdout, stderr = self._process.stdout, self._process.stderr
        if stdout is None or stderr is None:
            self.terminate()
            transport.close()
            raise ChannelSpawnError("Interpreter output streams were not redirected")

        self._state = ChannelState.RUNNING
        logger.info("Started interpreter %r (pid=%s)", command[0], self._process.pid)

        self._readers = [
            asyncio.create_task(self._pump("stdout", stdout)),
            asyncio.create_task(self._pump("stderr", stderr)),
        ]
        self._closed = asyncio.create_task(self._watch_exit(protocol.exited))

    async def _pump(self, name: str, stream: asyncio.StreamReader) -> None:
        buffer = self._buffers[name]
        sink = self._sinks[name]
        while True:
            chunk = await stream.read(self.config.read_chunk_size)
            if not chunk:
                break
            text = buffer.feed(chunk)
            if text is None or self._state is not ChannelState.RUNNING:
                continue
            try:
                sink(text)
            except Exception:
                logger.exception("%s sink failed", name)

        if buffer.pending:
            logger.debug("Discarding unterminated %s output at end of stream", name)
        buffer.reset()

    async def _watch_exit(self, exited: asyncio.Future[None]) -> int | None:
        await exited
        returncode = self.returncode

        # Output written just before exit may still be in flight; pipes
        # inherited by a grandchild may never reach end of stream.
        _, pending = await asyncio.wait(self._readers, timeout=self.config.exit_drain_timeout)
        if pending and self._state is ChannelState.RUNNING:
            logger.debug("Interpreter exited with its output pipes still open (pid=%s)", self.pid)

        if self._state is ChannelState.RUNNING:
            logger.info("Interpreter exited (pid=%s, returncode=%s)", self.pid, returncode)
            self.terminate()
        if self._transport is not None:
            self._transport.close()
        return returncode

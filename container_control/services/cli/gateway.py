"""Execution gateway for the container CLI.

Uses asyncio subprocesses with an argv vector (never a shell), bounds the
run time and the captured output, and reports every outcome as an
OperationResult. Nothing here raises to the caller.
"""

import asyncio
import json
import os
import signal
from typing import Any, List, Optional, Tuple

import structlog

from ...config import settings
from ...config.gateway import GatewayConfig
from ...config.holder import ConfigHolder
from ...models.results import (
    OUTPUT_LIMIT_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
    ErrorKind,
    OperationResult,
)

logger = structlog.get_logger(__name__)

_READ_CHUNK = 64 * 1024


class OutputLimitExceeded(Exception):
    """A stream produced more bytes than the configured ceiling."""

    def __init__(self, stream: str, limit: int):
        self.stream = stream
        self.limit = limit
        super().__init__(f"{stream} exceeded {limit} bytes")


class CommandGateway:
    """Runs the configured binary and wraps the outcome.

    The binary path is read from the config holder on every call, so a
    settings change applies to the next invocation.
    """

    def __init__(
        self,
        config_holder: ConfigHolder,
        gateway_config: Optional[GatewayConfig] = None,
    ):
        """Initialize the gateway.

        Args:
            config_holder: Live adapter configuration
            gateway_config: Timeout and output limits (defaults from settings)
        """
        self._config_holder = config_holder
        self._limits = gateway_config or settings.gateway

    @property
    def limits(self) -> GatewayConfig:
        return self._limits

    async def execute(
        self,
        args: List[str],
        parse_json: bool = False,
        timeout: Optional[float] = None,
    ) -> OperationResult[Any]:
        """Invoke the CLI with ``args``.

        Args:
            args: Argument vector, not including the binary
            parse_json: Decode stdout as JSON on success
            timeout: Override for the default command timeout (seconds)

        Returns:
            OperationResult with stdout text or decoded JSON as data
        """
        binary = self._config_holder.current.binary_path
        if timeout is None:
            timeout = self._limits.command_timeout_seconds
        max_bytes = self._limits.max_output_bytes

        logger.info("Running container command", binary=binary, args=args)

        try:
            proc = await asyncio.create_subprocess_exec(
                binary,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,  # New process group for clean kill
            )
        except FileNotFoundError:
            message = f"Container CLI not found: {binary}"
            logger.error("Container command failed to start", binary=binary, error=message)
            return OperationResult.fail(
                message, 1, ErrorKind.BINARY_NOT_FOUND
            )
        except OSError as e:
            message = f"Failed to start {binary}: {e.strerror or e}"
            logger.error("Container command failed to start", binary=binary, error=message)
            return OperationResult.fail(message, 1, ErrorKind.SPAWN_FAILED)

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                self._communicate(proc, max_bytes), timeout=timeout
            )
        except asyncio.TimeoutError:
            await self._kill(proc)
            message = f"Command timed out after {timeout:g} seconds"
            logger.warning("Container command timed out", args=args, timeout=timeout)
            return OperationResult.fail(message, TIMEOUT_EXIT_CODE, ErrorKind.TIMEOUT)
        except OutputLimitExceeded as e:
            await self._kill(proc)
            message = f"Command output exceeded the {e.limit} byte limit on {e.stream}"
            logger.warning("Container command output too large", args=args, limit=e.limit)
            return OperationResult.fail(
                message, OUTPUT_LIMIT_EXIT_CODE, ErrorKind.OUTPUT_LIMIT
            )
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        stdout = self._decode(stdout_bytes)
        stderr = self._decode(stderr_bytes)

        if stderr.strip():
            logger.warning("Container command stderr", args=args, stderr=stderr.strip())

        if proc.returncode != 0:
            exit_code = proc.returncode if proc.returncode is not None else 1
            error = stderr.strip() or f"Command exited with code {exit_code}"
            logger.error("Container command failed", args=args, exit_code=exit_code, error=error)
            return OperationResult.fail(error, exit_code, ErrorKind.NON_ZERO_EXIT)

        if parse_json and stdout.strip():
            try:
                return OperationResult.ok(json.loads(stdout))
            except json.JSONDecodeError as e:
                logger.error(
                    "Failed to parse JSON output",
                    args=args,
                    error=str(e),
                    output=stdout[:500],
                )
                # The process exited cleanly; only interpretation failed
                return OperationResult.fail(
                    "failed to parse JSON output", 0, ErrorKind.OUTPUT_PARSE
                )

        return OperationResult.ok(stdout)

    async def _communicate(
        self, proc: asyncio.subprocess.Process, max_bytes: int
    ) -> Tuple[bytes, bytes]:
        """Drain both pipes concurrently, then reap the process."""
        stdout_bytes, stderr_bytes = await asyncio.gather(
            self._read_bounded(proc.stdout, "stdout", max_bytes),
            self._read_bounded(proc.stderr, "stderr", max_bytes),
        )
        await proc.wait()
        return stdout_bytes, stderr_bytes

    async def _read_bounded(
        self, stream: Optional[asyncio.StreamReader], name: str, limit: int
    ) -> bytes:
        """Read a stream to EOF, failing once it passes ``limit`` bytes."""
        if stream is None:
            return b""
        chunks: List[bytes] = []
        total = 0
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            total += len(chunk)
            if total > limit:
                raise OutputLimitExceeded(name, limit)
            chunks.append(chunk)
        return b"".join(chunks)

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        await proc.wait()

    def _decode(self, output: bytes) -> str:
        return output.decode("utf-8", errors="replace") if output else ""

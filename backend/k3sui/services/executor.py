from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from k3sui.exceptions import ExecutionFailure
from k3sui.services.gatekeeper import ValidatedCommand

logger = structlog.get_logger(__name__)


class CommandRunner:
    """Runs one trusted external binary with an argument array.

    Arguments are passed straight to ``exec``; no shell ever sees them.
    """

    def __init__(self, binary: str, timeout: float | None = None) -> None:
        self.binary = binary
        self.timeout = timeout

    async def _run(self, *args: str, stdin: str | None = None) -> tuple[int, str, str]:
        proc = await asyncio.create_subprocess_exec(
            self.binary,
            *args,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        data = stdin.encode("utf-8") if stdin is not None else None
        try:
            out_b, err_b = await asyncio.wait_for(proc.communicate(data), timeout=self.timeout)
        except (asyncio.TimeoutError, asyncio.CancelledError):
            # a timed-out or cancelled caller must not leave the child running
            if proc.returncode is None:
                proc.kill()
            await proc.wait()
            raise
        out = out_b.decode("utf-8", errors="ignore") if out_b else ""
        err = err_b.decode("utf-8", errors="ignore") if err_b else ""
        return proc.returncode or 0, out, err

    async def run(self, args: Sequence[str], stdin: str | None = None) -> str:
        """Return trimmed stdout, or raise ``ExecutionFailure`` with stderr."""
        logger.info("command.execute", binary=self.binary, args=list(args))
        try:
            code, out, err = await self._run(*args, stdin=stdin)
        except asyncio.TimeoutError:
            raise ExecutionFailure(
                f"{self.binary} command timed out",
                details=f"no result after {self.timeout} seconds",
            ) from None
        except OSError as exc:
            raise ExecutionFailure(f"{self.binary} could not be started", details=str(exc)) from exc

        if code != 0:
            details = err.strip() or f"Command failed with code {code}"
            logger.warning("command.failed", binary=self.binary, returncode=code, stderr=details)
            raise ExecutionFailure(f"{self.binary} command failed", details=details)
        if err.strip():
            logger.warning("command.stderr", binary=self.binary, stderr=err.strip())
        return out.strip()

    async def run_validated(self, command: ValidatedCommand) -> str:
        return await self.run(command.argv)

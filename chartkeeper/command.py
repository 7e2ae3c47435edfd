"""Library for issuing commands using asyncio and returning the result."""

import asyncio
import logging
import shlex
import subprocess
from dataclasses import dataclass

from .exceptions import CommandException

_LOGGER = logging.getLogger(__name__)

_CONCURRENCY = 8
_SEM = asyncio.Semaphore(_CONCURRENCY)
_TIMEOUT = 300.0


# No public API
__all__: list[str] = []


@dataclass
class Command:
    """An instance of a command to run."""

    cmd: list[str]
    """Array of command line arguments."""

    exc: type[CommandException] = CommandException
    """Exception to throw in case of an error."""

    @property
    def string(self) -> str:
        """Render the command as a single string."""
        return " ".join([shlex.quote(arg) for arg in self.cmd])

    def __str__(self) -> str:
        """Render as a debug string."""
        return self.string

    async def run(self, stdin: bytes | None = None) -> bytes:
        """Run the command, returning stdout."""
        _LOGGER.debug("Running command: %s", self)
        proc = await asyncio.create_subprocess_exec(
            *self.cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        out, err = await proc.communicate(stdin)
        if proc.returncode:
            errors = [f"Command '{self}' failed with return code {proc.returncode}"]
            if out:
                errors.append(out.decode("utf-8"))
            if err:
                errors.append(err.decode("utf-8"))
            _LOGGER.debug("\n".join(errors))
            raise self.exc("\n".join(errors))
        return out


async def run(cmd: Command, stdin: str | None = None) -> str:
    """Run the specified command with optional stdin and return stdout."""
    data = stdin.encode("utf-8") if stdin is not None else None
    async with _SEM:
        try:
            out = await asyncio.wait_for(cmd.run(data), _TIMEOUT)
        except asyncio.TimeoutError as err:
            raise cmd.exc(f"Command '{cmd}' timed out") from err
    return out.decode("utf-8") if out else ""

"""Durable subject counts via the external `nats` command-line tool."""

import asyncio
import json

from ..logging_config import get_logger
from .errors import QueryError

logger = get_logger(__name__)


class NatsCliSubjectCounter:
    """Runs `nats stream subjects <stream> --json` and parses its mapping."""

    def __init__(self, cli_path: str, url: str | None = None, timeout: float = 5.0):
        self._cli_path = cli_path
        self._url = url
        self._timeout = timeout

    def command(self, stream_name: str) -> list[str]:
        """Build the argument vector for a stream's subject listing."""
        args = [self._cli_path]
        if self._url:
            args += ["-s", self._url]
        args += ["stream", "subjects", stream_name, "--json"]
        return args

    async def query_durable_subject_counts(self, stream_name: str) -> dict[str, int]:
        """Return subject -> count as reported by the CLI."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command(stream_name),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise QueryError(f"Cannot run {self._cli_path}: {e}") from e

        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise QueryError(f"{self._cli_path} timed out after {self._timeout}s") from e
        finally:
            # Also reached when a caller's own timeout cancels us first
            if proc.returncode is None:
                await _kill(proc)

        if proc.returncode != 0:
            raise QueryError(f"{self._cli_path} exited with status {proc.returncode}")

        return parse_subject_counts(stdout)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass
    await proc.wait()


def parse_subject_counts(output: bytes | str) -> dict[str, int]:
    """Validate the CLI's JSON output as a subject -> count mapping."""
    try:
        parsed = json.loads(output or "null")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise QueryError(f"Malformed subject count output: {e}") from e

    # An empty stream is reported as null
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise QueryError(
            f"Subject count output must be a mapping, got {type(parsed).__name__}"
        )

    counts: dict[str, int] = {}
    for subject, count in parsed.items():
        if isinstance(count, bool) or not isinstance(count, int):
            raise QueryError(f"Count for {subject!r} is not an integer: {count!r}")
        counts[subject] = count
    return counts

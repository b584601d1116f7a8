"""Fetch bookmarks and tweets through the bird CLI.

bird reads its Twitter/X session from the AUTH_TOKEN and CT0 environment
variables. Every call must print JSON on stdout and exit 0; anything else
is a failure.

Bulk fetch failures raise SourceError (the run cannot continue). Reading a
single tweet or a thread is best-effort and degrades to None / [].
"""

import json
import logging
import os
import subprocess

from .models import Bookmark
from .parser import parse_bookmark, parse_bookmarks

logger = logging.getLogger(__name__)


class SourceError(RuntimeError):
    """bird failed to produce a usable bookmark list."""


class BirdClient:
    def __init__(self, command: str = "bird", timeout: float = 60.0):
        self.command = command
        self.timeout = timeout

    def _run(self, args: list[str], timeout: float | None = None) -> str:
        """Run bird and return stdout. Raises SourceError on any failure."""
        cmd = [self.command, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout or self.timeout,
                env=os.environ.copy(),
            )
        except subprocess.TimeoutExpired:
            raise SourceError(
                f"{self.command} {args[0]} timed out after {timeout or self.timeout:g}s"
            ) from None
        except OSError as e:
            raise SourceError(f"Failed to spawn {self.command}: {e}") from e

        if proc.returncode != 0:
            raise SourceError(
                f"{self.command} exited with code {proc.returncode}: "
                f"{proc.stderr.strip()}"
            )
        return proc.stdout

    def fetch_bookmarks(self, count: int = 20) -> list[Bookmark]:
        """Fetch the `count` most recent bookmarks."""
        stdout = self._run(["bookmarks", "-n", str(count), "--json"])
        try:
            raw = json.loads(stdout)
        except ValueError as e:
            raise SourceError(f"Failed to parse {self.command} output: {e}") from e
        if not isinstance(raw, list):
            raise SourceError(
                f"Expected a JSON array from {self.command}, got {type(raw).__name__}"
            )
        return parse_bookmarks(raw)

    def read_tweet(self, id_or_url: str, timeout: float | None = None) -> Bookmark | None:
        """Read a single tweet. Returns None on failure."""
        try:
            stdout = self._run(["read", id_or_url, "--json"], timeout)
            return parse_bookmark(json.loads(stdout))
        except SourceError as e:
            logger.warning("bird read failed for %s: %s", id_or_url, e)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Failed to parse tweet %s: %s", id_or_url, e)
        return None

    def get_thread(self, id_or_url: str, timeout: float | None = None) -> list[Bookmark]:
        """Fetch the conversation around a tweet. Returns [] on failure."""
        try:
            raw = json.loads(self._run(["thread", id_or_url, "--json"], timeout))
        except SourceError as e:
            logger.warning("bird thread failed for %s: %s", id_or_url, e)
            return []
        except ValueError as e:
            logger.warning("Failed to parse thread %s: %s", id_or_url, e)
            return []
        if not isinstance(raw, list):
            logger.warning("Unexpected thread payload for %s", id_or_url)
            return []
        return parse_bookmarks(raw)

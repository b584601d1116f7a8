"""Destinations that routed bookmarks are sent to.

Every destination exposes the same contract:
    is_configured() -> bool
    send(payload: dict) -> DestinationResult

Payloads have already been validated against the tool schema in tools.py.
"""

import logging
import re
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import httpx

from .config import AppConfig, InstapaperConfig, KnowledgeBaseConfig, OmniFocusConfig
from .models import DestinationResult

logger = logging.getLogger(__name__)

INSTAPAPER_ADD_URL = "https://www.instapaper.com/api/add"


class Destination:
    name: str = ""

    def is_configured(self) -> bool:
        raise NotImplementedError

    def send(self, payload: dict) -> DestinationResult:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def _not_configured(self) -> DestinationResult:
        return DestinationResult(
            success=False,
            message=f"{self.name} destination is not configured",
            error="not configured",
        )


class OmniFocusDestination(Destination):
    """Creates inbox tasks through AppleScript (macOS only)."""

    name = "omnifocus"

    def __init__(self, config: OmniFocusConfig, timeout: float = 30.0):
        self.config = config
        self.timeout = timeout

    def is_configured(self) -> bool:
        return self.config.enabled

    def send(self, payload: dict) -> DestinationResult:
        if not self.is_configured():
            return self._not_configured()

        title = payload["title"]
        note_parts = [payload.get("note") or "", payload["source_url"]]
        note = "\n\n".join(p for p in note_parts if p)
        tags = list(payload.get("tags") or self.config.default_tags)
        project = payload.get("project") or self.config.default_project

        script = build_omnifocus_script(title, note, project, tags, payload.get("due_date"))
        logger.info("[OmniFocus] Creating task: %s", title)
        try:
            proc = subprocess.run(
                ["osascript", "-e", script],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return DestinationResult(
                success=False,
                message=f"OmniFocus did not respond within {self.timeout:g}s",
                error="timeout",
            )
        except OSError as e:
            return DestinationResult(
                success=False, message="Could not run osascript", error=str(e)
            )

        if proc.returncode != 0:
            return DestinationResult(
                success=False,
                message=f"Failed to create OmniFocus task: {title}",
                error=proc.stderr.strip() or f"osascript exited {proc.returncode}",
            )
        return DestinationResult(
            success=True,
            message=f"Created OmniFocus task: {title}",
            id=proc.stdout.strip() or None,
        )


def _applescript_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_omnifocus_script(
    title: str,
    note: str,
    project: str | None,
    tags: list[str],
    due_date: str | None = None,
) -> str:
    """AppleScript that creates an inbox task (or a task in `project`)."""
    lines = [
        'tell application "OmniFocus"',
        "tell default document",
    ]
    props = f"{{name:{_applescript_string(title)}, note:{_applescript_string(note)}}}"
    if project:
        lines.append(
            f"set newTask to make new task at end of tasks of "
            f"(first flattened project whose name is {_applescript_string(project)}) "
            f"with properties {props}"
        )
    else:
        lines.append(f"set newTask to make new inbox task with properties {props}")
    for tag in tags:
        lines.append(
            f"add (first flattened tag whose name is {_applescript_string(tag)}) "
            f"to tags of newTask"
        )
    if due_date:
        lines.append(f"set due date of newTask to date {_applescript_string(due_date)}")
    lines.append("return id of newTask")
    lines.append("end tell")
    lines.append("end tell")
    return "\n".join(lines)


class InstapaperDestination(Destination):
    """Saves URLs through the Instapaper Simple API."""

    name = "instapaper"

    def __init__(self, config: InstapaperConfig, client: httpx.Client | None = None):
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=30.0)

    def is_configured(self) -> bool:
        return self.config.enabled and bool(self.config.username)

    def send(self, payload: dict) -> DestinationResult:
        if not self.is_configured():
            return self._not_configured()

        url = payload["url"]
        data = {"url": url}
        if payload.get("title"):
            data["title"] = payload["title"]
        if payload.get("description"):
            data["selection"] = payload["description"]

        logger.info("[Instapaper] Saving article: %s", url)
        try:
            response = self._client.post(
                INSTAPAPER_ADD_URL,
                data=data,
                auth=(self.config.username, self.config.password or ""),
            )
        except httpx.HTTPError as e:
            return DestinationResult(
                success=False, message=f"Could not reach Instapaper for {url}", error=str(e)
            )

        if response.status_code == 201:
            return DestinationResult(
                success=True,
                message=f"Saved to Instapaper: {url}",
                id=response.headers.get("Content-Location"),
            )
        if response.status_code == 403:
            error = "Invalid Instapaper username or password"
        elif response.status_code == 400:
            error = "Instapaper rejected the request (missing or bad URL)"
        else:
            error = f"Instapaper returned HTTP {response.status_code}"
        return DestinationResult(
            success=False, message=f"Failed to save {url} to Instapaper", error=error
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class KnowledgeBaseDestination(Destination):
    """Writes reference notes as markdown files, one folder per category."""

    name = "knowledge-base"

    def __init__(self, config: KnowledgeBaseConfig):
        self.config = config

    def is_configured(self) -> bool:
        return self.config.enabled

    def send(self, payload: dict) -> DestinationResult:
        if not self.is_configured():
            return self._not_configured()

        category_dir = self.config.path / slugify(payload["category"])
        path = _unique_path(category_dir / f"{slugify(payload['title'])}.md")
        try:
            category_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(render_note(payload), encoding="utf-8")
        except OSError as e:
            return DestinationResult(
                success=False,
                message=f"Failed to write knowledge base entry: {payload['title']}",
                error=str(e),
            )

        logger.info("[KnowledgeBase] Saved %s", path)
        return DestinationResult(
            success=True,
            message=f"Saved to knowledge base: {payload['title']}",
            id=str(path),
        )


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:80] or "untitled"


def _unique_path(path: Path) -> Path:
    candidate = path
    n = 2
    while candidate.exists():
        candidate = path.with_name(f"{path.stem}-{n}{path.suffix}")
        n += 1
    return candidate


def render_note(payload: dict, now: datetime | None = None) -> str:
    """Render a knowledge base entry with YAML-ish front matter."""
    now = now or datetime.now(timezone.utc)
    tags = payload.get("tags") or []

    lines: list[str] = ["---"]
    lines.append(f"title: {payload['title']}")
    lines.append(f"category: {payload['category']}")
    lines.append(f"tags: [{', '.join(tags)}]")
    lines.append(f"source: {payload['source_url']}")
    if payload.get("source_author"):
        lines.append(f"author: @{payload['source_author'].lstrip('@')}")
    lines.append(f"date: {now.strftime('%Y-%m-%d %H:%M UTC')}")
    lines.append("---")
    lines.append("")
    lines.append(f"# {payload['title']}")
    lines.append("")
    lines.append(payload["content"].strip())
    lines.append("")

    return "\n".join(lines)


class DestinationRegistry:
    """Destinations by name."""

    def __init__(self, destinations: list[Destination] | None = None):
        self._destinations: dict[str, Destination] = {}
        for destination in destinations or []:
            self.register(destination)

    @classmethod
    def from_config(cls, config: AppConfig) -> "DestinationRegistry":
        return cls(
            [
                OmniFocusDestination(config.omnifocus),
                InstapaperDestination(config.instapaper),
                KnowledgeBaseDestination(config.knowledge_base),
            ]
        )

    def register(self, destination: Destination) -> None:
        self._destinations[destination.name] = destination

    def get(self, name: str) -> Destination | None:
        return self._destinations.get(name)

    def has_destination(self, name: str) -> bool:
        """True if the destination exists and is configured."""
        destination = self._destinations.get(name)
        return destination is not None and destination.is_configured()

    def configured_names(self) -> list[str]:
        return [d.name for d in self._destinations.values() if d.is_configured()]

    def all_names(self) -> list[str]:
        return list(self._destinations)

    def close(self) -> None:
        for destination in self._destinations.values():
            destination.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

"""Process bookmarks one at a time: enrich, decide, route, record.

Bookmarks are handled strictly in sequence. The ledger is saved after each
bookmark's outcome has been recorded, so an interrupted run keeps every
completed bookmark and nothing half-done. Dry runs never save.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol

from .agent import Decision, ToolInvocation
from .destinations import DestinationRegistry
from .enrichment import Enricher
from .models import Bookmark
from .prompts import get_system_prompt, get_user_prompt
from .source import BirdClient
from .state import DEFAULT_MAX_AGE, ProcessedLedger
from .tools import SKIP_TOOL, TOOL_SCHEMAS, available_tools, get_tool_definitions, route_tool_call

logger = logging.getLogger(__name__)


class Decider(Protocol):
    def decide(self, system_prompt: str, user_prompt: str, tools: list[dict]) -> Decision:
        ...


class ReprocessError(RuntimeError):
    """The bookmark to reprocess could not be found."""


@dataclass
class RunSummary:
    fetched: int = 0
    new: int = 0
    succeeded: int = 0
    failed: int = 0
    pruned: int = 0


class BookmarkProcessor:
    def __init__(
        self,
        ledger: ProcessedLedger,
        enricher: Enricher,
        decider: Decider,
        registry: DestinationRegistry,
        dry_run: bool = False,
    ):
        self.ledger = ledger
        self.enricher = enricher
        self.decider = decider
        self.registry = registry
        self.dry_run = dry_run

    def process(self, bookmark: Bookmark, progress: str = "") -> bool:
        """Route one bookmark and record the outcome. Returns success."""
        prefix = f"{progress} " if progress else ""
        logger.info("%sProcessing %s from @%s", prefix, bookmark.id, bookmark.author.username)

        try:
            return self._process(bookmark)
        except Exception as e:
            logger.error(
                "Failed to process %s (@%s): %s", bookmark.id, bookmark.author.username, e
            )
            self.ledger.mark_error(
                bookmark.id, str(e), author=bookmark.author.username, bookmark=bookmark
            )
            return False

    def _process(self, bookmark: Bookmark) -> bool:
        author = bookmark.author.username
        enriched = self.enricher.enrich_safely(bookmark)

        found = []
        if enriched.links:
            found.append(f"{len(enriched.links)} links")
        if enriched.thread_content:
            found.append("thread")
        if enriched.quoted_content:
            found.append("quote")
        if found:
            logger.info("  Enrichment: %s", ", ".join(found))

        tool_names = available_tools(self.registry)
        decision = self.decider.decide(
            get_system_prompt(tool_names),
            get_user_prompt(enriched),
            get_tool_definitions(tool_names),
        )

        if not decision.succeeded:
            message = decision.error or decision.status
            logger.error("Agent failed for %s (@%s): %s", bookmark.id, author, message)
            self.ledger.mark_error(bookmark.id, message, author=author, bookmark=bookmark)
            return False

        invocation = self._select_invocation(bookmark, decision)
        schema = TOOL_SCHEMAS.get(invocation.name)
        destination = schema.destination if schema else None

        result = route_tool_call(
            invocation.name, invocation.input, self.registry, dry_run=self.dry_run
        )

        if result.success:
            logger.info("  Routed via %s: %s", invocation.name, result.message)
            self.ledger.mark_processed(
                bookmark.id,
                author=author,
                destination=destination or "skipped",
                action=invocation.name,
                bookmark=bookmark,
            )
            return True

        logger.error(
            "Routing failed for %s (@%s) via %s: %s",
            bookmark.id,
            author,
            invocation.name,
            result.message,
        )
        self.ledger.mark_error(
            bookmark.id,
            result.message,
            author=author,
            destination=destination,
            action=invocation.name,
            bookmark=bookmark,
        )
        return False

    @staticmethod
    def _select_invocation(bookmark: Bookmark, decision: Decision) -> ToolInvocation:
        """First tool call wins; no tool call at all is a skip."""
        if not decision.invocations:
            reason = decision.text.strip() or "No tool selected"
            return ToolInvocation(name=SKIP_TOOL, input={"reason": reason})
        if len(decision.invocations) > 1:
            logger.warning(
                "Agent made %d tool calls for %s; using %s",
                len(decision.invocations),
                bookmark.id,
                decision.invocations[0].name,
            )
        return decision.invocations[0]

    def save(self) -> None:
        if self.dry_run:
            logger.debug("Dry run: not saving state")
            return
        self.ledger.save()

    def run(
        self,
        source: BirdClient,
        count: int,
        prune_max_age: timedelta = DEFAULT_MAX_AGE,
    ) -> RunSummary:
        """Fetch, filter and process new bookmarks.

        Raises SourceError if the bookmark list cannot be fetched; nothing
        is processed in that case.
        """
        summary = RunSummary()
        summary.pruned = self.ledger.prune(prune_max_age)
        if summary.pruned:
            logger.info("Pruned %d old entries from state", summary.pruned)

        bookmarks = source.fetch_bookmarks(count)
        summary.fetched = len(bookmarks)

        unprocessed = self.ledger.filter_new(bookmarks)
        summary.new = len(unprocessed)

        for i, bookmark in enumerate(unprocessed, start=1):
            if self.process(bookmark, progress=f"[{i}/{len(unprocessed)}]"):
                summary.succeeded += 1
            else:
                summary.failed += 1
            self.save()

        self.save()
        return summary

    def resolve_target(self, target: str) -> tuple[str, Bookmark | None]:
        """Map a reprocess target to (bookmark id, cached bookmark).

        target is "last", "-N" (N-th most recent, -1 = most recent) or an id.
        """
        if target == "last":
            target = "-1"

        if target.startswith("-"):
            try:
                index = abs(int(target)) - 1
            except ValueError:
                raise ReprocessError(f"Invalid index: {target}") from None
            entry = self.ledger.get_entry_by_index(index)
            if entry is None:
                raise ReprocessError(f"No processed bookmark at index {target}")
            return entry.id, entry.bookmark

        entry = self.ledger.get_entry(target)
        return target, entry.bookmark if entry else None

    def reprocess(self, target: str, source: BirdClient) -> bool:
        """Forget a processed bookmark and run it through again."""
        bookmark_id, bookmark = self.resolve_target(target)
        self.ledger.remove_entry(bookmark_id)

        if bookmark is None:
            logger.info("Bookmark %s not cached, fetching from Twitter...", bookmark_id)
            bookmark = source.read_tweet(bookmark_id)
            if bookmark is None:
                raise ReprocessError(f"Failed to fetch bookmark {bookmark_id}")
        else:
            logger.info("Using cached bookmark data for %s", bookmark_id)

        success = self.process(bookmark)
        self.save()
        return success

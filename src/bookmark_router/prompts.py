"""System and user prompts for the routing decision."""

from .models import EnrichedBookmark
from .tools import TOOL_SCHEMAS

# Per-link content cap inside the prompt; stored content may be longer.
PROMPT_CONTENT_LIMIT = 3000

_ROUTING_HEURISTICS = """\
## Routing Heuristics

**send_to_omnifocus (Tasks/Todos):**
- "I should try this" / "Check this out" type content
- Tools, libraries, apps, repos to explore
- Things with a clear action ("read this book", "watch this talk")
- Clear, actionable titles starting with a verb; always pass the tweet URL as source_url

**send_to_instapaper (Read Later):**
- Articles, blog posts, essays, long-form content, tutorials
- Use the actual article URL, not the tweet URL

**send_to_knowledge_base (Reference):**
- Facts, statistics, code snippets, techniques, quotes, mental models
- Descriptive title and the key information in content

**skip_bookmark:**
- Jokes, memes, personal updates, stale time-sensitive content, accidental bookmarks"""


def get_system_prompt(tool_names: list[str]) -> str:
    tool_lines = [
        f"- {name}: {TOOL_SCHEMAS[name].description}"
        for name in tool_names
        if name in TOOL_SCHEMAS
    ]
    tool_list = "\n".join(tool_lines) if tool_lines else "No destination tools configured"

    return f"""You are a bookmark organization assistant. Your job is to analyze Twitter/X bookmarks and route each one to the right destination.

## Available Tools

{tool_list}

## Guidelines

1. Analyze the tweet content, any linked content, and context carefully
2. Determine the PRIMARY purpose of the bookmark - what did the user likely want to remember?
3. Call exactly ONE tool
4. If content could go multiple places, prefer: Task/Tool > Article > Knowledge > Skip

{_ROUTING_HEURISTICS}"""


def get_user_prompt(enriched: EnrichedBookmark) -> str:
    bookmark = enriched.bookmark
    parts: list[str] = []

    parts.append("## Tweet")
    parts.append(f"**Author:** @{bookmark.author.username} ({bookmark.author.display_name})")
    parts.append(f"**Date:** {bookmark.created_at}")
    parts.append(f"**URL:** {enriched.source_url}")
    parts.append("**Content:**")
    parts.append(bookmark.text)

    stats = []
    if bookmark.like_count:
        stats.append(f"{bookmark.like_count} likes")
    if bookmark.retweet_count:
        stats.append(f"{bookmark.retweet_count} retweets")
    if bookmark.reply_count:
        stats.append(f"{bookmark.reply_count} replies")
    if stats:
        parts.append(f"**Engagement:** {', '.join(stats)}")

    if enriched.quoted_content:
        parts.append("\n## Quoted Tweet")
        parts.append(enriched.quoted_content)

    if enriched.thread_content:
        parts.append("\n## Thread Context")
        parts.append(enriched.thread_content)

    if enriched.links:
        parts.append("\n## Linked Content")
        for link in enriched.links:
            parts.append(f"\n### {link.type.value.upper()}: {link.url}")
            if link.error:
                parts.append(f"*Error: {link.error}*")
                continue
            if link.title:
                parts.append(f"**Title:** {link.title}")
            if link.author:
                parts.append(f"**Author:** {link.author}")
            if link.duration:
                parts.append(f"**Duration:** {link.duration // 60} minutes")
            if link.content:
                content = link.content[:PROMPT_CONTENT_LIMIT]
                if len(link.content) > PROMPT_CONTENT_LIMIT:
                    content += "\n[Content truncated...]"
                parts.append(f"**Content:**\n{content}")

    parts.append("\n## Metadata")
    flags = []
    if enriched.metadata.has_links:
        flags.append(f"{len(enriched.links)} link(s)")
    if enriched.metadata.has_media:
        flags.append("has media")
    if enriched.metadata.is_thread:
        flags.append("part of thread")
    if enriched.metadata.is_quote:
        flags.append("quote tweet")
    parts.append(", ".join(flags) if flags else "Simple tweet")

    parts.append("\n---")
    parts.append(
        "Analyze this bookmark and route it using exactly one of the available tools."
    )
    return "\n".join(parts)

"""Routing tools offered to the decision maker, and the gateway that runs them.

Each tool has a fixed schema of required and optional fields. A tool call
is validated first; only a valid call reaches its destination. The
gateway reports a DestinationResult and never touches the ledger: the
caller decides between mark_processed and mark_error.
"""

import logging
from dataclasses import dataclass, field

from .destinations import DestinationRegistry
from .models import DestinationResult

logger = logging.getLogger(__name__)

STRING = "string"
STRING_LIST = "string[]"

SKIP_TOOL = "skip_bookmark"


@dataclass
class ToolField:
    name: str
    type: str
    description: str
    required: bool = True


@dataclass
class ToolSchema:
    name: str
    description: str
    destination: str | None  # None for skip_bookmark
    fields: list[ToolField] = field(default_factory=list)

    def to_definition(self) -> dict:
        """JSON-schema tool definition for the Messages API."""
        properties: dict[str, dict] = {}
        for f in self.fields:
            if f.type == STRING_LIST:
                prop = {"type": "array", "items": {"type": "string"}}
            else:
                prop = {"type": "string"}
            prop["description"] = f.description
            properties[f.name] = prop
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": {
                "type": "object",
                "properties": properties,
                "required": [f.name for f in self.fields if f.required],
            },
        }


TOOL_SCHEMAS: dict[str, ToolSchema] = {
    s.name: s
    for s in [
        ToolSchema(
            name="send_to_omnifocus",
            description=(
                "Send a task or todo item to OmniFocus. Use for actionable items, "
                "things to try, tools to check out, reminders, or tasks mentioned "
                "in the tweet."
            ),
            destination="omnifocus",
            fields=[
                ToolField("title", STRING, "Task title - actionable, starting with a verb"),
                ToolField("source_url", STRING, "Original tweet URL for reference"),
                ToolField("note", STRING, "Additional notes, context, or details", False),
                ToolField("project", STRING, "OmniFocus project name", False),
                ToolField("tags", STRING_LIST, "Tags to apply (e.g. 'tool', 'idea')", False),
                ToolField("due_date", STRING, "Due date in ISO format if time-sensitive", False),
            ],
        ),
        ToolSchema(
            name="send_to_instapaper",
            description=(
                "Save an article to Instapaper for later reading. Use for links to "
                "articles, blog posts, essays, or long-form content."
            ),
            destination="instapaper",
            fields=[
                ToolField("url", STRING, "URL of the article itself, not the tweet"),
                ToolField("title", STRING, "Article title", False),
                ToolField("description", STRING, "Why this is worth reading", False),
                ToolField("folder", STRING, "Instapaper folder name", False),
            ],
        ),
        ToolSchema(
            name="send_to_knowledge_base",
            description=(
                "Save to the knowledge base as reference material. Use for facts, "
                "code snippets, techniques, insights, or reference information worth "
                "searching later."
            ),
            destination="knowledge-base",
            fields=[
                ToolField("title", STRING, "Descriptive title for the entry"),
                ToolField("content", STRING, "Summary, key points, or full content"),
                ToolField("category", STRING, "Topic area (e.g. 'programming', 'design')"),
                ToolField("source_url", STRING, "Original tweet URL"),
                ToolField("tags", STRING_LIST, "Tags for organization", False),
                ToolField("source_author", STRING, "Tweet author username", False),
            ],
        ),
        ToolSchema(
            name=SKIP_TOOL,
            description=(
                "Skip this bookmark without saving anywhere. Use for jokes, memes, "
                "personal updates, stale time-sensitive content, or anything not "
                "worth saving."
            ),
            destination=None,
            fields=[ToolField("reason", STRING, "Brief reason for skipping")],
        ),
    ]
}


class UnknownToolError(ValueError):
    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class ToolValidationError(ValueError):
    def __init__(self, tool_name: str, errors: list[str]):
        super().__init__(f"Invalid input for {tool_name}: {'; '.join(errors)}")
        self.tool_name = tool_name
        self.errors = errors


def _type_ok(value, field_type: str) -> bool:
    if field_type == STRING_LIST:
        return isinstance(value, list) and all(isinstance(v, str) for v in value)
    return isinstance(value, str)


def validate_tool_input(tool_name: str, payload) -> dict:
    """Check payload against the tool's schema and return the known fields.

    Raises UnknownToolError or ToolValidationError (listing every bad field).
    Optional fields set to None are treated as absent; unknown keys are dropped.
    """
    schema = TOOL_SCHEMAS.get(tool_name)
    if schema is None:
        raise UnknownToolError(tool_name)
    if not isinstance(payload, dict):
        raise ToolValidationError(tool_name, ["input must be an object"])

    errors: list[str] = []
    clean: dict = {}
    for f in schema.fields:
        value = payload.get(f.name)
        if value is None:
            if f.required:
                errors.append(f"{f.name}: required")
            continue
        if not _type_ok(value, f.type):
            expected = "array of strings" if f.type == STRING_LIST else "string"
            errors.append(f"{f.name}: expected {expected}")
            continue
        clean[f.name] = value

    if errors:
        raise ToolValidationError(tool_name, errors)
    return clean


def get_tool_definitions(tool_names: list[str] | None = None) -> list[dict]:
    names = tool_names if tool_names is not None else list(TOOL_SCHEMAS)
    return [TOOL_SCHEMAS[n].to_definition() for n in names if n in TOOL_SCHEMAS]


def available_tools(registry: DestinationRegistry) -> list[str]:
    """Tools whose destination is configured, plus skip."""
    return [
        name
        for name, schema in TOOL_SCHEMAS.items()
        if schema.destination is None or registry.has_destination(schema.destination)
    ]


def route_tool_call(
    tool_name: str,
    payload,
    registry: DestinationRegistry,
    dry_run: bool = False,
) -> DestinationResult:
    """Validate a tool call and dispatch it.

    In dry-run mode validation is identical but the destination is not
    called; the result still reports success.
    """
    try:
        data = validate_tool_input(tool_name, payload)
    except UnknownToolError as e:
        return DestinationResult(success=False, message=str(e), error="unknown_tool")
    except ToolValidationError as e:
        return DestinationResult(
            success=False, message=str(e), error="; ".join(e.errors)
        )

    schema = TOOL_SCHEMAS[tool_name]
    if schema.destination is None:
        return DestinationResult(success=True, message=data["reason"])

    destination = registry.get(schema.destination)
    if destination is None or not destination.is_configured():
        return DestinationResult(
            success=False,
            message=f"Destination {schema.destination} is not configured",
            error="not_configured",
        )

    if dry_run:
        logger.info("[dry run] Would call %s with %s", tool_name, data)
        return DestinationResult(
            success=True, message=f"[dry run] Would send to {schema.destination}"
        )

    try:
        return destination.send(data)
    except Exception as e:  # destinations are pluggable; contain their failures
        logger.error("Destination %s raised: %s", schema.destination, e)
        return DestinationResult(
            success=False,
            message=f"Destination {schema.destination} failed",
            error=str(e),
        )

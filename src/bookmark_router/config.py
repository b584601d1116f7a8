"""Configuration loading and saving.

Config file location: ~/.config/bookmark-router/config.toml

Schema:
    dry_run = false

    [source]
    bookmark_count = 20
    command = "bird"
    timeout = 60.0

    [state]
    path = "data/processed.json"
    prune_days = 30

    [enrichment]
    fetch_articles = true
    fetch_youtube = true
    expand_threads = true
    max_content_length = 50000
    timeout = 30.0

    [agent]
    model = "claude-sonnet-4-5"
    max_tokens = 1024
    timeout = 120.0

    [omnifocus]
    enabled = true
    default_project = ""
    default_tags = []

    [instapaper]
    enabled = false
    username = "..."
    password = "..."

    [knowledge_base]
    enabled = false
    path = "knowledge"

Environment overrides: BOOKMARK_COUNT, DRY_RUN, STATE_PATH.
The Anthropic API key is only read from ANTHROPIC_API_KEY.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import tomli_w

CONFIG_DIR = Path.home() / ".config" / "bookmark-router"
CONFIG_FILE = CONFIG_DIR / "config.toml"


@dataclass
class SourceConfig:
    bookmark_count: int = 20
    command: str = "bird"
    timeout: float = 60.0


@dataclass
class EnrichmentConfig:
    fetch_articles: bool = True
    fetch_youtube: bool = True
    expand_threads: bool = True
    max_content_length: int = 50000
    timeout: float = 30.0  # seconds, per external fetch


@dataclass
class AgentConfig:
    model: str = "claude-sonnet-4-5"
    max_tokens: int = 1024
    timeout: float = 120.0
    api_key: str | None = None


@dataclass
class OmniFocusConfig:
    enabled: bool = True
    default_project: str | None = None
    default_tags: list[str] = field(default_factory=list)


@dataclass
class InstapaperConfig:
    enabled: bool = False
    username: str | None = None
    password: str | None = None


@dataclass
class KnowledgeBaseConfig:
    enabled: bool = False
    path: Path = Path("knowledge")


@dataclass
class AppConfig:
    source: SourceConfig = field(default_factory=SourceConfig)
    state_path: Path = Path("data/processed.json")
    prune_days: int = 30
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    omnifocus: OmniFocusConfig = field(default_factory=OmniFocusConfig)
    instapaper: InstapaperConfig = field(default_factory=InstapaperConfig)
    knowledge_base: KnowledgeBaseConfig = field(default_factory=KnowledgeBaseConfig)
    dry_run: bool = False


def load_config(config_path: Path = CONFIG_FILE) -> AppConfig:
    """Load config from TOML (defaults if absent), then apply env overrides."""
    data: dict = {}
    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid config file {config_path}: {e}") from e

    source_data = data.get("source", {})
    state_data = data.get("state", {})
    enrichment_data = data.get("enrichment", {})
    agent_data = data.get("agent", {})
    omnifocus_data = data.get("omnifocus", {})
    instapaper_data = data.get("instapaper", {})
    kb_data = data.get("knowledge_base", {})

    config = AppConfig(
        source=SourceConfig(
            bookmark_count=int(source_data.get("bookmark_count", 20)),
            command=source_data.get("command", "bird"),
            timeout=float(source_data.get("timeout", 60.0)),
        ),
        state_path=Path(state_data.get("path", "data/processed.json")),
        prune_days=int(state_data.get("prune_days", 30)),
        enrichment=EnrichmentConfig(
            fetch_articles=bool(enrichment_data.get("fetch_articles", True)),
            fetch_youtube=bool(enrichment_data.get("fetch_youtube", True)),
            expand_threads=bool(enrichment_data.get("expand_threads", True)),
            max_content_length=int(enrichment_data.get("max_content_length", 50000)),
            timeout=float(enrichment_data.get("timeout", 30.0)),
        ),
        agent=AgentConfig(
            model=agent_data.get("model", "claude-sonnet-4-5"),
            max_tokens=int(agent_data.get("max_tokens", 1024)),
            timeout=float(agent_data.get("timeout", 120.0)),
            api_key=os.environ.get("ANTHROPIC_API_KEY"),
        ),
        omnifocus=OmniFocusConfig(
            enabled=bool(omnifocus_data.get("enabled", True)),
            default_project=omnifocus_data.get("default_project") or None,
            default_tags=list(omnifocus_data.get("default_tags", [])),
        ),
        instapaper=InstapaperConfig(
            enabled=bool(instapaper_data.get("enabled", False)),
            username=instapaper_data.get("username") or None,
            password=instapaper_data.get("password") or None,
        ),
        knowledge_base=KnowledgeBaseConfig(
            enabled=bool(kb_data.get("enabled", False)),
            path=Path(kb_data.get("path", "knowledge")),
        ),
        dry_run=bool(data.get("dry_run", False)),
    )

    if os.environ.get("BOOKMARK_COUNT"):
        config.source.bookmark_count = int(os.environ["BOOKMARK_COUNT"])
    if os.environ.get("DRY_RUN") in ("true", "1"):
        config.dry_run = True
    if os.environ.get("STATE_PATH"):
        config.state_path = Path(os.environ["STATE_PATH"])

    return config


def save_config(config: AppConfig, config_path: Path = CONFIG_FILE) -> None:
    """Write config to TOML file with restricted permissions."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "dry_run": config.dry_run,
        "source": {
            "bookmark_count": config.source.bookmark_count,
            "command": config.source.command,
            "timeout": config.source.timeout,
        },
        "state": {
            "path": str(config.state_path),
            "prune_days": config.prune_days,
        },
        "enrichment": {
            "fetch_articles": config.enrichment.fetch_articles,
            "fetch_youtube": config.enrichment.fetch_youtube,
            "expand_threads": config.enrichment.expand_threads,
            "max_content_length": config.enrichment.max_content_length,
            "timeout": config.enrichment.timeout,
        },
        "agent": {
            "model": config.agent.model,
            "max_tokens": config.agent.max_tokens,
            "timeout": config.agent.timeout,
        },
        "omnifocus": {
            "enabled": config.omnifocus.enabled,
            "default_project": config.omnifocus.default_project or "",
            "default_tags": config.omnifocus.default_tags,
        },
        "instapaper": {
            "enabled": config.instapaper.enabled,
            "username": config.instapaper.username or "",
            "password": config.instapaper.password or "",
        },
        "knowledge_base": {
            "enabled": config.knowledge_base.enabled,
            "path": str(config.knowledge_base.path),
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)

    # Restrict permissions: may contain the Instapaper password
    os.chmod(config_path, 0o600)


def config_exists(config_path: Path = CONFIG_FILE) -> bool:
    """Check if config file exists."""
    return config_path.exists()

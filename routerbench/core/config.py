# routerbench/core/config.py
import json
import os
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from routerbench.models import AppTarget

# The posts heading only renders once the loader data has arrived; the layout h1 is on every page.
POSTS_READY_SELECTOR = 'h1:has-text("Posts")'
POSTS_LINK_SELECTOR = 'a[href*="posts"]'


class Settings(BaseSettings):
    """Loads benchmark settings from ROUTERBENCH_* environment variables and the .env file."""
    iterations: int = 3
    warmup_runs: int = 1
    headless: bool = True

    # Readiness probing
    probe_max_retries: int = 30
    probe_retry_delay_ms: int = 1000
    probe_timeout_s: float = 5.0

    # Per-operation timeouts (milliseconds)
    navigation_timeout_ms: int = 30000
    content_ready_timeout_ms: int = 10000
    content_grace_ms: int = 1000
    load_event_timeout_ms: int = 10000
    paint_timeout_ms: int = 15000
    nav_settle_timeout_ms: int = 10000

    results_dir: Path = Path("performance-results")
    targets_file: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="ROUTERBENCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

# Create a single instance of the settings to be used across the application
settings = Settings()


def default_targets() -> List[AppTarget]:
    """
    The three demo applications, each URL overridable through the environment.
    """
    react_router = os.getenv("REACT_ROUTER_URL", "http://localhost:5173").rstrip("/")
    tanstack_router = os.getenv("TANSTACK_ROUTER_URL", "http://localhost:3000").rstrip("/")
    next_app = os.getenv("NEXT_URL", "http://localhost:3001").rstrip("/")

    return [
        AppTarget(
            name="React Router",
            base_url=react_router,
            page_url=f"{react_router}/posts",
            nav_link_selector=POSTS_LINK_SELECTOR,
            content_ready_selector=POSTS_READY_SELECTOR,
            description="React Router (framework mode)",
        ),
        AppTarget(
            name="TanStack Router",
            base_url=tanstack_router,
            page_url=f"{tanstack_router}/posts",
            nav_link_selector=POSTS_LINK_SELECTOR,
            content_ready_selector=POSTS_READY_SELECTOR,
            description="TanStack Router (file based routes)",
        ),
        AppTarget(
            name="Next.js",
            base_url=next_app,
            page_url=f"{next_app}/posts",
            nav_link_selector=POSTS_LINK_SELECTOR,
            content_ready_selector=POSTS_READY_SELECTOR,
            description="Next.js (app router)",
        ),
    ]


def load_targets(config: Settings) -> List[AppTarget]:
    """
    Returns the target table, read from `config.targets_file` when one is set.

    The file holds either a JSON list of targets or an object with an "apps" list.

    Raises:
        FileNotFoundError: If the configured targets file does not exist.
        ValueError: If the file holds no targets.
    """
    if config.targets_file is None:
        return default_targets()

    raw = json.loads(Path(config.targets_file).read_text(encoding="utf-8"))
    entries = raw.get("apps", []) if isinstance(raw, dict) else raw
    targets = [AppTarget.model_validate(entry) for entry in entries]
    if not targets:
        raise ValueError(f"No targets defined in {config.targets_file}")
    return targets

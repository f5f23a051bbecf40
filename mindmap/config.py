"""Application configuration.

Fixed tunables live as module constants. Runtime settings are loaded from
environment variables prefixed with `MINDMAP_`, optionally from a `.env` file
(`MINDMAP_ENV_FILE` points at an alternative one).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# --------- Layout ---------
NODE_BREADTH = 80.0
LEVEL_WIDTH = 260.0
SIBLING_SEPARATION = 1.1
COUSIN_SEPARATION = 1.3

# --------- Motion ---------
TRANSITION_MS = 500
RESET_CAMERA_MS = 750
PIN_FOCUS_MS = 1200
PIN_FOCUS_SCALE = 1.2
ZOOM_MS = 250
FRAME_INTERVAL_MS = 16

# --------- Interaction ---------
DRAG_THRESHOLD = 4.0
ZOOM_IN_STEP = 1.2
ZOOM_OUT_STEP = 0.8
ZOOM_MIN = 0.1
ZOOM_MAX = 4.0
PAN_STEP = 40.0

# --------- Drawing ---------
ROOT_RADIUS = 12.0
BRANCH_RADIUS = 8.0
LEAF_RADIUS = 6.0
HIT_RADIUS = 20.0
LABEL_OFFSET = 18.0
LABEL_WRAP_CHARS = 22
FONT = ("Segoe UI", 11)
EXPORT_PADDING = 60

# --------- Outline ---------
PLACEHOLDER_NAME = "Start Typing..."
EMPTY_NAME = "Empty"
UNTITLED_NAME = "Untitled"
VIRTUAL_ROOT_NAME = "Virtual Root"
INITIAL_OUTLINE = "# Root\n## Subtopic 1\n## Subtopic 2"


class Settings(BaseSettings):
    """Mind map settings.

    All fields are environment-configurable. Prefix is `MINDMAP_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="MINDMAP_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")

    # Appearance
    theme: Literal["light", "dark"] = Field(default="dark")
    palette: str = Field(default="default")

    # Motion / interaction
    transition_ms: int = Field(default=TRANSITION_MS, ge=0, le=5000)
    drag_threshold: float = Field(default=DRAG_THRESHOLD, ge=0.0, le=50.0)

    # Window
    window_width: int = Field(default=1280, ge=400)
    window_height: int = Field(default=800, ge=300)

    # Export
    export_dir: Path = Field(default=Path("."))


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("MINDMAP_ENV_FILE")
    if env_file_override:
        return Settings(_env_file=Path(env_file_override))

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()

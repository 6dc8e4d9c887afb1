"""
skill_loader.config

Constants and environment lookups shared by the resolver, fetcher, converter and server.

Environment (optional):
- LOG_FILE: override log file path (default: <repo_root>/logs/skill_loader.log)
- LOG_LEVEL: logging level name (default: INFO)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# --- Paths & names ---
REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_LOG_DIR = REPO_ROOT / "logs"
DEFAULT_LOG_FILE = DEFAULT_LOG_DIR / "skill_loader.log"
SERVER_NAME = "SkillLoader"

# --- Remote origins ---
DIRECTORY_URL = "https://skills.sh"
TRENDING_URL = "https://skills.sh/trending"
RAW_CONTENT_ORIGIN = "https://raw.githubusercontent.com"
TRUSTED_URL_PREFIX = RAW_CONTENT_ORIGIN + "/"
SKILL_FILENAME = "SKILL.md"

# Branches tried in order when fetching raw content.
CANDIDATE_REFS: tuple[str, ...] = ("main", "master", "HEAD")
CANONICAL_REF = "main"

# owner/name identifiers assume this repository and sub-path marker.
CONVENTIONAL_REPO = "agent-skills"
SKILLS_SUBPATH = "skills"

# --- Cache & retry ---
DIRECTORY_CACHE_TTL_SECONDS = 60 * 60
MAX_ATTEMPTS = 3
BACKOFF_BASE_SECONDS = 1.0

# --- Conversion ---
STEERING_TARGET_TEMPLATE = ".kiro/steering/{filename}"
POWER_TARGET_TEMPLATE = "~/.kiro/powers/{name}/POWER.md"
POWER_FILENAME = "POWER.md"
STEERING_FOOTER = "*Imported from Claude Skills via Skill Loader Power*"
POWER_AUTHOR = "Imported from Claude Skills"
IMPORTED_VIA = "Skill Loader Power"
DEFAULT_SKILL_NAME = "Untitled Skill"
DEFAULT_SKILL_DESCRIPTION = "No description provided"

# --- Tool limits ---
MAX_PAGE_SIZE = 100
MAX_RESULT_LIMIT = 50


def _resolve_log_file() -> Path:
    """
    function_purpose: Resolve log file path from environment or default location.
    """
    log_file_env = os.environ.get("LOG_FILE")
    return Path(log_file_env) if log_file_env else DEFAULT_LOG_FILE


def _resolve_log_level() -> int:
    """
    function_purpose: Resolve logging level from LOG_LEVEL, falling back to INFO for unknown names.
    """
    name = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO

"""
Configuration module for RSCP.

Settings come from environment variables with safe defaults. The core
library reads only VERIFY_BASE_URL; the rest serve the CLI and logging.
"""

import os
from pathlib import Path
from typing import Optional

from .constants import DEFAULT_VERIFY_BASE_URL

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("RSCP_ENV", "dev")  # dev|stage|prod

# Verification links printed on certificates and QR codes
VERIFY_BASE_URL = os.getenv("RSCP_VERIFY_BASE_URL", DEFAULT_VERIFY_BASE_URL).rstrip("/")

# Logging; unset RSCP_LOG_LEVEL leaves the CLI silent
LOG_LEVEL = os.getenv("RSCP_LOG_LEVEL") or None
LOG_JSON = os.getenv("RSCP_LOG_JSON", "true").lower() in ("1", "true", "yes")
LOG_FILE = os.getenv("RSCP_LOG_FILE") or None

# Issuer signing key (hex) for the CLI; a key file takes the same format
SIGNING_KEY = os.getenv("RSCP_SIGNING_KEY", "")
SIGNING_KEY_PATH = os.getenv("RSCP_SIGNING_KEY_PATH", "secrets/rscp_signing_key.hex")


# ============================================================
# Loaders
# ============================================================

def load_signing_key(path: Optional[str] = None) -> str:
    """
    Resolve the issuer signing key.

    An explicit path wins, then RSCP_SIGNING_KEY, then RSCP_SIGNING_KEY_PATH.

    Raises:
        FileNotFoundError: if no key is configured and the key file is absent
    """
    if path is None and SIGNING_KEY:
        return SIGNING_KEY.strip()
    key_path = Path(path or SIGNING_KEY_PATH)
    return key_path.read_text(encoding="utf-8").strip()


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("RSCP_DEBUG", "").lower() in ("1", "true", "yes")


def cli_log_level(requested: Optional[str] = None) -> Optional[str]:
    """
    Level the CLI should configure logging at, or None to leave it alone.

    An explicit --log-level wins, then RSCP_DEBUG (DEBUG), then RSCP_LOG_LEVEL.
    """
    if requested:
        return requested
    if is_debug():
        return "DEBUG"
    return LOG_LEVEL

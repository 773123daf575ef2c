"""
Alpaca credential loading for the operator CLI.

The embedding host hands credentials to ``initialize`` directly; this module
only exists so the plugin can be driven from a shell with a ``.env`` file:

    APCA_API_KEY_ID=...
    APCA_API_SECRET_KEY=...
    APCA_PAPER=true

Credentials are held in memory only and never written anywhere.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from config.settings import ENV_API_KEY, ENV_API_SECRET, ENV_PAPER

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class PluginCredentials:
    """API key pair plus the paper/live switch."""
    api_key: str
    api_secret: str
    is_paper: bool = True

    def is_complete(self) -> bool:
        return bool(self.api_key) and bool(self.api_secret)

    def to_initialize_payload(self) -> bytes:
        """Encode as the request body expected by the ``initialize`` entry point."""
        return json.dumps({
            "api_key": self.api_key,
            "api_secret": self.api_secret,
            "is_paper": self.is_paper,
        }).encode("utf-8")

    def __repr__(self) -> str:
        # Never echo the secret
        return (
            f"PluginCredentials(api_key={self.api_key[:4]}..., "
            f"is_paper={self.is_paper})"
        )


def load_credentials_from_env(is_paper: Optional[bool] = None) -> PluginCredentials:
    """
    Read Alpaca credentials from the environment (and ``.env`` if present).

    Args:
        is_paper: Overrides ``APCA_PAPER`` when given

    Returns:
        PluginCredentials; may be incomplete; ``initialize`` reports that
    """
    load_dotenv()

    api_key = os.getenv(ENV_API_KEY, "")
    api_secret = os.getenv(ENV_API_SECRET, "")
    if is_paper is None:
        is_paper = os.getenv(ENV_PAPER, "true").strip().lower() in _TRUE_VALUES

    if not api_key or not api_secret:
        logger.warning(
            f"Alpaca credentials incomplete: set {ENV_API_KEY} and {ENV_API_SECRET}"
        )

    return PluginCredentials(api_key=api_key, api_secret=api_secret, is_paper=is_paper)

"""
Per-user panel token resolution.

panelTokens.json maps chat users to their own panel API tokens:

    [{"userId": "1234567890", "token": "ptlc_..."}]

Power actions are always signed with the acting user's token so the panel's
own audit trail names the right person. Polling falls back to the default
token from FLEET_PANEL_TOKEN.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from shared import config
from shared.errors import ConfigurationError

logger = logging.getLogger(__name__)

TOKEN_FILE_CANDIDATES = [
    Path("panelTokens.json"),
    Path("config") / "panelTokens.json",
]


def parse_user_tokens(payload) -> Dict[str, str]:
    if not isinstance(payload, list):
        raise ConfigurationError("Token file must contain an array of { userId, token } objects.")

    tokens: Dict[str, str] = {}
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ConfigurationError(f"Entry at index {index} is not an object.")
        user_id = item.get("userId")
        token = item.get("token")
        if not user_id or not isinstance(user_id, str):
            raise ConfigurationError(f"Entry at index {index} is missing a userId.")
        if not token or not isinstance(token, str):
            raise ConfigurationError(f"Entry at index {index} is missing a token.")
        tokens[user_id] = token
    return tokens


def load_user_tokens(path: Optional[str] = None) -> Dict[str, str]:
    explicit = path or config.TOKENS_FILE
    candidates = [Path(explicit)] if explicit else TOKEN_FILE_CANDIDATES
    file_path = next((candidate for candidate in candidates if candidate.exists()), None)
    if file_path is None:
        logger.info("No panelTokens.json found; falling back to default token.")
        return {}

    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
        tokens = parse_user_tokens(payload)
    except (OSError, json.JSONDecodeError, ConfigurationError) as e:
        raise ConfigurationError(f"Failed to read {file_path}: {e}", e)

    logger.info(f"Loaded {len(tokens)} panel user token(s) from {file_path}")
    return tokens


class CredentialResolver:
    """Resolve the panel token an acting user should use"""

    def __init__(self, user_tokens: Optional[Dict[str, str]] = None, default_token: Optional[str] = None):
        self._tokens = dict(user_tokens or {})
        self._default_token = default_token or None

    def resolve(self, user_id: Optional[str] = None) -> Optional[str]:
        if user_id and user_id in self._tokens:
            return self._tokens[user_id]
        return self._default_token

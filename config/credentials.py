# PATH: config/credentials.py
"""
Credential store for the market-data API key.

Holds one opaque string. Loaded from the environment (and a .env file)
at startup, updated via save(). Core pipeline code never touches it: the
CLI hands the value to the orchestrator.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, set_key, unset_key

from core.logging import get_logger

logger = get_logger(__name__)

API_KEY_ENV = "CMC_API_KEY"
DEFAULT_ENV_FILE = Path(".env")


class CredentialStore:
    """Single API credential backed by a dotenv file."""

    def __init__(self, env_file: Path = DEFAULT_ENV_FILE, env_var: str = API_KEY_ENV):
        self.env_file = env_file
        self.env_var = env_var
        self._api_key: Optional[str] = None

    def load(self) -> Optional[str]:
        """Load the credential (env file values never override the process env)."""
        if self.env_file.exists():
            load_dotenv(self.env_file, override=False)
        value = os.getenv(self.env_var, "").strip()
        self._api_key = value or None
        logger.debug(
            "Credential loaded",
            extra={"context": {"env_var": self.env_var, "present": self._api_key is not None}},
        )
        return self._api_key

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    def save(self, api_key: str) -> None:
        """Persist a new credential; a blank value clears it."""
        value = api_key.strip()
        if not value:
            self.clear()
            return
        self.env_file.touch(exist_ok=True)
        set_key(str(self.env_file), self.env_var, value)
        os.environ[self.env_var] = value
        self._api_key = value
        logger.info("API credential saved", extra={"context": {"env_file": str(self.env_file)}})

    def clear(self) -> None:
        """Remove the stored credential."""
        if self.env_file.exists():
            unset_key(str(self.env_file), self.env_var)
        os.environ.pop(self.env_var, None)
        self._api_key = None
        logger.info("API credential cleared")

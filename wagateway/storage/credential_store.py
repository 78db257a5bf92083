"""
Credential Store - Per-session authentication material on the local filesystem.
Each session owns one directory (the browser profile) under the base directory.
"""

import logging
import shutil
from pathlib import Path

import aiofiles.os

logger = logging.getLogger(__name__)

_rmtree = aiofiles.os.wrap(shutil.rmtree)


class CredentialStore:
    """
    Local filesystem store for persisted session credentials.
    A session's credentials are the whole `session-<name>` directory.
    """

    PREFIX = "session-"

    def __init__(self, base_dir: str = "./.wwebjs_auth"):
        """
        Initialize the store with a base directory.

        Args:
            base_dir: Base directory holding one sub-directory per session
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, session_name: str) -> Path:
        """Return the credential directory of a session (not created)."""
        dir_name = f"{self.PREFIX}{session_name}"
        full_path = (self.base_dir / dir_name).resolve()

        # Security check: exactly one prefixed directory directly under base_dir
        if full_path.parent != self.base_dir or full_path.name != dir_name:
            raise ValueError(f"Invalid session name: {session_name}")

        return full_path

    async def exists(self, session_name: str) -> bool:
        """Check whether credentials are persisted for a session."""
        return await aiofiles.os.path.isdir(self.path_for(session_name))

    async def purge(self, session_name: str) -> bool:
        """
        Delete all persisted credentials of a session.

        Returns:
            bool: True if something was deleted
        """
        path = self.path_for(session_name)
        if not await aiofiles.os.path.isdir(path):
            return False

        await _rmtree(path)
        logger.info(f"Purged credentials for session {session_name}")
        return True

"""
Durable session storage.

Holds the one credential bundle that lets the process reconnect without
pairing again.

Key properties:
- load() never raises: a missing or unreadable session means "must pair"
- save() is atomic: a crash mid-write leaves the previous session intact
- save() raises PersistenceError; the caller decides how loud to be
- clear() is only ever called by an operator action
"""

import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from transport.whatsapp.schemas import Session

from .errors import PersistenceError

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.@+-]")


class SessionStore(ABC):
    """
    Abstract session storage boundary.

    One store holds the session of exactly one device.
    """

    def __init__(self, device_id: str):
        if not device_id:
            raise ValueError("device_id is required")
        self.device_id = device_id

    @abstractmethod
    def load(self) -> Optional[Session]:
        """Return the stored session, or None when the device must pair."""
        raise NotImplementedError

    @abstractmethod
    def save(self, session: Session) -> None:
        """
        Persist the session, replacing any previous one.

        Raises:
            PersistenceError: The session was not written
        """
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> bool:
        """Delete the stored session. Returns True if one existed."""
        raise NotImplementedError


class FileSessionStore(SessionStore):
    """
    JSON file per device under a dedicated directory.

    Writes go to a temp file in the same directory, are fsynced, then
    renamed over the target with os.replace.
    """

    def __init__(self, directory: str, device_id: str):
        super().__init__(device_id)
        self.directory = Path(directory)

    @property
    def path(self) -> Path:
        filename = _UNSAFE_FILENAME_CHARS.sub("_", self.device_id)
        return self.directory / f"{filename}.json"

    def load(self) -> Optional[Session]:
        path = self.path
        if not path.exists():
            logger.info(f"No stored session at {path}")
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            session = Session.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(
                f"Stored session at {path} is unreadable, pairing required: {e}"
            )
            return None

        if session.device_id != self.device_id:
            logger.warning(
                f"Stored session belongs to {session.device_id!r}, "
                f"expected {self.device_id!r}; pairing required"
            )
            return None

        return session

    def save(self, session: Session) -> None:
        tmp_path: Optional[str] = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.directory, prefix=".session-", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(session.to_dict(), fh)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save session to {self.path}: {e}") from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.debug(f"Could not remove temp session file {tmp_path}")

        logger.debug(f"Session saved: {self.path}")

    def clear(self) -> bool:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        logger.warning(f"Stored session removed: {self.path}")
        return True


class InMemorySessionStore(SessionStore):
    """Process-local store for tests and throwaway runs."""

    def __init__(self, device_id: str = "default", session: Optional[Session] = None):
        super().__init__(device_id)
        self.session = session
        self.fail_saves = False
        self.save_count = 0

    def load(self) -> Optional[Session]:
        return self.session

    def save(self, session: Session) -> None:
        if self.fail_saves:
            raise PersistenceError("In-memory store configured to fail")
        self.session = session
        self.save_count += 1

    def clear(self) -> bool:
        existed = self.session is not None
        self.session = None
        return existed

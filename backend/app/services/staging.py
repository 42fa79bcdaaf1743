"""
Staging Area Service

Holds generated content between POST /api/generate and
POST /api/generate/upload-ipfs, keyed by content hash.
"""

import json
import logging
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from proof_engine import content_hash, validate_hash

logger = logging.getLogger(__name__)

CONTENT_FILENAME = "content.bin"
METADATA_FILENAME = "metadata.json"


class StagingArea:
    """
    Manages staged content on the filesystem.

    Handles:
    - Saving generated bytes with their generation metadata
    - Loading bytes back, rejecting files whose hash no longer matches
    - Removing entries older than a TTL
    """

    def __init__(self, base_path: str | Path):
        """
        Initialize StagingArea with base storage path.

        Args:
            base_path: Directory holding one folder per content hash
        """
        self.base_path = Path(base_path)

    def _entry_dir(self, hash_value: str) -> Path:
        return self.base_path / validate_hash(hash_value)

    def save(self, content: bytes, metadata: Optional[dict[str, Any]] = None) -> str:
        """
        Stage content under its content hash.

        Creates directory structure: {base_path}/{content_hash}/content.bin

        Args:
            content: Generated bytes
            metadata: JSON-serializable generation details (model, promptHash, creator)

        Returns:
            str: Content hash the entry is stored under

        Raises:
            OSError: If directory creation or file write fails
        """
        digest = content_hash(content)
        entry_dir = self.base_path / digest
        entry_dir.mkdir(parents=True, exist_ok=True)

        record = {
            "contentHash": digest,
            "size": len(content),
            "stagedAt": datetime.now(timezone.utc).isoformat(),
            **(metadata or {}),
        }

        (entry_dir / CONTENT_FILENAME).write_bytes(content)
        with open(entry_dir / METADATA_FILENAME, "w") as f:
            json.dump(record, f, indent=2)

        logger.info(f"Staged {len(content)} bytes as {digest[:16]}")
        return digest

    def load(self, hash_value: str) -> Optional[bytes]:
        """
        Load staged bytes.

        Returns:
            bytes: Staged content, or None if missing or the stored bytes no
            longer hash to the requested value
        """
        path = self._entry_dir(hash_value) / CONTENT_FILENAME
        if not path.is_file():
            return None

        content = path.read_bytes()
        if content_hash(content) != validate_hash(hash_value):
            logger.error(f"Staged content for {hash_value[:16]} is corrupted")
            return None
        return content

    def get_metadata(self, hash_value: str) -> Optional[dict]:
        """Load staging metadata, or None if missing or unreadable."""
        path = self._entry_dir(hash_value) / METADATA_FILENAME
        if not path.exists():
            return None

        try:
            with open(path, "r") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse staging metadata for {hash_value[:16]}: {e}")
            return None

    def discard(self, hash_value: str) -> bool:
        """Remove a staged entry. Returns True if something was removed."""
        entry_dir = self._entry_dir(hash_value)
        if not entry_dir.exists():
            return False
        shutil.rmtree(entry_dir)
        logger.info(f"Discarded staged content {hash_value[:16]}")
        return True

    def cleanup_expired(self, ttl_hours: float) -> dict:
        """
        Delete staged entries whose modification time exceeds the TTL.

        Returns:
            dict: Summary with entries_scanned, entries_deleted, errors
        """
        cutoff = datetime.now() - timedelta(hours=ttl_hours)
        summary = {"entries_scanned": 0, "entries_deleted": 0, "errors": 0}

        if not self.base_path.exists():
            logger.debug(f"Staging directory does not exist: {self.base_path}")
            return summary

        try:
            for entry in self.base_path.iterdir():
                if not entry.is_dir():
                    continue
                summary["entries_scanned"] += 1

                try:
                    mtime = datetime.fromtimestamp(entry.stat().st_mtime)
                    if mtime < cutoff:
                        shutil.rmtree(entry)
                        summary["entries_deleted"] += 1
                        logger.info(f"Cleaned up staged entry: {entry.name[:16]}")
                except OSError as e:
                    summary["errors"] += 1
                    logger.error(f"Failed to clean up staged entry {entry}: {e}")

        except OSError as e:
            summary["errors"] += 1
            logger.error(f"Failed to scan staging directory {self.base_path}: {e}")

        return summary

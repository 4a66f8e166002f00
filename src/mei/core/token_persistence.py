"""
MEI Token - Persistent State Storage

Keeps the token's durable state (supply, balances, epoch, locked allocation,
released amount) on disk with:
- Atomic writes (temp file + rename)
- Checksum verification
- Automated, bounded backups
- Recovery from the newest intact backup
"""

from __future__ import annotations

import json
import hashlib
import os
import time
import logging
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Tuple

from .contracts.mei_token import MEIToken
from .token_exceptions import CorruptedDataError, StorageError, TokenError

logger = logging.getLogger(__name__)


class TokenStorageConfig:
    """Configuration for token state storage"""

    STATE_FILE = "token_state.json"
    METADATA_FILE = "token_metadata.json"
    BACKUP_DIR = "backups"

    # Max backup files to keep
    MAX_BACKUPS = 10


class TokenStateStore:
    """
    Token state persistent storage with integrity checks

    Features:
    - Atomic writes (write to temp, then rename)
    - SHA-256 checksums for data integrity
    - Automatic backups on save
    - Recovery from corrupted data
    """

    def __init__(self, data_dir: str, max_backups: int = TokenStorageConfig.MAX_BACKUPS):
        """
        Initialize token storage

        Args:
            data_dir: Directory holding the state file and its backups
            max_backups: Number of backups retained
        """
        self.data_dir = data_dir
        self.state_file = os.path.join(data_dir, TokenStorageConfig.STATE_FILE)
        self.metadata_file = os.path.join(data_dir, TokenStorageConfig.METADATA_FILE)
        self.backup_dir = os.path.join(data_dir, TokenStorageConfig.BACKUP_DIR)
        self.max_backups = max_backups

        os.makedirs(self.data_dir, exist_ok=True)
        os.makedirs(self.backup_dir, exist_ok=True)

        self.lock = Lock()

    def _calculate_checksum(self, data: str) -> str:
        return hashlib.sha256(data.encode("utf-8")).hexdigest()

    def _canonical_json(self, state: dict) -> str:
        return json.dumps(state, indent=2, sort_keys=True)

    def save_to_disk(self, state: dict, create_backup: bool = True) -> Tuple[bool, str]:
        """
        Save token state to disk with atomic write

        Args:
            state: Token state dictionary (``MEIToken.to_dict()``)
            create_backup: Whether to back up the previous snapshot first

        Returns:
            tuple: (success: bool, message: str)
        """
        with self.lock:
            try:
                state_json = self._canonical_json(state)
                checksum = self._calculate_checksum(state_json)

                metadata = {
                    "timestamp": time.time(),
                    "symbol": state.get("ledger", {}).get("symbol"),
                    "released": state.get("controller", {}).get("released"),
                    "checksum": checksum,
                    "version": state.get("version", 1),
                }
                package_json = json.dumps(
                    {"metadata": metadata, "state": state}, indent=2, sort_keys=True
                )

                if create_backup and os.path.exists(self.state_file):
                    self._create_backup()

                temp_file = self.state_file + ".tmp"
                with open(temp_file, "w", encoding="utf-8") as f:
                    f.write(package_json)
                    f.flush()
                    os.fsync(f.fileno())

                os.replace(temp_file, self.state_file)

                with open(self.metadata_file, "w", encoding="utf-8") as f:
                    json.dump(metadata, f, indent=2)

                logger.info(
                    "Token state saved",
                    extra={"event": "storage.saved", "checksum": checksum[:8]},
                )
                return True, f"Token state saved (checksum: {checksum[:8]}...)"

            except (StorageError, OSError) as e:
                logger.error(
                    "Failed to save token state to disk",
                    extra={
                        "event": "storage.save_failed",
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                return False, f"Failed to save token state: {str(e)}"

    def load_from_disk(self) -> Tuple[bool, Optional[dict], str]:
        """
        Load token state from disk with integrity checks

        Falls back to the newest intact backup if the main file is damaged.

        Returns:
            tuple: (success: bool, state: dict or None, message: str)
        """
        try:
            state, message = self.load_state()
        except StorageError as e:
            return False, None, e.message
        return True, state, message

    def load_state(self) -> Tuple[dict, str]:
        """
        Load the verified token state, recovering from a backup if needed.

        Returns:
            tuple: (state: dict, message: str)

        Raises:
            StorageError: No state file, or it could not be read
            CorruptedDataError: State and every backup failed verification
        """
        with self.lock:
            if not os.path.exists(self.state_file):
                raise StorageError("No token state file found")

            try:
                state = self._read_verified(self.state_file)
                return state, "Token state loaded successfully"
            except CorruptedDataError as e:
                logger.warning(
                    "Token state failed integrity check, attempting recovery",
                    extra={"event": "storage.corrupted", "error": str(e)},
                )
                return self._recover_from_backup()
            except OSError as e:
                logger.error(
                    "Failed to load token state from disk",
                    extra={
                        "event": "storage.load_failed",
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                raise StorageError(f"Failed to load token state: {str(e)}") from e

    def _read_verified(self, path: str) -> dict:
        """Read a package file and verify its checksum."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                package = json.load(f)
        except json.JSONDecodeError as e:
            raise CorruptedDataError(f"Undecodable state file {os.path.basename(path)}: {e}") from e

        if not isinstance(package, dict) or "state" not in package:
            raise CorruptedDataError(f"Malformed state file {os.path.basename(path)}")

        state = package["state"]
        metadata = package.get("metadata")
        expected = metadata.get("checksum") if isinstance(metadata, dict) else None
        if not expected:
            raise CorruptedDataError(f"Missing checksum in {os.path.basename(path)}")
        if self._calculate_checksum(self._canonical_json(state)) != expected:
            raise CorruptedDataError(
                f"Checksum mismatch in {os.path.basename(path)}",
                details={"expected": expected},
            )
        return state

    def _create_backup(self) -> bool:
        """Copy the current state file into a timestamped backup"""
        try:
            stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
            backup_file = os.path.join(self.backup_dir, f"token_state_{stamp}.json")
            with open(self.state_file, "r", encoding="utf-8") as src, open(
                backup_file, "w", encoding="utf-8"
            ) as dst:
                dst.write(src.read())
            self._cleanup_old_backups()
            return True
        except OSError as e:
            logger.warning(
                "Could not create token state backup",
                extra={"event": "storage.backup_failed", "error": str(e)},
            )
            return False

    def _cleanup_old_backups(self) -> None:
        backups = self._backup_files()
        for stale in backups[self.max_backups:]:
            os.remove(os.path.join(self.backup_dir, stale))

    def _backup_files(self) -> List[str]:
        """Backup file names, newest first"""
        names = [
            name
            for name in os.listdir(self.backup_dir)
            if name.startswith("token_state_") and name.endswith(".json")
        ]
        return sorted(names, reverse=True)

    def _recover_from_backup(self) -> Tuple[dict, str]:
        for name in self._backup_files():
            try:
                state = self._read_verified(os.path.join(self.backup_dir, name))
            except (CorruptedDataError, OSError):
                continue
            logger.warning(
                "Recovered token state from backup",
                extra={"event": "storage.recovered", "backup": name},
            )
            return state, f"Recovered token state from backup {name}"
        raise CorruptedDataError("Token state corrupted and no intact backup found")

    def list_backups(self) -> List[Dict[str, Any]]:
        backups = []
        for name in self._backup_files():
            path = os.path.join(self.backup_dir, name)
            backups.append(
                {"filename": name, "size": os.path.getsize(path), "modified": os.path.getmtime(path)}
            )
        return backups

    # ==================== Token helpers ====================

    def save_token(self, token: MEIToken, create_backup: bool = True) -> Tuple[bool, str]:
        return self.save_to_disk(token.to_dict(), create_backup=create_backup)

    def load_token(self, time_provider: Callable[[], int] | None = None) -> MEIToken:
        """
        Load and rebuild the stored token.

        Raises:
            StorageError: No state on disk or it could not be read
            CorruptedDataError: State and every backup failed verification,
                or the restored state is inconsistent
        """
        state, _ = self.load_state()
        try:
            return MEIToken.from_dict(state, time_provider=time_provider)
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptedDataError(f"Stored token state is incomplete: {e}") from e
        except TokenError as e:
            raise CorruptedDataError(f"Stored token state is inconsistent: {e.message}") from e

"""
Storage manager for the Defer CLI.

Handles loading and saving of all JSON files in the .defer/ directory.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from defer.constants import DEFAULT_DEFER_DIR_NAME
from defer.exceptions import StorageError
from defer.models.files import (
    AchievementsFile,
    ArchivedDefersFile,
    ConfigFile,
    DefersFile,
    HistoryFile,
    UrgesFile,
)

logger = logging.getLogger(__name__)

FileModel = TypeVar("FileModel", bound=BaseModel)


class StorageManager:
    """
    Manages persistence of Defer data to JSON files in the .defer/ directory.

    Handles atomic writes to prevent data corruption.
    """

    def __init__(self, defer_dir: Optional[Path] = None) -> None:
        """
        Initialize the StorageManager with a .defer/ directory path.

        Args:
            defer_dir: Path to the .defer/ directory. Defaults to .defer/ in current directory.
        """
        self.defer_dir = defer_dir if defer_dir else Path(DEFAULT_DEFER_DIR_NAME)
        self.archive_dir = self.defer_dir / "archive"
        self._ensure_defer_dir()

    def _ensure_defer_dir(self) -> None:
        """Create the .defer/ directory and archive subdirectory if they don't exist."""
        self.defer_dir.mkdir(parents=True, exist_ok=True)
        self.archive_dir.mkdir(exist_ok=True)

    def _atomic_write(self, file_path: Path, data: Dict[str, Any]) -> None:
        """Write data to a JSON file atomically to prevent corruption.

        Args:
            file_path: Path to the file to write.
            data: Dictionary data to write as JSON.

        Raises:
            StorageError: If writing to file fails.
        """
        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.defer_dir, prefix=".tmp_defer_", suffix=".json"
        )

        try:
            with os.fdopen(temp_fd, "w") as temp_file:
                json.dump(data, temp_file, indent=2)
            os.replace(temp_path, file_path)
        except Exception as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise StorageError(f"Failed to write to {file_path}: {e}")
        logger.debug("Wrote %s", file_path)

    def _load(self, file_path: Path, model: Type[FileModel]) -> FileModel:
        """Load a JSON file into ``model``, returning an empty model when missing.

        Raises:
            StorageError: If the file is not valid JSON or fails validation.
        """
        if not file_path.exists():
            return model()

        try:
            with open(file_path, "r") as f:
                data = json.load(f)
            return model.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Failed to load {file_path.name}: {e}")

    def _save(self, file_path: Path, data: BaseModel) -> None:
        self._atomic_write(file_path, data.model_dump(mode="json"))

    # =========================================================================
    # Defers File (active)
    # =========================================================================

    def load_defers(self) -> DefersFile:
        """Load defers.json and return as DefersFile model."""
        return self._load(self.defer_dir / "defers.json", DefersFile)

    def save_defers(self, data: DefersFile) -> None:
        """Save DefersFile model to defers.json."""
        self._save(self.defer_dir / "defers.json", data)

    # =========================================================================
    # History File
    # =========================================================================

    def load_history(self) -> HistoryFile:
        """Load history.json and return as HistoryFile model."""
        return self._load(self.defer_dir / "history.json", HistoryFile)

    def save_history(self, data: HistoryFile) -> None:
        """Save HistoryFile model to history.json."""
        self._save(self.defer_dir / "history.json", data)

    # =========================================================================
    # Urges File
    # =========================================================================

    def load_urges(self) -> UrgesFile:
        """Load urges.json and return as UrgesFile model."""
        return self._load(self.defer_dir / "urges.json", UrgesFile)

    def save_urges(self, data: UrgesFile) -> None:
        """Save UrgesFile model to urges.json."""
        self._save(self.defer_dir / "urges.json", data)

    # =========================================================================
    # Achievements File
    # =========================================================================

    def load_achievements(self) -> AchievementsFile:
        """Load achievements.json and return as AchievementsFile model."""
        return self._load(self.defer_dir / "achievements.json", AchievementsFile)

    def save_achievements(self, data: AchievementsFile) -> None:
        """Save AchievementsFile model to achievements.json."""
        self._save(self.defer_dir / "achievements.json", data)

    # =========================================================================
    # Config File
    # =========================================================================

    def load_config(self) -> ConfigFile:
        """Load config.json and return as ConfigFile model."""
        return self._load(self.defer_dir / "config.json", ConfigFile)

    def save_config(self, data: ConfigFile) -> None:
        """Save ConfigFile model to config.json."""
        self._save(self.defer_dir / "config.json", data)

    # =========================================================================
    # Archived Defers File
    # =========================================================================

    def load_archived_defers(self) -> ArchivedDefersFile:
        """Load archive/defers.json and return as ArchivedDefersFile model."""
        return self._load(self.archive_dir / "defers.json", ArchivedDefersFile)

    def save_archived_defers(self, data: ArchivedDefersFile) -> None:
        """Save ArchivedDefersFile model to archive/defers.json."""
        self._save(self.archive_dir / "defers.json", data)

"""
Constants for the Defer CLI application.

Note: These constants serve as default fallback values.
Actual values are loaded from .defer/config.json at runtime via ConfigManager.
"""
import json
from pathlib import Path
from typing import Any, Optional

# =============================================================================
# Default Fallback Values
# These are used if config.json doesn't exist or doesn't specify a value.
# =============================================================================

DEFAULT_DEFER_DIR_NAME = ".defer"

# Home screen defaults
DEFAULT_DUE_SOON_DAYS = 3
DEFAULT_RECENT_URGE_LIMIT = 5

# Percentage calculation defaults
DEFAULT_PERCENTAGE_ROUND_PRECISION = 1

# Category used when none is given on the command line
DEFAULT_CATEGORY = "custom"

# What happens to a DeferItem once it has been resolved into history
RETENTION_RETAIN = "retain"
RETENTION_ARCHIVE = "archive"
VALID_RETENTION_POLICIES = [RETENTION_RETAIN, RETENTION_ARCHIVE]
DEFAULT_RETENTION_POLICY = RETENTION_RETAIN

# Urge intensity bounds (values outside are clamped)
URGE_INTENSITY_MIN = 1
URGE_INTENSITY_MAX = 5
DEFAULT_URGE_INTENSITY = 3
FALLBACK_URGE_INTENSITY = 4

# Notes on the streak record written when an item is closed without a decision
PAUSED_RECORD_NOTE = "Paused"
FAILED_RECORD_NOTE = "Failed"

# Delay protocol durations
TEN_MINUTES_SECONDS = 10 * 60
PAYDAY_DAYS = (15, 1)
PAYDAY_HOUR = 9
UNTIL_PAYDAY_NOMINAL_HOURS = 24 * 14
CUSTOM_FALLBACK_HOURS = 24

# Urgency scoring for the "most urgent" sort
CHECKPOINT_DUE_URGENCY = 1000.0
URGENCY_RECENT_URGE_WINDOW = 3

# CLI display
HISTORY_BAR_WIDTH = 30

# Date format defaults
DEFAULT_DATE_FORMATS = [
    "%Y-%m-%d %H:%M",  # YYYY-MM-DD HH:MM
    "%Y-%m-%dT%H:%M",  # ISO 8601 with minutes
    "%Y-%m-%d",        # YYYY-MM-DD (ISO 8601)
    "%Y/%m/%d",        # YYYY/MM/DD
    "%d/%m/%Y",        # DD/MM/YYYY
    "%d %B %Y",        # DD Month YYYY (e.g., 31 December 2024)
    "%d %b %Y",        # DD Mon YYYY (e.g., 31 Dec 2024)
    "%B %d, %Y",       # Month DD, YYYY (e.g., December 31, 2024)
]

# Validation error messages (not configurable)
VALIDATION_TITLE_REQUIRED = "Title is required."
VALIDATION_DATE_RANGE = "Decision date must be after the start date."
DATE_FORMAT_ERROR = (
    "Invalid date format. Supported formats: 'YYYY-MM-DD HH:MM', YYYY-MM-DD, "
    "YYYY/MM/DD, DD/MM/YYYY, 'DD Month YYYY', 'Month DD, YYYY'."
)

# =============================================================================
# Config Loader
# Load values from .defer/config.json at runtime.
# =============================================================================



class ConfigManager:
    """
    Manages loading configuration from a config.json file with fallback to defaults.

    This class is independent of StorageManager to avoid cyclic dependencies.
    StorageManager handles persistence; ConfigManager handles runtime access.

    Usage:
        # With default path (.defer/config.json)
        config = ConfigManager()
        due_soon = config.get_int('due_soon_days', DEFAULT_DUE_SOON_DAYS)

        # With custom path
        config = ConfigManager(config_path=Path("/custom/path/config.json"))
    """

    def __init__(self, config_path: Optional[Path] = None, defer_dir: Optional[Path] = None) -> None:
        """
        Initialize ConfigManager.

        Args:
            config_path: Direct path to config.json file. Takes precedence over defer_dir.
            defer_dir: Path to .defer/ directory. Config path will be defer_dir/config.json.
        """
        self._config: Optional[dict] = None

        if config_path is not None:
            self._config_path = config_path
        elif defer_dir is not None:
            self._config_path = defer_dir / "config.json"
        else:
            self._config_path = Path(DEFAULT_DEFER_DIR_NAME) / "config.json"

    def _load_config(self) -> dict:
        """Load config from config.json file."""
        if self._config is not None:
            return self._config

        if self._config_path.exists():
            try:
                with open(self._config_path, "r") as f:
                    self._config = json.load(f)
            except (json.JSONDecodeError, IOError):
                self._config = {}
        else:
            self._config = {}

        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a config value with fallback to default.

        Args:
            key: Configuration key name.
            default: Default value if key not found.

        Returns:
            Config value or default.
        """
        config = self._load_config()
        return config.get(key, default)

    def get_int(self, key: str, default: int) -> int:
        """Get an integer config value with fallback."""
        value = self.get(key, default)
        try:
            return int(value) if value is not None else default
        except (TypeError, ValueError):
            return default

    def get_list(self, key: str, default: list) -> list:
        """Get a list config value with fallback."""
        value = self.get(key, default)
        return list(value) if isinstance(value, (list, tuple)) else default

    def get_str(self, key: str, default: str) -> str:
        """Get a string config value with fallback."""
        value = self.get(key, default)
        return str(value) if value is not None else default

    def reload(self) -> dict:
        """Force reload of config from disk."""
        self._config = None
        return self._load_config()

    @property
    def config_path(self) -> Path:
        """Get the config file path."""
        return self._config_path

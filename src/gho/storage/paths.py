"""Path management for gho configuration files."""

from pathlib import Path

from gho.config import SETTINGS_FILENAME, Settings


class ConfigPaths:
    """Well-known file locations under the configuration directory.

    Layout:
    - <config_dir>/accounts.json: configured accounts and the active id
    - <config_dir>/state.json: last-used organization and repository
    - <config_dir>/config.yaml: optional settings overrides
    """

    def __init__(self, config_dir: Path) -> None:
        """Initialize paths rooted at a configuration directory.

        Args:
            config_dir: Per-user configuration directory.
        """
        self.root = Path(config_dir)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConfigPaths":
        """Build paths from loaded settings."""
        return cls(settings.config_dir)

    @property
    def accounts_path(self) -> Path:
        """Path to the accounts document."""
        return self.root / "accounts.json"

    @property
    def state_path(self) -> Path:
        """Path to the run state document."""
        return self.root / "state.json"

    @property
    def settings_path(self) -> Path:
        """Path to the optional settings overrides."""
        return self.root / SETTINGS_FILENAME

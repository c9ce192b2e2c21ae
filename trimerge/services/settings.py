"""
Application settings management.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from trimerge.core.diff.text_diff import DiffAlgorithm, TextCompareOptions, WhitespaceMode


@dataclass
class MergeSettings:
    """Settings for merge operations."""
    ignore_whitespace: bool = False
    diff_algorithm: DiffAlgorithm = DiffAlgorithm.MINIMAL
    whitespace_mode: WhitespaceMode = WhitespaceMode.EXACT
    ignore_case: bool = False
    show_base_in_conflicts: bool = False
    ours_label: str = "OURS (current)"
    theirs_label: str = "THEIRS (incoming)"
    create_backup: bool = True
    backup_extension: str = ".orig"
    encoding: str = "utf-8"

    def to_compare_options(self) -> TextCompareOptions:
        """Diff options the merge engine compares lines with."""
        return TextCompareOptions(
            algorithm=self.diff_algorithm,
            ignore_case=self.ignore_case,
            whitespace_mode=self.whitespace_mode
        )


@dataclass
class ApplicationSettings:
    """Main application settings container."""
    merge: MergeSettings = field(default_factory=MergeSettings)

    recent_merges: list[list[str]] = field(default_factory=list)
    recent_merges_limit: int = 10
    last_directory: str = ""


SettingsObserver = Callable[[ApplicationSettings], None]


class SettingsManager:
    """Manager for loading/saving application settings."""

    def __init__(self, settings_path: Optional[Path | str] = None):
        self.settings_path = Path(settings_path) if settings_path else self._get_default_path()
        self._settings: Optional[ApplicationSettings] = None
        self._observers: list[SettingsObserver] = []

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            # Windows
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'trimerge' / 'settings.json'
        else:
            # Linux/Mac
            config_home = os.environ.get('XDG_CONFIG_HOME',
                                         os.path.expanduser('~/.config'))
            return Path(config_home) / 'trimerge' / 'settings.json'

    @property
    def settings(self) -> ApplicationSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> ApplicationSettings:
        """Load settings from disk, falling back to defaults."""
        if not self.settings_path.exists():
            return ApplicationSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.warning(f"SettingsManager - Could not load {self.settings_path}: {e}")
            return ApplicationSettings()

        if not isinstance(data, dict):
            logging.warning(f"SettingsManager - Ignoring malformed settings in {self.settings_path}")
            return ApplicationSettings()

        return self._from_dict(data)

    def save(self, settings: Optional[ApplicationSettings] = None) -> bool:
        """Save settings to disk."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)

            data = self._to_dict(settings)

            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logging.error(f"SettingsManager - Could not save {self.settings_path}: {e}")
            return False

        self._settings = settings
        self._notify_observers()
        return True

    def reset(self) -> ApplicationSettings:
        """Reset to default settings."""
        self._settings = ApplicationSettings()
        self.save()
        return self._settings

    def add_observer(self, callback: SettingsObserver) -> None:
        """Add a callback to be notified of settings changes."""
        self._observers.append(callback)

    def remove_observer(self, callback: SettingsObserver) -> None:
        """Remove a settings change observer."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_observers(self) -> None:
        for callback in self._observers:
            callback(self._settings)

    def add_recent_merge(self, base: str, ours: str, theirs: str) -> None:
        """Add a base/ours/theirs triple to the recent merges list."""
        settings = self.settings
        entry = [base, ours, theirs]

        recent = [item for item in settings.recent_merges if item != entry]
        recent.insert(0, entry)
        settings.recent_merges = recent[:settings.recent_merges_limit]

        self.save()

    def _to_dict(self, settings: ApplicationSettings) -> dict:
        """Convert settings to dictionary for JSON serialization."""
        def convert(obj: Any) -> Any:
            if isinstance(obj, Enum):
                return obj.name
            elif isinstance(obj, list):
                return [convert(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            else:
                return obj

        # asdict() recurses into nested dataclasses but leaves enums alone
        return convert(asdict(settings))

    def _from_dict(self, data: dict) -> ApplicationSettings:
        """Convert dictionary back to settings objects."""
        def get_enum(enum_class: type, value: Any, default: Enum) -> Enum:
            if isinstance(value, str):
                try:
                    return enum_class[value]
                except KeyError:
                    logging.warning(f"SettingsManager - Unknown {enum_class.__name__} '{value}'")
            return default

        defaults = MergeSettings()
        merge_data = data.get('merge', {})
        if not isinstance(merge_data, dict):
            merge_data = {}

        merge = MergeSettings(
            ignore_whitespace=merge_data.get('ignore_whitespace', defaults.ignore_whitespace),
            diff_algorithm=get_enum(
                DiffAlgorithm, merge_data.get('diff_algorithm'), defaults.diff_algorithm),
            whitespace_mode=get_enum(
                WhitespaceMode, merge_data.get('whitespace_mode'), defaults.whitespace_mode),
            ignore_case=merge_data.get('ignore_case', defaults.ignore_case),
            show_base_in_conflicts=merge_data.get('show_base_in_conflicts', defaults.show_base_in_conflicts),
            ours_label=merge_data.get('ours_label', defaults.ours_label),
            theirs_label=merge_data.get('theirs_label', defaults.theirs_label),
            create_backup=merge_data.get('create_backup', defaults.create_backup),
            backup_extension=merge_data.get('backup_extension', defaults.backup_extension),
            encoding=merge_data.get('encoding', defaults.encoding),
        )

        return ApplicationSettings(
            merge=merge,
            recent_merges=data.get('recent_merges', []),
            recent_merges_limit=data.get('recent_merges_limit', 10),
            last_directory=data.get('last_directory', ''),
        )

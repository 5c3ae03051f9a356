"""
Process-wide settings store.

Holds one AppSettings instance for the life of the process. Reads hand out
the current immutable snapshot, so they need no locking; writes replace the
snapshot as a whole.
"""

from dataclasses import replace
import logging
from typing import Any, Optional

from ..errors import ValidationError
from ..value_objects import AppSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """
    Get/set access to the application settings.

    Usage:
        store = SettingsStore()
        store.set_value("max_renewals", 3)
        loan = ledger.create_loan(book, borrower, today, store.get())
    """

    def __init__(self, initial: Optional[AppSettings] = None) -> None:
        self._settings = initial if initial is not None else AppSettings()

    def get(self) -> AppSettings:
        """Current settings snapshot."""
        return self._settings

    def get_value(self, name: str) -> Any:
        if name not in AppSettings.field_names():
            raise ValidationError(f"Unknown setting '{name}'", field=name)
        return getattr(self._settings, name)

    def set_value(self, name: str, value: Any) -> AppSettings:
        """
        Change one setting.

        Raises:
            ValidationError: If the setting does not exist or the value has the wrong type
        """
        return self.update(**{name: value})

    def update(self, **changes: Any) -> AppSettings:
        """
        Change several settings at once; either all apply or none do.

        Raises:
            ValidationError: If a setting does not exist or a value has the wrong type
        """
        unknown = [name for name in changes if name not in AppSettings.field_names()]
        if unknown:
            raise ValidationError(f"Unknown setting '{unknown[0]}'", field=unknown[0])

        updated = replace(self._settings, **changes)
        for name, value in changes.items():
            previous = getattr(self._settings, name)
            if previous != value:
                logger.info("Setting %s changed from %r to %r", name, previous, value)

        self._settings = updated
        return updated

    def reset(self) -> AppSettings:
        """Restore the documented defaults."""
        logger.info("Settings reset to defaults")
        self._settings = AppSettings()
        return self._settings

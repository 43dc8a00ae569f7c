"""
Plugin Settings Model.

This module provides the runtime settings object attached to each plugin.

Key features:
- Attribute-based access to declared fields
- Bulk assignment without validation (trusting persisted data)
- Explicit validation collecting per-field errors
- Plain-dict export for persistence
"""

import copy
import logging
import threading
from typing import Any, ClassVar

from plughost.config.schema import (
    SettingField,
    generate_default_settings,
    validate_settings,
)

logger = logging.getLogger(__name__)


class SettingsModel:
    """
    Settings model for a plugin.

    Subclasses declare their fields in ``fields``. Values are read and
    written as attributes; nothing is persisted here, saving goes through
    the plugins service.

    Example:
        class SeoSettings(SettingsModel):
            fields = {
                'title_suffix': field(str, '', "Appended to page titles", max=60),
            }

        settings = SeoSettings()
        settings.title_suffix = ' | Acme'
        settings.validate()  # True
    """

    fields: ClassVar[dict[str, SettingField]] = {}

    def __init__(self, values: dict[str, Any] | None = None):
        """
        Initialize SettingsModel.

        Args:
            values: Initial values applied without validation
        """
        # Use object.__setattr__ to avoid triggering our custom __setattr__
        object.__setattr__(self, "_lock", threading.Lock())
        object.__setattr__(
            self, "_values", copy.deepcopy(generate_default_settings(self.fields))
        )
        object.__setattr__(self, "errors", {})

        if values:
            self.set_attributes(values, safe_only=False)

    def __getattr__(self, name: str) -> Any:
        """
        Get setting value by attribute access.

        Raises:
            AttributeError: If field doesn't exist in schema
        """
        if name.startswith("_"):
            return object.__getattribute__(self, name)

        if name not in self.fields:
            raise AttributeError(
                f"Setting '{name}' not found in {type(self).__name__}"
            )

        return self._values[name]

    def __setattr__(self, name: str, value: Any) -> None:
        """
        Set setting value by attribute access (no validation).

        Raises:
            AttributeError: If field doesn't exist in schema
        """
        if name.startswith("_") or name == "errors":
            object.__setattr__(self, name, value)
            return

        if name not in self.fields:
            raise AttributeError(
                f"Setting '{name}' not found in {type(self).__name__}"
            )

        with self._lock:
            self._values[name] = value

    def attributes(self) -> list[str]:
        """Names of the declared settings."""
        return list(self.fields)

    def set_attributes(self, values: dict[str, Any], safe_only: bool = True) -> None:
        """
        Assign several settings at once.

        Args:
            values: Field name -> value
            safe_only: Only assign values that pass validation; with False,
                every declared field is assigned as-is
        """
        with self._lock:
            for name, value in values.items():
                if name not in self.fields:
                    logger.debug(f"Ignoring unknown setting '{name}' on {type(self).__name__}")
                    continue
                if safe_only:
                    try:
                        self.fields[name].validate(value)
                    except Exception:
                        continue
                self._values[name] = value

    def validate(self) -> bool:
        """
        Validate the current values.

        Returns:
            True if every field is valid; errors are kept in ``errors``
        """
        with self._lock:
            errors = validate_settings(self._values, self.fields)
        object.__setattr__(self, "errors", errors)
        return not errors

    def to_dict(self) -> dict[str, Any]:
        """Export the current values."""
        with self._lock:
            return copy.deepcopy(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SettingsModel):
            return NotImplemented
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        """String representation of SettingsModel."""
        return f"{type(self).__name__}({self._values})"

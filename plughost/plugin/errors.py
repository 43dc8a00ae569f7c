"""
Plugin Errors.

Exceptions raised by the plugin lifecycle.
"""


class PluginError(Exception):
    """Base exception for plugin-related errors."""

    pass


class InvalidPluginConfigError(PluginError):
    """Raised when a plugin's config lacks a class, name or version."""

    def __init__(self, handle: str, missing: list[str]):
        self.handle = handle
        self.missing = missing
        super().__init__(
            f"Missing {', '.join(repr(key) for key in missing)} for plugin \"{handle}\""
        )


class InvalidPluginError(PluginError):
    """Raised when an operation targets a plugin that can't be used."""

    def __init__(self, handle: str, reason: str | None = None):
        self.handle = handle
        message = f"Invalid plugin: {handle}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidLicenseKeyError(PluginError):
    """Raised when a license key doesn't normalize to 24 characters."""

    def __init__(self, license_key: str):
        self.license_key = license_key
        super().__init__(f"Invalid license key: {license_key}")

"""
License Keys.

Normalization of plugin license keys and their cached validation status.
"""

import re
from enum import Enum

from plughost.plugin.errors import InvalidLicenseKeyError

LICENSE_KEY_LENGTH = 24

_NON_KEY_CHARS = re.compile(r"[^A-Z0-9]")


class LicenseKeyStatus(str, Enum):
    """License key status enumeration."""

    UNKNOWN = "unknown"
    VALID = "valid"
    INVALID = "invalid"
    MISMATCHED = "mismatched"
    ASTRAY = "astray"


def normalize_license_key(license_key: str | None) -> str | None:
    """
    Normalize a license key to uppercase letters and digits.

    Args:
        license_key: Key as entered, or None/empty to clear it

    Returns:
        The normalized key, or None when no key was given

    Raises:
        InvalidLicenseKeyError: If the normalized key isn't 24 characters
    """
    if not license_key:
        return None

    normalized = _NON_KEY_CHARS.sub("", license_key.upper())
    if len(normalized) != LICENSE_KEY_LENGTH:
        raise InvalidLicenseKeyError(license_key)

    return normalized

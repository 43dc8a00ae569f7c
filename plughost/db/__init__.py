"""
plughost Storage - Installed plugins and migration history.

This module contains:
- Models: plugins and migrations tables
- Store: transactional access to installed plugin records
- Migrations: per-plugin migration tracker
"""

__all__ = []

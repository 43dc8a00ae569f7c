"""
plughost Core - Building blocks shared by the plugin system.

This module contains:
- Event Bus: before/after lifecycle notifications
- Versions: semantic version comparison
"""

__all__ = []

"""
plughost Plugin System - Plugin lifecycle management and loading.

This module handles:
- Plugin config resolution (vendor registry and on-disk manifests)
- Module aliasing and class loading
- Lifecycle hooks execution
- Install/uninstall/enable/disable with persisted state
"""

__all__ = []

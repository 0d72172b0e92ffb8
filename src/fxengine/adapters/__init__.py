# src/fxengine/adapters/__init__.py
"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- Providers (upstream rate APIs)
- Persistence (loan and income snapshots)
- Formatting (text output)
"""

__all__ = []

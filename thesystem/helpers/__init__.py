"""Boundary helpers for THE SYSTEM.

These helpers deal with documents coming from or going to disk: schema
validation of loaded/imported state, export/import envelopes and timestamped
backups. Pure calculations belong in utils/ and engines/, not here.

Submodules:
    - validation_helpers: voluptuous schemas for state, settings and exports
    - backup_helpers: Export/import and backup file utilities

Usage:
    from .helpers import backup_helpers as bh
    from .helpers.validation_helpers import validate_state_document
"""

from . import backup_helpers, validation_helpers

__all__ = ["backup_helpers", "validation_helpers"]

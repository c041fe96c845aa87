# File: helpers/__init__.py
"""Validation helpers for Pointwise.

The engines never raise on malformed rules; these helpers are for callers
that want to reject bad input up front.

Submodules:
    - validation_helpers: Voluptuous schemas for patterns and generation input

Usage:
    from .helpers import validation_helpers as vh
    vh.validate_recurrence_pattern(pattern)
"""

from . import validation_helpers

__all__ = ["validation_helpers"]

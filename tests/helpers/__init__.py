"""Test helpers for Pointwise tests.

This module re-exports the task builders for convenient imports:

    from tests.helpers import make_utc_dt, make_template, make_instance

See builders.py for full documentation.
"""

from tests.helpers.builders import (
    make_date_range,
    make_instance,
    make_pattern,
    make_template,
    make_utc_dt,
)

__all__ = [
    "make_date_range",
    "make_instance",
    "make_pattern",
    "make_template",
    "make_utc_dt",
]

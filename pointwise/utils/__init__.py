"""Pure Python utilities for Pointwise.

Submodules:
    - dt_utils: Zone-aware date/time primitives used by the recurrence engines

Usage:
    from . import dt_utils
    from .dt_utils import start_of_day, to_date_key
"""

from . import dt_utils

__all__ = ["dt_utils"]

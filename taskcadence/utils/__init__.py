# File: utils/__init__.py
"""Pure Python utilities for taskcadence.

Submodules:
    - dt_utils: civil timezone conversion, parsing and short formatting

Usage:
    from . import dt_utils
    from .dt_utils import to_instant, to_civil
"""

from . import dt_utils

__all__ = ["dt_utils"]

"""
Byte-level decoding helpers for the action generator.

``actions`` builds on these and on :mod:`gasbench.mocks`; import it directly
(``from gasbench.decoding import actions``) so the value shapes can depend on
the reader without an import cycle.
"""

from .reader import ByteCursor  # noqa: F401
from .weights import PERCENT, WeightTable, scale_draw  # noqa: F401

__all__ = [
    "ByteCursor",
    "PERCENT",
    "WeightTable",
    "scale_draw",
]

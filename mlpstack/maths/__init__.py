"""
Mathematical utilities: running sample statistics.

Example:
    >>> from mlpstack.maths import BasicStat
    >>> st = BasicStat([1.0, 2.0, 3.0])
    >>> st.arith_avg
    2.0
"""

from .statistics import BasicStat, index_of_max

__all__ = ["BasicStat", "index_of_max"]

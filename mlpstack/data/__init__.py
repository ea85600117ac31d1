"""
Data side of the engine: time-series patterns, feature filters and sample datasets.

Example:
    >>> from mlpstack.data import TimeSeriesPattern, FlatVarSchema, RealFeatureFilter
    >>> p = TimeSeriesPattern.from_flat([1, 2, 3, 4, 5, 6], 0, 6, 2, FlatVarSchema.VAR_SEQUENCE)
    >>> filters = [RealFeatureFilter().fit(v) for v in p.variables]
    >>> p.standardize(filters, centered=True)
"""

import  importlib
from    typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .feature_filter    import (FeatureFilterBase, RealFeatureFilter, BinFeatureFilter,
                                    FeatureUse, FeatureValueType)
    from .time_series       import TimeSeriesPattern, FlatVarSchema
    from .dataset           import Sample, SampleDataset

# Lazy loading registry
_LAZY_IMPORTS = {
    'FeatureFilterBase'     : ('.feature_filter', 'FeatureFilterBase'),
    'RealFeatureFilter'     : ('.feature_filter', 'RealFeatureFilter'),
    'BinFeatureFilter'      : ('.feature_filter', 'BinFeatureFilter'),
    'FeatureUse'            : ('.feature_filter', 'FeatureUse'),
    'FeatureValueType'      : ('.feature_filter', 'FeatureValueType'),
    'TimeSeriesPattern'     : ('.time_series', 'TimeSeriesPattern'),
    'FlatVarSchema'         : ('.time_series', 'FlatVarSchema'),
    'Sample'                : ('.dataset', 'Sample'),
    'SampleDataset'         : ('.dataset', 'SampleDataset'),
}

_LOADED = {}

def __getattr__(name: str):
    """Lazy import handler - loads modules only when accessed."""
    if name in _LAZY_IMPORTS:
        if name not in _LOADED:
            module_path, attr_name  = _LAZY_IMPORTS[name]
            module                  = importlib.import_module(module_path, package=__name__)
            _LOADED[name]           = getattr(module, attr_name)
        return _LOADED[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def __dir__():
    return list(_LAZY_IMPORTS.keys())

__all__ = list(_LAZY_IMPORTS.keys())

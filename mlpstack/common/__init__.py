"""
Common utilities shared by the whole package.

**Logging and Monitoring:**
- Console and file logging with verbosity control and colors (flog)
- Training summaries printed as aligned tables

**Errors:**
- The error taxonomy raised at the boundary of every operation

Example:
    >>> from mlpstack.common import get_global_logger, ArgumentError
    >>> logger = get_global_logger()
    >>> logger.info("Hello")
"""

import  importlib
from    typing import TYPE_CHECKING

# For static type checking (IDE support) without runtime import
if TYPE_CHECKING:
    from .flog          import Logger, get_global_logger, log_training_summary
    from .errors        import (
                            MLStackError, FormatError, RangeError, InvalidStateError,
                            ArgumentError, ValidationError, NumericalInstabilityError,
                            StackTrainingError
                        )

# Lazy loading registry
_LAZY_IMPORTS = {
    # logging
    'Logger'                    : ('.flog', 'Logger'),
    'get_global_logger'         : ('.flog', 'get_global_logger'),
    'log_training_summary'      : ('.flog', 'log_training_summary'),
    # errors
    'MLStackError'              : ('.errors', 'MLStackError'),
    'FormatError'               : ('.errors', 'FormatError'),
    'RangeError'                : ('.errors', 'RangeError'),
    'InvalidStateError'         : ('.errors', 'InvalidStateError'),
    'ArgumentError'             : ('.errors', 'ArgumentError'),
    'ValidationError'           : ('.errors', 'ValidationError'),
    'NumericalInstabilityError' : ('.errors', 'NumericalInstabilityError'),
    'StackTrainingError'        : ('.errors', 'StackTrainingError'),
}

# Cache for loaded modules
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
    """List available attributes for autocompletion."""
    return list(_LAZY_IMPORTS.keys())

# Expose all lazy-loadable names for `from common import *`
__all__ = list(_LAZY_IMPORTS.keys())

####################################################################################################
#! EOF
####################################################################################################

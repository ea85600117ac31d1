'''
Base of the frozen configuration records.

Configurations are plain frozen dataclasses. Numeric invariants are checked by each record
in `__post_init__` (raising ArgumentError); this mixin adds the structural side: building a
record from a plain dictionary, as produced by an external loader, and turning it back
into one.

---------------------------------------------------------------
file    : mlpstack/common/config_base.py
---------------------------------------------------------------
'''

import dataclasses
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Mapping

from .errors import ValidationError

class ConfigBase:
    '''
    Mixin for frozen dataclass configurations.

    Subclasses may declare `_NESTED = {field_name: converter}` to build nested values
    (other configs, tuples of configs) from their dictionary form.
    '''

    _NESTED : ClassVar[Dict[str, Callable[[Any], Any]]] = {}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        """
        Build the configuration from a mapping.

        Raises:
            ValidationError: when `data` is not a mapping, has unknown keys or misses
                required keys, or a nested value has the wrong structure.
            ArgumentError: when the values violate the numeric invariants.
        """
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise ValidationError(f"{cls.__name__}: expected a mapping, got {type(data).__name__}.")

        fields      = {f.name: f for f in dataclasses.fields(cls) if f.init}
        unknown     = sorted(set(data) - set(fields))
        if unknown:
            raise ValidationError(f"{cls.__name__}: unknown keys {unknown}; allowed keys are {sorted(fields)}.")
        missing     = sorted(name for name, f in fields.items()
                            if name not in data
                            and f.default is dataclasses.MISSING
                            and f.default_factory is dataclasses.MISSING)
        if missing:
            raise ValidationError(f"{cls.__name__}: missing required keys {missing}.")

        kwargs = {}
        for key, value in data.items():
            conv = cls._NESTED.get(key)
            if conv is not None:
                try:
                    value = conv(value)
                except (TypeError, AttributeError) as exc:
                    raise ValidationError(f"{cls.__name__}.{key}: malformed value ({exc}).") from exc
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        ''' Plain dictionary form (nested configs become dictionaries, enums their values). '''
        out = {}
        for f in dataclasses.fields(self):
            out[f.name] = _plain(getattr(self, f.name))
        return out

def _plain(value):
    if isinstance(value, ConfigBase):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (tuple, list)):
        return [_plain(v) for v in value]
    return value

def tuple_of(converter: Callable[[Any], Any]) -> Callable[[Any], tuple]:
    ''' Converter for a sequence of nested configs. '''
    def _convert(values):
        if isinstance(values, (str, bytes, Mapping)) or not hasattr(values, '__iter__'):
            raise ValidationError(f"expected a sequence, got {type(values).__name__}.")
        return tuple(converter(v) for v in values)
    return _convert

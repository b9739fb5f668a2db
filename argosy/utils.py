"""
Small helpers shared by the token, argument and command layers.

- Unset: the "nothing given yet" marker, used where None is a real value
  (flag defaults, empty task slots, a context that has not parsed).
- coalesce(value, fallback): swap Unset for a fallback, keep anything else.
- rename(name): decorator giving generated functions a readable name.
- mirror(field): read-only property over the "_{field}" backing attribute.
"""
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """Type of the Unset marker. Falsey, single instance, not subclassable."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")


Unset = UnsetType()


def coalesce(value, fallback=None, /):
    """Return `fallback` when `value` is Unset, otherwise `value` untouched."""
    return fallback if value is Unset else value


def rename(name, /):
    """Decorator setting both __name__ and __qualname__ of a function."""
    if not isinstance(name, str):
        raise TypeError(f"rename() expects a string, not {type(name).__name__}")

    def apply(function):
        function.__name__ = function.__qualname__ = name
        return function

    return apply


def _detach(value):
    # containers are handed out as fresh copies so callers cannot edit a declaration
    if isinstance(value, Mapping):
        return {key: _detach(item) for key, item in value.items()}
    if isinstance(value, Set):
        return {_detach(item) for item in value}
    if isinstance(value, Sequence) and not isinstance(value, str | bytes):
        return [_detach(item) for item in value]
    return value


def mirror(field, /):
    """Read-only property exposing `self._<field>`."""
    if not isinstance(field, str):
        raise TypeError(f"mirror() expects a string, not {type(field).__name__}")

    @rename(field)
    def read(self):
        return _detach(getattr(self, "_" + field))

    return property(read)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
)

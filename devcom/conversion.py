"""
Text-to-value conversion rules shared by command binding and convar assignment.

The rule set is closed and keyed on the declared Python type:
- str        → the token unchanged
- bool       → true/false, 1/0, yes/no, on/off (case-insensitive)
- Enum       → member by name (exact first, then case-insensitive)
- int/float  → numeric parse (subclasses are rebuilt from the parsed value)
- anything else passes the token through unchanged

convert() raises ConversionError on a malformed token; callers decide whether
that aborts a call (command binding) or falls back to zero() (convar assignment).
"""
import builtins
from enum import Enum

_BOOLEANS = {
    "true": True,
    "1": True,
    "yes": True,
    "on": True,
    "false": False,
    "0": False,
    "no": False,
    "off": False,
}


class ConversionError(ValueError):
    """A token cannot be coerced to its target type."""

    def __init__(self, token, type, /):
        super().__init__("cannot convert %r to %s" % (token, typename(type)))
        self.token = token
        self.type = type


def typename(type, /):
    return getattr(type, "__name__", repr(type))


def convert(token, type, /):
    """
    Convert a textual token to the declared type, raising ConversionError.
    """
    if not isinstance(type, builtins.type) or issubclass(type, str):
        return token
    try:
        if issubclass(type, bool):
            return _BOOLEANS[token.strip().lower()]
        if issubclass(type, Enum):
            try:
                return type[token.strip()]
            except KeyError:
                name = token.strip().casefold()
                for member in type:
                    if member.name.casefold() == name:
                        return member
                raise
        if issubclass(type, int):
            return type(int(token.strip()))
        if issubclass(type, float):
            return type(float(token.strip()))
    except (KeyError, ValueError, TypeError):
        raise ConversionError(token, type) from None
    return token


def zero(type, /):
    """
    The type-appropriate empty value a convar falls back to after a failed set.

    Enumerations fall back to their first member; pass-through types to None.
    """
    if not isinstance(type, builtins.type):
        return None
    if issubclass(type, Enum):
        return next(iter(type), None)
    if issubclass(type, str | bool | int | float):
        return type()
    return None


def stringify(value, /):
    """
    Textual form of a value, the inverse of convert() for the supported types.
    """
    match value:
        case None:
            return ""
        case bool():
            return "true" if value else "false"
        case Enum():
            return value.name
        case _:
            return str(value)


__all__ = (
    "ConversionError",
    "convert",
    "zero",
    "stringify",
    "typename",
)

"""
Convars: named, typed, mutable runtime variables and the store that holds them.

A Convar keeps its value in a pluggable backing:
- Slot: a free-standing typed cell owned by the convar.
- AttributeSlot: an attribute of a class, module or any other object, so host
  settings can be edited live (the convar writes through to the attribute).

Assignment never raises for bad input: a textual value that cannot be coerced
drives the convar to its type's zero value and the failure is reported to the
caller's context instead (see ConvarStore.set).

    >>> store = ConvarStore()
    >>> store.register(Convar("gravity", 9.8, category="physics"))
    >>> store.get("gravity", "physics")
    9.8
    >>> store.set("physics.gravity", "abc")
    False
    >>> store.get("physics.gravity")
    0.0
"""
import builtins
import logging
import re
from enum import Enum

from .conversion import *
from .faults import *
from .utils import *

logger = logging.getLogger(__name__)

_NAME = re.compile(r"(?!\d)\w+")
_CATEGORY = re.compile(r"(?!\d)\w+(\.(?!\d)\w+)*")


class Slot:
    """Free-standing storage for one convar value."""

    __slots__ = ("value",)

    def __init__(self, value=None):
        self.value = value

    def get(self):
        return self.value

    def set(self, value):
        self.value = value

    def __repr__(self):
        return f"slot({self.value!r})"


class AttributeSlot:
    """Storage bound to `owner.attribute` (class attribute, module global, property, ...)."""

    __slots__ = ("owner", "attribute")

    def __init__(self, owner, attribute):
        if not isinstance(attribute, str) or not attribute.isidentifier():
            raise TypeError("attribute-slot 'attribute' must be an identifier")
        self.owner = owner
        self.attribute = attribute

    def get(self):
        return getattr(self.owner, self.attribute)

    def set(self, value):
        setattr(self.owner, self.attribute, value)

    def __repr__(self):
        return f"attribute-slot({getattr(self.owner, '__name__', self.owner)!s}.{self.attribute})"


def _conforms(value, type):
    # pass-through types accept anything; bools never stand in for numbers
    if not issubclass(type, Enum | str | int | float):
        return True
    if isinstance(value, bool) and not issubclass(type, bool):
        return False
    return isinstance(value, type)


class Convar(metaclass=DeclarativeType):
    """
    Named, typed, mutable runtime variable.

    Parameters
    - name: identifier, unique within its category.
    - default: initial value. When omitted, an AttributeSlot backing supplies it
      from the bound attribute; otherwise it is None.
    - descr: short help text.
    - category: dot-separated namespace ("" is root).
    - type: declared type; defaults to type(default), or str when the default is None.
    - backing: Slot (default) or AttributeSlot.
    """

    __introspectable__ = (
        "name",
        "descr",
        "category",
        "type",
        "default",
        "backing",
    )
    __displayable__ = (
        "qualname",
        "type",
        "value",
        "default",
    )

    def __new__(cls, name, /, default=Unset, descr=Unset, category="", type=Unset, *, backing=Unset):
        if not isinstance(name, str) or not _NAME.fullmatch(name := name.strip()):
            raise DeclarationError(f"{cls.__typename__} name {name!r} must be an identifier")
        if not isinstance(category, str) or (category := category.strip()) and not _CATEGORY.fullmatch(category):
            raise DeclarationError(f"{cls.__typename__} {name!r} has an invalid category {category!r}")
        if not isinstance(descr, str | Unset):
            raise DeclarationError(f"{cls.__typename__} {name!r} 'descr' must be a string")

        backing = coalesce(backing, Slot())
        if not callable(getattr(backing, "get", None)) or not callable(getattr(backing, "set", None)):
            raise DeclarationError(f"{cls.__typename__} {name!r} backing must provide get() and set()")

        if default is Unset and isinstance(backing, AttributeSlot):
            try:
                default = backing.get()
            except AttributeError:
                raise DeclarationError(f"{cls.__typename__} {name!r} is bound to a missing attribute") from None
        default = coalesce(default)

        type = coalesce(type, builtins.type(default) if default is not None else str)
        if not isinstance(type, builtins.type):
            raise DeclarationError(f"{cls.__typename__} {name!r} 'type' must be a type")
        if default is not None and not _conforms(default, type):
            try:
                default = convert(stringify(default), type)
            except ConversionError:
                raise DeclarationError(
                    f"{cls.__typename__} {name!r} default {default!r} is not a {typename(type)}"
                ) from None

        self = super().__new__(cls)
        self._name = name
        self._descr = coalesce(descr)
        self._category = category
        self._type = type
        self._default = default
        self._backing = backing
        backing.set(default)
        return self

    @property
    def qualname(self):
        return qualify(self._category, self._name)

    @property
    def value(self):
        return self._backing.get()

    @value.setter
    def value(self, value):
        self.assign(value)

    @property
    def text(self):
        return stringify(self.value)

    def assign(self, value, /):
        """
        Coerce and store `value`; on failure store the zero value and return False.
        """
        try:
            if isinstance(value, str):
                value = convert(value, self._type)
            elif not _conforms(value, self._type):
                value = convert(stringify(value), self._type)
        except ConversionError:
            self._backing.set(zero(self._type))
            return False
        self._backing.set(value)
        return True

    def reset(self):
        self._backing.set(self._default)


class ConvarStore:
    """
    Qualified name → Convar mapping with category-aware lookup.

    Lookup order for a name within a category: (1) "category.name", (2) bare
    "name". A leading "$" forces the bare (absolute) lookup. Names are matched
    case-insensitively. The store performs no locking.
    """

    def __init__(self):
        self._convars = {}

    def register(self, convar, /):
        if not isinstance(convar, Convar):
            raise TypeError("register() argument must be a convar")
        if (key := normalize(convar.qualname)) in self._convars:
            raise DeclarationError(f"convar {convar.qualname!r} is already defined")
        self._convars[key] = convar
        logger.debug("registered convar %s (%s)", convar.qualname, typename(convar.type))

    def find(self, name, /, category=""):
        """
        Return the Convar named `name` as seen from `category`, or None.
        """
        name = normalize(name)
        if name.startswith("$"):
            return self._convars.get(name[1:])
        if category and (convar := self._convars.get(normalize(qualify(category, name)))):
            return convar
        return self._convars.get(name)

    def get(self, name, /, category=""):
        if (convar := self.find(name, category)) is None:
            raise KeyError(name)
        return convar.value

    def set(self, name, value, /, context=None, category=""):
        """
        Assign a convar from text or a typed value; report failures, never raise.

        Returns True when the value was stored as given.
        """
        if (convar := self.find(name, category)) is None:
            self.not_found(name, context)
            return False

        if convar.assign(value):
            logger.debug("convar %s = %r", convar.qualname, convar.value)
            return True

        trigger(UncastableConvarError(
            "cannot convert %r to %s for convar %r; it was set to %r" % (
                value, typename(convar.type), convar.qualname, convar.value
            ),
            title="invalid convar value",
            code=FaultCode.UNCASTABLE_CONVAR,
            hint="provide a %s value" % typename(convar.type),
            input=convar.qualname,
        ), context=context)
        return False

    def reset(self, name, /, context=None, category=""):
        if (convar := self.find(name, category)) is None:
            self.not_found(name, context)
            return False
        convar.reset()
        return True

    def not_found(self, name, context=None, /):
        trigger(UnknownConvarError(
            "convar %r not found" % name,
            title="convar not found",
            code=FaultCode.UNKNOWN_CONVAR,
            hint="run 'convars' to list the available convars",
            input=name,
        ), context=context)

    def categories(self):
        """
        Every category (and parent category) that holds at least one convar.
        """
        categories = set()
        for convar in self._convars.values():
            segments = normalize(convar.category).split(".") if convar.category else []
            for index in range(1, len(segments) + 1):
                categories.add(".".join(segments[:index]))
        return categories

    def snapshot(self):
        """
        Textual value of every convar, keyed by qualified name.
        """
        return {convar.qualname: convar.text for convar in self}

    def apply(self, values, /, context=None):
        """
        Set every known convar from a qualified name → text mapping.

        Unknown names are skipped. Returns the number of convars applied.
        """
        applied = 0
        for name, text in values.items():
            if self.find(f"${name}") is None:
                logger.debug("ignoring unknown convar %r", name)
                continue
            self.set(f"${name}", text, context)
            applied += 1
        return applied

    def __contains__(self, name):
        return isinstance(name, str) and normalize(name) in self._convars

    def __iter__(self):
        return iter(sorted(self._convars.values(), key=lambda convar: normalize(convar.qualname)))

    def __len__(self):
        return len(self._convars)


__all__ = (
    "Slot",
    "AttributeSlot",
    "Convar",
    "ConvarStore",
)

"""
Invocation contexts, capabilities and filter rules.

A Context is the session handle every command receives as its first argument:
it carries the current category scope, the output sink and a Capability tag.
Capabilities form a small partial order (ADMIN derives from DEFAULT); a command
declares the least capability that may reach it, and may add a ContextFilter
on top. permits() combines both checks into a pure predicate.

    >>> MODERATOR = Capability("moderator", DEFAULT)
    >>> ADMIN.includes(DEFAULT), DEFAULT.includes(ADMIN)
    (True, False)
    >>> ContextFilter(ADMIN, allow=False).test(MODERATOR)
    True
"""
import re

from rich.console import Console

from .faults import DeclarationError
from .utils import *

console = Console()

_CATEGORY = re.compile(r"(?!\d)\w+(\.(?!\d)\w+)*")


def default_sink(message, /):
    """
    Print a console message through the shared rich console (markup disabled).
    """
    console.print(message, markup=False, highlight=False)


class Capability(metaclass=DeclarativeType):
    """
    A tagged privilege level. A capability includes itself and every capability
    it derives from, transitively.
    """

    __introspectable__ = (
        "name",
        "bases",
    )
    __displayable__ = (
        "name",
    )

    def __new__(cls, name, /, *bases):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
        for base in bases:
            if not isinstance(base, Capability):
                raise TypeError(f"{cls.__typename__} bases must be capabilities")

        self = super().__new__(cls)
        self._name = name
        self._bases = bases
        return self

    def includes(self, other, /):
        """
        True when this capability is `other` or derives from it.
        """
        return other is self or any(base.includes(other) for base in self._bases)

    def __ge__(self, other, /):
        if not isinstance(other, Capability):
            return NotImplemented
        return self.includes(other)

    def __le__(self, other, /):
        if not isinstance(other, Capability):
            return NotImplemented
        return other.includes(self)

    def __str__(self):
        return self._name


DEFAULT = Capability("default")
ADMIN = Capability("admin", DEFAULT)


class ContextFilter(metaclass=DeclarativeType):
    """
    Allow/deny policy keyed by capabilities.

    Parameters
    - capabilities: one or more Capability the rule is about.
    - allow: True for an allow-list (only matching capabilities pass),
      False for a deny-list (matching capabilities are rejected).
    - exact: when True a capability matches only if it is listed; otherwise
      capabilities deriving from a listed one match as well.
    """

    __introspectable__ = (
        "capabilities",
        "allow",
        "exact",
    )

    def __new__(cls, *capabilities, allow=True, exact=False):
        if not capabilities:
            raise TypeError(f"{cls.__typename__} must specify at least one capability")
        for capability in capabilities:
            if not isinstance(capability, Capability):
                raise TypeError(f"{cls.__typename__} capabilities must be capabilities")

        self = super().__new__(cls)
        self._capabilities = frozenset(capabilities)
        self._allow = bool(allow)
        self._exact = bool(exact)
        return self

    def matches(self, capability, /):
        if self._exact:
            return capability in self._capabilities
        return any(capability.includes(listed) for listed in self._capabilities)

    def test(self, capability, /):
        """
        Evaluate the rule: True lets the capability through.
        """
        return self.matches(capability) is self._allow


class Context:
    """
    Per-session invocation state.

    - category: current scope ("" is root); relative names resolve against it.
    - sink: callable receiving every message posted to this session.
    - capability: privilege tag; class-level default, overridable per instance.
    """

    capability = DEFAULT

    def __init__(self, category="", sink=Unset, *, capability=Unset):
        self.category = category
        self.sink = coalesce(sink, default_sink)
        if capability is not Unset:
            if not isinstance(capability, Capability):
                raise TypeError("context 'capability' must be a capability")
            self.capability = capability
        if not callable(self.sink):
            raise TypeError("context 'sink' must be callable")

    @property
    def category(self):
        return self._category

    @category.setter
    def category(self, category):
        if not isinstance(category, str):
            raise TypeError("context 'category' must be a string")
        category = normalize(category)
        if category and not _CATEGORY.fullmatch(category):
            raise ValueError(f"invalid category {category!r}")
        self._category = category

    @property
    def prompt(self):
        return f"{self._category}> " if self._category else "> "

    def post(self, message, /):
        """
        Hand one text message to the session's sink.
        """
        self.sink(str(message))

    def __repr__(self):
        return f"{type(self).__name__}(category={self._category!r}, capability={str(self.capability)!r})"


class AdminContext(Context):
    capability = ADMIN


def permits(context, command, /):
    """
    Whether `context` may reach `command`.

    1. the context capability must include the command's declared capability;
    2. the command filter, when present, must let the context capability through.
    Callers report a rejection exactly like a missing command.
    """
    capability = context.capability
    if not capability.includes(command.capability):
        return False
    if command.filter is not None and not command.filter.test(capability):
        return False
    return True


def check_filter(filter, capability, /, *, name):
    """
    Registration-time sanity check: a filter must not reject the declared capability.
    """
    if filter is not None and not filter.test(capability):
        raise DeclarationError(
            f"command {name!r}: the base capability {str(capability)!r} "
            f"will always be rejected by the filter rules"
        )


__all__ = (
    "Capability",
    "DEFAULT",
    "ADMIN",
    "ContextFilter",
    "Context",
    "AdminContext",
    "permits",
    "check_filter",
    "default_sink",
)

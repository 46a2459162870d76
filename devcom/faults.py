"""
Devcom faults (recoverable console errors) and declaration errors.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain to keep copy consistent and make logs/searches
  predictable.
- ConsoleException: base type for recoverable faults. It carries a message plus
  options (title, code, hint, context, ...) and knows how to report itself as a
  single line on the invoking context's output sink.
- trigger(): central entry point to surface any fault.
- DeclarationError: raised (never reported) when a command or convar
  declaration is malformed; a broken declaration is a programming error.

UX goals
- One message per rejected invocation: "[ code | title ] message → hint".
- Unreachable and missing commands are reported with the exact same fault,
  so privileged commands never leak to unprivileged callers.

Integration
- Dispatch/binding code builds a fault and calls trigger(fault, context=...).
- With a context, the rendered line goes to context.post(); without one the
  fault is logged as a warning. Faults never unwind past the dispatcher.
"""
import logging
from enum import IntEnum
from types import MappingProxyType

from .utils import Unset

logger = logging.getLogger(__name__)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the console (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNKNOWN_COMMAND, UNKNOWN_CONVAR, UNKNOWN_CATEGORY
    - binding (1111x)
      • PARAMETER_COUNT, UNCASTABLE_PARAMETER
    - convars (1112x)
      • UNCASTABLE_CONVAR, SUBSTITUTION_FAILED
    - delegated errors (1113x)
      • DELEGATED_ERROR

    rationale
    - codes are discoverable (searchable in logs) and normalized to a string
      via normalize() so hosts can remap them (e.g., to shorter labels).
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND      = 11101
    UNKNOWN_CONVAR       = 11102
    UNKNOWN_CATEGORY     = 11103

    # --- binding errors (11xxx) ---
    PARAMETER_COUNT      = 11111
    UNCASTABLE_PARAMETER = 11112

    # --- convar errors (11xxx) ---
    UNCASTABLE_CONVAR    = 11121
    SUBSTITUTION_FAILED  = 11122

    # --- delegated errors (11xxx) ---
    DELEGATED_ERROR      = 11131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ConsoleException(Exception):
    """
    Base type for recoverable console faults.

    Options understood by the renderer
    - code: FaultCode shown in the header.
    - title: short, lowercase title ("command not found").
    - hint: one actionable sentence, optional.
    - context: the Context whose sink receives the rendered line.
    Any other option (input, index, exception, ...) is kept for hosts and logs.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        code = self.options.get("code")
        header = "[ %s | %s ]" % (
            code.normalize() if code else "-",
            self.options.get("title", type(self).__name__),
        )
        text = "%s %s" % (header, self.message or "")
        if hint := self.options.get("hint"):
            text = "%s → %s" % (text, hint)
        return text

    def __trigger__(self):
        code = self.options.get("code")
        logger.info("console fault %s: %s", code.name if code else "-", self.message)
        if (context := self.options.get("context")) is None:
            logger.warning("%s", self)
            return
        context.post(str(self))

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownCommandError(ConsoleException): ...
class UnknownConvarError(ConsoleException): ...
class UnknownCategoryError(ConsoleException): ...
class ParameterCountError(ConsoleException): ...
class UncastableParameterError(ConsoleException): ...
class UncastableConvarError(ConsoleException): ...
class SubstitutionError(ConsoleException): ...
class DelegatedCommandError(ConsoleException): ...


class DeclarationError(ValueError):
    """
    A command or convar declaration is malformed (wrong leading parameter,
    misplaced variadic, duplicate qualified name, self-rejecting filter, ...).

    Raised to the loader's caller immediately: continuing with a half-valid
    registry would produce inconsistent behavior.
    """


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ConsoleException).
    - options are merged into the fault via __replace__(**options) before triggering.

    typical options
    - context, title, code, hint, and any other detail the reporter may want
      to keep (input, index, exception, ...).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "ConsoleException",
    "UnknownCommandError",
    "UnknownConvarError",
    "UnknownCategoryError",
    "ParameterCountError",
    "UncastableParameterError",
    "UncastableConvarError",
    "SubstitutionError",
    "DelegatedCommandError",
    "DeclarationError",
    "trigger",
)

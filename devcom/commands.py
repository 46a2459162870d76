"""
Devcom command layer: declare, register, bind and run console commands.

What this module provides
- Param: one parameter specification (name, semantic type, default, variadic).
- Command: immutable command definition bound to a callable whose first
  argument is always the invocation Context.
- CommandRegistry: qualified name → Command mapping plus the binder that turns
  raw argument tokens into a call.

Binding rules (Command.bind)
- Fixed parameters take one token each, converted by devcom.conversion.
- Fewer tokens than required parameters, or more tokens than fixed parameters
  on a command without a variadic tail, is a parameter count mismatch.
- Omitted optional parameters receive the Default marker; it is replaced by
  the declared default right before the call.
- A variadic tail receives the remaining tokens as raw strings, in order.

Faults
- Every rejection (not found, count mismatch, conversion failure, error raised
  by the callable) is reported once to the context's sink and the invocation
  returns False. Only strict mode re-raises errors raised by the callable.

Quick example
    >>> def spawn(context, name, mass=1.0, *tags):
    ...     context.post(f"{name} {mass} {tags}")
    >>> registry = CommandRegistry()
    >>> registry.register(Command(
    ...     spawn, category="world",
    ...     params=(Param("name"), Param("mass", float, 1.0), Param("tags", variadic=True)),
    ... ))
    >>> registry.invoke(registry.find("world.spawn"), Context(), ["crate"])
    crate 1.0 ()
    True
"""
import builtins
import difflib
import logging
import re

from rich.text import Text

from .contexts import *
from .conversion import *
from .faults import *
from .utils import *

logger = logging.getLogger(__name__)

_NAME = re.compile(r"(?!\d)\w+")
_CATEGORY = re.compile(r"(?!\d)\w+(\.(?!\d)\w+)*")

# Marker for an omitted optional parameter; replaced by the declared default at call time.
Default = type("default-type", (), {
    "__module__": None,
    "__slots__": (),
    "__rich__": lambda self: Text("(default)", style="dim"),
    "__repr__": lambda self: "Default",
    "__bool__": lambda self: False,
    "__doc__": "marker for an omitted optional parameter (use the declared default)",
    "__new__": __import__("functools").cache(lambda cls: super(type, cls).__new__(cls)),
})()


class Param(metaclass=DeclarativeType):
    """
    Parameter specification of a command (the leading context is not a Param).

    - name: identifier shown in usage strings.
    - type: semantic type used to convert the token (str, bool, int, float, Enum, ...).
    - default: declared default; a parameter with a default is optional.
    - variadic: consumes every remaining token as a raw string (must be last).
    """

    __introspectable__ = (
        "name",
        "type",
        "default",
        "variadic",
    )

    def __new__(cls, name, /, type=str, default=Unset, *, variadic=False):
        if not isinstance(name, str) or not _NAME.fullmatch(name):
            raise DeclarationError(f"{cls.__typename__} name {name!r} must be an identifier")
        if not isinstance(type, builtins.type):
            raise DeclarationError(f"{cls.__typename__} {name!r} 'type' must be a type")
        if variadic and default is not Unset:
            raise DeclarationError(f"variadic {cls.__typename__} {name!r} cannot have a default")
        if variadic and type is not str:
            raise DeclarationError(f"variadic {cls.__typename__} {name!r} receives raw strings, its type must be str")

        self = super().__new__(cls)
        self._name = name
        self._type = type
        self._default = default
        self._variadic = bool(variadic)
        return self

    @property
    def optional(self):
        return self._default is not Unset

    @property
    def usage(self):
        if self._variadic:
            return f"<{self._name}...>"
        if self.optional:
            return f"<{self._name} (optional)>"
        return f"<{self._name}>"


class Command(metaclass=DeclarativeType):
    """
    Immutable command definition.

    Responsibilities
    - Identity: name, category and the derived qualified name ("category.name").
    - Shape: ordered Param specifications (context excluded) and the usage template.
    - Access: the least Capability that may invoke it, plus an optional ContextFilter.
    - Binding: bind(tokens) validates arity and converts tokens (see module docs).

    Construction validates the declaration and raises DeclarationError when:
    - the callback is not callable or the name/category is malformed;
    - the capability is not a Capability;
    - more than one variadic parameter exists, or it is not the last one;
    - a required parameter follows an optional one;
    - the filter rejects the command's own capability (it would be unreachable).
    """

    __introspectable__ = (
        "name",
        "descr",
        "category",
        "params",
        "capability",
        "filter",
        "callback",
    )
    __displayable__ = (
        "qualname",
        "usage",
        "capability",
        "filter",
    )

    def __new__(
            cls,
            callback,
            /,
            name=Unset,
            descr=Unset,
            category="",
            params=(),
            capability=DEFAULT,
            filter=Unset
    ):
        if not callable(callback):
            raise DeclarationError(f"{cls.__typename__} 'callback' must be callable")

        name = coalesce(name, getattr(callback, "__name__", Unset))
        if not isinstance(name, str) or not _NAME.fullmatch(name := name.strip()):
            raise DeclarationError(f"{cls.__typename__} name {name!r} must be an identifier")
        if not isinstance(category, str) or (category := category.strip()) and not _CATEGORY.fullmatch(category):
            raise DeclarationError(f"{cls.__typename__} {name!r} has an invalid category {category!r}")
        if not isinstance(descr, str | Unset):
            raise DeclarationError(f"{cls.__typename__} {name!r} 'descr' must be a string")

        if not isinstance(capability, Capability):
            raise DeclarationError(
                f"{cls.__typename__} {name!r} requires a context capability for its first parameter"
            )

        params = tuple(params)
        optional = False
        for index, param in enumerate(params):
            if not isinstance(param, Param):
                raise DeclarationError(f"{cls.__typename__} {name!r} parameters must be params")
            if param.variadic and index != len(params) - 1:
                raise DeclarationError(f"{cls.__typename__} {name!r} variadic parameter {param.name!r} must be the last one")
            if not param.variadic:
                if optional and not param.optional:
                    raise DeclarationError(
                        f"{cls.__typename__} {name!r} required parameter {param.name!r} cannot follow an optional one"
                    )
                optional |= param.optional

        filter = coalesce(filter)
        if filter is not None and not isinstance(filter, ContextFilter):
            raise DeclarationError(f"{cls.__typename__} {name!r} 'filter' must be a context-filter")
        check_filter(filter, capability, name=qualify(category, name))

        self = super().__new__(cls)
        self._callback = callback
        self._name = name
        self._descr = coalesce(descr)
        self._category = category
        self._params = params
        self._capability = capability
        self._filter = filter
        return self

    @property
    def qualname(self):
        return qualify(self._category, self._name)

    @property
    def variadic(self):
        return bool(self._params) and self._params[-1].variadic

    @property
    def fixed(self):
        return self._params[:-1] if self.variadic else self._params

    @property
    def usage(self):
        return " ".join(param.usage for param in self._params)

    def bind(self, tokens, /):
        """
        Validate arity and convert `tokens` into positional arguments.

        Returns a list holding, per fixed parameter, the converted token or the
        Default marker, followed by the raw variadic tokens. Raises
        ParameterCountError or UncastableParameterError (not yet triggered).
        """
        tokens = list(tokens)
        fixed = self.fixed
        required = sum(not param.optional for param in fixed)

        if len(tokens) < required or (not self.variadic and len(tokens) > len(fixed)):
            if self.variadic:
                expected = "at least %d" % required
            elif required == len(fixed):
                expected = "exactly %d" % required
            else:
                expected = "%d to %d" % (required, len(fixed))
            raise ParameterCountError(
                "parameter count mismatch: %r expects %s argument%s but %d %s given" % (
                    self.qualname,
                    expected,
                    "" if expected.endswith(" 1") else "s",
                    len(tokens),
                    "was" if len(tokens) == 1 else "were",
                ),
                title="parameter count mismatch",
                code=FaultCode.PARAMETER_COUNT,
                hint="usage: %s %s" % (self.qualname, self.usage) if self._params else "usage: %s" % self.qualname,
                input=self.qualname,
            )

        bound = []
        for index, param in enumerate(fixed):
            if index >= len(tokens):
                bound.append(Default)
                continue
            try:
                bound.append(convert(tokens[index], param.type))
            except ConversionError:
                raise UncastableParameterError(
                    "cannot convert %r to %s for parameter %r of %r" % (
                        tokens[index], typename(param.type), param.name, self.qualname
                    ),
                    title="invalid argument",
                    code=FaultCode.UNCASTABLE_PARAMETER,
                    hint="usage: %s %s" % (self.qualname, self.usage),
                    input=self.qualname,
                    index=index,
                ) from None

        if self.variadic:
            bound.extend(tokens[len(fixed):])
        return bound

    def resolve(self, bound, /):
        """
        Replace Default markers with the declared defaults.
        """
        fixed = self.fixed
        return [
            fixed[index].default if value is Default and index < len(fixed) else value
            for index, value in enumerate(bound)
        ]


class CommandRegistry:
    """
    Qualified name → Command mapping and invocation entry point.

    Names are matched case-insensitively. The registry performs no locking;
    it is populated at load time and read thereafter.
    """

    def __init__(self):
        self._commands = {}

    def register(self, command, /):
        if not isinstance(command, Command):
            raise TypeError("register() argument must be a command")
        if (key := normalize(command.qualname)) in self._commands:
            raise DeclarationError(f"command {command.qualname!r} is already defined")
        self._commands[key] = command
        logger.debug("registered command %s (%s)", command.qualname, command.capability)

    def find(self, name, /):
        return self._commands.get(normalize(name))

    def accessible(self, context, /):
        """
        Commands `context` is permitted to reach, in qualified-name order.
        """
        return [command for command in self if permits(context, command)]

    def categories(self):
        """
        Every category (and parent category) that holds at least one command.
        """
        categories = set()
        for command in self._commands.values():
            segments = normalize(command.category).split(".") if command.category else []
            for index in range(1, len(segments) + 1):
                categories.add(".".join(segments[:index]))
        return categories

    def not_found(self, name, context, /):
        """
        Report `name` as missing; suggestions only come from reachable commands.
        """
        suggestions = difflib.get_close_matches(
            normalize(name), [normalize(command.qualname) for command in self.accessible(context)], 3
        )
        try:
            hint = "did you mean %r? run 'commands' to list the available commands" % suggestions[0]
        except IndexError:
            hint = "run 'commands' to list the available commands"
        trigger(UnknownCommandError(
            "command %r not found" % name,
            title="command not found",
            code=FaultCode.UNKNOWN_COMMAND,
            hint=hint,
            input=name,
            suggestions=suggestions,
        ), context=context)

    def invoke(self, command, context, tokens=(), /, *, strict=False):
        """
        Check access, bind `tokens` and run `command` under `context`.

        Returns True on success and False on any reported rejection. With
        `strict`, an exception raised by the callable propagates instead.
        """
        if not permits(context, command):
            self.not_found(command.qualname, context)
            return False

        try:
            bound = command.bind(tokens)
        except ConsoleException as fault:
            trigger(fault, context=context)
            return False

        logger.debug("invoking %s with %r", command.qualname, bound)
        try:
            command.callback(context, *command.resolve(bound))
        except Exception as exception:
            if strict:
                raise
            logger.debug("command %s raised", command.qualname, exc_info=exception)
            trigger(DelegatedCommandError(
                "command %r raised %s: %s" % (command.qualname, type(exception).__name__, exception),
                title="command error",
                code=FaultCode.DELEGATED_ERROR,
                hint="enable 'sys.throws' to let the error propagate",
                input=command.qualname,
                exception=exception,
            ), context=context)
            return False
        return True

    def __contains__(self, name):
        return isinstance(name, str) and normalize(name) in self._commands

    def __iter__(self):
        return iter(sorted(self._commands.values(), key=lambda command: normalize(command.qualname)))

    def __len__(self):
        return len(self._commands)


__all__ = (
    "Default",
    "Param",
    "Command",
    "CommandRegistry",
)

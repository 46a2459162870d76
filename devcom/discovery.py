"""
Declaration discovery: decorators and module scanning.

Scope
- @command(...) turns a plain function into a command declaration without
  changing the function itself (the declaration is kept in __devcom__).
- convar(...) declares a convar held in a free slot or bound to an attribute.
- scan(pattern) imports every module matched by a dotted glob (see mglob) and
  collects the declarations found in their globals.

Signature rules for @command
- The first parameter is the invocation context. Its annotation, when present,
  must be a Context subclass; the class capability becomes the command's
  minimum capability (override with context=...).
- Remaining positional parameters become Params: the annotation is the semantic
  type (str when missing), a default makes the parameter optional.
- *args becomes the variadic tail (raw strings).
- Keyword-only parameters must have a default; they are never bound from text.

A module-level __category__ string supplies the category of every declaration
in that module that does not name one.

    >>> __category__ = "physics"
    >>> @command(descr="make the player jump")
    ... def jump(context: Context, height: float = 1.0): ...
    >>> gravity = convar("gravity", 9.8, "world gravity")
"""
import importlib
import inspect
import logging

from .commands import *
from .contexts import *
from .convars import *
from .faults import DeclarationError
from .utils import *

logger = logging.getLogger(__name__)


class CommandDeclaration(metaclass=DeclarativeType):
    """
    Plain data describing a command, built from a function signature.
    """

    __introspectable__ = (
        "callback",
        "name",
        "descr",
        "category",
        "params",
        "capability",
        "filter",
    )
    __displayable__ = (
        "name",
        "category",
        "params",
        "capability",
    )

    def __new__(cls, callback, /, name, descr, category, params, capability, filter):
        self = super().__new__(cls)
        self._callback = callback
        self._name = name
        self._descr = descr
        self._category = category
        self._params = tuple(params)
        self._capability = capability
        self._filter = filter
        return self

    def within(self, category, /):
        """
        This declaration with `category` filled in when it names none.
        """
        if self._category is not Unset:
            return self
        return type(self)(
            self._callback,
            name=self._name,
            descr=self._descr,
            category=category,
            params=self._params,
            capability=self._capability,
            filter=self._filter,
        )

    def build(self):
        return Command(
            self._callback,
            name=self._name,
            descr=self._descr,
            category=coalesce(self._category, ""),
            params=self._params,
            capability=self._capability,
            filter=self._filter,
        )


class ConvarDeclaration(metaclass=DeclarativeType):
    """
    Plain data describing a convar; owner/attribute select an AttributeSlot backing.
    """

    __introspectable__ = (
        "name",
        "default",
        "descr",
        "category",
        "type",
        "owner",
        "attribute",
        "module",
    )
    __displayable__ = (
        "name",
        "category",
        "type",
        "default",
    )

    def __new__(cls, name, /, default, descr, category, type, owner, attribute, module=Unset):
        self = super().__new__(cls)
        self._name = name
        self._default = default
        self._descr = descr
        self._category = category
        self._type = type
        self._owner = owner
        self._attribute = attribute
        self._module = module
        return self

    def within(self, category, /):
        if self._category is not Unset:
            return self
        return type(self)(
            self._name,
            default=self._default,
            descr=self._descr,
            category=category,
            type=self._type,
            owner=self._owner,
            attribute=self._attribute,
            module=self._module,
        )

    def build(self):
        backing = Unset
        if self._owner is not Unset:
            backing = AttributeSlot(self._owner, coalesce(self._attribute, self._name))
        return Convar(
            self._name,
            default=self._default,
            descr=self._descr,
            category=coalesce(self._category, ""),
            type=self._type,
            backing=backing,
        )


def _capability(annotation, name):
    if annotation is inspect.Parameter.empty:
        return DEFAULT
    if isinstance(annotation, type) and issubclass(annotation, Context):
        return annotation.capability
    raise DeclarationError(
        f"command {name!r} first parameter must be annotated with a context type, got {annotation!r}"
    )


def _params(parameters, name):
    params = []
    for parameter in parameters:
        type = parameter.annotation if parameter.annotation is not inspect.Parameter.empty else str
        match parameter.kind:
            case inspect.Parameter.POSITIONAL_ONLY | inspect.Parameter.POSITIONAL_OR_KEYWORD:
                default = parameter.default if parameter.default is not inspect.Parameter.empty else Unset
                params.append(Param(parameter.name, type, default))
            case inspect.Parameter.VAR_POSITIONAL:
                params.append(Param(parameter.name, type, variadic=True))
            case inspect.Parameter.KEYWORD_ONLY if parameter.default is inspect.Parameter.empty:
                raise DeclarationError(
                    f"command {name!r} keyword-only parameter {parameter.name!r} needs a default"
                )
    return params


def command(callback=Unset, /, *, name=Unset, descr=Unset, category=Unset, context=Unset, filter=Unset):
    """
    Declare `callback` as a console command (usable bare or with options).

    Options
    - name: command name; defaults to the function name.
    - descr: help text; defaults to the first docstring line.
    - category: overrides the module __category__.
    - context: a Capability or Context subclass overriding the first parameter annotation.
    - filter: ContextFilter applied on top of the capability check.
    """
    @rename("command")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")

        label = coalesce(name, callback.__name__)
        try:
            signature = inspect.signature(callback, eval_str=True)
        except (TypeError, ValueError, NameError) as error:
            raise DeclarationError(f"command {label!r} has an unreadable signature: {error}") from None

        parameters = list(signature.parameters.values())
        if not parameters or parameters[0].kind not in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            raise DeclarationError(f"command {label!r} must take the context as its first parameter")

        if context is Unset:
            capability = _capability(parameters[0].annotation, label)
        elif isinstance(context, Capability):
            capability = context
        else:
            capability = _capability(context, label)

        if descr is Unset and (doc := inspect.getdoc(callback)):
            summary = doc.strip().splitlines()[0]
        else:
            summary = descr

        callback.__devcom__ = CommandDeclaration(
            callback,
            name=label,
            descr=summary,
            category=coalesce(category, getattr(callback, "__globals__", {}).get("__category__", Unset)),
            params=_params(parameters[1:], label),
            capability=capability,
            filter=filter,
        )
        return callback

    return wrapper(callback) if callback is not Unset else wrapper


def convar(name, /, default=Unset, descr=Unset, category=Unset, type=Unset, *, owner=Unset, attribute=Unset):
    """
    Declare a convar. With `owner`, the value lives in `owner.<attribute>`
    (attribute defaults to the convar name) and an omitted default is read from it.

    The declaring module (the caller) supplies the __category__ when none is
    given and owns the declaration during module scanning.
    """
    if not isinstance(name, str):
        raise DeclarationError("convar() name must be a string")
    if attribute is not Unset and owner is Unset:
        raise DeclarationError(f"convar {name!r} names an attribute but no owner")
    frame = inspect.currentframe().f_back
    scope = frame.f_globals if frame is not None else {}
    return ConvarDeclaration(
        name,
        default=default,
        descr=descr,
        category=coalesce(category, scope.get("__category__", Unset)),
        type=type,
        owner=owner,
        attribute=attribute,
        module=scope.get("__name__", Unset),
    )


def declare(object, /):
    """
    The declaration carried by `object` (itself, or a decorated function), or None.
    """
    if isinstance(object, CommandDeclaration | ConvarDeclaration):
        return object
    declaration = getattr(object, "__devcom__", None) if callable(object) else None
    return declaration if isinstance(declaration, CommandDeclaration) else None


def collect(module, /, seen=None):
    """
    Declarations defined in `module`, categorized by its __category__.

    `seen` (a set of ids) skips declarations already collected from another module.
    Declarations only count in the module defining them; imported ones are skipped.
    """
    category = getattr(module, "__category__", "")
    seen = set() if seen is None else seen
    declarations = []
    for _, object in inspect.getmembers(module):
        if (declaration := declare(object)) is None or id(declaration) in seen:
            continue
        # imported declarations belong to their own module
        if isinstance(declaration, CommandDeclaration):
            owner = getattr(declaration.callback, "__module__", module.__name__)
        else:
            owner = coalesce(declaration.module, module.__name__)
        if owner != module.__name__:
            continue
        seen.add(id(declaration))
        declarations.append(declaration.within(category))
    return declarations


def scan(source, /):
    """
    Import every module matched by the glob `source` and collect its declarations.

    Raises TypeError when a matched module cannot be imported.
    """
    if not isinstance(source, str):
        raise TypeError("scan() argument must be a string")

    def imp(module):
        try:
            return importlib.import_module(module)
        except ImportError:
            raise TypeError(f"unable to import module {module!r}") from None

    declarations = []
    seen = set()
    for module in map(imp, mglob(source)):
        found = collect(module, seen)
        logger.debug("scanned %s: %d declaration(s)", module.__name__, len(found))
        declarations.extend(found)
    return declarations


__all__ = (
    "CommandDeclaration",
    "ConvarDeclaration",
    "command",
    "convar",
    "declare",
    "collect",
    "scan",
)

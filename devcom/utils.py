"""
Devcom utilities (internal helpers, carefully exposed)

Scope
- Core building blocks shared by the contexts/convars/commands layers so that
  every declaration object looks and behaves the same way.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks.

- mirror("attr") / DeclarativeType
  • Read-only properties over private backing fields, plus stable __repr__/__rich_repr__
    for every declaration object (params, commands, convars, filters).

- qualify(category, name) / normalize(name)
  • Build qualified names (“category.name”) and their case-insensitive lookup keys.

- mglob(pattern)
  • Module globbing: expands "pkg.**.commands" style patterns into importable module names.

Stability and contract
- Names listed in __all__ are supported; everything else may change without notice.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> qualify("physics", "gravity")
    'physics.gravity'
    >>> qualify("", "gravity")
    'gravity'
"""
import builtins
import functools
import importlib
import operator
import pkgutil
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    This is used when None is a legitimate user value (a convar may hold None,
    a parameter default may be None), but the API needs a way to distinguish
    “not provided” from “provided as None”.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when Unset appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        Ensure a single instance for this sentinel type.
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        """
        Disallow subclassing to preserve sentinel semantics.
        """
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0, "" or [] are preserved as-is; only Unset is replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable   (in place)
    - rename(name)           -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values so callers never share internal state.

    - Sequence (non-string) → tuple of processed elements.
    - Mapping               → new dict with processed values (keys preserved).
    - Set                   → frozenset of processed elements.
    - Anything else         → returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return tuple(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return frozenset(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private backing attribute "_{name}".

    Containers are returned as fresh immutable copies (see _immortalize) so the
    public API cannot be used to mutate a declaration after it was built.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


class DeclarativeType(type):
    """
    Metaclass for declaration objects (parameters, commands, convars, filters).

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens)
      for consistent labels in messages and DeclarationError texts.
    - Expose every name in __introspectable__ as a read-only property via mirror().
    - Provide stable __repr__/__rich_repr__ implementations; __displayable__ (if set)
      narrows which properties are shown, otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        if "__repr__" not in namespace:
            @rename("__repr__")
            def __repr__(self):
                return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
            self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def qualify(category, name, /):
    """
    Join a category and a name into a qualified name.

    An empty category yields the bare name; otherwise "category.name".
    """
    return f"{category}.{name}" if category else name


def normalize(name, /):
    """
    Lookup key for a qualified name: names are matched case-insensitively.
    """
    return name.strip().lower()


@functools.cache
def _resolve_segment(segment):
    """
    translate a single pattern segment into a regex snippet (dots are not matched).
    supported in-segment metacharacters:
      *       → zero or more non-dot chars
      ?       → exactly one non-dot char
      [...]   → character class (one non-dot char)
      [!...]  → negated character class
      \\x      → escape x literally
    """
    length = len(segment)
    index = 0
    parts = []
    while index < length:
        char = segment[index]
        next = index + 1
        if char == '\\' and next < length:
            parts.append(re.escape(segment[next]))
            index += 2
            continue
        if char == '*':
            parts.append(r'[^.]*')
        elif char == '?':
            parts.append(r'[^.]')
        elif char == '[':
            start = index + 1
            negated = ''
            if start < length and segment[start] in ('!', '^'):
                negated = '^'
                start += 1

            pivot = start
            while pivot < length and segment[pivot] != ']':
                if segment[pivot] == '\\' and pivot + 1 < length:
                    pivot += 2
                else:
                    pivot += 1

            if pivot >= length:
                parts.append(r'\[')
            else:
                parts.append(f'[{negated}{segment[start:pivot]}]')
                index = pivot
        else:
            parts.append(re.escape(char))
        index += 1
    return ''.join(parts)


@functools.cache
def _compile_regex(pattern):
    """
    compile a full module-glob pattern into a regex.
    - segments are split by '.'
    - '**' is a whole-segment wildcard for zero or more segments
    - other segments are translated by _resolve_segment()
    """
    parts = []
    for segment in pattern.split('.'):
        if segment == '**':
            parts.append(r'(?:\.[A-Za-z_]\w*)*')
        else:
            parts.append(r'\.' + _resolve_segment(segment))
    if parts and parts[0].startswith(r'\.'):
        body = parts[0][2:] + ''.join(parts[1:])
    else:
        body = ''.join(parts)
    return re.compile(body)


def mglob(source, /):
    """
    expand a dot-separated module glob into fully-qualified module names.

    patterns
    - segments are separated by '.'
    - inside a segment: '*', '?', '[...]', '[!...]' and '\\x' escapes
    - segment '**' means zero or more whole segments (may span dots)

    rules
    - must start with at least one concrete segment (no wildcard-only prefix).
    - matches are case-sensitive and returned in sorted order.
    - if no wildcards are present, returns [source] unchanged.

    examples
    - "game.commands.*"   → direct children of game.commands
    - "game.**.console"   → any console module under game
    """
    if not isinstance(source, str):
        raise TypeError("mglob() argument must be a string")
    elif not (source := source.strip()):
        raise ValueError("mglob() argument must be a non-empty string")

    if re.fullmatch(r"(?!\d)\w+(\.(?!\d)\w+)*", source):
        return [source]

    prefixes = []
    for segment in source.split('.'):
        if set(segment) & set('*?[]!\\') or not re.fullmatch(r"(?!\d)\w+", segment):
            break
        prefixes.append(segment)

    if not prefixes:
        raise ValueError("mglob() pattern must start with a concrete package segment")

    try:
        package = importlib.import_module(prefix := ".".join(prefixes))
    except ImportError:
        return []

    matches = set()

    if (pattern := _compile_regex(source)).fullmatch(prefix):
        matches.add(prefix)

    if hasattr(package, "__path__"):
        for metadata in pkgutil.walk_packages(package.__path__, prefix + '.'):
            if pattern.fullmatch(name := metadata.name):
                matches.add(name)

    return sorted(matches)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
    "DeclarativeType",
    "qualify",
    "normalize",
    "mglob",
)

"""
Line tokenizer and qualified-name resolution.

Text protocol
- A line holds one or more segments separated by "|" or line breaks.
- A segment is "[$]name [arg]...": whitespace separated, "..." quoting keeps
  spaces inside one token, and "" is an empty token.
- "{name}" argument tokens are replaced by the text of the convar they name.

    >>> split_line("cat physics | jump 3")
    ['cat physics', 'jump 3']
    >>> split_tokens('greet "hello world"')
    ['greet', 'hello world']
    >>> resolve("jump", "physics"), resolve("$jump", "physics")
    ('physics.jump', 'jump')
"""
import logging
import re
import shlex

from .faults import *
from .utils import *

logger = logging.getLogger(__name__)

ROOT = "$"

_SEPARATORS = re.compile(r"[|\r\n]")


def split_line(line, /):
    """
    Split a raw line into trimmed, non-empty segments.
    """
    if not isinstance(line, str):
        raise TypeError("split_line() argument must be a string")
    return [segment for segment in map(str.strip, _SEPARATORS.split(line)) if segment]


def _lexer(segment):
    lexer = shlex.shlex(segment, posix=True)
    lexer.quotes = '"'
    lexer.escape = ""
    lexer.commenters = ""
    lexer.whitespace_split = True
    return lexer


def split_tokens(segment, /):
    """
    Split a segment into tokens; an unterminated quote runs to the end of the segment.
    """
    try:
        return list(_lexer(segment))
    except ValueError:
        logger.debug("closing unterminated quote in %r", segment)
        return list(_lexer(segment + '"'))


def resolve(name, category="", /):
    """
    Qualified, lower-cased command name for `name` typed within `category`.

    "$name" is absolute and ignores the category.
    """
    name = normalize(name)
    if name.startswith(ROOT):
        return name[len(ROOT):]
    return qualify(normalize(category), name)


def substitute(tokens, store, context, /):
    """
    Replace every "{name}" token by the textual value of the convar it names.

    Names resolve against the context category ("{$name}" is absolute). An
    unknown convar yields "" and a SubstitutionError is reported to the context.
    """
    result = []
    for token in tokens:
        if len(token) < 2 or not token.startswith("{") or not token.endswith("}"):
            result.append(token)
            continue
        name = token[1:-1].strip()
        if (convar := store.find(name, context.category)) is None:
            trigger(SubstitutionError(
                "convar %r not found for substitution" % name,
                title="substitution failed",
                code=FaultCode.SUBSTITUTION_FAILED,
                hint="run 'convars' to list the available convars",
                input=token,
            ), context=context)
            result.append("")
            continue
        result.append(convar.text)
    return result


__all__ = (
    "ROOT",
    "split_line",
    "split_tokens",
    "resolve",
    "substitute",
)

"""
Devcom engine: one-shot loading and line dispatch.

Lifecycle
- Devcom() builds empty registries; nothing runs before load().
- load(...) registers the system convars, the built-in commands, the given
  declarations and every declaration found by scanning `modules`, then posts
  the banner and applies the config file. Later calls are no-ops.
- dispatch(line, context) runs every segment of a line, left to right; a failing
  segment never stops the following ones.

Dispatch of one segment
1. a lone "$" resets the context category to the root;
2. the name is resolved against the context category ("$name" is absolute);
3. missing and unreachable commands yield the same "not found" report;
4. "{convar}" arguments are substituted;
5. the command is bound and run (see CommandRegistry.invoke).

    >>> console = Devcom()
    >>> console.load(config=False)
    True
    >>> console.dispatch("echo hello | $ | nothing")
    [True, True, False]
"""
import logging
import threading

from . import __version__
from .builtins import builtin_commands, system_convars
from .commands import *
from .config import *
from .contexts import *
from .convars import *
from .discovery import *
from .tokens import *
from .utils import *

logger = logging.getLogger(__name__)

BANNER = "Powered by devcom %s"


class Devcom:
    """
    Command/convar registries plus the dispatcher working on them.

    - sink: callable receiving the engine messages (banner, print()) and the
      messages of contexts created by context()/admin().
    - config: convar file location (see devcom.config.find_config).
    """

    def __init__(self, *, sink=Unset, config=None):
        self.commands = CommandRegistry()
        self.convars = ConvarStore()
        self.sink = coalesce(sink, default_sink)
        self.config = config
        self._loaded = False
        self._lock = threading.Lock()

    @property
    def loaded(self):
        return self._loaded

    def _toggle(self, name):
        return (convar := self.convars.find(name)) is not None and convar.value is True

    @property
    def throws(self):
        return self._toggle("$sys.throws")

    @property
    def echo(self):
        return self._toggle("$sys.echo")

    def context(self, category=""):
        return Context(category, self.sink)

    def admin(self, category=""):
        return AdminContext(category, self.sink)

    def print(self, message, /):
        self.sink(str(message))

    def categories(self):
        return self.commands.categories() | self.convars.categories()

    def register(self, *declarations):
        """
        Register commands, convars or their declarations (decorated functions included).

        Raises DeclarationError on a malformed or duplicate declaration.
        """
        for object in declarations:
            if isinstance(object, Command):
                self.commands.register(object)
            elif isinstance(object, Convar):
                self.convars.register(object)
            elif (declaration := declare(object)) is not None:
                self.register(declaration.build())
            else:
                raise TypeError(f"register() cannot register {object!r}")

    def load(self, *declarations, modules=(), config=True, builtins=True):
        """
        Populate the registries once; returns False when already loaded.

        A failing registration leaves the registries as they were, so the
        call can be repeated with corrected declarations.
        """
        with self._lock:
            if self._loaded:
                logger.debug("devcom already loaded")
                return False

            previous = self.commands, self.convars
            self.commands, self.convars = CommandRegistry(), ConvarStore()
            try:
                self.register(*previous[0], *previous[1])
                self.register(*system_convars())
                if builtins:
                    self.register(*builtin_commands(self))
                self.register(*declarations)
                for pattern in [modules] if isinstance(modules, str) else modules:
                    self.register(*scan(pattern))
            except Exception:
                self.commands, self.convars = previous
                raise
            self._loaded = True

        logger.info("devcom loaded %d command(s) and %d convar(s)", len(self.commands), len(self.convars))
        self.print(BANNER % __version__)
        if config:
            self.load_config()
        return True

    def load_config(self, context=None):
        return load_convars(self.convars, self.config, context if context is not None else self.context())

    def save_config(self):
        return save_convars(self.convars, self.config)

    def dispatch(self, line, context=None):
        """
        Run every segment of `line` under `context` (a default context when None).

        Returns one bool per segment; [] before load() and for empty lines.
        """
        if not self._loaded:
            logger.debug("dispatch before load ignored: %r", line)
            return []

        context = context if context is not None else self.context()
        if self.echo:
            context.post(line)

        return [self._run(segment, context) for segment in split_line(line)]

    def submit(self, line, context=None):
        """
        dispatch() on a background daemon thread; returns the started thread.
        """
        thread = threading.Thread(target=self.dispatch, args=(line, context), name="devcom-dispatch", daemon=True)
        thread.start()
        return thread

    def _run(self, segment, context):
        name, *arguments = split_tokens(segment)
        if name.strip() == ROOT:
            context.category = ""
            return True

        qualname = resolve(name, context.category)
        command = self.commands.find(qualname) if qualname else None
        if command is None or not permits(context, command):
            self.commands.not_found(qualname or name, context)
            return False

        arguments = substitute(arguments, self.convars, context)
        return self.commands.invoke(command, context, arguments, strict=self.throws)

    def __repr__(self):
        return f"{type(self).__name__}(commands={len(self.commands)}, convars={len(self.convars)}, loaded={self._loaded})"


__all__ = (
    "BANNER",
    "Devcom",
)

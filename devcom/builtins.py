"""
Built-in console commands and system convars.

Every engine gets its own set: the commands close over the engine that
registers them, and the system convars live in the "sys" category.

System convars
- sys.throws (bool): let errors raised by commands propagate out of dispatch.
- sys.echo (bool): post every input line to the context before running it.
"""
import logging

from .contexts import *
from .convars import Convar
from .discovery import command
from .faults import *
from .tokens import ROOT, resolve
from .utils import *

logger = logging.getLogger(__name__)

PARENT = ".."


def system_convars():
    return [
        Convar("throws", False, "let errors raised by commands propagate", "sys"),
        Convar("echo", False, "echo every input line before running it", "sys"),
    ]


def builtin_commands(engine, /):
    """
    Declarations of the built-in commands, bound to `engine`.
    """

    @command(name="help")
    def help_(context: Context, name=""):
        """show the usage and description of a command"""
        if not name:
            context.post("usage: help <name> (run 'commands' to list the available commands)")
            return
        qualname = resolve(name, context.category)
        if (found := engine.commands.find(qualname)) is None or not permits(context, found):
            engine.commands.not_found(qualname, context)
            return
        context.post(f"{found.qualname} {found.usage}".rstrip())
        if found.descr:
            context.post(f"    {found.descr}")

    @command(name="commands")
    def commands_(context: Context, prefix=""):
        """list the commands available to this context"""
        prefix = normalize(prefix)
        listed = [
            found for found in engine.commands.accessible(context)
            if normalize(found.qualname).startswith(prefix)
        ]
        if not listed:
            context.post("no commands found")
        for found in listed:
            line = f"{found.qualname} {found.usage}".rstrip()
            context.post(f"{line} : {found.descr}" if found.descr else line)

    @command(name="convars")
    def convars_(context: Context, prefix=""):
        """list the convars and their values"""
        prefix = normalize(prefix)
        listed = [convar for convar in engine.convars if normalize(convar.qualname).startswith(prefix)]
        if not listed:
            context.post("no convars found")
        for convar in listed:
            context.post(f"{convar.qualname} = {convar.text!r}")

    @command
    def cat(context: Context, category=""):
        """print or change the current category ('..' goes up, '$' is the root)"""
        if not category:
            context.post(f"category: {context.category or ROOT}")
            return
        if category == ROOT:
            context.category = ""
            return
        if category == PARENT:
            context.category = context.category.rpartition(".")[0]
            return

        known = engine.categories()
        candidates = [resolve(category, context.category)]
        if not category.startswith(ROOT):
            candidates.append(normalize(category))
        for candidate in candidates:
            if candidate in known:
                context.category = candidate
                return
        trigger(UnknownCategoryError(
            "category %r not found" % category,
            title="category not found",
            code=FaultCode.UNKNOWN_CATEGORY,
            hint="known categories: %s" % (", ".join(sorted(known)) or "(none)"),
            input=category,
        ), context=context)

    @command
    def get(context: Context, name):
        """print the value of a convar"""
        if (convar := engine.convars.find(name, context.category)) is None:
            engine.convars.not_found(name, context)
            return
        context.post(f"{convar.qualname} = {convar.text!r}")

    @command(name="set")
    def set_(context: Context, name, value):
        """set the value of a convar"""
        if engine.convars.set(name, value, context, context.category):
            convar = engine.convars.find(name, context.category)
            context.post(f"{convar.qualname} = {convar.text!r}")

    @command
    def reset(context: Context, name):
        """restore the default value of a convar"""
        if engine.convars.reset(name, context, context.category):
            convar = engine.convars.find(name, context.category)
            context.post(f"{convar.qualname} = {convar.text!r}")

    @command
    def toggle(context: Context, name):
        """flip a boolean convar"""
        if (convar := engine.convars.find(name, context.category)) is None:
            engine.convars.not_found(name, context)
            return
        if not issubclass(convar.type, bool):
            raise TypeError(f"convar {convar.qualname!r} is not a boolean")
        convar.assign(not convar.value)
        context.post(f"{convar.qualname} = {convar.text!r}")

    @command
    def echo(context: Context, *text):
        """print the arguments"""
        context.post(" ".join(text))

    @command
    def saveconfig(context: AdminContext):
        """save every convar to the config file"""
        path = engine.save_config()
        context.post(f"saved {len(engine.convars)} convar(s) to {path}")

    @command
    def loadconfig(context: AdminContext):
        """apply the values stored in the config file"""
        applied = engine.load_config(context)
        context.post(f"loaded {applied} convar(s)")

    return [
        function.__devcom__ for function in (
            help_,
            commands_,
            convars_,
            cat,
            get,
            set_,
            reset,
            toggle,
            echo,
            saveconfig,
            loadconfig,
        )
    ]


__all__ = (
    "system_convars",
    "builtin_commands",
)

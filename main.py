from enum import Enum

from rich.pretty import pprint

from devcom import *

__category__ = "demo"


class Mode(Enum):
    WINDOWED = 0
    FULLSCREEN = 1


class Physics:
    gravity = 9.8


gravity = convar("gravity", owner=Physics, category="physics")
mode = convar("mode", Mode.WINDOWED)


@command
def spawn(context: Context, name, mass: float = 1.0, *tags):
    """spawn an entity"""
    context.post(f"spawned {name} (mass={mass}, tags={list(tags)}, gravity={Physics.gravity})")


@command
def shutdown(context: AdminContext):
    """stop the demo"""
    context.post("shutting down")


if __name__ == '__main__':
    console = Devcom()
    console.load(spawn, shutdown, gravity, mode, config=False)
    pprint(console.commands.find("demo.spawn"))

    context = console.context()
    for line in (
        "cat demo | spawn crate",
        "spawn barrel 2.5 red heavy | shutdown",
        "$set physics.gravity 1.6 | spawn ball {mass}",
        "$ | physics.gravity | demo.spawn probe {$physics.gravity}",
    ):
        console.print(f"{context.prompt}{line}")
        console.dispatch(line, context)

"""Interactive devcom console: python -m devcom [MODULES]..."""
import click
from rich.console import Console

from devcom import __version__
from devcom.contexts import AdminContext, Context
from devcom.engine import Devcom
from devcom.logs import configure_logging


@click.command()
@click.version_option(version=__version__, prog_name="devcom")
@click.argument("modules", nargs=-1)
@click.option("-e", "--execute", "lines", multiple=True, help="Run a line and exit (repeatable).")
@click.option("-c", "--config", "config_path", default=None, help="Override convar file path.")
@click.option("--no-config", is_flag=True, help="Do not load the convar file.")
@click.option("--admin", is_flag=True, help="Run under the admin context.")
@click.option("-v", "--verbose", is_flag=True, help="Debug log output.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
def main(modules, lines, config_path, no_config, admin, verbose, log_json):
    """Load commands and convars from MODULES (dotted globs) and read lines."""
    configure_logging(verbose=verbose, log_json=log_json)

    engine = Devcom(sink=click.echo, config=config_path)
    engine.load(modules=modules, config=not no_config)
    context = (AdminContext if admin else Context)(sink=click.echo)

    if lines:
        for line in lines:
            engine.dispatch(line, context)
        return

    console = Console()
    while True:
        try:
            line = console.input(context.prompt)
        except (EOFError, KeyboardInterrupt):
            click.echo()
            break
        engine.dispatch(line, context)


if __name__ == "__main__":
    main()

# compose_deploy/cli/main.py
"""Main CLI entry point for compose-deploy"""

import sys
import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ..constants import APP_NAME, LOG_FORMAT
from ..api.exceptions import ComposeDeployError
from ..models.config import Settings
from ..services.config_service import ConfigService

# Import all commands
from .commands import config, pack

console = Console(stderr=True)


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Setup logging configuration

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ]
    )

    # Adjust third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class Context:
    """CLI context object carrying the resolved settings"""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def verbose(self) -> bool:
        return self.settings.verbose

    @property
    def debug(self) -> bool:
        return self.settings.debug


@click.group(name=APP_NAME)
@click.option('-v', '--verbose', is_flag=True, default=None, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, default=None, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.pass_context
def cli(ctx, verbose, debug, quiet):
    """compose-deploy - Prepare compose projects for remote deployment

    Loads a compose file, checks it against platform constraints,
    converts it into a deployment request and packages every build
    context into a reproducible archive.
    """
    settings = ConfigService().load(verbose=verbose, debug=debug)

    # Setup logging
    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        setup_logging(verbose=settings.verbose, debug=settings.debug)

    ctx.obj = Context(settings)


# Register commands
cli.add_command(config.config)
cli.add_command(pack.pack)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts
    - Tool errors with their error code
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME, standalone_mode=False)

    except click.exceptions.Abort:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)

    except ComposeDeployError as e:
        code = f" [{e.error_code}]" if e.error_code else ""
        console.print(f"[red]Error{escape(code)}: {escape(str(e))}[/red]")
        sys.exit(1)

    except Exception as e:
        console.print(f"[red]Unexpected error: {escape(str(e))}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()

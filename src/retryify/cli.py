"""CLI interface for retryify"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

import click
import yaml

from retryify.domain.errors import CommandFailedError, ConfigurationError
from retryify.infrastructure.config.config_manager import ConfigManager

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    logging.getLogger("retryify").setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


async def run_command(command: Sequence[str]) -> int:
    """Run ``command`` once as a subprocess

    Raises:
        CommandFailedError: If the command exits with a nonzero status
        OSError: If the command cannot be started
    """
    logger.debug(f"Running: {' '.join(command)}")
    process = await asyncio.create_subprocess_exec(*command)
    returncode = await process.wait()
    if returncode != 0:
        raise CommandFailedError(list(command), returncode)
    return returncode


def command_runner(command: Sequence[str]):
    """Zero-argument coroutine function running ``command``, named after its program"""

    async def _run() -> int:
        return await run_command(command)

    _run.__name__ = Path(command[0]).name or "command"
    return _run


def exit_code_predicate(exit_codes: Tuple[int, ...]):
    """Retry failed commands, restricted to ``exit_codes`` when given"""

    def _should_retry(exception: BaseException) -> bool:
        if not isinstance(exception, CommandFailedError):
            return False
        return not exit_codes or exception.returncode in exit_codes

    return _should_retry


def _echo_retry(message: str) -> None:
    click.echo(message, err=True)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .retryify.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """retryify - retry functions and commands with exponential backoff"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command(context_settings={"ignore_unknown_options": True})
@click.option("--retries", type=int, help="Retries after the first attempt. Overrides config.")
@click.option("--timeout", type=float, help="Wait before the first retry, in ms. Overrides config.")
@click.option("--factor", type=float, help="Backoff growth factor. Overrides config.")
@click.option("--initial-delay", type=float, help="Wait before the first attempt, in ms. Overrides config.")
@click.option(
    "--retry-on-exit-code",
    "exit_codes",
    type=int,
    multiple=True,
    help="Only retry when the command exits with this status (repeatable).",
)
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def run(
    ctx,
    retries: Optional[int],
    timeout: Optional[float],
    factor: Optional[float],
    initial_delay: Optional[float],
    exit_codes: Tuple[int, ...],
    command: Tuple[str, ...],
):
    """Run a command, retrying it while it exits with a nonzero status.

    COMMAND: The command and its arguments (use -- before it)
    """
    verbose = ctx.obj.get("verbose", False)

    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
        retryer = config_manager.retryer(
            retries=retries,
            timeout=timeout,
            factor=factor,
            initial_delay=initial_delay,
            should_retry=exit_code_predicate(exit_codes),
            log=_echo_retry,
        )
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)

    run_with_retry = retryer(command_runner(command))
    logger.info(f"Running with up to {retryer.options.retries} retries: {' '.join(command)}")

    try:
        asyncio.run(run_with_retry())
    except CommandFailedError as e:
        logger.error(str(e))
        ctx.exit(e.returncode)
    except OSError as e:
        _die(f"Cannot run command: {e}", verbose=verbose, exc=e)


@cli.command()
@click.pass_context
def config(ctx):
    """Print the effective retry options as YAML."""
    verbose = ctx.obj.get("verbose", False)
    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)
    click.echo(yaml.safe_dump(config_manager.get_options().serializable(), sort_keys=False), nl=False)


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()

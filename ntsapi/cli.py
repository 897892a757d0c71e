"""Command-line interface for the NTS provisioning API."""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ntsapi import __version__
from ntsapi.config import SessionConfig
from ntsapi.exceptions import ConnectionError, InvalidArgumentError, NTSAPIError
from ntsapi.models.records import CommandResult, ConnectionInfo, NumberStatus
from ntsapi.protocol.constants import ProtocolConstants
from ntsapi.session import Session, SessionEvent
from ntsapi.validators import is_allocatable_number, is_telephone_number

console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")


def setup_logging(level: str = "WARNING") -> None:
    """Configure logging to the console."""
    log_level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@dataclass
class CliOptions:
    """Settings shared by all commands."""

    config: SessionConfig = field(default_factory=SessionConfig)
    user: str | None = None
    password: str | None = None
    session_factory: Callable[[SessionConfig], Session] = Session


# ===== Rendering =====


def render_allocate(result: CommandResult[str]) -> bool:
    if not result.success:
        console.print(f"[red]{escape(result.message)}[/red]")
        return False
    console.print(f"[green]Success[/green] - {escape(result.value or '')} allocated")
    console.print("(Remember to activate your new number!)")
    return True


def render_change(result: CommandResult[str], number: str, action: str) -> bool:
    if not result.success:
        console.print(f"[red]{escape(result.message)}[/red]")
        return False
    console.print(f"[green]Success[/green] - {escape(number)} {action}")
    return True


def render_message(result: CommandResult[str]) -> bool:
    style = "green" if result.success else "red"
    console.print(f"[{style}]{escape(result.message or ('OK' if result.success else 'Failed'))}[/{style}]")
    return result.success


def render_status(result: CommandResult[NumberStatus]) -> bool:
    if not result.success or result.value is None:
        console.print(f"[red]{escape(result.message)}[/red]")
        return False

    status = result.value
    table = Table(title=f"Status of {status.number}")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Activated", "[green]Yes[/green]" if status.activated else "[yellow]No[/yellow]")
    table.add_row("Expires", escape(str(status.expiry or status.expiry_raw)))
    for priority, destination in status.active_destinations:
        table.add_row(f"Destination {priority}", escape(str(destination)))

    console.print(table)
    return True


def render_available(result: CommandResult[list[str]]) -> bool:
    if not result.success:
        console.print(f"[red]{escape(result.message)}[/red]")
        return False
    for number in result.value or []:
        console.print(number, markup=False)
    return True


def render_connection(info: ConnectionInfo) -> None:
    table = Table(title="Connection")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Connected", "Yes" if info.connected else "No")
    table.add_row("Encrypted", "Yes" if info.encrypted else "No")
    if info.local:
        table.add_row("Local", str(info.local))
    if info.remote:
        table.add_row("Remote", str(info.remote))
    if info.encrypted and info.connected:
        table.add_row("Authorized", "Yes" if info.authorized else escape(f"No ({info.authorization_error})"))
        table.add_row("Protocol", info.protocol or "-")
        table.add_row("Cipher", info.cipher.name if info.cipher else "-")
        if info.certificate:
            subject = dict(pair[0] for pair in info.certificate.get("subject", ()) if pair)
            table.add_row("Certificate", escape(subject.get("commonName", "-")))

    console.print(table)


# ===== Session plumbing =====


async def _login(session: Session, user: str, password: str) -> bool:
    result = await session.auth(user, password)
    if result.success:
        console.print("Login successful")
    else:
        console.print("[red]Login failed - check username and password[/red]")
    return result.success


async def _with_session(options: CliOptions, operation: Callable[[Session], Awaitable[T]]) -> T:
    session = options.session_factory(options.config)
    err_console.print(f"[dim]Connecting to {options.config.target}...[/dim]")
    await session.connect()
    try:
        if options.user and not await _login(session, options.user, options.password or ""):
            raise click.ClickException("Authentication failed")
        return await operation(session)
    finally:
        await session.disconnect()


def _run(options: CliOptions, operation: Callable[[Session], Awaitable[T]]) -> T:
    if options.user and options.password is None:
        options.password = click.prompt("Password", hide_input=True)
    try:
        return asyncio.run(_with_session(options, operation))
    except NTSAPIError as e:
        raise click.ClickException(str(e)) from e


def _finish(ok: bool) -> None:
    if not ok:
        click.get_current_context().exit(1)


def _validate_number(ctx: click.Context, param: click.Parameter, value: str) -> str:
    if not is_telephone_number(value):
        raise click.BadParameter("Invalid number format.")
    return value


def _validate_allocatable(ctx: click.Context, param: click.Parameter, value: str) -> str:
    if not is_allocatable_number(value):
        raise click.BadParameter("Invalid number format.")
    return value


# ===== Commands =====


@click.group()
@click.option("--host", envvar="NTSAPI_HOST", help="Override the API host name")
@click.option(
    "--port",
    type=int,
    default=ProtocolConstants.DEFAULT_PORT,
    envvar="NTSAPI_PORT",
    show_default=True,
    help="API port",
)
@click.option("--secure/--insecure", default=True, help="Use the TLS endpoint (default) or plain TCP")
@click.option("--no-verify", is_flag=True, help="Do not verify the server certificate")
@click.option("--user", "-u", envvar="NTSAPI_USER", help="Authenticate as this user")
@click.option("--password", "-p", envvar="NTSAPI_PASSWORD", help="Password (prompted if omitted)")
@click.option("--log-level", default="WARNING", envvar="NTSAPI_LOG_LEVEL", help="Logging level")
@click.version_option(__version__, prog_name="ntsapi")
@click.pass_context
def cli(ctx, host, port, secure, no_verify, user, password, log_level):
    """NTS API client - provision telephone numbers."""
    setup_logging(log_level)
    options = ctx.ensure_object(CliOptions)
    options.config = SessionConfig(host=host, port=port, secure=secure, verify=not no_verify)
    options.user = user
    options.password = password


@cli.command()
@click.argument("number", callback=_validate_allocatable)
@click.pass_obj
def allocate(options, number):
    """Allocate a number. Use _ for any digit."""
    _finish(render_allocate(_run(options, lambda s: s.allocate(number))))


@cli.command()
@click.argument("number", callback=_validate_number)
@click.pass_obj
def activate(options, number):
    """Activate a number."""
    _finish(render_change(_run(options, lambda s: s.activate(number)), number, "activated"))


@cli.command()
@click.argument("number", callback=_validate_number)
@click.pass_obj
def deactivate(options, number):
    """Deactivate a number."""
    _finish(render_change(_run(options, lambda s: s.deactivate(number)), number, "deactivated"))


@cli.command()
@click.argument("number", callback=_validate_number)
@click.pass_obj
def reactivate(options, number):
    """Reactivate a deactivated number."""
    _finish(render_change(_run(options, lambda s: s.reactivate(number)), number, "reactivated"))


@cli.command()
@click.argument("number", callback=_validate_number)
@click.argument("priority", type=click.IntRange(min=1))
@click.argument("target")
@click.pass_obj
def destination(options, number, priority, target):
    """Set the destination of a number.

    TARGET is a telephone number or e.g. S:user:pass@sip.example.com
    """
    _finish(render_message(_run(options, lambda s: s.destination(number, priority, target))))


@cli.command()
@click.argument("number", callback=_validate_number)
@click.pass_obj
def status(options, number):
    """Get information about a number."""
    _finish(render_status(_run(options, lambda s: s.status(number))))


@cli.command()
@click.argument("number_range", metavar="RANGE", callback=_validate_allocatable)
@click.argument("size", type=click.IntRange(min=1))
@click.pass_obj
def available(options, number_range, size):
    """List available numbers in a range."""
    _finish(render_available(_run(options, lambda s: s.available_numbers(number_range, size))))


@cli.command()
@click.pass_obj
def connection(options):
    """Show information about the connection."""

    async def snapshot(session: Session) -> ConnectionInfo:
        return session.connection_info()

    render_connection(_run(options, snapshot))


# ===== Interactive shell =====


@dataclass(frozen=True)
class ShellCommand:
    usage: str
    help: str
    min_args: int
    max_args: int
    handler: Callable[[Session, list[str]], Awaitable[None]]


async def _shell_allocate(session: Session, args: list[str]) -> None:
    render_allocate(await session.allocate(args[0]))


async def _shell_activate(session: Session, args: list[str]) -> None:
    render_change(await session.activate(args[0]), args[0], "activated")


async def _shell_deactivate(session: Session, args: list[str]) -> None:
    render_change(await session.deactivate(args[0]), args[0], "deactivated")


async def _shell_reactivate(session: Session, args: list[str]) -> None:
    render_change(await session.reactivate(args[0]), args[0], "reactivated")


async def _shell_destination(session: Session, args: list[str]) -> None:
    render_message(await session.destination(args[0], args[1], args[2]))


async def _shell_status(session: Session, args: list[str]) -> None:
    render_status(await session.status(args[0]))


async def _shell_available(session: Session, args: list[str]) -> None:
    render_available(await session.available_numbers(args[0], args[1]))


async def _shell_connection(session: Session, args: list[str]) -> None:
    render_connection(session.connection_info())


SHELL_COMMANDS: dict[str, ShellCommand] = {
    "allocate": ShellCommand("allocate <number>", "Allocate a number.", 1, 1, _shell_allocate),
    "activate": ShellCommand("activate <number>", "Activate a number.", 1, 1, _shell_activate),
    "deactivate": ShellCommand("deactivate <number>", "Deactivate a number.", 1, 1, _shell_deactivate),
    "reactivate": ShellCommand("reactivate <number>", "Reactivate a number.", 1, 1, _shell_reactivate),
    "destination": ShellCommand(
        "destination <number> <priority> <destination>",
        "Set the destination of a number.",
        3,
        3,
        _shell_destination,
    ),
    "status": ShellCommand("status <number>", "Get information about a number.", 1, 1, _shell_status),
    "available": ShellCommand(
        "available <range> <size>", "List available numbers in a range.", 2, 2, _shell_available
    ),
    "connection": ShellCommand(
        "connection", "Show information about the current connection.", 0, 0, _shell_connection
    ),
}


def _print_shell_help() -> None:
    console.print("auth <user> [password]  Authenticate as a user.", markup=False)
    for command in SHELL_COMMANDS.values():
        console.print(f"{command.usage}  {command.help}", markup=False)
    console.print("exit  Quit the shell.", markup=False)


async def _prompt(text: str, **kwargs) -> str:
    return await asyncio.to_thread(click.prompt, text, **kwargs)


async def _shell(options: CliOptions) -> None:
    session = options.session_factory(options.config)
    console.print("Connecting to Magrathea...")
    await session.connect()

    lost = asyncio.Event()
    session.on(SessionEvent.CLOSED, lost.set)

    user = "anonymous"
    if options.user and await _login(session, options.user, options.password or ""):
        user = options.user

    try:
        while not lost.is_set():
            try:
                line = await _prompt(f"{user}@api$", prompt_suffix=" ", default="", show_default=False)
            except click.Abort:
                break

            try:
                parts = shlex.split(line)
            except ValueError as e:
                console.print(f"[red]{escape(str(e))}[/red]")
                continue
            if not parts:
                continue

            name, args = parts[0], parts[1:]
            if name in ("exit", "quit"):
                break
            if name == "help":
                _print_shell_help()
                continue

            try:
                if name == "auth":
                    if not 1 <= len(args) <= 2:
                        console.print("Usage: auth <user> [password]", markup=False)
                        continue
                    password = args[1] if len(args) > 1 else await _prompt("Password", hide_input=True)
                    if await _login(session, args[0], password):
                        user = args[0]
                    continue

                command = SHELL_COMMANDS.get(name)
                if command is None:
                    console.print(f"Unknown command: {name}. Type 'help' for a list.", markup=False)
                    continue
                if not command.min_args <= len(args) <= command.max_args:
                    console.print(f"Usage: {command.usage}", markup=False)
                    continue
                await command.handler(session, args)

            except InvalidArgumentError as e:
                console.print(f"[red]{escape(str(e))}[/red]")
            except ConnectionError:
                lost.set()

        if lost.is_set():
            console.print("Connection to server lost")
    finally:
        await session.disconnect()


@cli.command()
@click.pass_obj
def shell(options):
    """Start an interactive shell."""
    try:
        asyncio.run(_shell(options))
    except NTSAPIError as e:
        raise click.ClickException(str(e)) from e


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()

"""Chat command - interactive split chat/task session.

The left side of the original split UI becomes the prompt; the right panel
is printed after every turn. A pending auto-open counts down live and
Ctrl-C during the countdown cancels it.
"""

import asyncio
import logging
import time

import click
from rich.console import Console
from rich.live import Live

from splitui.dispatch.normalizer import CoercionError
from splitui.foundation.config import PROVIDERS
from splitui.foundation.errors import SplitUIError
from splitui.session.session import Session, TurnResult
from splitui.surface.views import ActionResult

logger = logging.getLogger(__name__)

console = Console()

HELP_TEXT = """\
[bold]Commands[/bold]
  /open           open the detected capability now
  /cancel         stop the auto-open countdown
  /set key=value  edit a field of the open capability
  /done           complete the open capability
  /pick <n>       pick row n (complete that task, or toggle it in a list)
  /dismiss        clear the current activation
  /panel          show the panel again
  /quit           exit"""


@click.command()
@click.option(
    "--provider", "-p", type=click.Choice(PROVIDERS), default=None, help="Override model provider"
)
@click.option("--model", "-m", "model_name", default=None, help="Override model name")
@click.pass_context
def chat(ctx: click.Context, provider: str | None, model_name: str | None) -> None:
    """Start an interactive chat session.

    Type a request ("add a task to buy milk by Friday"); the detected
    capability appears in the panel and opens after a short countdown.

    \b
    Examples:
        splitui chat
        splitui chat --provider mock
        splitui chat -p http
    """
    from splitui.cli.errors import handle_error

    config = ctx.obj
    try:
        session = Session.from_config(
            config, provider=provider, model_name=model_name, auto_tick=False
        )
    except SplitUIError as e:
        handle_error(e)

    console.print("[bold cyan]SplitUI[/bold cyan] [dim]/help for commands, /quit to exit[/dim]")
    console.print(session.render())

    with asyncio.Runner() as runner:
        try:
            _loop(session, runner)
        finally:
            runner.run(session.aclose())


def _loop(session: Session, runner: asyncio.Runner) -> None:
    while True:
        try:
            line = console.input("\n[bold cyan]You:[/bold cyan] ").strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            return

        if not line:
            continue

        if line.startswith("/"):
            if not _handle_command(session, line):
                return
            continue

        try:
            result = runner.run(session.submit(line))
        except KeyboardInterrupt:
            console.print("[yellow]Cancelled.[/yellow]")
            continue

        _render_turn(result)
        _run_countdown(session)
        console.print(session.render())


def _render_turn(result: TurnResult) -> None:
    if result.reply is None:
        return
    style = "red" if result.error else "green"
    console.print(f"[bold {style}]Assistant:[/bold {style}] {result.reply}")
    if result.error:
        logger.debug("Turn failed: %r", result.error)


def _run_countdown(session: Session) -> None:
    """Tick the pending countdown with a live panel; Ctrl-C cancels it."""
    controller = session.controller
    if not controller.has_pending_countdown:
        return
    try:
        with Live(session.render(), console=console, refresh_per_second=8, transient=True) as live:
            while controller.has_pending_countdown:
                time.sleep(controller.tick_seconds)
                controller.tick()
                live.update(session.render())
    except KeyboardInterrupt:
        session.cancel_countdown()
        console.print("[dim]Auto-open cancelled.[/dim]")


def _handle_command(session: Session, line: str) -> bool:
    """Run a slash command. Returns False when the session should end."""
    command, _, arg = line.partition(" ")
    match command.lower():
        case "/quit" | "/exit" | "/q":
            return False
        case "/help":
            console.print(HELP_TEXT)
        case "/open":
            if session.promote_now():
                console.print(session.render())
            else:
                console.print("[dim]Nothing to open.[/dim]")
        case "/cancel":
            if session.cancel_countdown():
                console.print("[dim]Auto-open cancelled.[/dim]")
            else:
                console.print("[dim]No countdown running.[/dim]")
        case "/set":
            _set_field(session, arg)
        case "/done":
            _report(session, session.complete())
        case "/pick":
            _pick(session, arg)
        case "/dismiss":
            if session.dismiss():
                console.print(session.render())
            else:
                console.print("[dim]Nothing to dismiss.[/dim]")
        case "/panel":
            console.print(session.render())
        case _:
            console.print(f"[red]Unknown command:[/red] {command} [dim](/help)[/dim]")
    return True


def _report(session: Session, result: ActionResult) -> None:
    style = "green" if result.success else "red"
    console.print(f"[{style}]{result.message}[/{style}]")
    if result.success:
        console.print(session.render())


def _pick(session: Session, arg: str) -> None:
    try:
        choice = int(arg.strip())
    except ValueError:
        console.print("[dim]Usage: /pick <number>[/dim]")
        return
    _report(session, session.choose(choice))


def _set_field(session: Session, arg: str) -> None:
    name, sep, value = arg.partition("=")
    if not sep or not name.strip():
        console.print("[dim]Usage: /set key=value[/dim]")
        return
    try:
        session.set_field(name.strip(), value.strip())
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        return
    except CoercionError as e:
        console.print(f"[red]Invalid value for {name.strip()}:[/red] {e}")
        return
    console.print(session.render())

"""Main CLI entry point.

    splitui chat                 # interactive session
    splitui serve                # proxy server for browser/http clients
    splitui tools                # compiled tool list as JSON
"""

import click
from rich.console import Console
from rich.table import Table

from splitui import __version__
from splitui.cli.chat import chat
from splitui.foundation.config import PROVIDERS, SplitUIConfig, load_config
from splitui.foundation.errors import SplitUIError
from splitui.foundation.logging import configure_logging

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="splitui")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None,
    help="Extra config file, merged over .splitui/config.yaml",
)
@click.pass_context
def main(ctx: click.Context, debug: bool, config_path: str | None) -> None:
    """SplitUI - chat on the left, the detected task on the right."""
    from splitui.cli.errors import handle_error

    try:
        config = load_config(config_path)
    except SplitUIError as e:
        handle_error(e)
    configure_logging(debug=debug, config_debug=config.debug)
    ctx.obj = config


main.add_command(chat)


@main.command()
@click.pass_obj
def tools(config: SplitUIConfig) -> None:
    """Print the compiled tool list as JSON."""
    from splitui.capabilities.catalog import default_registry
    from splitui.capabilities.compiler import dump_tools

    click.echo(dump_tools(default_registry().compile_tools(), indent=2))


@main.command()
def capabilities() -> None:
    """List registered capabilities and their fields."""
    from splitui.capabilities.catalog import default_registry

    table = Table(title="Capabilities")
    table.add_column("Identifier", style="cyan")
    table.add_column("Fields")
    table.add_column("Required", style="yellow")
    table.add_column("Description", style="dim")

    for descriptor in default_registry().list_all():
        table.add_row(
            descriptor.identifier,
            ", ".join(descriptor.field_names) or "-",
            ", ".join(descriptor.required) or "-",
            descriptor.description,
        )
    console.print(table)


@main.command()
@click.option("--all", "show_all", is_flag=True, help="Include completed tasks")
@click.option(
    "--toggle",
    "toggle",
    type=click.IntRange(min=1),
    default=None,
    metavar="N",
    help="Flip task N of the listing between done and pending",
)
@click.pass_obj
def tasks(config: SplitUIConfig, show_all: bool, toggle: int | None) -> None:
    """Show stored tasks.

    \b
    Examples:
        splitui tasks
        splitui tasks --all --toggle 2
    """
    from splitui.store.native import open_stores

    stores = open_stores(config.store.data_dir)
    rows = [t for t in stores.list_tasks() if show_all or not t.completed]
    if toggle is not None:
        if toggle > len(rows):
            raise click.BadParameter(f"there is no task {toggle}", param_hint="--toggle")
        toggled = stores.toggle_task(rows[toggle - 1].id)
        state = "done" if toggled.completed else "pending"
        console.print(f'[green]Task "{toggled.title}" is now {state}.[/green]')
        rows = [t for t in stores.list_tasks() if show_all or not t.completed]
    if not rows:
        console.print("[dim]No tasks.[/dim]")
        return

    table = Table(title="Tasks")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Due")
    table.add_column("Priority")
    table.add_column("Done")
    for number, task in enumerate(rows, 1):
        table.add_row(
            str(number),
            task.title,
            task.due_date or "-",
            task.priority,
            "✓" if task.completed else "",
        )
    console.print(table)


@main.command()
@click.option("--host", default=None, help="Host to bind to (default from config)")
@click.option("--port", type=int, default=None, help="Port to listen on (default from config)")
@click.option(
    "--provider", "-p", type=click.Choice(PROVIDERS), default=None, help="Override model provider"
)
@click.pass_obj
def serve(config: SplitUIConfig, host: str | None, port: int | None, provider: str | None) -> None:
    """Start the proxy server.

    Provider credentials stay on this process; clients use the `http`
    provider or the /api endpoints directly.

    \b
    Examples:
        splitui serve
        splitui serve --port 3001 --provider bedrock
    """
    import uvicorn

    from splitui.cli.errors import handle_error
    from splitui.models.factory import create_model, resolve_provider
    from splitui.server.app import create_app

    try:
        provider = resolve_provider(provider or config.model.provider)
        if provider == "http":
            raise click.BadParameter("the proxy cannot forward to itself", param_hint="--provider")
        model = create_model(config.model, provider=provider)
    except SplitUIError as e:
        handle_error(e)

    host = host or config.server.host
    port = port or config.server.port
    app = create_app(model, provider=provider)

    console.print()
    console.print("[bold green]SplitUI proxy[/bold green]")
    console.print(f"   URL: http://{host}:{port}")
    console.print(f"   Model: {model.model_id}")
    console.print()
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    uvicorn.run(app, host=host, port=port, log_level="info")

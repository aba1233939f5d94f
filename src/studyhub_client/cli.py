"""Command line interface for the StudyHub client."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .api_clients.base_client import StudyHubAPIClient
from .api_clients.factories import ClientFactory
from .api_clients.models import ApiError, ApiResult, SearchFilters
from .api_clients.search import format_file_size, parse_search_hits
from .config import ClientConfig, load_config

logger = logging.getLogger(__name__)

console = Console()


def _run(
    ctx: click.Context, operation: Callable[[StudyHubAPIClient], Awaitable[ApiResult]]
) -> ApiResult:
    """Run ``operation`` against a fresh client and close it afterwards."""
    config: ClientConfig = ctx.obj["config"]

    async def runner() -> ApiResult:
        async with ClientFactory.create_api_client(config) as client:
            return await operation(client)

    return asyncio.run(runner())


def _fail(error: ApiError) -> None:
    console.print(f"[red]❌ {escape(str(error))}[/red]")
    if error.code:
        console.print(f"[dim]Error code: {escape(error.code)}[/dim]")
    sys.exit(1)


def _parse_fields(fields: Tuple[str, ...]) -> dict:
    parsed = {}
    for item in fields:
        if "=" not in item:
            raise click.BadParameter(f"Expected KEY=VALUE, got: {item}", param_hint="--field")
        key, value = item.split("=", 1)
        parsed[key] = value
    return parsed


@click.group()
@click.option("--config", "-c", type=click.Path(exists=False), help="Config file path")
@click.option("--base-url", help="Override the backend URL from the config")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="studyhub")
@click.pass_context
def cli(ctx, config: Optional[str], base_url: Optional[str], verbose: bool):
    """Command line access to a StudyHub backend.

    \b
    EXAMPLES:
      studyhub login --email me@example.com
      studyhub search "linear algebra" --type documents
      studyhub upload /api/v1/documents notes.pdf --field subject_id=42
    """
    ctx.ensure_object(dict)

    try:
        client_config = load_config(Path(config) if config else None)
        if base_url:
            client_config = ClientConfig(
                **{**client_config.model_dump(), "base_url": base_url}
            )
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]❌ Invalid configuration: {escape(str(e))}[/red]")
        sys.exit(1)

    level = logging.DEBUG if verbose else getattr(logging, client_config.log_level.upper())
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
    logger.debug(f"Using backend {client_config.base_url}")

    ctx.obj["config"] = client_config


@cli.command()
@click.option("--email", prompt=True, help="Account email")
@click.option("--password", prompt=True, hide_input=True, help="Account password")
@click.pass_context
def login(ctx, email: str, password: str):
    """Log in and remember the access token."""
    result = _run(
        ctx,
        lambda client: ClientFactory.create_auth_session(client).login(email, password),
    )
    if result.error is not None:
        _fail(result.error)
    console.print(f"[green]✅ Logged in as {escape(result.data.user.email)}[/green]")


@cli.command()
@click.option("--email", prompt=True, help="Account email")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Account password",
)
@click.pass_context
def register(ctx, email: str, password: str):
    """Create an account and log in."""
    result = _run(
        ctx,
        lambda client: ClientFactory.create_auth_session(client).register(
            email, password
        ),
    )
    if result.error is not None:
        _fail(result.error)
    console.print(f"[green]✅ Registered {escape(result.data.user.email)}[/green]")


@cli.command()
@click.pass_context
def logout(ctx):
    """Forget the stored access token."""
    config: ClientConfig = ctx.obj["config"]
    client = ClientFactory.create_api_client(config)
    ClientFactory.create_auth_session(client).logout()
    console.print("[green]✅ Logged out[/green]")


@cli.command()
@click.pass_context
def whoami(ctx):
    """Show the account behind the stored token."""
    result = _run(ctx, lambda client: ClientFactory.create_auth_session(client).me())
    if result.error is not None:
        _fail(result.error)

    user = result.data
    table = Table(show_header=False)
    table.add_row("Email", escape(user.email))
    table.add_row("Role", user.role)
    table.add_row("ID", escape(user.id))
    console.print(table)


@cli.command()
@click.argument("query", default="")
@click.option("--subject", "subject_id", help="Restrict to one subject ID")
@click.option(
    "--type",
    "result_type",
    type=click.Choice(["all", "documents", "subjects"]),
    default="all",
    help="Kind of results (default: all)",
)
@click.option("--mime-type", help="Restrict documents to a MIME type")
@click.option("--exact", is_flag=True, help="Exact phrase matching")
@click.option("--category", help="Restrict to a category")
@click.pass_context
def search(
    ctx,
    query: str,
    subject_id: Optional[str],
    result_type: str,
    mime_type: Optional[str],
    exact: bool,
    category: Optional[str],
):
    """Search documents and subjects (empty QUERY browses)."""
    filters = SearchFilters(
        subject_id=subject_id,
        type=result_type,
        mime_type=mime_type,
        exact=exact,
        category=category,
    )
    result = _run(ctx, lambda client: client.search(query, filters))
    if result.error is not None:
        _fail(result.error)

    hits = parse_search_hits(result.data)
    if not hits:
        console.print("[yellow]No results[/yellow]")
        return

    table = Table(title=f"Search results ({len(hits)})")
    table.add_column("Type", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Description")
    for hit in hits:
        table.add_row(
            hit.type,
            escape(hit.title),
            format_file_size(hit.file_size),
            escape(hit.highlight or hit.description),
        )
    console.print(table)


@cli.command()
@click.argument("endpoint")
@click.pass_context
def get(ctx, endpoint: str):
    """GET an API endpoint and print the JSON response."""
    result = _run(ctx, lambda client: client.get(endpoint))
    if result.error is not None:
        _fail(result.error)
    console.print_json(data=result.data)


@cli.command()
@click.argument("endpoint")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--field", "fields", multiple=True, help="Extra form field as KEY=VALUE"
)
@click.pass_context
def upload(ctx, endpoint: str, file: str, fields: Tuple[str, ...]):
    """Upload FILE to ENDPOINT as multipart form data."""
    form_fields = _parse_fields(fields)
    result: ApiResult[Any] = _run(
        ctx, lambda client: client.upload(endpoint, Path(file), form_fields)
    )
    if result.error is not None:
        _fail(result.error)
    console.print(f"[green]✅ Uploaded {escape(Path(file).name)}[/green]")
    console.print_json(data=result.data)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()

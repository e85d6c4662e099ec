"""connect / disconnect / status — manage the cached GitHub token."""

from __future__ import annotations

import click
from rich.console import Console

from prscribe_core.errors import PRScribeError
from prscribe_core.gh.client import authenticate

console = Console()


@click.command("connect")
@click.option(
    "--token",
    default=None,
    help="GitHub token to cache. Defaults to GITHUB_TOKEN or the gh CLI session.",
)
@click.pass_context
def connect_cmd(ctx, token: str | None):
    """Cache a GitHub token for this user and verify it against the API.

    \b
    Token sources, first match wins:
      --token              explicit value
      GITHUB_TOKEN         environment variable
      gh auth token        GitHub CLI session
    """
    from prscribe_cli.cli import build_token_cache

    config = ctx.obj["config"]
    token_cache = build_token_cache(ctx.obj["store"], config, provider_token=token)

    if not token_cache.connect():
        raise click.UsageError(
            "No GitHub token found. Pass --token, set GITHUB_TOKEN, or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )

    try:
        _, login = authenticate(token_cache, config)
    except PRScribeError as e:
        raise click.ClickException(str(e)) from e

    console.print(f"[green]Connected GitHub account [bold]{login}[/bold].[/green]")


@click.command("disconnect")
@click.pass_context
def disconnect_cmd(ctx):
    """Forget the cached GitHub token for this user."""
    try:
        ctx.obj["token_cache"].invalidate()
    except PRScribeError as e:
        raise click.ClickException(str(e)) from e
    console.print("[green]Cached GitHub token removed.[/green]")
    if ctx.obj["config"].get("github_token"):
        console.print("[dim]A session token (GITHUB_TOKEN or gh CLI) is still available and will be used.[/dim]")


@click.command("status")
@click.pass_context
def status_cmd(ctx):
    """Report whether a usable GitHub token is available."""
    token_cache = ctx.obj["token_cache"]
    if token_cache.has_connection():
        console.print("[green]GitHub connected.[/green]")
        return
    try:
        token_cache.retrieve()
    except PRScribeError as e:
        console.print(f"[yellow]{e}[/yellow]")
    ctx.exit(1)

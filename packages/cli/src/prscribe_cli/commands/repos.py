"""repos command — list repositories you own or collaborate on."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prscribe_core.errors import PRScribeError
from prscribe_core.gh.client import list_user_repos

console = Console()


@click.command("repos")
@click.option("--limit", default=20, show_default=True, help="Maximum number of repositories to show.")
@click.pass_context
def repos_cmd(ctx, limit: int):
    """List your repositories, most recently updated first."""
    try:
        repos = list_user_repos(ctx.obj["token_cache"], ctx.obj["config"])
    except PRScribeError as e:
        raise click.ClickException(str(e)) from e

    if not repos:
        console.print("[yellow]No repositories found.[/yellow]")
        return

    table = Table(title="Your Repositories", show_header=True, header_style="bold cyan")
    table.add_column("Repository", style="bold")
    table.add_column("Language", width=12)
    table.add_column("Stars", justify="right", width=7)
    table.add_column("Visibility", width=10)
    table.add_column("Updated", width=20)

    for r in repos[:limit]:
        table.add_row(
            r.full_name,
            r.language or "",
            str(r.stargazers_count),
            "private" if r.private else "public",
            (r.updated_at or "")[:19].replace("T", " "),
        )

    console.print(table)

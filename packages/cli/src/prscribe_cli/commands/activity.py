"""activity command — your recent commits and pull requests in one repository."""

from __future__ import annotations

import asyncio
import dataclasses
import json

import click
from rich.console import Console
from rich.table import Table

from prscribe_core.gh.activity import get_repo_activity

console = Console()

_STATE_STYLE = {"open": "green", "merged": "magenta", "closed": "red"}


@click.command("activity")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw activity as JSON, including file contents.")
@click.pass_context
def activity_cmd(ctx, repo: str, as_json: bool):
    """Show your recent commits and pull requests in a repository.

    Each commit and pull request is enriched with the files it touched,
    rebuilt from its diff.
    """
    if repo.count("/") != 1:
        raise click.UsageError("--repo must be in owner/name format.")

    activity = asyncio.run(get_repo_activity(repo, ctx.obj["token_cache"], ctx.obj["config"]))
    if activity is None:
        raise click.ClickException(
            f"Could not fetch activity for {repo}. Run `prscribe status` to check your connection."
        )

    if as_json:
        click.echo(json.dumps(dataclasses.asdict(activity), indent=2))
        return

    if not activity.commits and not activity.pull_requests:
        console.print("[yellow]No recent activity by you in this repository.[/yellow]")
        return

    commits = Table(title=f"Recent Commits — {repo}", show_header=True, header_style="bold cyan")
    commits.add_column("SHA", width=8)
    commits.add_column("Message", max_width=60)
    commits.add_column("Files", justify="right", width=6)
    commits.add_column("Date", width=20)
    for c in activity.commits:
        commits.add_row(c.sha[:7], c.message.split("\n", 1)[0], str(len(c.files)), c.date[:19].replace("T", " "))

    pulls = Table(title=f"Your Pull Requests — {repo}", show_header=True, header_style="bold cyan")
    pulls.add_column("PR", style="bold", width=6)
    pulls.add_column("Title", max_width=50)
    pulls.add_column("State", width=8)
    pulls.add_column("Files", justify="right", width=6)
    for pr in activity.pull_requests:
        style = _STATE_STYLE.get(pr.state, "white")
        pulls.add_row(f"#{pr.number}", pr.title, f"[{style}]{pr.state}[/{style}]", str(len(pr.files)))

    console.print(commits)
    console.print(pulls)

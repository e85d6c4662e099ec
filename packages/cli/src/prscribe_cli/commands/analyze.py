"""analyze command — fetch a pull request and tell its story."""

from __future__ import annotations

import asyncio
import json

import click
from rich.console import Console
from rich.panel import Panel

from prscribe_core.errors import PRScribeError
from prscribe_core.gh.pull_request import fetch_pr_data, parse_pr_url
from prscribe_core.models import NarrativeResult
from prscribe_core.narrative import analyze_pr, build_fallback_story

console = Console()

_COMPLEXITY_STYLE = {"low": "green", "medium": "yellow", "high": "red"}


def print_story(title: str, result: NarrativeResult) -> None:
    story = result.story
    provenance = f"{result.backend} model" if result.source == "model" else "rule-based analysis"
    color = _COMPLEXITY_STYLE.get(story.complexity, "white")

    console.print(Panel(story.summary, title=f"[bold]{title}[/bold]", subtitle=f"[dim]{provenance}[/dim]"))
    console.print(f"[bold]Complexity:[/bold] [{color}]{story.complexity}[/{color}]")
    console.print(f"\n[bold]Technical details[/bold]\n{story.technical_details}")
    console.print(f"\n[bold]Impact[/bold]\n{story.impact}")
    if story.key_changes:
        console.print("\n[bold]Key changes[/bold]")
        for change in story.key_changes:
            console.print(f"  • {change}")
    if story.tags:
        console.print("\n" + " ".join(f"[cyan]#{t}[/cyan]" for t in story.tags))


@click.command("analyze")
@click.argument("url")
@click.option("--json", "as_json", is_flag=True, help="Print the story as JSON.")
@click.option("--no-ai", "no_ai", is_flag=True, help="Skip language-model backends and use rule-based analysis.")
@click.pass_context
def analyze_cmd(ctx, url: str, as_json: bool, no_ai: bool):
    """Analyze a GitHub pull request by URL.

    \b
    Narrative backends, tried in the order configured under `backends`:
      OPENAI_API_KEY       enables the openai backend
      ANTHROPIC_API_KEY    enables the anthropic backend
    Without either, a rule-based story is produced.
    """
    coords = parse_pr_url(url)
    if coords is None:
        raise click.UsageError(f"Not a GitHub pull request URL: {url}")

    config = ctx.obj["config"]
    try:
        pr_data = asyncio.run(
            fetch_pr_data(coords.owner, coords.repo, coords.pr_number, ctx.obj["token_cache"], config)
        )
    except PRScribeError as e:
        raise click.ClickException(str(e)) from e

    if no_ai:
        result = NarrativeResult(story=build_fallback_story(pr_data), source="rule_based")
    else:
        with console.status("Analyzing pull request..."):
            result = analyze_pr(pr_data, config)

    if as_json:
        payload = {"story": result.story.to_dict(), "source": result.source, "backend": result.backend}
        click.echo(json.dumps(payload, indent=2))
        return

    print_story(f"{coords.owner}/{coords.repo}#{coords.pr_number} — {pr_data.title}", result)

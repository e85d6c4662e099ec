"""CLI entry point for prscribe.

Commands:
  connect     — cache the GitHub token from the current session
  disconnect  — forget the cached GitHub token
  status      — report whether a usable GitHub token is available
  repos       — list repositories you own or collaborate on
  activity    — your recent commits and PRs in one repository, with file diffs
  analyze     — fetch a pull request and tell its story
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prscribe_cli.commands.activity import activity_cmd
from prscribe_cli.commands.analyze import analyze_cmd
from prscribe_cli.commands.connect import connect_cmd, disconnect_cmd, status_cmd
from prscribe_cli.commands.repos import repos_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured credential store from .prscribe.yml settings.

    Store selection:
      store: sqlite → SQLiteCredentialStore (store_path, default .prscribe.db)
      store: memory → InMemoryCredentialStore (nothing survives the process)

    This factory lives in cli.py so neither prscribe_core nor prscribe_store
    know about the CLI config format.
    """
    store_type = config.get("store", "sqlite")

    if store_type == "memory":
        from prscribe_store.memory import InMemoryCredentialStore

        return InMemoryCredentialStore()

    if store_type != "sqlite":
        console.print(f"[yellow]Unknown store {store_type!r}. Falling back to sqlite.[/yellow]")

    from prscribe_store.sqlite import SQLiteCredentialStore

    return SQLiteCredentialStore(db_path=config.get("store_path", ".prscribe.db"))


def build_token_cache(store, config: dict, provider_token: str | None = None):
    from prscribe_core.auth import TokenCache
    from prscribe_cli.auth import LocalSessionProvider, resolve_user_id

    sessions = LocalSessionProvider(
        store,
        user_id=resolve_user_id(config.get("user_id")),
        provider_token=provider_token or config.get("github_token"),
    )
    return TokenCache(store, sessions)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prscribe"),
    prog_name="prscribe",
)
@click.option(
    "--config",
    "config_path",
    default=".prscribe.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRSCRIBE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Tell the story of your GitHub pull requests and recent activity."""
    from prscribe_core.config import load_config
    from prscribe_cli.auth import resolve_github_token

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ValueError as e:
        raise click.UsageError(f"{config_path}: {e}") from e

    # Resolve the session token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    store = _build_store(config)
    ctx.obj["config"] = config
    ctx.obj["store"] = store
    ctx.obj["token_cache"] = build_token_cache(store, config)
    ctx.call_on_close(store.close)


main.add_command(connect_cmd)
main.add_command(disconnect_cmd)
main.add_command(status_cmd)
main.add_command(repos_cmd)
main.add_command(activity_cmd)
main.add_command(analyze_cmd)

from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape as rich_escape

from .config import Config, CredentialStore
from .exceptions import ConfigurationError, RepositoryError
from .generator import NO_STAGED_CHANGES, CommitMessageGenerator, Outcome
from .git import read_staged_changes
from .llm.base import credential_key
from .llm.registry import PROVIDERS, display_name

console = Console()

_PROVIDER_CHOICE = click.Choice(sorted(PROVIDERS))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """Generate Git commit messages from staged changes with an LLM."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG] %(name)s: %(message)s")
        logging.getLogger("ai_commit_generator").setLevel(logging.DEBUG)


@main.command("generate")
@click.argument("provider", required=False, type=_PROVIDER_CHOICE)
@click.option("--model", "cli_model", default=None, help="Override the provider's model.")
@click.option("--path", "workspace", default=".", type=click.Path(file_okay=False), help="Directory inside the repository.")
def generate(provider: str | None, cli_model: str | None, workspace: str) -> None:
    """Generate a commit message for the staged changes."""
    config = Config()
    provider_id = config.resolve_provider(provider)
    if not provider_id:
        console.print(
            "[bold red]No provider selected. Available providers: "
            f"{rich_escape(', '.join(sorted(PROVIDERS)))}.[/]\n"
            "Run: ai-commit config set provider default <name>"
        )
        sys.exit(1)

    generator = CommitMessageGenerator(credentials=CredentialStore(), config=config)
    result = asyncio.run(generator.generate(provider_id, workspace=workspace, model=cli_model))

    if result.outcome is Outcome.DIFF_EMPTY:
        console.print(f"[dim]{rich_escape(result.message)}[/]")
        return
    if result.outcome is Outcome.SUCCEEDED:
        click.echo(result.message)
        return
    if result.outcome is Outcome.DIFF_ERROR:
        console.print(f"[bold red]{rich_escape(result.error)}[/]")
    else:
        console.print(f"[bold red]{rich_escape(display_name(provider_id))}: {rich_escape(result.error)}[/]")
    sys.exit(1)


@main.command("set-key")
@click.argument("provider", type=_PROVIDER_CHOICE)
@click.option("--key", "api_key", prompt="API key", hide_input=True, help="API key (prompted when omitted).")
def set_key(provider: str, api_key: str) -> None:
    """Store the API key for a provider."""
    try:
        CredentialStore().store(credential_key(provider), api_key)
    except ConfigurationError as e:
        console.print(f"[bold red]{rich_escape(str(e))}[/]")
        sys.exit(1)
    console.print(f"[green]{rich_escape(display_name(provider))} API key saved.[/]")


@main.command("show-diff")
@click.option("--path", "workspace", default=".", type=click.Path(file_okay=False), help="Directory inside the repository.")
def show_diff(workspace: str) -> None:
    """Print the raw staged diff."""
    try:
        staged = read_staged_changes(workspace)
    except RepositoryError as e:
        console.print(f"[bold red]{rich_escape(str(e))}[/]")
        sys.exit(1)

    if not staged.text.strip():
        console.print(f"[dim]{NO_STAGED_CHANGES}[/]")
        return

    if staged.initial_commit:
        console.print("[bold]=== STAGED CHANGES (INITIAL COMMIT) ===[/]")
    else:
        console.print("[bold]=== STAGED CHANGES (INDEX vs HEAD) ===[/]")
    click.echo(staged.text)


@main.group("config")
def config_group() -> None:
    """Manage configuration."""


@config_group.command("set")
@click.argument("section")
@click.argument("key")
@click.argument("value")
def config_set(section: str, key: str, value: str) -> None:
    """Set a config value: ai-commit config set <section> <key> <value>"""
    config = Config()
    config.set(section, key, value)
    console.print(f"[green]Set {rich_escape(section)}.{rich_escape(key)} = {rich_escape(value)}[/]")


@config_group.command("get")
@click.argument("section")
@click.argument("key")
def config_get(section: str, key: str) -> None:
    """Get a config value: ai-commit config get <section> <key>"""
    config = Config()
    value = config.get(section, key)
    if value is None:
        console.print(f"[dim]{rich_escape(section)}.{rich_escape(key)} is not set[/]")
    else:
        console.print(rich_escape(str(value)))


@config_group.command("show")
@click.argument("section", required=False)
def config_show(section: str | None) -> None:
    """Show current configuration, or one section of it."""
    data = Config().data
    if section:
        if section not in data:
            console.print(f"[dim]Section '{rich_escape(section)}' not found.[/]")
            return
        data = {section: data[section]}

    if not data:
        console.print("[dim]No configuration set.[/]")
        return

    for name, values in data.items():
        console.print(f"[bold]{rich_escape('[' + name + ']')}[/]")
        for key, value in values.items():
            console.print(f"  {rich_escape(key)} = {rich_escape(str(value))}")
        console.print()

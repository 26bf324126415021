"""ACR CLI — the main entry point for the Agent Card Registry."""

from __future__ import annotations

import json
import logging

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from acr import __version__
from acr.config import STORE_BACKENDS, RegistrySettings, open_store
from acr.errors import CardRejectedError, ImmutableConflictError
from acr.registry.models import AgentStatus, StoredAgentRecord
from acr.registry.registry import AgentRegistry

console = Console()

EXIT_REJECTED = 1
EXIT_CONFLICT = 3
EXIT_NOT_FOUND = 4

STATUS_CHOICES = [s.value for s in AgentStatus]


@click.group()
@click.version_option(version=__version__)
@click.option("--store", type=click.Choice(STORE_BACKENDS), default=None, help="Record store backend")
@click.option("--registry-dir", "-r", default=None, help="Registry directory (file store)")
@click.option("--log-level", default=None, help="Logging level, e.g. INFO or DEBUG")
@click.pass_context
def main(ctx: click.Context, store: str | None, registry_dir: str | None, log_level: str | None):
    """ACR — Agent Card Registry.

    Validate AgentCards, compute their content fingerprint and publish
    them so that every name@version is bound to exactly one card.
    """
    settings = RegistrySettings.from_env()
    if store:
        settings.store = store
    if registry_dir:
        settings.registry_dir = registry_dir
    if log_level:
        settings.log_level = log_level.upper()

    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    ctx.obj = settings


def _open_registry(ctx: click.Context) -> AgentRegistry:
    registry = AgentRegistry(open_store(ctx.obj))
    ctx.call_on_close(registry.close)
    return registry


class _CardLoader(yaml.SafeLoader):
    """SafeLoader that keeps unquoted dates and timestamps as strings."""


_CardLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _load_card(ctx: click.Context, card_path: str):
    """Read a card from a YAML or JSON file (JSON is valid YAML)."""
    try:
        with open(card_path, encoding="utf-8") as f:
            return yaml.load(f, Loader=_CardLoader)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        console.print(f"  [red]Failed to parse:[/] {escape(str(e))}")
        ctx.exit(EXIT_REJECTED)


def _print_errors(title: str, errors) -> None:
    console.print(f"[red]{title}:[/]")
    for error in errors:
        console.print(f"  [red]x[/] {escape(error.message)}")


def _records_table(title: str, records: list[StoredAgentRecord]) -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Owner")
    table.add_column("Status", justify="center")
    table.add_column("Published")
    table.add_column("Fingerprint", style="dim")

    for record in records:
        table.add_row(
            escape(record.name),
            escape(record.version),
            escape(record.owner),
            record.status.value,
            record.published_at.strftime("%Y-%m-%d %H:%M:%S"),
            record.fingerprint[:12],
        )
    return table


def _show_records(title: str, records: list[StoredAgentRecord], empty: str) -> None:
    if not records:
        console.print(f"[yellow]{empty}[/]")
        return
    console.print(_records_table(f"{title} ({len(records)} shown)", records))


# ── Validate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("card_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx: click.Context, card_path: str):
    """Validate an AgentCard: schema first, then the transport policy."""
    from acr.spec.schema_validator import validate_card
    from acr.spec.transport_policy import check_transport_consistency

    console.print(f"\n[bold blue]ACR[/] — Validating: {escape(card_path)}\n")
    card = _load_card(ctx, card_path)

    # Gate 1: Schema
    result = validate_card(card)
    if not result.ok:
        _print_errors("Schema validation FAILED", result.errors)
        ctx.exit(EXIT_REJECTED)
    console.print("  [green]v[/] Schema validation passed")

    # Gate 2: Transport policy
    policy_errors = check_transport_consistency(card)
    if policy_errors:
        _print_errors("Transport policy FAILED", policy_errors)
        ctx.exit(EXIT_REJECTED)
    console.print("  [green]v[/] Transport policy passed")

    console.print("\n[green]Valid![/]")


@main.command(name="fingerprint")
@click.argument("card_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def show_fingerprint(ctx: click.Context, card_path: str):
    """Print the content fingerprint of an AgentCard."""
    from acr.spec.fingerprint import fingerprint

    card = _load_card(ctx, card_path)
    try:
        click.echo(fingerprint(card))
    except (TypeError, ValueError) as e:
        console.print(f"  [red]Cannot fingerprint:[/] {escape(str(e))}")
        ctx.exit(EXIT_REJECTED)


# ── Publish ──────────────────────────────────────────────────────────


@main.command()
@click.argument("card_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--owner", "-o", required=True, help="Owning principal of the card")
@click.pass_context
def publish(ctx: click.Context, card_path: str, owner: str):
    """Validate and publish an AgentCard.

    Publishing the same content twice is a no-op; publishing different
    content under an existing name@version is refused.
    """
    console.print(f"\n[bold blue]ACR[/] — Publishing: {escape(card_path)}\n")
    card = _load_card(ctx, card_path)
    registry = _open_registry(ctx)

    try:
        record = registry.submit(card, owner)
    except CardRejectedError as e:
        _print_errors(f"Rejected ({e.kind.value})", e.errors)
        ctx.exit(EXIT_REJECTED)
    except ImmutableConflictError as e:
        console.print(f"  [red]Conflict:[/] {escape(str(e))}")
        console.print(f"    stored fingerprint:    {e.existing_fingerprint}")
        console.print(f"    candidate fingerprint: {e.candidate_fingerprint}")
        ctx.exit(EXIT_CONFLICT)

    if record.created:
        console.print(f"  Published: [cyan]{escape(record.qualified_id)}[/] ({record.fingerprint})")
    else:
        console.print(
            f"  Unchanged: [cyan]{escape(record.qualified_id)}[/] was already published "
            f"with identical content ({record.fingerprint})"
        )


# ── Lookup ───────────────────────────────────────────────────────────


@main.command()
@click.argument("name")
@click.argument("version", required=False)
@click.pass_context
def get(ctx: click.Context, name: str, version: str | None):
    """Print a published record as JSON (latest version when VERSION is omitted)."""
    registry = _open_registry(ctx)
    record = registry.find_by_identity(name, version) if version else registry.find_latest(name)

    if record is None:
        target = f"{name}@{version}" if version else name
        console.print(f"[yellow]Agent not found:[/] {escape(target)}")
        ctx.exit(EXIT_NOT_FOUND)

    click.echo(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))


@main.command()
@click.argument("name")
@click.option("--limit", default=None, help="Page size (1-100, default 20)")
@click.option("--offset", default=None, help="Records to skip")
@click.pass_context
def versions(ctx: click.Context, name: str, limit: str | None, offset: str | None):
    """List every published version of NAME, newest first."""
    registry = _open_registry(ctx)
    records = registry.find_by_name(name, limit=limit, offset=offset)
    _show_records(f"Versions of {escape(name)}", records, f"No versions of {escape(name)} found.")


@main.command(name="list")
@click.option("--owner", default=None, help="Filter by owner")
@click.option("--status", type=click.Choice(STATUS_CHOICES), default=None, help="Filter by status")
@click.option("--limit", default=None, help="Page size (1-100, default 20)")
@click.option("--offset", default=None, help="Records to skip")
@click.pass_context
def list_records(
    ctx: click.Context,
    owner: str | None,
    status: str | None,
    limit: str | None,
    offset: str | None,
):
    """List published AgentCards by name."""
    registry = _open_registry(ctx)
    records = registry.list_all(limit=limit, offset=offset, owner=owner, status=status)
    _show_records("Registry", records, "Registry is empty.")


@main.command()
@click.argument("skill_id")
@click.option("--owner", default=None, help="Filter by owner")
@click.option("--status", type=click.Choice(STATUS_CHOICES), default=None, help="Filter by status")
@click.option("--limit", default=None, help="Page size (1-100, default 20)")
@click.option("--offset", default=None, help="Records to skip")
@click.pass_context
def search(
    ctx: click.Context,
    skill_id: str,
    owner: str | None,
    status: str | None,
    limit: str | None,
    offset: str | None,
):
    """Find AgentCards that declare a skill with SKILL_ID."""
    registry = _open_registry(ctx)
    records = registry.search_by_skill(
        skill_id, limit=limit, offset=offset, owner=owner, status=status
    )
    _show_records(
        f"Agents with skill {escape(skill_id)}", records, "No matching agents found."
    )


# ── Maintenance ──────────────────────────────────────────────────────


@main.command(name="init-indexes")
@click.pass_context
def init_indexes(ctx: click.Context):
    """Create the unique identity index and the skill index."""
    registry = _open_registry(ctx)
    registry.ensure_indexes()
    console.print(f"[green]Indexes ready[/] on the {ctx.obj.store} store.")


@main.command(name="schema")
@click.option("--skill", is_flag=True, help="Print the AgentSkill schema instead")
def dump_schema(skill: bool):
    """Print the JSON Schema for AgentCards."""
    from acr.spec.schema import get_schema, get_skill_schema

    click.echo(json.dumps(get_skill_schema() if skill else get_schema(), indent=2))


if __name__ == "__main__":
    main()

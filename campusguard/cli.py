"""campusguard CLI -- moderate text and work the review queue from a terminal."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from campusguard import __version__
from campusguard.moderation.errors import ModerationError

console = Console()

_SEVERITY_STYLES = {"low": "green", "medium": "yellow", "high": "red", "critical": "bold red"}


def _services(ctx: click.Context):
    from campusguard.services import build_services

    if "services" not in ctx.obj:
        ctx.obj["services"] = build_services(ctx.obj["settings"])
    return ctx.obj["services"]


def _actor(services, user_id: Optional[str]):
    return services.profiles.get_profile(user_id) if user_id else None


def _fail(exc: ModerationError) -> NoReturn:
    console.print(f"[red]Error:[/] {exc.message or exc}")
    for issue in getattr(exc, "issues", []):
        console.print(f"  [red]x[/] {issue}")
    raise click.exceptions.Exit(1)


def _severity(value: str) -> str:
    return f"[{_SEVERITY_STYLES.get(value, 'white')}]{value}[/]"


@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", "-d", default=None, help="Data directory (default: ~/.campusguard)")
@click.option("--config", "config_path", default=None, help="YAML settings file")
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level")
@click.pass_context
def main(ctx: click.Context, data_dir: Optional[str], config_path: Optional[str], verbose: bool):
    """campusguard -- content moderation for the campus marketplace.

    Check text against the moderation rules, score listings for spam,
    manage prohibited items and resolve flagged content.
    """
    from campusguard.config import load_settings
    from campusguard.logging_setup import configure_logging

    settings = load_settings(config_path)
    if data_dir:
        settings.data_dir = Path(data_dir).expanduser()
    configure_logging("DEBUG" if verbose else settings.log_level, console=Console(stderr=True))
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


# ── Check / score ────────────────────────────────────────────────────


@main.command()
@click.argument("text")
@click.option("--rules/--no-rules", "use_rules", default=True, help="Apply admin-managed prohibited items")
@click.pass_context
def check(ctx: click.Context, text: str, use_rules: bool):
    """Run TEXT through the moderation engine and show the decision."""
    from campusguard.moderation.engine import moderate_text, moderate_text_with_database
    from campusguard.moderation.policy import decide

    if use_rules:
        result = moderate_text_with_database(text, _services(ctx).rules_store)
    else:
        result = moderate_text(text)
    decision = decide(result)

    if result.is_clean:
        console.print("[green]Clean[/] -- no flags")
        return

    lines = [
        f"Decision:   [bold]{decision.value}[/]",
        f"Confidence: {result.confidence.value}",
        f"Flags:      {', '.join(result.flags)}",
    ]
    console.print(Panel("\n".join(lines), title="Moderation Result"))
    for reason in result.reasons:
        console.print(f"  [yellow]![/] {reason}")
    for rule in result.matched_prohibited:
        console.print(f"  [red]x[/] rule {rule.id} ({rule.category or rule.type.value}, {_severity(rule.severity.value)})")


@main.command()
@click.option("--title", "-t", required=True, help="Listing title")
@click.option("--description", default="", help="Listing description")
@click.option("--price-cents", "-p", type=int, default=0, help="Asking price in cents")
@click.pass_context
def score(ctx: click.Context, title: str, description: str, price_cents: int):
    """Compute the 0-100 spam score of a listing."""
    from campusguard.moderation.scorer import calculate_spam_score

    value = calculate_spam_score(title, description, price_cents, ctx.obj["settings"].scoring)
    color = "green" if value < 30 else "yellow" if value < 70 else "red"
    console.print(f"Spam score: [{color}]{value}[/]/100")


# ── Rules ────────────────────────────────────────────────────────────


@main.group()
def rules():
    """Manage prohibited items."""


@rules.command(name="add")
@click.argument("pattern")
@click.option("--type", "rule_type", default="keyword", type=click.Choice(["keyword", "regex", "url_pattern", "category"]))
@click.option("--severity", "-s", default="medium", type=click.Choice(["low", "medium", "high", "critical"]))
@click.option("--action", "-a", default="flag", type=click.Choice(["flag", "auto_reject", "warn"]))
@click.option("--category", "-c", default=None, help="Category label")
@click.option("--description", default=None, help="Internal note")
@click.option("--as", "actor_id", required=True, help="Id of the acting admin or moderator")
@click.pass_context
def add_rule(ctx, pattern, rule_type, severity, action, category, description, actor_id):
    """Add a prohibited item."""
    services = _services(ctx)
    data = {
        "type": rule_type,
        "pattern": pattern,
        "severity": severity,
        "action": action,
        "category": category,
        "description": description,
    }
    try:
        item = services.rules.create_rule(_actor(services, actor_id), data)
    except ModerationError as exc:
        _fail(exc)
    console.print(f"  [green]v[/] Added rule {item.id} ({item.type.value}: {item.pattern})")


@rules.command(name="list")
@click.option("--all", "show_all", is_flag=True, help="Include inactive rules")
@click.option("--as", "actor_id", required=True, help="Id of the acting admin or moderator")
@click.pass_context
def list_rules(ctx, show_all: bool, actor_id: str):
    """List prohibited items, most severe first."""
    services = _services(ctx)
    try:
        items = services.rules.list_rules(_actor(services, actor_id), is_active=None if show_all else True)
    except ModerationError as exc:
        _fail(exc)

    if not items:
        console.print("[yellow]No rules defined.[/]")
        return

    table = Table(title=f"Prohibited items ({len(items)})")
    table.add_column("ID", style="cyan")
    table.add_column("Type")
    table.add_column("Pattern")
    table.add_column("Severity")
    table.add_column("Action")
    table.add_column("Active", justify="center")
    for item in items:
        active = "[green]Y[/]" if item.is_active else "[red]N[/]"
        table.add_row(item.id, item.type.value, item.pattern[:40], _severity(item.severity.value), item.action.value, active)
    console.print(table)


@rules.command(name="disable")
@click.argument("rule_id")
@click.option("--as", "actor_id", required=True, help="Id of the acting admin or moderator")
@click.pass_context
def disable_rule(ctx, rule_id: str, actor_id: str):
    """Deactivate a prohibited item without deleting it."""
    services = _services(ctx)
    try:
        services.rules.deactivate_rule(_actor(services, actor_id), rule_id)
    except ModerationError as exc:
        _fail(exc)
    console.print(f"  [green]v[/] Rule {rule_id} disabled")


# ── API keys ─────────────────────────────────────────────────────────


@main.group()
def keys():
    """Issue and revoke API keys for the HTTP API."""


@keys.command(name="create")
@click.argument("user_id")
@click.option("--name", "-n", default="default", help="Label for the key")
@click.option("--days", default=90, help="Days until the key expires")
@click.pass_context
def create_key(ctx, user_id: str, name: str, days: int):
    """Issue a key for USER_ID. The raw key is printed once."""
    services = _services(ctx)
    try:
        api_key, raw_key = services.profiles.create_api_key(user_id, name, expires_in_days=days)
    except ModerationError as exc:
        _fail(exc)
    console.print(f"  [green]v[/] Key {api_key.id} for {user_id} (expires {api_key.expires_at[:10]})")
    console.print(raw_key)


@keys.command(name="list")
@click.argument("user_id")
@click.pass_context
def list_keys(ctx, user_id: str):
    """List the keys issued to USER_ID."""
    items = _services(ctx).profiles.list_api_keys(user_id)
    if not items:
        console.print("[yellow]No keys issued.[/]")
        return

    table = Table(title=f"API keys for {user_id}")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Prefix")
    table.add_column("Expires")
    table.add_column("Last used")
    for k in items:
        table.add_row(k.id, k.name, k.prefix, k.expires_at[:10], k.last_used[:19] or "-")
    console.print(table)


@keys.command(name="revoke")
@click.argument("key_id")
@click.pass_context
def revoke_key(ctx, key_id: str):
    """Revoke a key by id."""
    if not _services(ctx).profiles.delete_api_key(key_id):
        console.print(f"[red]Error:[/] API key {key_id} not found")
        raise click.exceptions.Exit(1)
    console.print(f"  [green]v[/] Key {key_id} revoked")


# ── Queue ────────────────────────────────────────────────────────────


@main.command()
@click.option("--status", default="pending", type=click.Choice(["pending", "approved", "rejected", "deleted", "all"]))
@click.option("--limit", "-n", default=50, help="Maximum entries to show")
@click.option("--as", "actor_id", required=True, help="Id of the acting admin or moderator")
@click.pass_context
def queue(ctx, status: str, limit: int, actor_id: str):
    """Show the moderation queue."""
    services = _services(ctx)
    try:
        entries, total = services.queue.list_queue(
            _actor(services, actor_id), status=None if status == "all" else status, limit=limit,
        )
    except ModerationError as exc:
        _fail(exc)

    if not entries:
        console.print("[green]Queue is empty.[/]")
        return

    table = Table(title=f"Flagged content ({len(entries)} of {total})")
    table.add_column("ID", style="cyan")
    table.add_column("Content")
    table.add_column("Owner")
    table.add_column("Severity")
    table.add_column("Status")
    table.add_column("Source")
    table.add_column("Reason")
    for f in entries:
        table.add_row(
            f.id,
            f"{f.content_type.value}/{f.content_id}",
            f.user_id,
            _severity(f.severity.value),
            f.status.value,
            f.source.value,
            f.reason[:50],
        )
    console.print(table)


@main.command()
@click.argument("flag_id")
@click.argument("status", type=click.Choice(["approved", "rejected", "deleted"]))
@click.option("--notes", default=None, help="Review notes")
@click.option("--delete-content", is_flag=True, help="Delete the content (status 'deleted' only)")
@click.option("--strike", "issue_strike", is_flag=True, help="Issue a strike to the content owner")
@click.option("--as", "actor_id", required=True, help="Id of the acting admin or moderator")
@click.pass_context
def resolve(ctx, flag_id, status, notes, delete_content, issue_strike, actor_id):
    """Resolve a flagged-content entry."""
    services = _services(ctx)
    try:
        outcome = services.queue.resolve(
            _actor(services, actor_id), flag_id, status,
            review_notes=notes, delete_content=delete_content, issue_strike=issue_strike,
        )
    except ModerationError as exc:
        _fail(exc)

    console.print(f"  [green]v[/] {flag_id} marked {outcome.flagged.status.value}")
    if outcome.content_deleted:
        console.print(f"  [green]v[/] Deleted {outcome.flagged.content_type.value} {outcome.flagged.content_id}")
    if outcome.strike:
        console.print(f"  [green]v[/] Strike {outcome.strike.id} ({outcome.strike.severity.value}) issued to {outcome.strike.user_id}")
    for step, message in outcome.errors.items():
        console.print(f"  [red]x[/] {step}: {message}")
    if not outcome.complete:
        raise click.exceptions.Exit(1)


# ── Reports ──────────────────────────────────────────────────────────


@main.command()
@click.argument("content_type", type=click.Choice(["listing", "message", "profile", "event"]))
@click.argument("content_id")
@click.argument("category")
@click.option("--description", default=None, help="What is wrong with the content")
@click.option("--as", "reporter_id", required=True, help="Id of the reporting user")
@click.pass_context
def report(ctx, content_type, content_id, category, description, reporter_id):
    """Report a piece of content."""
    services = _services(ctx)
    try:
        filed = services.reports.submit_report(reporter_id, content_type, content_id, category, description)
    except ModerationError as exc:
        _fail(exc)
    console.print(f"  [green]v[/] Report {filed.id} submitted")


@main.command()
@click.option("--as", "actor_id", required=True, help="Id of the acting admin or moderator")
@click.pass_context
def stats(ctx, actor_id: str):
    """Show moderation statistics."""
    services = _services(ctx)
    try:
        data = services.queue.stats(_actor(services, actor_id))
    except ModerationError as exc:
        _fail(exc)

    table = Table(title="Moderation statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in data["flagged_content"].items():
        table.add_row(f"flags.{key}", str(value))
    for key, value in data["pending_by_severity"].items():
        table.add_row(f"pending.{key}", str(value))
    table.add_row("strikes.total", str(data["strikes"]["total"]))
    table.add_row("strikes.active", str(data["strikes"]["active"]))
    table.add_row("reports.total", str(data["reports"]["total"]))
    table.add_row("flags_today", str(data["flags_today"]))
    console.print(table)

    if data["top_violators"]:
        console.print("\n[bold]Top violators:[/]")
        for row in data["top_violators"]:
            console.print(f"  {row['user_id']}: {row['flag_count']}")


# ── Server ───────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="127.0.0.1", help="Host to bind the server to")
@click.option("--port", default=8000, help="Port to run the server on")
@click.option("--reload", is_flag=True, help="Enable auto-reload (development only)")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, reload: bool):
    """Run the moderation API with Uvicorn."""
    import os

    import uvicorn

    # The app builds its own services from the environment.
    os.environ["CAMPUSGUARD_DATA_DIR"] = str(ctx.obj["settings"].data_dir)
    console.print(f"Serving campusguard API on http://{host}:{port}")
    uvicorn.run(
        "web.backend.app.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=ctx.obj["settings"].log_level.lower(),
    )


if __name__ == "__main__":
    main()

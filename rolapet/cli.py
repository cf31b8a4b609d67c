"""Rola PET CLI: administer moderation, warnings and ratings from the terminal."""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from rolapet import __version__

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _when(timestamp: str) -> str:
    return timestamp[:16].replace("T", " ")


def _report(result) -> None:
    if result.success:
        console.print(f"  [green]v[/] {result.message}")
    else:
        console.print(f"  [red]x[/] {escape(f'[{result.error.value}] {result.message}')}")


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", envvar="ROLAPET_CONFIG", default=None, help="YAML settings file")
@click.option("--data-dir", default=None, help="Override the data directory")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, data_dir: str | None, verbose: bool):
    """Rola PET: moderation, reputation and ratings for micromobility owners."""
    from pathlib import Path

    from rolapet.config import load_settings
    from rolapet.context import AppContext

    _configure_logging(verbose)
    settings = load_settings(config_path)
    if data_dir:
        settings.data_dir = Path(data_dir)
    ctx.obj = AppContext.create(settings)


# ── Store ────────────────────────────────────────────────────────────


@main.command()
@click.pass_obj
def init(app):
    """Create the data directory and seed the default collections."""
    app.seed_defaults()
    console.print(f"[green]Store ready at[/] {app.settings.data_dir}")


@main.command()
@click.confirmation_option(prompt="Delete every collection and re-seed?")
@click.pass_obj
def reset(app):
    """Wipe the store and re-seed the defaults."""
    app.reset()
    console.print("[yellow]Store reset.[/]")


# ── Moderation ───────────────────────────────────────────────────────


@main.command()
@click.argument("user_id")
@click.argument("text")
@click.pass_obj
def moderate(app, user_id: str, text: str):
    """Run TEXT through the moderator as USER_ID (sanctions are applied)."""
    result = app.moderator.moderate(text, user_id)
    colour = "green" if result.is_allowed else "red"
    console.print(f"\n  Action:   [{colour}]{result.action.value}[/]")
    console.print(f"  Severity: {result.severity.value}")
    console.print(f"  Flagged:  {', '.join(result.flagged_words) or '-'}")


@main.command()
@click.argument("user_id")
@click.argument("reason")
@click.option("--description", "-d", default="", help="Details shown to the user")
@click.option("--by", "issued_by", default="1", help="Issuing admin id")
@click.pass_obj
def warn(app, user_id: str, reason: str, description: str, issued_by: str):
    """Issue a warning to USER_ID."""
    _report(app.ledger.add_warning(user_id, reason, description, issued_by))


@main.command()
@click.argument("user_id", required=False)
@click.pass_obj
def warnings(app, user_id: str | None):
    """List warnings for USER_ID, or the global warning log."""
    if user_id:
        rows = [
            (_when(w.date), w.reason, w.description, w.issued_by)
            for w in app.ledger.get_warnings(user_id)
        ]
        title = f"Warnings for {user_id}"
        columns = ("Date", "Reason", "Details", "Issued by")
    else:
        rows = [
            (_when(w.date), f"{w.username} ({w.user_id})", w.reason, w.description, w.issued_by)
            for w in app.ledger.get_all_warnings()
        ]
        title = "Warning log"
        columns = ("Date", "User", "Reason", "Details", "Issued by")

    if not rows:
        console.print("[yellow]No warnings.[/]")
        return

    table = Table(title=f"{title} ({len(rows)})")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    console.print(table)


@main.command()
@click.argument("user_id")
@click.argument("reason")
@click.option("--by", "admin_id", default="1", help="Admin id")
@click.pass_obj
def deactivate(app, user_id: str, reason: str, admin_id: str):
    """Deactivate a non-admin account."""
    _report(app.ledger.deactivate_user(user_id, admin_id, reason))


@main.command()
@click.argument("user_id")
@click.option("--by", "admin_id", default="1", help="Admin id")
@click.pass_obj
def reactivate(app, user_id: str, admin_id: str):
    """Reactivate an account."""
    _report(app.ledger.reactivate_user(user_id, admin_id))


@main.group(name="banned-words")
def banned_words():
    """Manage the banned-word list."""


@banned_words.command(name="list")
@click.pass_obj
def list_banned(app):
    words = app.moderator.get_banned_words()
    if not words:
        console.print("[yellow]The list is empty; all content is allowed.[/]")
        return
    for word in words:
        console.print(f"  {word}")


@banned_words.command(name="add")
@click.argument("word")
@click.pass_obj
def add_banned(app, word: str):
    _report(app.moderator.add_banned_word(word))


@banned_words.command(name="remove")
@click.argument("word")
@click.pass_obj
def remove_banned(app, word: str):
    _report(app.moderator.remove_banned_word(word))


# ── Users ────────────────────────────────────────────────────────────


@main.group()
def users():
    """Inspect and register accounts."""


@users.command(name="list")
@click.option("--role", default=None, type=click.Choice(["user", "provider", "admin"]))
@click.option("--inactive", is_flag=True, help="Only deactivated accounts")
@click.pass_obj
def list_users(app, role: str | None, inactive: bool):
    entries = app.users.list_users(role=role, is_active=False if inactive else None)
    table = Table(title=f"Users ({len(entries)})")
    table.add_column("Id", style="dim")
    table.add_column("Username", style="cyan")
    table.add_column("Role")
    table.add_column("Active", justify="center")
    table.add_column("Warnings", justify="right")
    for u in entries:
        active = "[green]Y[/]" if u.is_active else "[red]N[/]"
        table.add_row(u.id, u.username, u.role.value, active, str(len(u.warnings)))
    console.print(table)


@users.command(name="register")
@click.argument("email")
@click.argument("username")
@click.argument("name")
@click.option("--minor", is_flag=True, help="Account holder is under age")
@click.option("--legal-consent", default=None, help="Notarised consent reference for minors")
@click.pass_obj
def register_user(app, email: str, username: str, name: str, minor: bool, legal_consent: str | None):
    result = app.users.register(email, username, name, not minor, legal_consent=legal_consent)
    _report(result)
    if result.success:
        console.print(f"    id: {result.data.id}")


# ── Ratings ──────────────────────────────────────────────────────────


@main.command()
@click.argument("user_id")
@click.argument("target_id")
@click.argument("target_type", type=click.Choice(["product", "provider", "pointOfInterest", "route"]))
@click.argument("value", type=int)
@click.option("--comment", "-c", default=None)
@click.option("--purchase-date", default=None, help="ISO date of the purchase (products)")
@click.pass_obj
def rate(app, user_id, target_id, target_type, value, comment, purchase_date):
    """Rate TARGET_ID with VALUE stars (1-5)."""
    _report(app.ratings.create_rating(user_id, target_id, target_type, value, comment, purchase_date))


@main.group()
def ratings():
    """Inspect ratings."""


@ratings.command(name="show")
@click.argument("target_id")
@click.argument("target_type", type=click.Choice(["product", "provider", "pointOfInterest", "route"]))
@click.pass_obj
def show_ratings(app, target_id: str, target_type: str):
    summary = app.ratings.get_average_rating(target_id, target_type)
    console.print(f"\n  [bold]{target_id}[/]: {summary.average:.2f} ({summary.count} reviews)\n")
    for r in app.ratings.get_ratings(target_id, target_type):
        console.print(f"  {'*' * r.value:<5} {r.user_id}  {r.comment or ''}  [dim]+{r.likes}[/]")


@main.group()
def purchases():
    """Purchases and rating reminders."""


@purchases.command(name="pending")
@click.argument("user_id")
@click.pass_obj
def pending(app, user_id: str):
    """Purchases USER_ID can still rate."""
    entries = app.ratings.should_alert(user_id)
    if not entries:
        console.print("[yellow]Nothing to rate.[/]")
        return
    table = Table(title=f"Awaiting a rating ({len(entries)})")
    table.add_column("Purchase", style="dim")
    table.add_column("Product", style="cyan")
    table.add_column("Provider")
    table.add_column("Date")
    for p in entries:
        table.add_row(p.id, p.product_id, p.provider_id, p.purchase_date)
    console.print(table)


if __name__ == "__main__":
    main()

"""Flask CLI commands for persistent-login maintenance."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from persistent_login.api.token_handler import get_token_handler
from persistent_login.core.time import MAX_TIMESTAMP, to_epoch

LOGGER = logging.getLogger(__name__)


def _fmt(value) -> str:
    if value is None or to_epoch(value) >= MAX_TIMESTAMP:
        return "never"
    return value.isoformat(timespec="seconds")


@click.group("persistent-login")
def persistent_login_cli() -> None:
    """Maintenance commands for remembered logins."""


@persistent_login_cli.command("cleanup")
@with_appcontext
def cleanup() -> None:
    """Delete every expired token (schedule this periodically)."""
    removed = get_token_handler().manager.cleanup_expired()
    click.echo(f"Removed {removed} expired persistent login(s).")


@persistent_login_cli.command("list")
@click.argument("user_id", type=int)
@with_appcontext
def list_tokens(user_id: int) -> None:
    """Show the active tokens of USER_ID, oldest first."""
    tokens = get_token_handler().manager.tokens_for_user(user_id)
    if not tokens:
        click.echo("  (no active persistent logins)")
        return
    for token in tokens:
        click.echo(
            f"  created={_fmt(token.created)}  refreshed={_fmt(token.refreshed)}"
            f"  expires={_fmt(token.expires)}"
        )

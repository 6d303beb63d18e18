"""Flask CLI commands for LifeOS."""

from __future__ import annotations

from datetime import date
from typing import Optional

import click
from flask.cli import FlaskGroup


def _user_context(username: str):
    from .errors import NotFound
    from .extensions import get_base_context
    from .services.auth import get_user_by_username

    base = get_base_context()
    user = get_user_by_username(username, base.session_factory)
    if user is None:
        raise click.ClickException(str(NotFound(f"Unknown user {username!r}")))
    return base.for_user(user)


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("lifeos-create-user")
    @click.option("--username", required=True, help="Login name")
    @click.password_option(help="Password (prompted when omitted)")
    @click.option("--role", default="user", show_default=True, type=click.Choice(["user", "admin"]))
    def lifeos_create_user(username: str, password: str, role: str) -> None:
        """Create a local user account."""

        from .errors import LifeOSError
        from .extensions import get_base_context
        from .services.auth import create_user

        try:
            user = create_user(
                username=username,
                password=password,
                role=role,
                session_factory=get_base_context().session_factory,
            )
        except LifeOSError as exc:
            raise click.ClickException(exc.message) from exc
        click.echo(f"Created user {user.username} (id={user.id})")

    @app.cli.command("lifeos-seed-domains")
    @click.option("--username", required=True)
    def lifeos_seed_domains(username: str) -> None:
        """Create the default life domains for a user."""

        from .operations import seed_default_domains

        result = seed_default_domains(_user_context(username))
        if not result.ok:
            raise click.ClickException(result.error.message)  # type: ignore[union-attr]
        click.echo(f"Seeded {len(result.data or [])} domains")

    @app.cli.command("lifeos-expand")
    @click.option("--username", required=True)
    @click.option("--date", "start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
                  help="First date to expand (default: today)")
    @click.option("--days", type=click.IntRange(1, 90), default=None,
                  help="Number of days (default: the user's horizon preference)")
    def lifeos_expand(username: str, start, days: Optional[int]) -> None:
        """Create routine instances over a range of dates."""

        from .services.clock import local_date
        from .services.routines import expand_horizon

        first: date = start.date() if start else local_date()
        created = expand_horizon(_user_context(username), first, days)
        click.echo(f"Created {created} routine instances from {first.isoformat()}")

    @app.cli.command("lifeos-sweep")
    @click.option("--username", default=None, help="Limit to one user (default: everyone)")
    @click.option("--today", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
    def lifeos_sweep(username: Optional[str], today) -> None:
        """Mark past pending routine instances as missed."""

        from .extensions import get_base_context
        from .services.auth import list_users
        from .services.routines import sweep_missed

        day = today.date() if today else None
        if username:
            contexts = [_user_context(username)]
        else:
            base = get_base_context()
            contexts = [base.for_user(user) for user in list_users(base.session_factory)]
        swept = sum(sweep_missed(ctx, today=day) for ctx in contexts)
        click.echo(f"Marked {swept} instances as missed (users checked: {len(contexts)})")


def _create_app():
    from . import create_app

    return create_app()


main = FlaskGroup(create_app=_create_app, help="LifeOS management commands.")

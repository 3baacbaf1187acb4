"""
shiptrack.cli

Admin maintenance commands (`shiptrack-admin`).

Responsibilities:
- List ADMIN accounts.
- Delete an ADMIN account by email, warning when it is the last one.
"""

from __future__ import annotations

import asyncio
from typing import Any

import click

from shiptrack.auth.passwords import normalize_identifier
from shiptrack.db.models import UserRole
from shiptrack.db.repositories.users import UserRepo
from shiptrack.db.session import create_engine, create_sessionmaker, session_scope
from shiptrack.settings import Settings


def _settings(database_url: str | None) -> Settings:
    # Fresh (uncached) settings so --database-url and env changes always apply.
    return Settings(database_url=database_url) if database_url else Settings()


async def _list_admins(settings: Settings) -> list[dict[str, Any]]:
    engine = create_engine(settings)
    try:
        async with session_scope(create_sessionmaker(engine)) as session:
            admins = await UserRepo(session).list_all(role=UserRole.admin)
            return [
                {
                    "id": a.id,
                    "username": a.username,
                    "email": a.email,
                    "created_at": a.created_at,
                }
                for a in admins
            ]
    finally:
        await engine.dispose()


async def _delete_admin(settings: Settings, email: str) -> tuple[dict[str, Any] | None, int]:
    """
    Returns the deleted admin (or None) and how many other admins remain.
    """

    engine = create_engine(settings)
    try:
        async with session_scope(create_sessionmaker(engine)) as session:
            users = UserRepo(session)
            admin = await users.get_by_email(normalize_identifier(email))
            if admin is None or admin.role != UserRole.admin:
                return None, 0
            others = await users.count(role=UserRole.admin, exclude_id=admin.id)
            info = {"id": admin.id, "username": admin.username, "email": admin.email}
            await users.delete(admin.id)
            await session.commit()
            return info, others
    finally:
        await engine.dispose()


@click.group()
@click.option(
    "--database-url",
    envvar="SHIPTRACK_DATABASE_URL",
    default=None,
    help="SQLAlchemy async database URL (defaults to settings).",
)
@click.pass_context
def cli(ctx: click.Context, database_url: str | None) -> None:
    """shiptrack admin maintenance."""
    ctx.obj = _settings(database_url)


@cli.command("list-admins")
@click.pass_obj
def list_admins(settings: Settings) -> None:
    """List every ADMIN account."""
    admins = asyncio.run(_list_admins(settings))
    if not admins:
        click.echo("No admin users found.")
        click.echo(
            f"A default admin ({settings.default_admin_email}) is created on the next "
            "startup against an empty database."
        )
        return

    click.echo(f"Found {len(admins)} admin user(s):")
    for idx, admin in enumerate(admins, start=1):
        click.echo(f"{idx}. {admin['username']} <{admin['email']}>")
        click.echo(f"   id: {admin['id']}")
        click.echo(f"   created: {admin['created_at'].isoformat()}")


@cli.command("delete-admin")
@click.argument("email")
@click.pass_obj
def delete_admin(settings: Settings, email: str) -> None:
    """Delete the ADMIN account registered under EMAIL."""
    deleted, others = asyncio.run(_delete_admin(settings, email))
    if deleted is None:
        raise click.ClickException(f'Admin user with email "{email}" not found')

    if others == 0:
        click.echo("WARNING: this was the only admin user; no admin access remains.", err=True)
        click.echo(
            "Restart against an empty users table or insert an admin manually to recover.",
            err=True,
        )
    click.echo(f"Deleted admin {deleted['username']} <{deleted['email']}> (id {deleted['id']}).")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# Commands open their own engine; they never share state with a running server.

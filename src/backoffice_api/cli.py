"""`backoffice-api` command line: serve the API and administer RBAC data."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer

DEFAULT_API_BIND_PORT = 8000

app = typer.Typer(
    add_completion=False,
    invoke_without_command=True,
    help="Back-office API CLI (start, rbac, users).",
)
rbac_app = typer.Typer(help="Seed the catalogs and import legacy authorization data.")
users_app = typer.Typer(help="Manage back-office users.")
app.add_typer(rbac_app, name="rbac")
app.add_typer(users_app, name="users")


@app.callback()
def _main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _echo_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)


def _emit_json(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


# ---- start ----


@app.command("start", help="Serve the API with uvicorn.")
def start(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind."),
    port: int = typer.Option(DEFAULT_API_BIND_PORT, "--port", help="Port to bind."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:
    import uvicorn

    from backoffice_api.settings import get_settings

    settings = get_settings()
    uvicorn.run(
        "backoffice_api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.logging_level.lower(),
    )


# ---- rbac ----


async def _sync_registry() -> None:
    from backoffice_api.app.lifecycles import sync_rbac_registry
    from backoffice_api.db import dispose_engine, ensure_database_ready
    from backoffice_api.settings import get_settings

    settings = get_settings()
    try:
        await ensure_database_ready(settings)
        await sync_rbac_registry(settings)
    finally:
        await dispose_engine()


async def _import_legacy(*, file: Path | None, dry_run: bool) -> dict[str, Any]:
    from backoffice_api.db import dispose_engine, ensure_database_ready, session_scope
    from backoffice_api.features.rbac.legacy import (
        LegacyRbacImporter,
        load_snapshot_from_file,
        load_snapshot_from_tables,
    )
    from backoffice_api.settings import get_settings

    settings = get_settings()
    try:
        await ensure_database_ready(settings)
        async with session_scope(settings) as session:
            snapshot = (
                load_snapshot_from_file(file)
                if file is not None
                else await load_snapshot_from_tables(session)
            )
            report = await LegacyRbacImporter(session).import_snapshot(snapshot, dry_run=dry_run)
        return report.as_dict()
    finally:
        await dispose_engine()


@rbac_app.command("sync", help="Seed the permission catalog and system roles.")
def rbac_sync() -> None:
    asyncio.run(_sync_registry())
    typer.echo("RBAC registry synchronized.")


@rbac_app.command("import-legacy", help="Fold legacy role/permission data into the RBAC store.")
def rbac_import_legacy(
    file: Path | None = typer.Option(
        None,
        "--file",
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON export to import instead of the legacy tables.",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report without committing."),
) -> None:
    report = asyncio.run(_import_legacy(file=file, dry_run=dry_run))
    _emit_json(report)


# ---- users ----


async def _create_admin(*, email: str, name: str | None, password: str, super_admin: bool) -> dict[str, Any]:
    from sqlalchemy import select

    from backoffice_api.app.lifecycles import sync_rbac_registry
    from backoffice_api.core.rbac.registry import Roles
    from backoffice_api.core.security import hash_password
    from backoffice_api.db import dispose_engine, ensure_database_ready, session_scope
    from backoffice_api.features.rbac import RbacService
    from backoffice_api.models import User
    from backoffice_api.settings import get_settings

    settings = get_settings()
    if len(password) < settings.password_min_length:
        raise ValueError(f"Password must be at least {settings.password_min_length} characters.")

    try:
        await ensure_database_ready(settings)
        await sync_rbac_registry(settings)
        async with session_scope(settings) as session:
            existing = await session.execute(
                select(User.id).where(User.email_canonical == email.strip().lower())
            )
            if existing.scalar_one_or_none() is not None:
                raise ValueError("Email already in use.")

            user = User(
                email=email,
                name=name or email.split("@", 1)[0],
                password_hash=hash_password(password),
                is_active=True,
                failed_login_count=0,
            )
            session.add(user)
            await session.flush()
            slug = Roles.SUPER_ADMIN.value if super_admin else Roles.ADMIN.value
            await RbacService(session=session).assign_role_by_slug(user=user, slug=slug)
            return {"id": user.id, "email": user.email, "name": user.name, "role": slug}
    finally:
        await dispose_engine()


@users_app.command("create-admin", help="Create an administrator account.")
def users_create_admin(
    email: str = typer.Argument(..., help="Email address for the new administrator."),
    password: str = typer.Option(
        ...,
        "--password",
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        help="Password for the account.",
    ),
    name: str | None = typer.Option(None, "--name", help="Display name."),
    super_admin: bool = typer.Option(False, "--super", help="Grant super-admin instead of admin."),
) -> None:
    try:
        created = asyncio.run(
            _create_admin(email=email, name=name, password=password, super_admin=super_admin)
        )
    except ValueError as exc:
        _echo_error(str(exc))
        raise typer.Exit(code=1) from exc
    typer.echo(f"Created user {created['email']} ({created['id']}) with role {created['role']}")


__all__ = ["app"]

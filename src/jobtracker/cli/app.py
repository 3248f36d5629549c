from __future__ import annotations

import json

import typer
import uvicorn

from jobtracker.api.app import create_app
from jobtracker.config import get_settings
from jobtracker.core.roles import RoleService
from jobtracker.core.security import check_password_strength
from jobtracker.db.init import init_database
from jobtracker.db.seed import create_admin
from jobtracker.db.session import SessionLocal
from jobtracker.errors import ValidationFailed
from jobtracker.logging_config import configure_logging

app = typer.Typer(help="JobTracker CLI")
admin_app = typer.Typer(help="Administrator accounts")
roles_app = typer.Typer(help="Role maintenance")

app.add_typer(admin_app, name="admin")
app.add_typer(roles_app, name="roles")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Initialize database, directories, roles and the bootstrap admin."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@admin_app.command("create")
def admin_create(
    email: str = typer.Option(..., "--email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
) -> None:
    configure_logging()
    ensure_initialized()
    try:
        check_password_strength(password)
    except ValidationFailed as exc:
        raise typer.BadParameter(exc.message) from exc

    with SessionLocal() as db:
        user = create_admin(db, email, password)
        typer.echo(json.dumps({"id": user.id, "email": user.email, "roles": user.role_names}, indent=2))


@roles_app.command("list")
def roles_list() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        typer.echo(json.dumps({"roles": RoleService(db).list_roles()}, indent=2))


@roles_app.command("migrate-users")
def roles_migrate_users() -> None:
    """Give the User role to every account that has no role at all."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        migrated = RoleService(db).migrate_users_without_roles()
        db.commit()
    typer.echo(json.dumps({"migrated": migrated}, indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port, log_config=None)

"""Admin Platform CLI tool (rbacctl)."""

import json
import logging
from contextlib import contextmanager
from typing import Iterator

import typer

from backend.core.config import settings
from backend.core.exceptions import RBACError

app = typer.Typer(name="rbacctl", help="Admin Platform RBAC CLI")
db_app = typer.Typer(help="Database management commands")
maintenance_app = typer.Typer(help="Role and user maintenance jobs")
app.add_typer(db_app, name="db")
app.add_typer(maintenance_app, name="maintenance")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@contextmanager
def _store() -> Iterator["SqlAlchemyStore"]:
    from backend.db import session as db_session
    from backend.db.store import SqlAlchemyStore

    db_session.connect()
    db = db_session.SessionLocal()
    try:
        yield SqlAlchemyStore(db)
    except RBACError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()
        db_session.disconnect()


@db_app.command("create-tables")
def db_create_tables():
    """Create all tables (idempotent)."""
    from backend.db import session as db_session

    db_session.connect()
    try:
        db_session.create_tables()
    finally:
        db_session.disconnect()
    typer.echo("✅ Tables created (or already exist)")


@db_app.command("seed")
def db_seed():
    """Create system roles and the initial administrator."""
    from backend.services.bootstrap_service import Bootstrapper

    with _store() as store:
        bootstrapper = Bootstrapper(store)
        created = bootstrapper.create_default_roles()
        admin = bootstrapper.ensure_initial_admin()
    typer.echo(f"✅ Seeded {len(created)} roles")
    typer.echo("✅ Created initial administrator" if admin else "ℹ️  Administrator already exists, skipping.")


@app.command("status")
def status():
    """Show whether the system is initialized."""
    from backend.services.bootstrap_service import Bootstrapper

    with _store() as store:
        result = Bootstrapper(store).system_status()
    typer.echo(json.dumps(result.model_dump(), indent=2))
    if not result.initialized:
        raise typer.Exit(code=2)


@maintenance_app.command("run")
def maintenance_run():
    """Run the full maintenance cycle."""
    from backend.services.maintenance_service import MaintenanceService

    with _store() as store:
        report = MaintenanceService(store).run_full_maintenance()
    typer.echo(json.dumps(report.model_dump(), indent=2))


@maintenance_app.command("counts")
def maintenance_counts():
    """Recompute per-role user counts."""
    from backend.services.maintenance_service import MaintenanceService

    with _store() as store:
        counts = MaintenanceService(store).recompute_role_user_counts()
    for name, count in counts.items():
        typer.echo(f"  {name}: {count}")


@maintenance_app.command("permissions")
def maintenance_permissions():
    """Repair user permission snapshots."""
    from backend.services.maintenance_service import MaintenanceService

    with _store() as store:
        updated = MaintenanceService(store).validate_user_permissions()
    typer.echo(f"✅ Updated permissions for {updated} users")


@maintenance_app.command("cleanup")
def maintenance_cleanup():
    """Reassign users holding invalid roles to Viewer."""
    from backend.services.maintenance_service import MaintenanceService

    with _store() as store:
        reassigned = MaintenanceService(store).cleanup_invalid_roles()
    typer.echo(f"✅ Reassigned {reassigned} users")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload"),
):
    """Start the FastAPI server."""
    import uvicorn
    uvicorn.run("backend.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()

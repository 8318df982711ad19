"""Back office CLI tool (backoffice)."""

import typer
from sqlalchemy.exc import SQLAlchemyError

from backoffice.core.logging_config import get_logger, setup_logging

app = typer.Typer(name="backoffice", help="Back office CLI")
db_app = typer.Typer(help="Database management commands")
app.add_typer(db_app, name="db")

logger = get_logger("cli")


@app.callback()
def main():
    setup_logging()


@db_app.command("init")
def db_init():
    """Create every table that does not exist yet."""
    import backoffice.models  # noqa: F401  registers the tables on Base.metadata
    from backoffice.db.base import Base
    from backoffice.db.session import get_engine

    try:
        Base.metadata.create_all(bind=get_engine())
    except SQLAlchemyError:
        logger.exception("db_init_failed")
        raise typer.Exit(code=1)
    typer.echo("Tables created")


@db_app.command("seed")
def db_seed():
    """Seed roles, menus, and the super-admin with full menu access."""
    from backoffice.db.session import new_session
    from backoffice.db.seeds.seed_roles import seed_roles
    from backoffice.db.seeds.seed_menus import seed_menus
    from backoffice.db.seeds.seed_super_admin import seed_super_admin

    db = new_session()
    try:
        seed_roles(db)
        seed_menus(db)
        ok = seed_super_admin(db)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("db_seed_failed")
        raise typer.Exit(code=1)
    finally:
        db.close()
    if not ok:
        raise typer.Exit(code=1)
    typer.echo("All seeds applied")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(None, help="Port (defaults to PORT)"),
    reload: bool = typer.Option(False, help="Auto-reload"),
):
    """Start the API server."""
    import uvicorn
    from backoffice.core.config import settings

    uvicorn.run("backoffice.main:app", host=host, port=port or settings.PORT, reload=reload)


if __name__ == "__main__":
    app()

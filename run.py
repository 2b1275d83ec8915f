import os

import uvicorn

from gearguard.core.config import settings


def run_migrations():
    """Run Alembic migrations."""
    from alembic.config import Config
    from alembic import command

    alembic_cfg = Config("alembic.ini")
    print("[STARTUP] Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    print("[STARTUP] Migrations complete!")


if __name__ == "__main__":
    # With RUN_MIGRATIONS=true the schema comes from Alembic; otherwise the app
    # lifespan creates missing tables on startup.
    if os.getenv("RUN_MIGRATIONS") == "true":
        run_migrations()

    print(f"[STARTUP] Server binding to host={settings.HOST} port={settings.PORT}")
    uvicorn.run(
        "gearguard.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
        workers=1,
    )

from sqlalchemy import create_engine, event

from core.config import DB_URL
from models import Base


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # Tests / lokal: Flask-Threads teilen sich die Datei
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # prüft Verbindung vor Benutzung
        "pool_recycle": 180,  # recycelt Connections regelmäßig
        "pool_timeout": 30,
        "pool_size": 5,
        "max_overflow": 10,
    }


engine = create_engine(DB_URL, **_engine_kwargs(DB_URL))

if engine.dialect.name == "sqlite":

    @event.listens_for(engine, "connect")
    def _sqlite_foreign_keys(dbapi_conn, _record):
        # ON DELETE CASCADE wie in PostgreSQL
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()


def ensure_tables() -> None:
    """Legt fehlende Tabellen an (idempotent)."""
    Base.metadata.create_all(engine)

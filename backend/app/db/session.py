from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.core.config import settings


def build_engine(database_url: str):
    """
    Engine SQLAlchemy pour une URL donnée.
    - sqlite:// (sans fichier) -> base en mémoire partagée (StaticPool)
    - sqlite fichier -> check_same_thread désactivé
    - sinon (Postgres) -> pool_pre_ping
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in {"sqlite://", "sqlite:///:memory:"}:
            kwargs["poolclass"] = StaticPool
        eng = create_engine(database_url, **kwargs)

        # FK non appliquées par défaut sous SQLite
        @event.listens_for(eng, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return eng

    return create_engine(database_url, pool_pre_ping=True)


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

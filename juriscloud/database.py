from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from decouple import config

from juriscloud.config import DEFAULT_DATABASE_URL

_engine = None
_engine_url = None

# Bound lazily so tests can point DATABASE_URL somewhere else at runtime
SessionLocal = sessionmaker(autocommit=False, autoflush=False)

Base = declarative_base()


def current_database_url() -> str:
    return config("DATABASE_URL", default=DEFAULT_DATABASE_URL)


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_unicode_lower(dbapi_connection, connection_record):
    # SQLite lower() only folds ASCII; ilike searches must match "Étude" with "étude"
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def get_engine():
    global _engine, _engine_url
    database_url = current_database_url()
    if _engine is None or _engine_url != database_url:
        if database_url.startswith("sqlite"):
            _engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                echo=False
            )
            event.listen(_engine, "connect", _register_unicode_lower)
        else:
            _engine = create_engine(
                database_url,
                pool_pre_ping=True,  # Enables pessimistic disconnect handling
                pool_recycle=300,    # Recycle connections every 5 minutes
                echo=False
            )
        _engine_url = database_url
        SessionLocal.configure(bind=_engine)
    return _engine


def reset_engine():
    """Drop the cached engine (used by tests)."""
    global _engine, _engine_url
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _engine_url = None
    SessionLocal.configure(bind=None)


def init_db():
    """Create all tables for the configured database."""
    # Register the models on Base.metadata
    import juriscloud.models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def new_session():
    get_engine()
    return SessionLocal()


def get_db():
    db = new_session()
    try:
        yield db
    finally:
        db.close()

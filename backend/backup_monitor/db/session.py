from sqlmodel import create_engine, Session, SQLModel
from backup_monitor.core.config import get_settings

_engine = None


def get_engine():
    global _engine
    if _engine is None:
        settings = get_settings()
        kwargs = {}
        if settings.database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
        else:
            kwargs.update(pool_size=10, max_overflow=20)
        _engine = create_engine(
            settings.database_url,
            echo=(settings.environment == "development"),
            pool_pre_ping=True,
            **kwargs,
        )
    return _engine


def get_session():
    with Session(get_engine()) as session:
        yield session


def create_all_tables():
    import backup_monitor.models  # noqa: F401  registers all tables
    SQLModel.metadata.create_all(get_engine())

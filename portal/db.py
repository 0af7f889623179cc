from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from .config import settings


def build_engine(url: str, **kwargs) -> Engine:
    """Pooled engine for the portal database; SQLite connections may cross threads."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    connect_args.update(kwargs.pop("connect_args", {}))
    return create_engine(
        url,
        future=True,
        pool_pre_ping=True,
        pool_recycle=3600,  # seconds
        connect_args=connect_args,
        **kwargs,
    )


engine = build_engine(settings.database_url)

# One session per request, closed by get_db
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

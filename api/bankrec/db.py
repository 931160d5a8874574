from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .config import get_settings


settings = get_settings()

# Using synchronous SQLAlchemy engine with psycopg
connect_args = {"check_same_thread": False} if settings.postgres_url.startswith("sqlite") else {}
engine = create_engine(settings.postgres_url, future=True, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

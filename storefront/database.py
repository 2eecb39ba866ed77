from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool

from storefront.config import settings


def build_engine(url: str):
    if url.startswith("sqlite"):
        # single shared connection so in-memory databases survive across threads
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,      # checks dead connections
        pool_recycle=1800        # refresh every 30 min
    )


engine = build_engine(settings.database_url)


def create_db_and_tables(bind=None):
    from storefront import models  # noqa: F401  registers every table
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session

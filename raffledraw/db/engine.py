from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ..config import load_settings


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    url = database_url or load_settings().db_url
    return create_engine(
        url,
        echo=echo,
        future=True,
    )


def get_sessionmaker(engine: Engine):
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Keep recorded runs readable after commit
        future=True,
    )


def init_db(engine: Engine) -> None:
    """Create the audit tables if they do not exist yet."""
    # Imported here so the models register themselves on the shared metadata.
    from ..models import Base

    Base.metadata.create_all(engine)

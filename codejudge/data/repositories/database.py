from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from codejudge.config import Config
from codejudge.data.schemas.submission import Submission  # noqa: F401  registers the table


def create_db_engine(url: Optional[str] = None) -> Engine:
    url = url or Config.DATABASE_URL
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


def init_db(engine: Engine) -> None:
    """
    Creates the submissions table if it does not exist yet.
    """
    SQLModel.metadata.create_all(engine)

from .catalog import ProblemCatalog
from .database import create_db_engine, init_db
from .submission import (
    InMemorySubmissionRepository,
    SqlSubmissionRepository,
    SubmissionRepository,
)

__all__ = [
    "ProblemCatalog",
    "create_db_engine",
    "init_db",
    "InMemorySubmissionRepository",
    "SqlSubmissionRepository",
    "SubmissionRepository",
]

import asyncio
import itertools
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from codejudge.config import logger
from codejudge.data.schemas.enums import SubmissionStatus
from codejudge.data.schemas.submission import Submission, SubmissionCreate
from codejudge.errors import (
    DatabaseException,
    SubmissionStateException,
    ValidationException,
)

# Create a module-specific logger
submission_logger = logger.getChild("submission_repository")

ALLOWED_TRANSITIONS = {
    SubmissionStatus.PENDING: {SubmissionStatus.COMPLETED, SubmissionStatus.FAILED},
    SubmissionStatus.COMPLETED: set(),
    SubmissionStatus.FAILED: set(),
}


def check_transition(current: SubmissionStatus, target: SubmissionStatus) -> None:
    """
    Raises:
        SubmissionStateException: ``target`` is not reachable from ``current``
    """
    if target not in ALLOWED_TRANSITIONS[SubmissionStatus(current)]:
        raise SubmissionStateException(
            detail=f"Cannot move submission from {SubmissionStatus(current).value} to {SubmissionStatus(target).value}"
        )


def _validate_create(data: SubmissionCreate) -> None:
    if data.problem_id is None and data.test_id is None:
        raise ValidationException(
            detail="A submission must reference a problem or a test"
        )


def _clone(submission: Submission) -> Submission:
    return Submission(**submission.model_dump())


def _newest_first(submissions: List[Submission]) -> List[Submission]:
    return sorted(submissions, key=lambda s: (s.created_at, s.id), reverse=True)


class SubmissionRepository(ABC):
    """Append-only log of graded attempts."""

    @abstractmethod
    async def create(self, data: SubmissionCreate) -> Submission:
        """Record a new ``pending`` submission and assign it a fresh id."""

    @abstractmethod
    async def get_by_id(self, submission_id: int) -> Optional[Submission]:
        ...

    @abstractmethod
    async def list_by_user(self, user_id: int) -> List[Submission]:
        ...

    @abstractmethod
    async def list_by_problem(self, problem_id: int) -> List[Submission]:
        ...

    @abstractmethod
    async def list_by_test(self, test_id: int) -> List[Submission]:
        ...

    @abstractmethod
    async def update(
        self,
        submission_id: int,
        status: SubmissionStatus,
        results: Optional[Dict[str, Any]] = None,
    ) -> Optional[Submission]:
        """
        Move a submission to ``status``.

        ``results`` replaces the stored results when given and keeps them
        when ``None``. Returns ``None`` for an unknown id.

        Raises:
            SubmissionStateException: the transition is not allowed
        """


class InMemorySubmissionRepository(SubmissionRepository):
    def __init__(self):
        self._submissions: Dict[int, Submission] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    async def create(self, data: SubmissionCreate) -> Submission:
        _validate_create(data)
        with self._lock:
            submission = Submission(
                id=next(self._ids),
                user_id=data.user_id,
                problem_id=data.problem_id,
                test_id=data.test_id,
                code=data.code,
                language=data.language,
                status=SubmissionStatus.PENDING,
                created_at=datetime.now(),
            )
            self._submissions[submission.id] = submission
        submission_logger.info(
            f"Submission created: ID {submission.id}, User ID {data.user_id}"
        )
        return _clone(submission)

    async def get_by_id(self, submission_id: int) -> Optional[Submission]:
        submission = self._submissions.get(submission_id)
        return _clone(submission) if submission else None

    def _filter(self, **criteria) -> List[Submission]:
        with self._lock:
            matches = [
                _clone(s)
                for s in self._submissions.values()
                if all(getattr(s, key) == value for key, value in criteria.items())
            ]
        return _newest_first(matches)

    async def list_by_user(self, user_id: int) -> List[Submission]:
        return self._filter(user_id=user_id)

    async def list_by_problem(self, problem_id: int) -> List[Submission]:
        return self._filter(problem_id=problem_id)

    async def list_by_test(self, test_id: int) -> List[Submission]:
        return self._filter(test_id=test_id)

    async def update(
        self,
        submission_id: int,
        status: SubmissionStatus,
        results: Optional[Dict[str, Any]] = None,
    ) -> Optional[Submission]:
        with self._lock:
            submission = self._submissions.get(submission_id)
            if submission is None:
                submission_logger.warning(
                    f"Update of unknown submission: ID {submission_id}"
                )
                return None
            check_transition(submission.status, status)
            submission = _clone(submission)
            submission.status = status
            if results is not None:
                submission.results = results
            self._submissions[submission_id] = submission
        submission_logger.info(
            f"Submission updated: ID {submission_id}, Status {SubmissionStatus(status).value}"
        )
        return _clone(submission)


class SqlSubmissionRepository(SubmissionRepository):
    """
    Submission log backed by the ``submissions`` table.

    The engine is synchronous; every call runs its session work in a worker
    thread so the event loop never blocks on the database.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    async def _run(self, operation, *args):
        try:
            return await asyncio.to_thread(operation, *args)
        except SQLAlchemyError as e:
            submission_logger.error(f"Database error: {str(e)}")
            raise DatabaseException(detail="Submission storage error") from e

    def _create(self, data: SubmissionCreate) -> Submission:
        submission = Submission(
            user_id=data.user_id,
            problem_id=data.problem_id,
            test_id=data.test_id,
            code=data.code,
            language=data.language,
            status=SubmissionStatus.PENDING,
            created_at=datetime.now(),
        )
        with self._session() as session:
            session.add(submission)
            session.commit()
            session.refresh(submission)
        return submission

    async def create(self, data: SubmissionCreate) -> Submission:
        _validate_create(data)
        submission = await self._run(self._create, data)
        submission_logger.info(
            f"Submission created: ID {submission.id}, User ID {data.user_id}"
        )
        return submission

    def _get(self, submission_id: int) -> Optional[Submission]:
        with self._session() as session:
            return session.get(Submission, submission_id)

    async def get_by_id(self, submission_id: int) -> Optional[Submission]:
        return await self._run(self._get, submission_id)

    def _list(self, column, value) -> List[Submission]:
        with self._session() as session:
            statement = (
                select(Submission)
                .where(column == value)
                .order_by(col(Submission.created_at).desc(), col(Submission.id).desc())
            )
            return list(session.exec(statement).all())

    async def list_by_user(self, user_id: int) -> List[Submission]:
        return await self._run(self._list, Submission.user_id, user_id)

    async def list_by_problem(self, problem_id: int) -> List[Submission]:
        return await self._run(self._list, Submission.problem_id, problem_id)

    async def list_by_test(self, test_id: int) -> List[Submission]:
        return await self._run(self._list, Submission.test_id, test_id)

    def _update(
        self,
        submission_id: int,
        status: SubmissionStatus,
        results: Optional[Dict[str, Any]],
    ) -> Optional[Submission]:
        with self._session() as session:
            submission = session.get(Submission, submission_id, with_for_update=True)
            if submission is None:
                return None
            check_transition(submission.status, status)
            submission.status = status
            if results is not None:
                submission.results = results
            session.add(submission)
            session.commit()
            session.refresh(submission)
            return submission

    async def update(
        self,
        submission_id: int,
        status: SubmissionStatus,
        results: Optional[Dict[str, Any]] = None,
    ) -> Optional[Submission]:
        submission = await self._run(self._update, submission_id, status, results)
        if submission is None:
            submission_logger.warning(f"Update of unknown submission: ID {submission_id}")
        else:
            submission_logger.info(
                f"Submission updated: ID {submission_id}, Status {SubmissionStatus(status).value}"
            )
        return submission

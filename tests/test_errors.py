"""Tests for error classification and the read retry policy."""

import httpx
import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy import func, select

from djagency.core.errors import (
    DomainError,
    ErrorKind,
    NotFoundError,
    ValidationError,
    classify_exception,
    to_domain_error,
)
from djagency.core.retry import read_retry, run_with_retry, should_retry
from djagency.models import Profile


class _PgError(Exception):
    def __init__(self, sqlstate):
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


class _StatusError(Exception):
    def __init__(self, status):
        super().__init__(f"status {status}")
        self.status = status


class _Savepoint:
    def __init__(self, session):
        self.session = session

    async def __aenter__(self):
        self.session.savepoints += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            # ROLLBACK TO SAVEPOINT clears the aborted state
            self.session.aborted = False
        return False


class _AbortingSession:
    """Behaves like a Postgres connection: after a failed statement every
    statement fails until the transaction (or a savepoint) is rolled back."""

    def __init__(self, failures=1):
        self.failures = failures
        self.aborted = False
        self.savepoints = 0
        self.statements = 0

    def begin_nested(self):
        return _Savepoint(self)

    async def execute(self, statement):
        self.statements += 1
        if self.aborted:
            raise sa_exc.InternalError(statement, {}, Exception("current transaction is aborted"))
        if self.failures:
            self.failures -= 1
            self.aborted = True
            raise sa_exc.OperationalError(statement, {}, Exception("server closed the connection"))
        return "rows"


def _http_error(status_code):
    request = httpx.Request("GET", "https://example.supabase.co/rest/v1/profiles")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("boom", request=request, response=response)


class TestClassifyException:
    """Mapping of raw failures onto error kinds."""

    def test_domain_errors_keep_their_kind(self):
        assert classify_exception(NotFoundError("Event", 1)) == ErrorKind.NOT_FOUND
        assert classify_exception(ValidationError("bad")) == ErrorKind.VALIDATION

    def test_integrity_error_is_conflict(self):
        error = sa_exc.IntegrityError("INSERT", {}, Exception("duplicate key"))
        assert classify_exception(error) == ErrorKind.CONFLICT

    def test_insufficient_privilege_is_unauthorized(self):
        error = sa_exc.ProgrammingError("SELECT", {}, _PgError("42501"))
        assert classify_exception(error) == ErrorKind.UNAUTHORIZED

    def test_operational_error_is_unavailable(self):
        error = sa_exc.OperationalError("SELECT", {}, Exception("connection refused"))
        assert classify_exception(error) == ErrorKind.UNAVAILABLE

    def test_other_dbapi_error_is_backend(self):
        error = sa_exc.ProgrammingError("SELECT", {}, _PgError("42P01"))
        assert classify_exception(error) == ErrorKind.BACKEND

    @pytest.mark.parametrize(
        "status, kind",
        [
            (401, ErrorKind.UNAUTHORIZED),
            (403, ErrorKind.UNAUTHORIZED),
            (404, ErrorKind.NOT_FOUND),
            (409, ErrorKind.CONFLICT),
            (422, ErrorKind.VALIDATION),
            (503, ErrorKind.UNAVAILABLE),
            (418, ErrorKind.BACKEND),
        ],
    )
    def test_http_status(self, status, kind):
        assert classify_exception(_http_error(status)) == kind
        assert classify_exception(_StatusError(status)) == kind

    def test_transport_errors_are_unavailable(self):
        assert classify_exception(httpx.ConnectError("refused")) == ErrorKind.UNAVAILABLE
        assert classify_exception(ConnectionResetError()) == ErrorKind.UNAVAILABLE
        assert classify_exception(TimeoutError()) == ErrorKind.UNAVAILABLE

    def test_anything_else_is_backend(self):
        assert classify_exception(RuntimeError("?")) == ErrorKind.BACKEND

    def test_to_domain_error(self):
        error = to_domain_error(_StatusError(409))
        assert isinstance(error, DomainError)
        assert error.kind == ErrorKind.CONFLICT
        assert error.status_code == 409

        original = ValidationError("bad")
        assert to_domain_error(original) is original


class TestRetryPolicy:
    """Bounded retries for reads."""

    def test_retryable_kinds(self):
        assert should_retry(httpx.ConnectError("refused"))
        assert should_retry(RuntimeError("?"))
        assert not should_retry(_StatusError(401))
        assert not should_retry(ValidationError("bad"))
        assert not should_retry(NotFoundError("Event", 1))

    async def test_retries_transient_failures(self):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("reset")
            return "ok"

        assert await run_with_retry(flaky, attempts=3, delay=0) == "ok"
        assert len(calls) == 3

    async def test_gives_up_after_max_attempts(self):
        calls = []

        async def always_down():
            calls.append(1)
            raise ConnectionError("down")

        with pytest.raises(ConnectionError):
            await run_with_retry(always_down, attempts=2, delay=0)
        assert len(calls) == 2

    async def test_unauthorized_is_not_retried(self):
        calls = []

        async def forbidden():
            calls.append(1)
            raise _StatusError(403)

        with pytest.raises(_StatusError):
            await run_with_retry(forbidden, attempts=5, delay=0)
        assert len(calls) == 1

    async def test_each_attempt_runs_in_a_savepoint(self):
        session = _AbortingSession(failures=1)

        result = await run_with_retry(lambda: session.execute("SELECT 1"), attempts=3, delay=0, session=session)

        assert result == "rows"
        assert session.savepoints == 2
        assert session.statements == 2

    async def test_without_savepoint_the_transaction_stays_aborted(self):
        session = _AbortingSession(failures=1)

        with pytest.raises(sa_exc.InternalError):
            await run_with_retry(lambda: session.execute("SELECT 1"), attempts=3, delay=0)
        assert session.statements == 3

    async def test_decorator_uses_the_db_argument(self):
        session = _AbortingSession(failures=2)

        @read_retry(attempts=3, delay=0)
        async def lookup(db, value):
            return await db.execute(value)

        assert await lookup(db=session, value="SELECT 1") == "rows"
        assert session.savepoints == 3

    async def test_decorator_on_a_real_session(self, db, admin):
        calls = []

        @read_retry(attempts=2, delay=0)
        async def count_profiles(db):
            calls.append(1)
            if len(calls) == 1:
                raise sa_exc.OperationalError("SELECT", {}, Exception("connection reset"))
            return (await db.execute(select(func.count(Profile.id)))).scalar_one()

        assert await count_profiles(db) == 1
        assert len(calls) == 2
        assert (await db.execute(select(func.count(Profile.id)))).scalar_one() == 1

    async def test_decorator(self):
        calls = []

        @read_retry(attempts=2, delay=0)
        async def lookup(value):
            calls.append(value)
            if len(calls) == 1:
                raise TimeoutError()
            return value * 2

        assert await lookup(21) == 42
        assert calls == [21, 21]

"""
Connection-loss classification.

Decides whether a failure means the session to the database is no longer
usable (retry on a fresh connection) or whether it is inherent to the
statement or the data (propagate immediately).

Manifesto:
    Retry logic and classification change for different reasons. The retry
    loop asks one question, "is this a lost connection?", and a detector
    answers it. Detectors are plain callables so they can be swapped or
    extended without touching the retry loop.

Architecture:
    ::

        exception ──▶ walk explicit cause chain ──▶ for each link:
                        1. isinstance(connection types)?
                        2. driver code in connection codes?
                        3. message contains a lost-connection marker?
                      any hit ──▶ FailureKind.CONNECTION_LOST
                      no hit  ──▶ FailureKind.OTHER

Examples:
    >>> from resilient_db.detection import default_detector, FailureKind
    >>> default_detector.classify(RuntimeError("MySQL server has gone away"))
    <FailureKind.CONNECTION_LOST: 'connection_lost'>
    >>> default_detector.classify(RuntimeError("no such table: users"))
    <FailureKind.OTHER: 'other'>

    Extending the defaults:

    >>> detector = default_detector.with_markers("proxy dropped session")

Guardrails:
    ❌ DON'T: Classify by driver exception class alone (sqlite3 raises
       OperationalError for both "no such table" and "disk I/O error")
    ✅ DO: Match on codes and messages, add types only when they are
       unambiguous

Tags:
    retry-logic, classification, lost-connection

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, replace
from enum import Enum

from resilient_db.errors import DatabaseConnectionError


class FailureKind(str, Enum):
    """Classification tag for a failed database call."""

    CONNECTION_LOST = "connection_lost"
    OTHER = "other"


Classifier = Callable[[BaseException], FailureKind]


DEFAULT_MARKERS: tuple[str, ...] = (
    "server has gone away",
    "no connection to the server",
    "lost connection",
    "is dead or not enabled",
    "error while sending",
    "decryption failed or bad record mac",
    "server closed the connection unexpectedly",
    "ssl connection has been closed unexpectedly",
    "error writing data to the connection",
    "resource deadlock avoided",
    "child connection forced to terminate due to client_idle_limit",
    "query_wait_timeout",
    "reset by peer",
    "physical connection is not usable",
    "packets out of order",
    "adaptive server connection failed",
    "communication link failure",
    "connection is no longer usable",
    "login timeout expired",
    "connection refused",
    "connection timed out",
    "the connection is broken and recovery is not possible",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "ssl syscall error",
    "ssl: broken pipe",
    "broken pipe",
    "the client was disconnected by the server because of inactivity",
    "could not connect to server",
    "could not translate host name",
    "connection already closed",
    "connection is closed",
    "cannot operate on a closed database",
    "terminating connection due to administrator command",
    "server closed the connection",
)

# MySQL client errno values: CR_CONNECTION_ERROR, CR_CONN_HOST_ERROR,
# CR_SERVER_GONE_ERROR, CR_SERVER_LOST, CR_SERVER_LOST_EXTENDED,
# ER_CLIENT_INTERACTION_TIMEOUT
DEFAULT_ERROR_CODES: frozenset[int] = frozenset({2002, 2003, 2006, 2013, 2055, 4031})

# SQLSTATE class 08 is "connection exception"; 57P01-57P03 are PostgreSQL
# admin/crash shutdown and "cannot connect now"
DEFAULT_SQLSTATE_PREFIXES: tuple[str, ...] = ("08", "57P01", "57P02", "57P03")

DEFAULT_TYPES: tuple[type[BaseException], ...] = (
    builtins.ConnectionError,
    builtins.TimeoutError,
    DatabaseConnectionError,
)


@dataclass(frozen=True)
class LostConnectionDetector:
    """Classify failures by exception type, driver code and message markers."""

    markers: tuple[str, ...] = DEFAULT_MARKERS
    error_codes: frozenset[int] = DEFAULT_ERROR_CODES
    sqlstate_prefixes: tuple[str, ...] = DEFAULT_SQLSTATE_PREFIXES
    types: tuple[type[BaseException], ...] = DEFAULT_TYPES

    def __call__(self, exc: BaseException) -> FailureKind:
        return self.classify(exc)

    def classify(self, exc: BaseException) -> FailureKind:
        for link in _cause_chain(exc):
            if self._matches(link):
                return FailureKind.CONNECTION_LOST
        return FailureKind.OTHER

    def is_lost_connection(self, exc: BaseException) -> bool:
        return self.classify(exc) is FailureKind.CONNECTION_LOST

    def with_markers(self, *markers: str) -> LostConnectionDetector:
        return replace(self, markers=self.markers + tuple(m.lower() for m in markers))

    def with_codes(self, *codes: int) -> LostConnectionDetector:
        return replace(self, error_codes=self.error_codes | frozenset(codes))

    def with_types(self, *types: type[BaseException]) -> LostConnectionDetector:
        return replace(self, types=self.types + types)

    def _matches(self, exc: BaseException) -> bool:
        if isinstance(exc, self.types):
            return True

        code = _driver_code(exc)
        if code is not None and code in self.error_codes:
            return True

        sqlstate = _sqlstate(exc)
        if sqlstate and sqlstate.startswith(self.sqlstate_prefixes):
            return True

        message = str(exc).lower()
        return any(marker in message for marker in self.markers)


def _cause_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` and its explicit causes, guarding against cycles."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        nxt = current.__cause__
        if nxt is None:
            # ResilientDbError keeps the cause on an attribute too
            candidate = getattr(current, "cause", None)
            nxt = candidate if isinstance(candidate, BaseException) else None
        current = nxt


def _driver_code(exc: BaseException) -> int | None:
    """Numeric driver error code (mysql-connector ``errno``)."""
    if isinstance(exc, OSError):
        # errno here is an OS error number, not a driver code
        return None
    errno = getattr(exc, "errno", None)
    if isinstance(errno, int) and not isinstance(errno, bool):
        return errno
    return None


def _sqlstate(exc: BaseException) -> str | None:
    """SQLSTATE from psycopg2 (``pgcode``) or mysql-connector (``sqlstate``)."""
    for attr in ("pgcode", "sqlstate"):
        value = getattr(exc, attr, None)
        if isinstance(value, str) and value:
            return value
    return None


def combine(*classifiers: Classifier) -> Classifier:
    """Classifier that reports a lost connection when any of ``classifiers`` does."""

    def _combined(exc: BaseException) -> FailureKind:
        for classifier in classifiers:
            if classifier(exc) is FailureKind.CONNECTION_LOST:
                return FailureKind.CONNECTION_LOST
        return FailureKind.OTHER

    return _combined


def from_predicate(predicate: Callable[[BaseException], bool]) -> Classifier:
    """Adapt a boolean ``is_lost(exc)`` function to a classifier."""

    def _classifier(exc: BaseException) -> FailureKind:
        return FailureKind.CONNECTION_LOST if predicate(exc) else FailureKind.OTHER

    return _classifier


def markers_detector(markers: Iterable[str]) -> LostConnectionDetector:
    """Detector that only matches ``markers``; no codes, no types."""
    return LostConnectionDetector(
        markers=tuple(m.lower() for m in markers),
        error_codes=frozenset(),
        sqlstate_prefixes=(),
        types=(),
    )


default_detector = LostConnectionDetector()


__all__ = [
    "FailureKind",
    "Classifier",
    "LostConnectionDetector",
    "DEFAULT_MARKERS",
    "DEFAULT_ERROR_CODES",
    "DEFAULT_SQLSTATE_PREFIXES",
    "DEFAULT_TYPES",
    "combine",
    "from_predicate",
    "markers_detector",
    "default_detector",
]

"""sqlsugar session layer."""
from sqlsugar.session.config import SessionConfig, SessionSettings
from sqlsugar.session.session import QueryResult, Session, Statement

__all__ = [
    "QueryResult",
    "Session",
    "SessionConfig",
    "SessionSettings",
    "Statement",
]

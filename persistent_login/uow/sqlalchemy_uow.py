"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from persistent_login.core.extensions import db
from persistent_login.repositories import PersistentLoginRepository, UserRepository
from persistent_login.uow.base import UnitOfWork


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    SQLAlchemy-backed UoW, by default on the Flask-scoped session.

    The same session is shared across all repositories for a consistent
    transaction. Leaving the block commits; an exception rolls back and
    propagates. With ``close_on_exit`` the session is closed afterwards.
    """

    def __init__(self, session: Session | None = None, *, close_on_exit: bool = False) -> None:
        self.session: Session = session if session is not None else db.session
        self.close_on_exit = close_on_exit
        self.users = UserRepository(session=self.session)
        self.persistent_logins = PersistentLoginRepository(session=self.session)

    @classmethod
    def isolated(cls) -> SQLAlchemyUnitOfWork:
        """
        UoW on a private session bound like the Flask-scoped one.

        Committing it never flushes objects left pending on the request's
        session.
        """
        return cls(Session(bind=db.session.get_bind()), close_on_exit=True)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                try:
                    self.commit()
                except Exception:
                    self.rollback()
                    raise
            else:
                self.rollback()
        finally:
            if self.close_on_exit:
                self.session.close()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

from persistent_login.uow.base import UnitOfWork
from persistent_login.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

__all__ = ["UnitOfWork", "SQLAlchemyUnitOfWork"]

"""Persistence contract: repositories and unit of work."""

from carepath.repositories.base import Repository, SqlAlchemyRepository
from carepath.repositories.unit_of_work import SqlAlchemyUnitOfWork, UnitOfWork

__all__ = [
    "Repository",
    "SqlAlchemyRepository",
    "UnitOfWork",
    "SqlAlchemyUnitOfWork",
]

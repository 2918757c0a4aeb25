"""
Generic async repository over one mapped model.

Reads only. Transactions belong to the caller (DatabaseService), and
mutations that must not lose concurrent writers live in subclasses as single
statements, never as load/modify/save in Python.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    async def get(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        """Primary key lookup that always hits the store, never the identity map."""
        instance = await session.get(self.model_class, id_value, populate_existing=True)
        self.log.debug(
            "Repository get",
            extra={
                "model": self.model_class.__name__,
                "id": id_value,
                "found": instance is not None,
            },
        )
        return instance

    async def find_many_where(
        self, session: AsyncSession, *conditions: ColumnElement[bool]
    ) -> List[T]:
        """Rows matching every condition, in the store's natural order."""
        result = await session.execute(select(self.model_class).where(*conditions))
        instances = list(result.scalars().all())
        self.log.debug(
            "Repository find_many_where",
            extra={"model": self.model_class.__name__, "count": len(instances)},
        )
        return instances

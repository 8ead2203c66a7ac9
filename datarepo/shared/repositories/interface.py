"""
Repository Interface

The contract every repository exposes to services. BaseRepository is
the SQLAlchemy implementation; tests and services may provide others.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Mapping, Optional, Sequence, TypeVar, Union

from sqlalchemy import Select

from datarepo.shared.schemas.common import PaginatedResponse
from datarepo.shared.schemas.filters import FilterInput


T = TypeVar("T")


class BaseRepositoryInterface(Generic[T], ABC):
    """Generic repository interface."""

    @abstractmethod
    async def find(self, record_id: Any, trash: bool = False) -> T:
        pass

    @abstractmethod
    async def find_one(self, filters: Optional[FilterInput] = None, trash: bool = False) -> Optional[T]:
        pass

    @abstractmethod
    async def find_and_lock(self, record_id: Any) -> T:
        pass

    @abstractmethod
    async def create(self, data: Mapping[str, Any]) -> T:
        pass

    @abstractmethod
    async def update(self, data: Mapping[str, Any], record_id: Any) -> T:
        pass

    @abstractmethod
    async def update_by(self, conditions: FilterInput, data: Mapping[str, Any]) -> int:
        pass

    @abstractmethod
    async def update_or_create(self, conditions: Mapping[str, Any], data: Mapping[str, Any]) -> T:
        pass

    @abstractmethod
    async def delete(self, record_id: Any) -> bool:
        pass

    @abstractmethod
    async def delete_by(self, conditions: FilterInput) -> int:
        pass

    @abstractmethod
    async def delete_all(self) -> int:
        pass

    @abstractmethod
    async def translation(self, instance: T, params: Mapping[str, Mapping[str, Any]]) -> T:
        pass

    @abstractmethod
    async def grouping(
        self,
        fields: Sequence[str],
        filters: Optional[Mapping[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def list(self, filters: Optional[Mapping[str, Any]] = None) -> list[T]:
        pass

    @abstractmethod
    async def list_paginated(
        self,
        filters: Mapping[str, Any],
        conditions: Optional[Mapping[str, Any]] = None,
    ) -> Union[PaginatedResponse[T], Select]:
        pass

    @abstractmethod
    async def next_priority(self) -> int:
        pass

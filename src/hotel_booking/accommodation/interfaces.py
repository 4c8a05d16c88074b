"""
Интерфейсы (порты) для контекста номерного фонда.

Определяет контракты, которые должны быть реализованы внешними адаптерами.
"""
from abc import abstractmethod
from typing import List, Optional, Protocol

from ..shared_kernel import EntityId
from .domain import Room


class IRoomRepository(Protocol):
    """Репозиторий для работы с номерами."""

    @abstractmethod
    def get_by_id(self, room_id: EntityId) -> Optional[Room]:
        """Возвращает номер по идентификатору."""
        ...

    @abstractmethod
    def list_all(self) -> List[Room]:
        """Возвращает все номера."""
        ...

    @abstractmethod
    def find_by_hotel(self, hotel_id: EntityId) -> List[Room]:
        """Находит номера отеля."""
        ...

    @abstractmethod
    def add(self, room: Room) -> None:
        """Добавляет новый номер."""
        ...

    @abstractmethod
    def update(self, room: Room) -> None:
        """Обновляет информацию о номере."""
        ...

    @abstractmethod
    def next_id(self) -> EntityId:
        """Выдает идентификатор для нового номера."""
        ...

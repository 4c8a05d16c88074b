"""
Инфраструктурный слой контекста номерного фонда.
"""
import threading
from typing import Dict, List, Optional

from ..shared_kernel import EntityId
from . import interfaces as ports
from .domain import Room


class InMemoryRoomRepository(ports.IRoomRepository):
    """Реализация репозитория номеров в памяти.

    Хранит и возвращает копии: изменения видны только после ``update``.
    """

    def __init__(self, with_sample_data: bool = False):
        self._rooms: Dict[EntityId, Room] = {}
        self._lock = threading.Lock()
        if with_sample_data:
            self._initialize_sample_data()

    def _initialize_sample_data(self) -> None:
        """Инициализирует тестовые данные: три отеля и их номера."""
        sample_rooms = {
            1: ["101", "102", "103", "201", "202"],
            2: ["101", "102", "201"],
            3: ["101", "102"],
        }

        for hotel_id, numbers in sample_rooms.items():
            for number in numbers:
                self.add(Room(id=self.next_id(), number=number, hotel_id=hotel_id))

    def get_by_id(self, room_id: EntityId) -> Optional[Room]:
        room = self._rooms.get(room_id)
        return room.model_copy() if room is not None else None

    def list_all(self) -> List[Room]:
        return [room.model_copy() for room in list(self._rooms.values())]

    def find_by_hotel(self, hotel_id: EntityId) -> List[Room]:
        return [room for room in self.list_all() if room.hotel_id == hotel_id]

    def add(self, room: Room) -> None:
        with self._lock:
            if room.id in self._rooms:
                raise ValueError(f"Room with id {room.id} already exists")
            self._rooms[room.id] = room.model_copy()

    def update(self, room: Room) -> None:
        with self._lock:
            if room.id not in self._rooms:
                raise KeyError(f"Room with id {room.id} not found")
            self._rooms[room.id] = room.model_copy()

    def next_id(self) -> EntityId:
        return max(self._rooms, default=0) + 1

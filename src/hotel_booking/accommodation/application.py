"""
Прикладной слой контекста номерного фонда.

Сервис номеров: рекомендации для равномерной загрузки, подтверждение
доступности и снятие блокировки для саги бронирования.
"""

import threading
from typing import List, Optional

from pydantic import BaseModel, Field

from ..booking.infrastructure import StructuredLogger
from ..booking.interfaces import ILogger
from ..shared_kernel import BusinessRuleValidationException, EntityId
from . import interfaces as ports
from .domain import Room, RoomNotFound, RoomRecommendationPolicy

# DTO (Data Transfer Objects) для входящих данных


class CreateRoomRequest(BaseModel):
    """Запрос на создание номера."""

    number: str = Field(..., min_length=1)
    hotel_id: EntityId


# DTO для исходящих данных


class RoomDTO(BaseModel):
    """DTO для представления номера."""

    id: EntityId
    number: str
    hotel_id: EntityId
    available: bool
    times_booked: int

    @classmethod
    def from_domain(cls, room: Room) -> "RoomDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=room.id,
            number=room.number,
            hotel_id=room.hotel_id,
            available=room.available,
            times_booked=room.times_booked,
        )


# Сервисы приложения


class RoomInventoryService:
    """Сервис приложения для управления номерами.

    Чтение, изменение и сохранение номера выполняются под блокировкой
    сервиса.
    """

    def __init__(
        self, rooms: ports.IRoomRepository, logger: Optional[ILogger] = None
    ):
        """Инициализирует сервис."""
        self._rooms = rooms
        self._logger = logger or StructuredLogger("hotel_booking.accommodation")
        self._lock = threading.Lock()

    def list_available_rooms(self) -> List[RoomDTO]:
        """Возвращает все доступные номера (без сортировки)."""
        return [
            RoomDTO.from_domain(room) for room in self._rooms.list_all() if room.available
        ]

    def get_recommended_rooms(self) -> List[RoomDTO]:
        """Возвращает рекомендованные номера для равномерной загрузки."""
        rooms = RoomRecommendationPolicy.recommend(self._rooms.list_all())
        return [RoomDTO.from_domain(room) for room in rooms]

    def get_rooms_by_hotel(self, hotel_id: EntityId) -> List[RoomDTO]:
        return [RoomDTO.from_domain(room) for room in self._rooms.find_by_hotel(hotel_id)]

    def add_room(self, request: CreateRoomRequest) -> RoomDTO:
        """Создает номер; номер комнаты уникален в пределах отеля."""
        with self._lock:
            exists = any(
                room.number == request.number
                for room in self._rooms.find_by_hotel(request.hotel_id)
            )
            if exists:
                raise BusinessRuleValidationException(
                    f"Номер {request.number} уже существует в отеле {request.hotel_id}"
                )

            room = Room(
                id=self._rooms.next_id(),
                number=request.number,
                hotel_id=request.hotel_id,
            )
            self._rooms.add(room)
        self._logger.info("Room created", room_id=room.id, hotel_id=room.hotel_id)
        return RoomDTO.from_domain(room)

    def set_room_availability(self, room_id: EntityId, available: bool) -> RoomDTO:
        with self._lock:
            room = self._get(room_id)
            if available:
                room.mark_as_available()
            else:
                room.mark_as_unavailable()
            self._rooms.update(room)
        return RoomDTO.from_domain(room)

    def confirm_availability(self, room_id: EntityId) -> bool:
        """Подтверждает доступность номера для саги бронирования."""
        room = self._get(room_id)
        self._logger.debug(
            "Availability requested", room_id=room_id, available=room.available
        )
        return room.available

    def release_block(self, room_id: EntityId) -> None:
        """Снимает блокировку номера (компенсирующее действие).

        Номер не держит блокировок между вызовами, поэтому повторное
        снятие безопасно.
        """
        self._get(room_id)
        self._logger.info("Room block released", room_id=room_id)

    def increment_times_booked(self, room_id: EntityId) -> None:
        """Увеличивает счетчик бронирований номера."""
        with self._lock:
            room = self._get(room_id)
            room.register_booking()
            self._rooms.update(room)

    def get_room_statistics(self) -> List[RoomDTO]:
        """Возвращает статистику загрузки всех номеров."""
        return [RoomDTO.from_domain(room) for room in self._rooms.list_all()]

    def _get(self, room_id: EntityId) -> Room:
        room = self._rooms.get_by_id(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

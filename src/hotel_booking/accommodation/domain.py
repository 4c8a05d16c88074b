"""
Доменная модель контекста номерного фонда.

Номер учитывает признак доступности и счетчик бронирований, по которому
сервис номеров равномерно распределяет новые бронирования.
"""

from typing import List, Sequence

from pydantic import BaseModel, Field

from ..shared_kernel import EntityId, EntityNotFoundException


class RoomNotFound(EntityNotFoundException):
    """Номер не найден."""

    def __init__(self, room_id: EntityId):
        super().__init__(f"Номер не найден: {room_id}")
        self.room_id = room_id


class Room(BaseModel):
    """Номер в отеле."""

    id: EntityId
    number: str  # Номер комнаты (например, "101", "202A")
    hotel_id: EntityId
    available: bool = True
    times_booked: int = Field(0, ge=0)

    def mark_as_available(self) -> None:
        self.available = True

    def mark_as_unavailable(self) -> None:
        """Снимает номер с продажи (ремонт, обслуживание)."""
        self.available = False

    def register_booking(self) -> None:
        """Увеличивает счетчик бронирований после подтверждения."""
        self.times_booked += 1


class RoomRecommendationPolicy:
    """Алгоритм планирования занятости номеров."""

    @staticmethod
    def recommend(rooms: Sequence[Room]) -> List[Room]:
        """Доступные номера по возрастанию times_booked, затем по id."""
        return sorted(
            (room for room in rooms if room.available),
            key=lambda room: (room.times_booked, room.id),
        )

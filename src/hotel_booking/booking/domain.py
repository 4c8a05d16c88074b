"""
Доменная модель контекста бронирования.

Содержит агрегат бронирования, проекцию кандидата на заселение,
алгоритм выбора номера и типизированные ошибки саги бронирования.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..shared_kernel import (
    AccessDeniedException,
    BookingStatus,
    BusinessRuleValidationException,
    ConcurrencyException,
    DateRange,
    DomainEvent,
    DomainException,
    EntityId,
    EntityNotFoundException,
    now,
)


class RoomCandidate(BaseModel):
    """Номер-кандидат, полученный из сервиса номеров."""

    model_config = ConfigDict(frozen=True)

    room_id: EntityId
    booking_load_count: int = Field(0, ge=0)  # Сколько раз номер уже бронировали


class AvailabilityResult(str, Enum):
    """Результат подтверждения доступности номера.

    UNAVAILABLE означает и реальную занятость номера, и исчерпанные
    попытки обращения к сервису номеров: для саги это один исход.
    """

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


def select_room(candidates: Sequence[RoomCandidate]) -> Optional[EntityId]:
    """Выбирает наименее загруженный номер.

    Сервис номеров уже отфильтровал занятые номера и отсортировал список
    по возрастанию загрузки (при равенстве - по идентификатору),
    поэтому достаточно взять первый элемент.
    """
    if not candidates:
        return None
    return candidates[0].room_id


# Доменные события


class BookingCreated(DomainEvent):
    """Событие создания бронирования."""

    booking_id: EntityId
    room_id: EntityId
    owner_id: str
    period: DateRange


class BookingConfirmed(DomainEvent):
    """Событие подтверждения бронирования."""

    booking_id: Optional[EntityId]
    room_id: EntityId


class BookingCancelled(DomainEvent):
    """Событие отмены бронирования."""

    booking_id: Optional[EntityId]
    room_id: EntityId
    reason: Optional[str] = None


# Ошибки контекста бронирования


class DuplicateIdempotencyKey(ConcurrencyException):
    """Бронирование с таким ключом идемпотентности уже сохранено."""

    def __init__(self, idempotency_key: str):
        super().__init__(
            f"Бронирование с ключом идемпотентности {idempotency_key} уже существует"
        )
        self.idempotency_key = idempotency_key


class StaleBooking(ConcurrencyException):
    """Бронирование изменено другим запросом после чтения."""

    def __init__(self, booking_id: EntityId, expected: int, actual: int):
        super().__init__(
            f"Бронирование {booking_id} изменено: ожидалась версия {expected}, "
            f"в хранилище {actual}"
        )
        self.booking_id = booking_id
        self.expected = expected
        self.actual = actual


class BookingNotFound(EntityNotFoundException):
    """Бронирование не найдено."""

    def __init__(self, booking_id: EntityId):
        super().__init__(f"Бронирование {booking_id} не найдено")
        self.booking_id = booking_id


class BookingAccessDenied(AccessDeniedException):
    """Пользователь пытается работать с чужим бронированием."""

    def __init__(self, booking_id: EntityId):
        super().__init__(f"Доступ к бронированию {booking_id} запрещен")
        self.booking_id = booking_id


class BookingAlreadyCancelled(BusinessRuleValidationException):
    """Бронирование уже отменено."""

    def __init__(self, booking_id: Optional[EntityId]):
        super().__init__(f"Бронирование {booking_id} уже отменено")
        self.booking_id = booking_id


class BookingSagaError(DomainException):
    """Базовая ошибка саги бронирования."""

    pass


class NoRoomAvailable(BookingSagaError):
    """Не удалось подобрать свободный номер."""

    def __init__(self) -> None:
        super().__init__("Не удалось выбрать номер")


class RoomUnavailable(BookingSagaError):
    """Сервис номеров не подтвердил доступность номера."""

    def __init__(self, room_id: EntityId, booking_id: Optional[EntityId] = None):
        super().__init__(f"Номер {room_id} недоступен на выбранные даты")
        self.room_id = room_id
        self.booking_id = booking_id


class BookingFailed(BookingSagaError):
    """Непредвиденная ошибка при подтверждении бронирования."""

    def __init__(self, reason: str, booking_id: Optional[EntityId] = None):
        super().__init__(f"Ошибка при подтверждении бронирования: {reason}")
        self.reason = reason
        self.booking_id = booking_id


class Booking(BaseModel):
    """Бронирование номера в отеле."""

    model_config = ConfigDict(validate_assignment=True)

    id: Optional[EntityId] = None
    owner_id: str
    room_id: EntityId
    period: DateRange
    status: BookingStatus = BookingStatus.PENDING
    idempotency_key: str
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
    cancel_reason: Optional[str] = None
    version: int = 0  # Для оптимистичной блокировки
    _domain_events: List[DomainEvent] = PrivateAttr(default_factory=list)

    @property
    def domain_events(self) -> List[DomainEvent]:
        """Возвращает список доменных событий."""
        return self._domain_events

    def pull_events(self) -> List[DomainEvent]:
        """Возвращает накопленные события и очищает список."""
        events, self._domain_events = self._domain_events, []
        return events

    def confirm(self) -> None:
        """Подтверждает бронирование."""
        if self.status != BookingStatus.PENDING:
            raise BusinessRuleValidationException(
                f"Невозможно подтвердить бронирование в статусе {self.status.value}"
            )

        self.status = BookingStatus.CONFIRMED
        self.updated_at = now()
        self._domain_events.append(
            BookingConfirmed(booking_id=self.id, room_id=self.room_id)
        )

    def cancel(self, reason: Optional[str] = None) -> None:
        """Отменяет бронирование."""
        if self.status == BookingStatus.CANCELLED:
            raise BookingAlreadyCancelled(self.id)

        self.status = BookingStatus.CANCELLED
        self.cancel_reason = reason
        self.updated_at = now()
        self._domain_events.append(
            BookingCancelled(booking_id=self.id, room_id=self.room_id, reason=reason)
        )

    def is_owned_by(self, owner_id: str) -> bool:
        return self.owner_id == owner_id

    def assign_id(self, booking_id: EntityId) -> None:
        """Присваивает идентификатор при первом сохранении."""
        if self.id is not None:
            raise BusinessRuleValidationException(
                f"Бронирование уже сохранено с идентификатором {self.id}"
            )

        self.id = booking_id
        self._domain_events.append(
            BookingCreated(
                booking_id=booking_id,
                room_id=self.room_id,
                owner_id=self.owner_id,
                period=self.period,
            )
        )

    def snapshot(self) -> "Booking":
        """Возвращает независимую копию без накопленных событий."""
        copy = self.model_copy(deep=True)
        copy._domain_events = []
        return copy

    @classmethod
    def create(
        cls,
        owner_id: str,
        room_id: EntityId,
        period: DateRange,
        idempotency_key: str,
    ) -> "Booking":
        """Создает новое бронирование в статусе PENDING."""
        return cls(
            owner_id=owner_id,
            room_id=room_id,
            period=period,
            idempotency_key=idempotency_key,
        )

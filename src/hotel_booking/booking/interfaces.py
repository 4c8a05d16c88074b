"""
Интерфейсы (порты) для контекста бронирования.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol, Type, TypeVar

from ..shared_kernel import DomainEvent, EntityId
from .domain import Booking, RoomCandidate

T_Event = TypeVar("T_Event", bound=DomainEvent)


class ILogger(Protocol):
    """Интерфейс для логгера."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...


class IEventBus(Protocol):
    """Интерфейс для шины событий."""

    def publish(self, event: DomainEvent) -> None: ...
    def subscribe(
        self, event_type: Type[T_Event], handler: Callable[[T_Event], None]
    ) -> None: ...


class IBookingRepository(Protocol):
    """Интерфейс хранилища бронирований.

    ``add`` атомарно проверяет уникальность ключа идемпотентности:
    при конфликте выбрасывается ``DuplicateIdempotencyKey``, а
    бронирование не сохраняется.

    ``update`` сохраняет агрегат, только если его ``version`` совпадает
    с сохраненной, и увеличивает версию; иначе ``StaleBooking``.
    """

    def add(self, booking: Booking) -> Booking: ...
    def update(self, booking: Booking) -> None: ...
    def get_by_id(self, booking_id: EntityId) -> Optional[Booking]: ...
    def find_by_idempotency_key(self, idempotency_key: str) -> Optional[Booking]: ...
    def find_by_owner(self, owner_id: str) -> List[Booking]: ...


class IInventoryClient(Protocol):
    """Клиент сервиса номеров.

    Порядок ``get_recommended_rooms``: по возрастанию загрузки,
    затем по возрастанию идентификатора номера.
    """

    def get_recommended_rooms(self) -> List[RoomCandidate]: ...
    def confirm_availability(self, room_id: EntityId) -> bool: ...
    def release_block(self, room_id: EntityId) -> None: ...

"""
Инфраструктурный слой контекста бронирования.

Содержит реализации хранилища бронирований, клиентов сервиса номеров,
логгера и шины событий, зависимые от конкретных технологий
(файлы, HTTP, стандартный logging).
"""
import json
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Type

import requests

from ..shared_kernel import DomainEvent, EntityId
from . import interfaces as ports
from .domain import Booking, DuplicateIdempotencyKey, RoomCandidate, StaleBooking

if TYPE_CHECKING:
    from ..accommodation.application import RoomInventoryService

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Настраивает корневой логгер приложения."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


class StructuredLogger(ports.ILogger):
    """Логгер поверх стандартного logging, контекст выводится как JSON."""

    def __init__(self, name: str = "hotel_booking"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, kwargs: dict) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if kwargs:
            message = f"{message} {json.dumps(kwargs, default=str, ensure_ascii=False)}"
        self._logger.log(level, message)

    def debug(self, message: str, **kwargs) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log(logging.ERROR, message, kwargs)


class InMemoryEventBus(ports.IEventBus):
    """Реализация шины событий в памяти."""

    def __init__(self, logger: Optional[ports.ILogger] = None):
        self._subscribers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._logger = logger or StructuredLogger()

    def publish(self, event: DomainEvent) -> None:
        """Публикует событие."""
        event_type = type(event)
        if event_type not in self._subscribers:
            self._logger.debug(f"No subscribers for event type {event_type.__name__}")
            return

        self._logger.info(
            f"Publishing event: {event_type.__name__}", event=event.model_dump()
        )

        for handler in self._subscribers[event_type]:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(
                    f"Error in event handler for {event_type.__name__}",
                    error=str(e),
                    event=event.model_dump(),
                )

    def subscribe(self, event_type: Type[DomainEvent], handler: Callable) -> None:
        """Подписывает обработчик на события указанного типа."""
        self._subscribers.setdefault(event_type, []).append(handler)
        self._logger.debug(f"Subscribed handler to {event_type.__name__} events")


class InMemoryBookingRepository(ports.IBookingRepository):
    """Реализация хранилища бронирований в памяти.

    Хранит копии агрегатов: изменения становятся видимыми только
    после ``update``. ``update`` проверяет версию агрегата и отклоняет
    запись поверх чужого изменения. Если ``_after_write`` завершился
    ошибкой, состояние в памяти откатывается.
    """

    def __init__(self):
        self._bookings: Dict[EntityId, Booking] = {}
        self._key_index: Dict[str, EntityId] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def add(self, booking: Booking) -> Booking:
        with self._lock:
            if booking.idempotency_key in self._key_index:
                raise DuplicateIdempotencyKey(booking.idempotency_key)

            booking_id = self._next_id
            stored = booking.snapshot()
            stored.id = booking_id
            self._bookings[booking_id] = stored
            self._key_index[booking.idempotency_key] = booking_id
            try:
                self._after_write()
            except Exception:
                del self._bookings[booking_id]
                del self._key_index[booking.idempotency_key]
                raise

            self._next_id += 1
            booking.assign_id(booking_id)
        return booking

    def update(self, booking: Booking) -> None:
        with self._lock:
            previous = self._bookings.get(booking.id)
            if previous is None:
                raise KeyError(f"Booking with id {booking.id} not found")
            if previous.version != booking.version:
                raise StaleBooking(booking.id, booking.version, previous.version)

            stored = booking.snapshot()
            stored.version = booking.version + 1
            self._bookings[booking.id] = stored
            try:
                self._after_write()
            except Exception:
                self._bookings[booking.id] = previous
                raise

            booking.version = stored.version

    def get_by_id(self, booking_id: EntityId) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        return booking.snapshot() if booking is not None else None

    def find_by_idempotency_key(self, idempotency_key: str) -> Optional[Booking]:
        booking_id = self._key_index.get(idempotency_key)
        if booking_id is None:
            return None
        return self.get_by_id(booking_id)

    def find_by_owner(self, owner_id: str) -> List[Booking]:
        return [
            booking.snapshot()
            for booking in list(self._bookings.values())
            if booking.owner_id == owner_id
        ]

    def _after_write(self) -> None:
        """Вызывается под блокировкой после каждого изменения."""
        pass


class JsonFileBookingRepository(InMemoryBookingRepository):
    """Хранилище бронирований в JSON-файле.

    Данные читаются при создании и целиком перезаписываются после
    каждого изменения.
    """

    def __init__(self, file_path: str):
        """
        Инициализирует хранилище.

        Args:
            file_path: Путь к JSON-файлу с данными
        """
        super().__init__()
        self._file_path = Path(file_path)
        self._load_data()

    def _load_data(self) -> None:
        """Загружает данные из JSON-файла."""
        if not self._file_path.exists():
            return

        with open(self._file_path, "r", encoding="utf-8") as f:
            raw_data = f.read()

        if not raw_data.strip():
            return

        for item in json.loads(raw_data):
            booking = Booking.model_validate(item)
            self._bookings[booking.id] = booking
            self._key_index[booking.idempotency_key] = booking.id

        if self._bookings:
            self._next_id = max(self._bookings) + 1

    def _after_write(self) -> None:
        self._save_data()

    def _save_data(self) -> None:
        """Сохраняет данные в JSON-файл."""
        # Создаем директорию, если она не существует
        self._file_path.parent.mkdir(parents=True, exist_ok=True)

        data = [item.model_dump(mode="json") for item in self._bookings.values()]

        # Пишем во временный файл и атомарно подменяем основной
        tmp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self._file_path)


class HttpInventoryClient(ports.IInventoryClient):
    """HTTP-клиент сервиса номеров."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    def get_recommended_rooms(self) -> List[RoomCandidate]:
        """Получает рекомендованные номера (по возрастанию загрузки)."""
        response = self._session.get(
            f"{self._base_url}/api/rooms/recommend", timeout=self._timeout
        )
        response.raise_for_status()
        return [
            RoomCandidate(
                room_id=room["id"], booking_load_count=room.get("timesBooked") or 0
            )
            for room in response.json()
        ]

    def confirm_availability(self, room_id: EntityId) -> bool:
        """Подтверждает доступность номера."""
        response = self._session.post(
            f"{self._base_url}/api/rooms/{room_id}/confirm-availability",
            timeout=self._timeout,
        )
        response.raise_for_status()
        return bool(response.json())

    def release_block(self, room_id: EntityId) -> None:
        """Снимает блокировку номера (компенсирующее действие)."""
        response = self._session.post(
            f"{self._base_url}/api/rooms/{room_id}/release", timeout=self._timeout
        )
        response.raise_for_status()


class AccommodationInventoryClient(ports.IInventoryClient):
    """Клиент, обращающийся к контексту номеров в том же процессе."""

    def __init__(self, service: "RoomInventoryService"):
        self._service = service

    def get_recommended_rooms(self) -> List[RoomCandidate]:
        return [
            RoomCandidate(room_id=room.id, booking_load_count=room.times_booked)
            for room in self._service.get_recommended_rooms()
        ]

    def confirm_availability(self, room_id: EntityId) -> bool:
        return self._service.confirm_availability(room_id)

    def release_block(self, room_id: EntityId) -> None:
        self._service.release_block(room_id)

"""
Прикладной слой контекста бронирования.

Содержит сагу бронирования: подтверждение доступности номера в сервисе
номеров с повторами, компенсирующее действие и оркестратор, который
ведет бронирование от PENDING до CONFIRMED или CANCELLED.
"""

import time
from datetime import date, datetime
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, model_validator

from ..shared_kernel import BookingStatus, DateRange, EntityId, generate_key
from . import interfaces as ports
from .config import SagaConfig
from .domain import (
    AvailabilityResult,
    Booking,
    BookingAccessDenied,
    BookingAlreadyCancelled,
    BookingFailed,
    BookingNotFound,
    DuplicateIdempotencyKey,
    NoRoomAvailable,
    RoomUnavailable,
    StaleBooking,
    select_room,
)

# DTO (Data Transfer Objects) для входящих данных


class CreateBookingRequest(BaseModel):
    """Запрос на создание бронирования.

    Если номер не указан, он подбирается автоматически.
    """

    room_id: Optional[EntityId] = None
    start_date: date
    end_date: date
    idempotency_key: Optional[str] = Field(None, min_length=1)

    @model_validator(mode="after")
    def end_not_before_start(self) -> "CreateBookingRequest":
        if self.end_date < self.start_date:
            raise ValueError("Дата выезда не может быть раньше даты заезда")
        return self


# DTO для исходящих данных


class BookingDTO(BaseModel):
    """DTO для представления бронирования."""

    id: EntityId
    owner_id: str
    room_id: EntityId
    start_date: date
    end_date: date
    status: BookingStatus
    idempotency_key: str
    created_at: datetime

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=booking.id,
            owner_id=booking.owner_id,
            room_id=booking.room_id,
            start_date=booking.period.start,
            end_date=booking.period.end,
            status=booking.status,
            idempotency_key=booking.idempotency_key,
            created_at=booking.created_at,
        )


# Шаги саги


class AvailabilityConfirmer:
    """Подтверждает доступность номера в сервисе номеров.

    Любое исключение транспорта или удаленного сервиса повторяется до
    ``config.max_attempts`` раз с фиксированной паузой. Если все попытки
    закончились ошибкой, возвращается UNAVAILABLE: ошибка транспорта
    никогда не доходит до вызывающего кода.
    """

    def __init__(
        self,
        client: ports.IInventoryClient,
        config: SagaConfig,
        logger: ports.ILogger,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._client = client
        self._config = config
        self._logger = logger
        self._sleep = sleep

    def confirm(self, room_id: EntityId) -> AvailabilityResult:
        """Подтверждает (и условно блокирует) номер для текущей попытки саги."""
        last_error: Optional[Exception] = None

        for attempt in range(1, self._config.max_attempts + 1):
            try:
                self._logger.debug(
                    "Confirming availability", room_id=room_id, attempt=attempt
                )
                available = self._client.confirm_availability(room_id)
            except Exception as e:
                last_error = e
                self._logger.warning(
                    "Availability confirmation attempt failed",
                    room_id=room_id,
                    attempt=attempt,
                    error=str(e),
                )
                if attempt < self._config.max_attempts:
                    self._sleep(self._config.wait_duration)
                continue

            if available:
                return AvailabilityResult.AVAILABLE
            return AvailabilityResult.UNAVAILABLE

        self._logger.error(
            "Failed to confirm availability, falling back to unavailable",
            room_id=room_id,
            attempts=self._config.max_attempts,
            error=str(last_error),
        )
        return AvailabilityResult.UNAVAILABLE

    def release(self, room_id: EntityId) -> None:
        """Снимает блокировку номера; ошибки только логируются."""
        try:
            self._client.release_block(room_id)
        except Exception as e:
            self._logger.warning(
                "Could not release room block", room_id=room_id, error=str(e)
            )


class Compensator:
    """Компенсирующее действие: отмена бронирования и снятие блокировки.

    Отмена сохраняется до обращения к сервису номеров, чтобы локальное
    хранилище было согласованным, даже если снятие блокировки не удалось.
    """

    def __init__(
        self,
        repository: ports.IBookingRepository,
        confirmer: AvailabilityConfirmer,
        logger: ports.ILogger,
    ):
        self._repository = repository
        self._confirmer = confirmer
        self._logger = logger

    def compensate(self, booking: Booking, reason: Optional[str] = None) -> None:
        self._logger.info("Performing compensation", booking_id=booking.id)

        try:
            booking.cancel(reason)
            self._repository.update(booking)
        except Exception as e:
            self._logger.error(
                "Error during compensation", booking_id=booking.id, error=str(e)
            )

        self._confirmer.release(booking.room_id)
        self._logger.info("Compensation completed", booking_id=booking.id)


# Сервисы приложения


class BookingSagaOrchestrator:
    """Сервис приложения, управляющий сагой бронирования."""

    def __init__(
        self,
        repository: ports.IBookingRepository,
        inventory: ports.IInventoryClient,
        logger: ports.ILogger,
        event_bus: Optional[ports.IEventBus] = None,
        config: Optional[SagaConfig] = None,
        confirmer: Optional[AvailabilityConfirmer] = None,
    ):
        """Инициализирует сервис."""
        self._repository = repository
        self._inventory = inventory
        self._logger = logger
        self._event_bus = event_bus
        self._config = config or SagaConfig()
        self._confirmer = confirmer or AvailabilityConfirmer(
            inventory, self._config, logger
        )
        self._compensator = Compensator(repository, self._confirmer, logger)

    def create_booking(
        self, request: CreateBookingRequest, owner_id: str
    ) -> BookingDTO:
        """Создает бронирование по саге PENDING -> CONFIRMED | CANCELLED."""
        self._logger.info(
            "Starting booking creation",
            owner_id=owner_id,
            idempotency_key=request.idempotency_key,
        )

        # Идемпотентность: повтор запроса возвращает уже созданное бронирование
        if request.idempotency_key is not None:
            existing = self._repository.find_by_idempotency_key(
                request.idempotency_key
            )
            if existing is not None:
                self._logger.info(
                    "Found existing booking for idempotency key",
                    booking_id=existing.id,
                    idempotency_key=request.idempotency_key,
                )
                return self._replay(existing, owner_id)

        idempotency_key = request.idempotency_key or generate_key()

        room_id = request.room_id
        if room_id is None:
            room_id = self._select_room()
            if room_id is None:
                raise NoRoomAvailable()
            self._logger.info("Auto-selected room", room_id=room_id, owner_id=owner_id)

        booking = Booking.create(
            owner_id=owner_id,
            room_id=room_id,
            period=DateRange(start=request.start_date, end=request.end_date),
            idempotency_key=idempotency_key,
        )

        try:
            self._repository.add(booking)
        except DuplicateIdempotencyKey:
            # Параллельный запрос с тем же ключом успел сохранить бронирование
            winner = self._repository.find_by_idempotency_key(idempotency_key)
            if winner is None:
                raise
            self._logger.info(
                "Concurrent booking with the same idempotency key, returning it",
                booking_id=winner.id,
                idempotency_key=idempotency_key,
            )
            return self._replay(winner, owner_id)

        self._logger.info("Created booking in PENDING status", booking_id=booking.id)
        self._publish(booking)

        try:
            result = self._confirmer.confirm(room_id)
            if result is AvailabilityResult.AVAILABLE:
                booking.confirm()
                self._repository.update(booking)
        except StaleBooking:
            # Пока шло подтверждение, бронирование изменили (например, отменил владелец)
            booking.pull_events()
            return self._resolve_conflict(booking)
        except Exception as e:
            self._logger.error(
                "Error during booking confirmation",
                booking_id=booking.id,
                error=str(e),
            )
            # Подтверждение не сохранено, его событие публиковать нельзя
            booking.pull_events()
            self._compensator.compensate(booking, reason=str(e))
            self._publish(booking)
            raise BookingFailed(str(e), booking_id=booking.id) from e

        if result is AvailabilityResult.AVAILABLE:
            self._logger.info("Booking confirmed", booking_id=booking.id)
            self._publish(booking)
            return BookingDTO.from_domain(booking)

        self._compensator.compensate(booking, reason="room unavailable")
        self._publish(booking)
        raise RoomUnavailable(room_id, booking_id=booking.id)

    def cancel_booking(self, booking_id: EntityId, owner_id: str) -> None:
        """Отменяет бронирование по запросу владельца."""
        booking = self._get_owned(booking_id, owner_id)

        booking.cancel(reason="cancelled by owner")
        self._repository.update(booking)
        self._logger.info("Booking cancelled by owner", booking_id=booking_id)
        self._publish(booking)

        # Освобождаем номер
        self._confirmer.release(booking.room_id)

    def get_booking(self, booking_id: EntityId, owner_id: str) -> BookingDTO:
        """Возвращает бронирование владельца."""
        return BookingDTO.from_domain(self._get_owned(booking_id, owner_id))

    def list_bookings(self, owner_id: str) -> List[BookingDTO]:
        """Возвращает бронирования пользователя, новые первыми."""
        bookings = sorted(
            self._repository.find_by_owner(owner_id),
            key=lambda booking: (booking.created_at, booking.id),
            reverse=True,
        )
        return [BookingDTO.from_domain(booking) for booking in bookings]

    def _get_owned(self, booking_id: EntityId, owner_id: str) -> Booking:
        booking = self._repository.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)

        # Пользователь имеет доступ только к своим бронированиям
        if not booking.is_owned_by(owner_id):
            raise BookingAccessDenied(booking_id)
        return booking

    def _replay(self, existing: Booking, owner_id: str) -> BookingDTO:
        """Ответ на повтор запроса: только для владельца ключа."""
        if not existing.is_owned_by(owner_id):
            raise BookingAccessDenied(existing.id)
        return BookingDTO.from_domain(existing)

    def _resolve_conflict(self, booking: Booking) -> BookingDTO:
        """Итог саги по сохраненному состоянию, а не по локальной копии."""
        current = self._repository.get_by_id(booking.id)
        if current is None:
            raise BookingNotFound(booking.id)

        self._logger.warning(
            "Booking changed concurrently during confirmation",
            booking_id=booking.id,
            status=current.status.value,
        )
        if current.status == BookingStatus.CANCELLED:
            # Подтверждение могло заново заблокировать уже освобожденный номер
            self._confirmer.release(current.room_id)
            raise BookingAlreadyCancelled(current.id)
        return BookingDTO.from_domain(current)

    def _select_room(self) -> Optional[EntityId]:
        try:
            candidates = self._inventory.get_recommended_rooms()
        except Exception as e:
            self._logger.error("Error selecting optimal room", error=str(e))
            return None
        return select_room(candidates)

    def _publish(self, booking: Booking) -> None:
        events = booking.pull_events()
        if self._event_bus is None:
            return
        for event in events:
            self._event_bus.publish(event)

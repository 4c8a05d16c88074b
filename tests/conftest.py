"""
Общие фикстуры для тестов саги бронирования.
"""
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence, Union
from unittest.mock import MagicMock

import pytest

from hotel_booking.booking.application import (
    AvailabilityConfirmer,
    BookingSagaOrchestrator,
    CreateBookingRequest,
)
from hotel_booking.booking.config import SagaConfig
from hotel_booking.booking.domain import RoomCandidate
from hotel_booking.booking.infrastructure import (
    InMemoryBookingRepository,
    InMemoryEventBus,
)
from hotel_booking.booking.interfaces import ILogger

ConfirmAnswer = Union[bool, Exception]


class FakeInventoryClient:
    """Тестовый двойник сервиса номеров, записывающий все вызовы."""

    def __init__(
        self,
        answers: Sequence[ConfirmAnswer] = (True,),
        candidates: Sequence[RoomCandidate] = (),
        release_error: Optional[Exception] = None,
    ):
        self._answers = list(answers)
        self.candidates = list(candidates)
        self.release_error = release_error
        self.confirm_calls: List[int] = []
        self.release_calls: List[int] = []
        self.recommend_calls = 0

    def get_recommended_rooms(self) -> List[RoomCandidate]:
        self.recommend_calls += 1
        return list(self.candidates)

    def confirm_availability(self, room_id: int) -> bool:
        self.confirm_calls.append(room_id)
        # Последний ответ повторяется для всех следующих вызовов
        answer = self._answers.pop(0) if len(self._answers) > 1 else self._answers[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def release_block(self, room_id: int) -> None:
        self.release_calls.append(room_id)
        if self.release_error is not None:
            raise self.release_error


class RecordingSleep:
    """Вместо паузы запоминает запрошенные задержки."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def logger() -> MagicMock:
    return MagicMock(spec=ILogger)


@pytest.fixture
def config() -> SagaConfig:
    return SagaConfig()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def inventory() -> FakeInventoryClient:
    return FakeInventoryClient()


@pytest.fixture
def repository() -> InMemoryBookingRepository:
    return InMemoryBookingRepository()


@pytest.fixture
def event_bus(logger) -> InMemoryEventBus:
    return InMemoryEventBus(logger)


@pytest.fixture
def make_orchestrator(
    repository, logger, config, sleep, event_bus
) -> Callable[[FakeInventoryClient], BookingSagaOrchestrator]:
    """Фабрика оркестратора вокруг заданного двойника сервиса номеров."""

    def factory(inventory: FakeInventoryClient) -> BookingSagaOrchestrator:
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)
        return BookingSagaOrchestrator(
            repository=repository,
            inventory=inventory,
            logger=logger,
            event_bus=event_bus,
            config=config,
            confirmer=confirmer,
        )

    return factory


@pytest.fixture
def orchestrator(make_orchestrator, inventory) -> BookingSagaOrchestrator:
    return make_orchestrator(inventory)


def booking_request(**overrides) -> CreateBookingRequest:
    """Запрос на бронирование номера 5 с 1 по 3 июня."""
    fields: Dict = {
        "room_id": 5,
        "start_date": date(2025, 6, 1),
        "end_date": date(2025, 6, 3),
    }
    fields.update(overrides)
    return CreateBookingRequest(**fields)

"""
Тесты шагов саги: подтверждение доступности с повторами и компенсация.
"""
from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from conftest import FakeInventoryClient
from hotel_booking.booking.application import AvailabilityConfirmer, Compensator
from hotel_booking.booking.config import SagaConfig
from hotel_booking.booking.domain import AvailabilityResult, Booking
from hotel_booking.shared_kernel import BookingStatus, DateRange


class TestAvailabilityConfirmer:
    """Тесты политики повторов при подтверждении доступности."""

    def test_available_on_first_attempt(self, config, logger, sleep):
        inventory = FakeInventoryClient(answers=[True])
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)

        assert confirmer.confirm(5) is AvailabilityResult.AVAILABLE
        assert inventory.confirm_calls == [5]
        assert sleep.delays == []

    def test_negative_answer_is_not_retried(self, config, logger, sleep):
        """Ответ "недоступен" окончателен: повторяются только ошибки."""
        inventory = FakeInventoryClient(answers=[False])
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)

        assert confirmer.confirm(5) is AvailabilityResult.UNAVAILABLE
        assert inventory.confirm_calls == [5]

    def test_exhausted_retries_fall_back_to_unavailable(self, config, logger, sleep):
        """Ровно три попытки с паузой 500 мс, затем UNAVAILABLE без исключения."""
        inventory = FakeInventoryClient(answers=[requests.ConnectionError("down")])
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)

        result = confirmer.confirm(5)

        assert result is AvailabilityResult.UNAVAILABLE
        assert inventory.confirm_calls == [5, 5, 5]
        assert sleep.delays == [0.5, 0.5]
        logger.error.assert_called_once()

    def test_success_on_last_attempt_is_not_a_fallback(self, config, logger, sleep):
        inventory = FakeInventoryClient(
            answers=[RuntimeError("timeout"), RuntimeError("timeout"), True]
        )
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)

        assert confirmer.confirm(5) is AvailabilityResult.AVAILABLE
        assert len(inventory.confirm_calls) == 3
        assert sleep.delays == [0.5, 0.5]
        logger.error.assert_not_called()

    def test_recovery_after_one_failure(self, config, logger, sleep):
        inventory = FakeInventoryClient(answers=[RuntimeError("503"), False])
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)

        assert confirmer.confirm(5) is AvailabilityResult.UNAVAILABLE
        assert len(inventory.confirm_calls) == 2
        assert sleep.delays == [0.5]

    def test_policy_comes_from_config(self, logger, sleep):
        config = SagaConfig(max_attempts=5, wait_duration=0.1)
        inventory = FakeInventoryClient(answers=[RuntimeError("down")])
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)

        confirmer.confirm(5)

        assert len(inventory.confirm_calls) == 5
        assert sleep.delays == [0.1] * 4

    def test_release_swallows_errors(self, config, logger, sleep):
        inventory = FakeInventoryClient(release_error=RuntimeError("boom"))
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)

        confirmer.release(5)

        assert inventory.release_calls == [5]
        logger.warning.assert_called_once()


class TestCompensator:
    """Тесты компенсирующего действия."""

    @pytest.fixture
    def pending_booking(self, repository) -> Booking:
        booking = Booking.create(
            owner_id="alice",
            room_id=5,
            period=DateRange(start=date(2025, 6, 1), end=date(2025, 6, 3)),
            idempotency_key="key-1",
        )
        repository.add(booking)
        return booking

    def test_cancels_persists_and_releases(
        self, repository, config, logger, sleep, pending_booking
    ):
        inventory = FakeInventoryClient()
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)
        compensator = Compensator(repository, confirmer, logger)

        compensator.compensate(pending_booking, reason="room unavailable")

        stored = repository.get_by_id(pending_booking.id)
        assert stored.status == BookingStatus.CANCELLED
        assert stored.cancel_reason == "room unavailable"
        assert inventory.release_calls == [5]

    def test_cancellation_is_persisted_before_release(
        self, repository, config, logger, sleep, pending_booking
    ):
        """Снятие блокировки видит уже сохраненную отмену."""
        seen_statuses = []

        class ObservingInventory(FakeInventoryClient):
            def release_block(self, room_id):
                seen_statuses.append(repository.get_by_id(pending_booking.id).status)
                super().release_block(room_id)

        confirmer = AvailabilityConfirmer(
            ObservingInventory(), config, logger, sleep=sleep
        )
        Compensator(repository, confirmer, logger).compensate(pending_booking)

        assert seen_statuses == [BookingStatus.CANCELLED]

    def test_release_failure_is_not_surfaced(
        self, repository, config, logger, sleep, pending_booking
    ):
        inventory = FakeInventoryClient(release_error=RuntimeError("boom"))
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)

        Compensator(repository, confirmer, logger).compensate(pending_booking)

        assert repository.get_by_id(pending_booking.id).status == BookingStatus.CANCELLED
        assert inventory.release_calls == [5]

    def test_store_failure_is_logged_and_release_still_attempted(
        self, config, logger, sleep, pending_booking
    ):
        broken_repository = MagicMock()
        broken_repository.update.side_effect = IOError("disk full")
        inventory = FakeInventoryClient()
        confirmer = AvailabilityConfirmer(inventory, config, logger, sleep=sleep)

        Compensator(broken_repository, confirmer, logger).compensate(pending_booking)

        logger.error.assert_called_once()
        assert inventory.release_calls == [5]

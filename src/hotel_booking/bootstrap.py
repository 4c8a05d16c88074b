from functools import partial
from typing import Optional

from .accommodation.application import RoomInventoryService
from .accommodation.event_handlers import on_booking_confirmed
from .accommodation.infrastructure import InMemoryRoomRepository
from .booking import interfaces as ports
from .booking.application import AvailabilityConfirmer, BookingSagaOrchestrator
from .booking.config import SagaConfig
from .booking.domain import BookingConfirmed
from .booking.infrastructure import (
    AccommodationInventoryClient,
    HttpInventoryClient,
    InMemoryBookingRepository,
    InMemoryEventBus,
    JsonFileBookingRepository,
    StructuredLogger,
    configure_logging,
)


def bootstrap_app(
    config: Optional[SagaConfig] = None,
    inventory_client: Optional[ports.IInventoryClient] = None,
):
    """Создает и настраивает все компоненты приложения."""
    config = config or SagaConfig.from_env()
    configure_logging(config.log_level)
    logger = StructuredLogger("hotel_booking.booking")

    # 1. Хранилище бронирований
    if config.booking_store_path:
        repository = JsonFileBookingRepository(config.booking_store_path)
    else:
        repository = InMemoryBookingRepository()

    event_bus = InMemoryEventBus(logger)

    # 2. Сервис номеров: удаленный по HTTP или контекст в том же процессе
    inventory_service = None
    if inventory_client is None:
        if config.inventory_base_url:
            inventory_client = HttpInventoryClient(
                config.inventory_base_url, timeout=config.request_timeout
            )
        else:
            inventory_service = RoomInventoryService(
                InMemoryRoomRepository(with_sample_data=True)
            )
            inventory_client = AccommodationInventoryClient(inventory_service)

            # Подтвержденное бронирование увеличивает загрузку номера
            handler = partial(on_booking_confirmed, service=inventory_service)
            event_bus.subscribe(BookingConfirmed, handler)

    # 3. Сага бронирования
    confirmer = AvailabilityConfirmer(inventory_client, config, logger)
    orchestrator = BookingSagaOrchestrator(
        repository=repository,
        inventory=inventory_client,
        logger=logger,
        event_bus=event_bus,
        config=config,
        confirmer=confirmer,
    )

    return {
        "config": config,
        "booking_repository": repository,
        "event_bus": event_bus,
        "inventory_client": inventory_client,
        "inventory_service": inventory_service,
        "booking_service": orchestrator,
    }

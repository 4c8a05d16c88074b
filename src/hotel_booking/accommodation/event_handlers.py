from ..booking.domain import BookingConfirmed
from .application import RoomInventoryService


def on_booking_confirmed(
    event: BookingConfirmed, service: "RoomInventoryService"
) -> None:
    """Обработчик события подтверждения бронирования."""
    service.increment_times_booked(event.room_id)

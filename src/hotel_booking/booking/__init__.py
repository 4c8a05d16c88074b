"""
Модуль контекста бронирования (Booking Context).

Отвечает за сагу бронирования номеров, включая:
- Создание бронирования и подтверждение доступности номера в сервисе номеров
- Компенсацию при неудаче и отмену бронирования владельцем
- Идемпотентную обработку повторных запросов
"""

from . import application, config, domain, infrastructure, interfaces

__all__ = [
    "application",
    "config",
    "domain",
    "infrastructure",
    "interfaces",
]

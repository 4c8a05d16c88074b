"""
Модуль контекста номерного фонда (Accommodation Context).

Играет роль сервиса номеров для саги бронирования:
рекомендации, подтверждение доступности и снятие блокировки номера.
"""

from . import application, domain, event_handlers, infrastructure, interfaces

__all__ = [
    "application",
    "domain",
    "event_handlers",
    "infrastructure",
    "interfaces",
]

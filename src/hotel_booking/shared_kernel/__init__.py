"""
Общее ядро (Shared Kernel) для системы бронирования отелей.

Содержит общие типы данных и утилиты, используемые в различных ограниченных контекстах.
"""

from .domain import (
    AccessDeniedException,
    BookingStatus,
    BusinessRuleValidationException,
    ConcurrencyException,
    DateRange,
    DomainEvent,
    # Исключения
    DomainException,
    # Базовые типы
    EntityId,
    EntityNotFoundException,
    generate_key,
    # Утилиты
    now,
    today,
)

__all__ = [
    # Базовые типы
    "EntityId",
    "generate_key",
    # Основные классы
    "DateRange",
    "DomainEvent",
    # Перечисления
    "BookingStatus",
    # Исключения
    "DomainException",
    "BusinessRuleValidationException",
    "ConcurrencyException",
    "EntityNotFoundException",
    "AccessDeniedException",
    # Утилиты
    "now",
    "today",
]

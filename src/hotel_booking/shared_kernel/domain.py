"""
Основные доменные типы и утилиты общего ядра.
"""

from datetime import date, datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Идентификаторы назначаются хранилищем при сохранении
EntityId = int


def generate_key() -> str:
    """Генерирует новый ключ идемпотентности."""
    return uuid4().hex


class DateRange(BaseModel):
    """Диапазон дат проживания."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def end_not_before_start(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("Дата выезда не может быть раньше даты заезда")
        return self

    @property
    def nights(self) -> int:
        """Количество ночей в бронировании."""
        return (self.end - self.start).days


class DomainEvent(BaseModel):
    """Базовый класс для всех доменных событий."""

    event_id: UUID = Field(default_factory=uuid4)
    occurred_on: datetime = Field(default_factory=lambda: now())

    @property
    def event_type(self) -> str:
        return type(self).__name__


class BookingStatus(str, Enum):
    """Статусы бронирования."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    pass


class BusinessRuleValidationException(DomainException):
    """Исключение при нарушении бизнес-правил."""

    pass


class ConcurrencyException(DomainException):
    """Исключение при конфликте параллельных изменений."""

    pass


class EntityNotFoundException(DomainException):
    """Сущность не найдена."""

    pass


class AccessDeniedException(DomainException):
    """Доступ к сущности запрещен."""

    pass


# Общие утилиты
def now() -> datetime:
    """Возвращает текущую дату и время."""
    return datetime.now(timezone.utc)


def today() -> date:
    """Возвращает текущую дату."""
    return date.today()

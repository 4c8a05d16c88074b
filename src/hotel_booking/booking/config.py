"""
Конфигурация саги бронирования.

Значения по умолчанию соответствуют политике повторов сервиса бронирования:
три попытки с фиксированной паузой 500 мс.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "BOOKING_SAGA_"


class SagaConfig(BaseModel):
    """Параметры саги бронирования."""

    max_attempts: int = Field(3, ge=1, description="Число попыток подтверждения")
    wait_duration: float = Field(
        0.5, ge=0, description="Пауза между попытками, в секундах"
    )
    request_timeout: Optional[float] = Field(
        5.0, gt=0, description="Таймаут одного HTTP-запроса к сервису номеров"
    )
    inventory_base_url: Optional[str] = None
    booking_store_path: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SagaConfig":
        """Читает конфигурацию из переменных окружения BOOKING_SAGA_*."""
        environ = os.environ if environ is None else environ
        mapping = {
            "MAX_ATTEMPTS": "max_attempts",
            "WAIT_DURATION": "wait_duration",
            "REQUEST_TIMEOUT": "request_timeout",
            "INVENTORY_URL": "inventory_base_url",
            "STORE_PATH": "booking_store_path",
            "LOG_LEVEL": "log_level",
        }
        values = {
            field: environ[ENV_PREFIX + name]
            for name, field in mapping.items()
            if environ.get(ENV_PREFIX + name)
        }
        return cls.model_validate(values)

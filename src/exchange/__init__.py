"""Exchange — курс обмена двух активов и симулированный settlement.

State machine: IDLE → VALIDATING → SETTLING → IDLE
"""

from .notifications import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
    Notification,
    NotificationLevel,
    NotificationSink,
)
from .settlement import ExchangeReceipt, ExchangeRequest, Settler, SimulatedSettler
from .state_machine import (
    ExchangeConfig,
    ExchangeEngine,
    ExchangeValidationResult,
    parse_exchange_amount,
    swap,
    validate_exchange_request,
)

__all__ = [
    "ExchangeConfig",
    "ExchangeEngine",
    "ExchangeValidationResult",
    "parse_exchange_amount",
    "swap",
    "validate_exchange_request",
    "ExchangeReceipt",
    "ExchangeRequest",
    "Settler",
    "SimulatedSettler",
    "InMemoryNotificationSink",
    "LoggingNotificationSink",
    "Notification",
    "NotificationLevel",
    "NotificationSink",
]

"""
Exchange State Machine — курс, конвертация и симулированный обмен двух активов

Фазы: IDLE → VALIDATING → SETTLING → IDLE

- Пересчёт курса (recompute) синхронный и выполняется после каждой
  изменяющей операции: выбор актива, ввод суммы, swap, refresh каталога.
- Единственная приостанавливающая операция — settlement в execute_exchange.
  Пока обмен в SETTLING, второй execute_exchange отклоняется
  (ExchangeInProgressError); пересчёт курса при этом не блокируется.
- Невалидный запрос (нет актива, сумма пустая / нечисловая / <= 0) —
  no-op без уведомления.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from src.catalog.price_catalog import CatalogSnapshot, PriceCatalog
from src.core.domain.asset import Asset
from src.core.domain.exchange_state import EMPTY_QUOTE, ExchangePhase, ExchangeState
from src.core.errors import (
    DivisionByZeroError,
    ExchangeInProgressError,
    InvalidAmountError,
    SettlementError,
)
from src.core.math.conversion import CONVERTED_AMOUNT_DECIMALS, evaluate_quote
from src.core.math.numerical_safeguards import (
    parse_non_negative_float,
    validate_non_negative,
    validate_positive,
)
from src.exchange.notifications import Notification, NotificationLevel, NotificationSink
from src.exchange.settlement import (
    ExchangeReceipt,
    ExchangeRequest,
    Settler,
    SimulatedSettler,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class ExchangeConfig:
    """
    Конфигурация ExchangeEngine.

    - settlement_delay_sec: задержка SimulatedSettler
    - settlement_timeout_sec: таймаут settlement (None — без таймаута)
    - converted_amount_decimals: знаков в to_amount
    """

    settlement_delay_sec: float = 2.0
    settlement_timeout_sec: Optional[float] = 30.0
    converted_amount_decimals: int = CONVERTED_AMOUNT_DECIMALS

    def __post_init__(self) -> None:
        validate_non_negative(self.settlement_delay_sec, "settlement_delay_sec")
        if self.settlement_timeout_sec is not None:
            validate_positive(self.settlement_timeout_sec, "settlement_timeout_sec")
        if self.converted_amount_decimals < 0:
            raise ValueError(
                f"converted_amount_decimals must be non-negative, "
                f"got {self.converted_amount_decimals}"
            )


# =============================================================================
# PURE TRANSITIONS
# =============================================================================


def swap(state: ExchangeState) -> ExchangeState:
    """
    Обмен местами from_asset ↔ to_asset.

    Предыдущий to_amount переносится в from_amount. Новые to_amount и rate
    НЕ пересчитываются здесь: это делает следующий цикл пересчёта.
    Если один из активов не выбран — состояние не меняется.
    """
    if not state.has_pair:
        return state

    return state.model_copy(
        update={
            "from_asset": state.to_asset,
            "to_asset": state.from_asset,
            "from_amount": state.to_amount,
        }
    )


def parse_exchange_amount(amount_text: str) -> float:
    """
    Сумма обмена из текста ввода.

    Raises:
        InvalidAmountError: Если текст пустой, нечисловой или сумма <= 0
    """
    if not amount_text or not amount_text.strip():
        raise InvalidAmountError(amount_text, "amount is empty")

    amount = parse_non_negative_float(amount_text)
    if amount is None:
        raise InvalidAmountError(amount_text, "amount is not a non-negative number")
    if amount <= 0:
        raise InvalidAmountError(amount_text, "amount must be positive")

    return amount


@dataclass(frozen=True)
class ExchangeValidationResult:
    """Результат проверки запроса обмена."""

    allowed: bool
    block_reason: str
    details: str


def validate_exchange_request(state: ExchangeState) -> ExchangeValidationResult:
    """
    Проверка допуска обмена.

    Порядок проверок:
    1. Оба актива выбраны
    2. Сумма валидна и > 0
    """
    if state.from_asset is None or state.to_asset is None:
        return ExchangeValidationResult(
            allowed=False,
            block_reason="asset_not_selected",
            details="Both assets must be selected",
        )

    try:
        parse_exchange_amount(state.from_amount)
    except InvalidAmountError as e:
        return ExchangeValidationResult(
            allowed=False, block_reason="invalid_amount", details=str(e)
        )

    return ExchangeValidationResult(allowed=True, block_reason="", details="")


def success_message(request: ExchangeRequest) -> str:
    return (
        f"Successfully exchanged {request.from_amount} {request.from_symbol} "
        f"for {request.to_amount} {request.to_symbol}"
    )


# =============================================================================
# ENGINE
# =============================================================================


class ExchangeEngine:
    """
    Владелец ExchangeState: пересчёт курса и симулированный обмен.

    Работает в одном event loop (кооперативная многозадачность): проверка и
    смена фазы в execute_exchange происходят без await, поэтому атомарны.
    """

    def __init__(
        self,
        notification_sink: NotificationSink,
        settler: Optional[Settler] = None,
        config: Optional[ExchangeConfig] = None,
        catalog: Optional[PriceCatalog] = None,
    ):
        self.config = config or ExchangeConfig()
        self.notification_sink = notification_sink
        self.settler: Settler = settler or SimulatedSettler(self.config.settlement_delay_sec)
        self._state = ExchangeState()
        self._unsubscribe: Optional[Callable[[], None]] = None
        if catalog is not None:
            self._unsubscribe = catalog.subscribe(self.on_catalog_refresh)

    # -------------------------------------------------------------------------
    # Чтение
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ExchangeState:
        return self._state

    @property
    def phase(self) -> ExchangePhase:
        return self._state.phase

    @property
    def is_settling(self) -> bool:
        return self._state.phase == ExchangePhase.SETTLING

    # -------------------------------------------------------------------------
    # Изменяющие операции (каждая завершается пересчётом)
    # -------------------------------------------------------------------------

    def select_from_asset(self, asset: Optional[Asset]) -> ExchangeState:
        return self._update(from_asset=asset)

    def select_to_asset(self, asset: Optional[Asset]) -> ExchangeState:
        return self._update(to_asset=asset)

    def set_from_amount(self, amount_text: str) -> ExchangeState:
        return self._update(from_amount=amount_text)

    def set_to_amount(self, amount_text: str) -> ExchangeState:
        """
        Ручная правка получаемой суммы.

        Пересчёт не запускается: значение живёт до следующего изменения
        актива или from_amount.
        """
        self._state = self._state.model_copy(update={"to_amount": amount_text})
        return self._state

    def swap_assets(self) -> ExchangeState:
        self._state = swap(self._state)
        return self.recompute()

    def on_catalog_refresh(self, snapshot: CatalogSnapshot) -> None:
        """
        Переразрешение выбранных активов по symbol в новом снапшоте.

        Актив, исчезнувший из каталога, становится невыбранным.
        """
        state = self._state
        from_asset = snapshot.get(state.from_asset.symbol) if state.from_asset else None
        to_asset = snapshot.get(state.to_asset.symbol) if state.to_asset else None
        self._update(from_asset=from_asset, to_asset=to_asset)

    def recompute(self) -> ExchangeState:
        """
        Цикл пересчёта курса и сконвертированной суммы.

        Нулевая цена базового актива не пробрасывается: курс сбрасывается,
        причина сохраняется в state.quote_error.
        """
        state = self._state
        try:
            quote = evaluate_quote(
                state.from_asset,
                state.to_asset,
                state.from_amount,
                self.config.converted_amount_decimals,
            )
        except DivisionByZeroError as e:
            logger.warning("Exchange rate unavailable: %s", e)
            self._state = state.with_quote(EMPTY_QUOTE, quote_error=str(e))
            return self._state

        self._state = state.with_quote(quote)
        return self._state

    def close(self) -> None:
        """Отписка от refresh каталога."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # -------------------------------------------------------------------------
    # Обмен
    # -------------------------------------------------------------------------

    async def execute_exchange(self) -> Optional[ExchangeReceipt]:
        """
        Симулированный обмен: VALIDATING → SETTLING → IDLE.

        Returns:
            ExchangeReceipt при успехе; None если запрос невалиден
            или settlement не удался (в этом случае отправлено error-уведомление)

        Raises:
            ExchangeInProgressError: Если другой обмен ещё не завершён
            asyncio.CancelledError: Если задача отменена во время settlement
        """
        if self._state.phase != ExchangePhase.IDLE:
            logger.warning("Exchange rejected: another exchange is %s", self._state.phase.value)
            raise ExchangeInProgressError(
                f"Exchange already in progress (phase={self._state.phase.value})"
            )

        self._set_phase(ExchangePhase.VALIDATING)
        validation = validate_exchange_request(self._state)
        if not validation.allowed:
            logger.debug(
                "Exchange request blocked: %s (%s)", validation.block_reason, validation.details
            )
            self._set_phase(ExchangePhase.IDLE)
            return None

        state = self._state
        request = ExchangeRequest(
            from_symbol=state.from_asset.symbol,
            to_symbol=state.to_asset.symbol,
            from_amount=state.from_amount,
            to_amount=state.to_amount,
            rate=state.rate,
        )
        self._set_phase(ExchangePhase.SETTLING)
        logger.info(
            "Settling exchange %s %s -> %s %s",
            request.from_amount,
            request.from_symbol,
            request.to_amount,
            request.to_symbol,
        )

        try:
            try:
                await self._settle(request)
            except asyncio.CancelledError:
                logger.warning("Exchange settlement cancelled")
                raise
            except SettlementError as e:
                logger.error("Exchange settlement failed: %s", e)
                self._set_phase(ExchangePhase.IDLE)
                self._notify(NotificationLevel.ERROR, f"Exchange failed: {e}")
                return None
            except Exception as e:
                logger.exception("Settler raised unexpected error")
                self._set_phase(ExchangePhase.IDLE)
                self._notify(NotificationLevel.ERROR, f"Exchange failed: {e}")
                return None

            self._state = self._state.model_copy(
                update={"from_amount": "", "to_amount": "", "phase": ExchangePhase.IDLE}
            )
            self.recompute()

            message = success_message(request)
            self._notify(NotificationLevel.SUCCESS, message)
            logger.info("Exchange settled: %s", message)
            return ExchangeReceipt(request=request, message=message)
        finally:
            # Ни один исход settlement не оставляет engine в SETTLING
            if self._state.phase != ExchangePhase.IDLE:
                self._set_phase(ExchangePhase.IDLE)

    async def _settle(self, request: ExchangeRequest) -> None:
        timeout = self.config.settlement_timeout_sec
        try:
            await asyncio.wait_for(self.settler.settle(request), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise SettlementError(f"settlement timed out after {timeout}s") from e

    # -------------------------------------------------------------------------
    # Внутреннее
    # -------------------------------------------------------------------------

    def _update(self, **changes) -> ExchangeState:
        self._state = self._state.model_copy(update=changes)
        return self.recompute()

    def _set_phase(self, phase: ExchangePhase) -> None:
        self._state = self._state.model_copy(update={"phase": phase})

    def _notify(self, level: NotificationLevel, message: str) -> None:
        self.notification_sink.notify(Notification(level=level, message=message))

"""
Тесты для Exchange State Machine

Проверяет:
1. Переходы фаз IDLE → VALIDATING → SETTLING → IDLE
2. Пересчёт курса после каждой изменяющей операции
3. swap (в том числе двойной swap)
4. Нулевую цену базового актива (quote_error вместо исключения)
5. Невалидный запрос = no-op без уведомления
6. Не более одного обмена в SETTLING
7. Таймаут, отказ и отмену settlement
"""

import asyncio
import logging

import pytest

from src.catalog import PriceCatalog
from src.core.domain import Asset, ExchangePhase, ExchangeState
from src.core.errors import ExchangeInProgressError, InvalidAmountError, SettlementError
from src.exchange import (
    ExchangeConfig,
    ExchangeEngine,
    ExchangeRequest,
    InMemoryNotificationSink,
    Notification,
    NotificationLevel,
    SimulatedSettler,
    parse_exchange_amount,
    swap,
    validate_exchange_request,
)


def make_asset(symbol: str, price: float) -> Asset:
    return Asset(symbol=symbol, name=symbol, icon_url=f"icons/{symbol}.svg", price=price)


ETH = make_asset("ETH", 2000.0)
ARB = make_asset("ARB", 1.5)


class RecordingSettler:
    """Settler для тестов: фиксирует запросы, ждёт события или бросает ошибку."""

    def __init__(self, error: Exception | None = None, hold: bool = False):
        self.error = error
        self.requests: list[ExchangeRequest] = []
        self.release = asyncio.Event()
        self.started = asyncio.Event()
        self.hold = hold

    async def settle(self, request: ExchangeRequest) -> None:
        self.requests.append(request)
        self.started.set()
        if self.hold:
            await self.release.wait()
        if self.error is not None:
            raise self.error


class FailingNotificationSink:
    """Sink, который не может доставить уведомление."""

    def notify(self, notification: Notification) -> None:
        raise RuntimeError("sink offline")


@pytest.fixture
def sink()-> InMemoryNotificationSink:
    return InMemoryNotificationSink()


@pytest.fixture
def settler() -> RecordingSettler:
    return RecordingSettler()


@pytest.fixture
def engine(sink: InMemoryNotificationSink, settler: RecordingSettler) -> ExchangeEngine:
    return ExchangeEngine(notification_sink=sink, settler=settler)


@pytest.fixture
def ready_engine(engine: ExchangeEngine) -> ExchangeEngine:
    engine.select_from_asset(ETH)
    engine.select_to_asset(ARB)
    engine.set_from_amount("10")
    return engine


# =============================================================================
# PURE TRANSITIONS
# =============================================================================


class TestSwap:
    """Тесты для swap"""

    def test_swap_moves_to_amount_into_from_amount(self) -> None:
        """to_amount переходит в from_amount, активы меняются местами."""
        state = ExchangeState(
            from_asset=ETH, to_asset=ARB, from_amount="1", to_amount="1333.333333", rate=1.0
        )
        swapped = swap(state)
        assert swapped.from_asset == ARB
        assert swapped.to_asset == ETH
        assert swapped.from_amount == "1333.333333"
        # to_amount и rate пересчитываются следующим циклом, не swap
        assert swapped.to_amount == "1333.333333"
        assert swapped.rate == 1.0

    def test_double_swap_restores_assets(self) -> None:
        """Двойной swap возвращает исходную пару."""
        state = ExchangeState(from_asset=ETH, to_asset=ARB)
        twice = swap(swap(state))
        assert twice.from_asset == ETH
        assert twice.to_asset == ARB

    def test_swap_without_pair_is_noop(self) -> None:
        """Без обоих активов swap ничего не меняет."""
        state = ExchangeState(from_asset=ETH, from_amount="5")
        assert swap(state) is state


class TestParseExchangeAmount:
    """Тесты для parse_exchange_amount"""

    def test_valid(self) -> None:
        """Положительное число парсится в float."""
        assert parse_exchange_amount("10") == 10.0
        assert parse_exchange_amount("0.5") == 0.5

    @pytest.mark.parametrize(
        "text, reason",
        [
            ("", "amount is empty"),
            ("   ", "amount is empty"),
            ("abc", "amount is not a non-negative number"),
            ("-1", "amount is not a non-negative number"),
            ("0", "amount must be positive"),
            ("0.0", "amount must be positive"),
        ],
    )
    def test_invalid(self, text: str, reason: str) -> None:
        """Пустой, нечисловой, отрицательный или нулевой ввод → InvalidAmountError."""
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_exchange_amount(text)
        assert exc_info.value.reason == reason
        assert exc_info.value.amount_text == text


class TestValidateExchangeRequest:
    """Тесты для validate_exchange_request"""

    def test_allowed(self) -> None:
        """Оба актива и положительная сумма → обмен разрешён."""
        result = validate_exchange_request(
            ExchangeState(from_asset=ETH, to_asset=ARB, from_amount="1")
        )
        assert result.allowed
        assert result.block_reason == ""

    def test_missing_asset(self) -> None:
        """Не выбран актив → asset_not_selected."""
        result = validate_exchange_request(ExchangeState(from_asset=ETH, from_amount="1"))
        assert not result.allowed
        assert result.block_reason == "asset_not_selected"

    def test_invalid_amount(self) -> None:
        """Нулевая сумма → invalid_amount с причиной."""
        result = validate_exchange_request(
            ExchangeState(from_asset=ETH, to_asset=ARB, from_amount="0")
        )
        assert not result.allowed
        assert result.block_reason == "invalid_amount"
        assert "amount must be positive" in result.details


class TestExchangeConfig:
    """Тесты для ExchangeConfig"""

    def test_defaults(self) -> None:
        """Значения по умолчанию: задержка 2s, 6 знаков."""
        config = ExchangeConfig()
        assert config.settlement_delay_sec == 2.0
        assert config.converted_amount_decimals == 6

    def test_negative_delay_rejected(self) -> None:
        """Отрицательная задержка → ValueError."""
        with pytest.raises(ValueError, match="settlement_delay_sec"):
            ExchangeConfig(settlement_delay_sec=-1.0)

    def test_non_positive_timeout_rejected(self) -> None:
        """Нулевой таймаут → ValueError."""
        with pytest.raises(ValueError, match="settlement_timeout_sec"):
            ExchangeConfig(settlement_timeout_sec=0.0)

    def test_no_timeout_allowed(self) -> None:
        """None отключает таймаут."""
        assert ExchangeConfig(settlement_timeout_sec=None).settlement_timeout_sec is None

    def test_default_settler_uses_configured_delay(self, sink: InMemoryNotificationSink) -> None:
        """SimulatedSettler по умолчанию берёт задержку из конфигурации."""
        engine = ExchangeEngine(sink, config=ExchangeConfig(settlement_delay_sec=0.5))
        assert isinstance(engine.settler, SimulatedSettler)
        assert engine.settler.delay_sec == 0.5


# =============================================================================
# RECOMPUTE
# =============================================================================


class TestRecompute:
    """Тесты пересчёта курса в ExchangeEngine"""

    def test_initial_state(self, engine: ExchangeEngine) -> None:
        """Новый engine: IDLE, курс 0, пустая сумма."""
        assert engine.phase is ExchangePhase.IDLE
        assert engine.state.rate == 0.0
        assert engine.state.to_amount == ""

    def test_rate_after_selection(self, engine: ExchangeEngine) -> None:
        """Курс появляется, когда выбраны оба актива."""
        engine.select_from_asset(ETH)
        assert engine.state.rate == 0.0

        state = engine.select_to_asset(ARB)
        assert state.rate == pytest.approx(0.00075)
        assert state.to_amount == ""

    def test_to_amount_after_amount_input(self, engine: ExchangeEngine) -> None:
        """Ввод суммы пересчитывает to_amount."""
        engine.select_from_asset(ETH)
        engine.select_to_asset(ARB)
        state = engine.set_from_amount("1")
        assert state.to_amount == "0.000750"

    def test_unparsable_amount_clears_quote(self, ready_engine: ExchangeEngine) -> None:
        """Нечисловая сумма сбрасывает курс и to_amount."""
        state = ready_engine.set_from_amount("abc")
        assert state.rate == 0.0
        assert state.to_amount == ""

    def test_swap_assets_recomputes(self, ready_engine: ExchangeEngine) -> None:
        """swap_assets пересчитывает курс для новой пары."""
        before = ready_engine.state
        state = ready_engine.swap_assets()
        assert state.from_asset == ARB
        assert state.to_asset == ETH
        assert state.from_amount == before.to_amount
        assert state.rate == pytest.approx(2000.0 / 1.5)

    def test_double_swap_round_trip(self, ready_engine: ExchangeEngine) -> None:
        """Двойной swap_assets восстанавливает курс."""
        ready_engine.swap_assets()
        state = ready_engine.swap_assets()
        assert state.from_asset == ETH
        assert state.to_asset == ARB
        assert state.rate == pytest.approx(0.00075)

    def test_zero_price_base_sets_quote_error(self, engine: ExchangeEngine) -> None:
        """Нулевая цена базового актива → quote_error вместо исключения."""
        engine.select_from_asset(make_asset("FREE", 0.0))
        engine.select_to_asset(ARB)
        state = engine.set_from_amount("1")
        assert state.rate == 0.0
        assert state.to_amount == ""
        assert state.quote_error is not None
        assert "FREE" in state.quote_error

    def test_quote_error_cleared_after_valid_pair(self, engine: ExchangeEngine) -> None:
        """Валидная пара очищает quote_error."""
        engine.select_from_asset(make_asset("FREE", 0.0))
        engine.select_to_asset(ARB)
        engine.set_from_amount("1")
        state = engine.select_from_asset(ETH)
        assert state.quote_error is None
        assert state.to_amount == "0.000750"

    def test_manual_to_amount_not_recomputed(self, ready_engine: ExchangeEngine) -> None:
        """Ручной to_amount не перезаписывается пересчётом."""
        state = ready_engine.set_to_amount("42")
        assert state.to_amount == "42"
        assert state.rate == pytest.approx(0.00075)

    def test_custom_decimals(self, sink: InMemoryNotificationSink) -> None:
        """converted_amount_decimals=2 → '1333.33'."""
        engine = ExchangeEngine(sink, config=ExchangeConfig(converted_amount_decimals=2))
        engine.select_from_asset(ARB)
        engine.select_to_asset(ETH)
        assert engine.set_from_amount("1").to_amount == "1333.33"

    def test_huge_amount(self, engine: ExchangeEngine) -> None:
        """Сумма 1e60 конвертируется без исключения и без quote_error."""
        engine.select_from_asset(make_asset("AAA", 2.0))
        engine.select_to_asset(make_asset("BBB", 2.0))
        state = engine.set_from_amount("1e60")
        assert state.rate == 1.0
        assert state.quote_error is None
        assert state.to_amount == "1" + "0" * 60 + ".000000"


class TestCatalogRefresh:
    """Тесты переразрешения активов при refresh каталога"""

    def test_prices_follow_catalog(self, sink: InMemoryNotificationSink) -> None:
        """refresh каталога обновляет цены выбранных активов."""
        catalog = PriceCatalog()
        catalog.refresh([{"currency": "ETH", "price": 2000.0}, {"currency": "ARB", "price": 1.5}])
        engine = ExchangeEngine(sink, catalog=catalog)
        engine.select_from_asset(catalog.require("ETH"))
        engine.select_to_asset(catalog.require("ARB"))
        engine.set_from_amount("1")

        catalog.refresh([{"currency": "ETH", "price": 3000.0}, {"currency": "ARB", "price": 1.5}])

        assert engine.state.rate == pytest.approx(0.0005)
        assert engine.state.to_amount == "0.000500"

    def test_removed_asset_unselected(self, sink: InMemoryNotificationSink) -> None:
        """Актив, пропавший из каталога, снимается с выбора."""
        catalog = PriceCatalog()
        catalog.refresh([{"currency": "ETH", "price": 2000.0}, {"currency": "ARB", "price": 1.5}])
        engine = ExchangeEngine(sink, catalog=catalog)
        engine.select_from_asset(catalog.require("ETH"))
        engine.select_to_asset(catalog.require("ARB"))

        catalog.refresh([{"currency": "ETH", "price": 2000.0}])

        assert engine.state.from_asset is not None
        assert engine.state.to_asset is None
        assert engine.state.rate == 0.0

    def test_close_unsubscribes(self, sink: InMemoryNotificationSink) -> None:
        """После close refresh каталога не влияет на engine."""
        catalog = PriceCatalog()
        catalog.refresh([{"currency": "ETH", "price": 2000.0}, {"currency": "ARB", "price": 1.5}])
        engine = ExchangeEngine(sink, catalog=catalog)
        engine.select_from_asset(catalog.require("ETH"))
        engine.select_to_asset(catalog.require("ARB"))
        engine.close()

        catalog.refresh([{"currency": "ETH", "price": 3000.0}, {"currency": "ARB", "price": 1.5}])

        assert engine.state.rate == pytest.approx(0.00075)


# =============================================================================
# EXECUTE EXCHANGE
# =============================================================================


class TestExecuteExchange:
    """Тесты для execute_exchange"""

    @pytest.mark.asyncio
    async def test_success(
        self,
        ready_engine: ExchangeEngine,
        sink: InMemoryNotificationSink,
        settler: RecordingSettler,
    ) -> None:
        """Успешный обмен: receipt, SUCCESS уведомление, запрос в settler."""
        expected_to_amount = ready_engine.state.to_amount

        receipt = await ready_engine.execute_exchange()

        assert receipt is not None
        assert receipt.message == f"Successfully exchanged 10 ETH for {expected_to_amount} ARB"
        assert sink.messages == [receipt.message]
        assert sink.notifications[0].level is NotificationLevel.SUCCESS
        assert settler.requests[0].from_symbol == "ETH"
        assert settler.requests[0].rate == pytest.approx(0.00075)

    @pytest.mark.asyncio
    async def test_success_resets_amounts(self, ready_engine: ExchangeEngine) -> None:
        """После успеха суммы очищены, активы сохранены."""
        await ready_engine.execute_exchange()

        state = ready_engine.state
        assert state.phase is ExchangePhase.IDLE
        assert state.from_amount == ""
        assert state.to_amount == ""
        assert state.rate == 0.0
        assert state.from_asset == ETH
        assert state.to_asset == ARB

    @pytest.mark.asyncio
    async def test_with_simulated_settler(self, sink: InMemoryNotificationSink) -> None:
        """Обмен через SimulatedSettler с нулевой задержкой."""
        engine = ExchangeEngine(sink, config=ExchangeConfig(settlement_delay_sec=0.0))
        engine.select_from_asset(ETH)
        engine.select_to_asset(ARB)
        engine.set_from_amount("1")

        receipt = await engine.execute_exchange()

        assert receipt is not None
        assert sink.messages == ["Successfully exchanged 1 ETH for 0.000750 ARB"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["", "abc", "0", "-5"])
    async def test_invalid_amount_is_noop(
        self,
        ready_engine: ExchangeEngine,
        sink: InMemoryNotificationSink,
        settler: RecordingSettler,
        amount: str,
    ) -> None:
        """Невалидная сумма: None, без уведомления и без settlement."""
        ready_engine.set_from_amount(amount)

        assert await ready_engine.execute_exchange() is None
        assert ready_engine.phase is ExchangePhase.IDLE
        assert ready_engine.state.from_amount == amount
        assert sink.notifications == []
        assert settler.requests == []

    @pytest.mark.asyncio
    async def test_missing_asset_is_noop(
        self, engine: ExchangeEngine, sink: InMemoryNotificationSink
    ) -> None:
        """Без to_asset обмен не выполняется."""
        engine.select_from_asset(ETH)
        engine.set_from_amount("1")

        assert await engine.execute_exchange() is None
        assert sink.notifications == []

    @pytest.mark.asyncio
    async def test_second_exchange_rejected_while_settling(
        self, ready_engine: ExchangeEngine, sink: InMemoryNotificationSink
    ) -> None:
        """Второй обмен во время SETTLING → ExchangeInProgressError."""
        settler = RecordingSettler(hold=True)
        ready_engine.settler = settler

        first = asyncio.create_task(ready_engine.execute_exchange())
        await settler.started.wait()

        assert ready_engine.is_settling
        with pytest.raises(ExchangeInProgressError):
            await ready_engine.execute_exchange()

        settler.release.set()
        receipt = await first

        assert receipt is not None
        assert len(settler.requests) == 1
        assert len(sink.notifications) == 1

    @pytest.mark.asyncio
    async def test_recompute_not_blocked_while_settling(self, ready_engine: ExchangeEngine) -> None:
        """Пересчёт курса доступен во время SETTLING."""
        settler = RecordingSettler(hold=True)
        ready_engine.settler = settler

        task = asyncio.create_task(ready_engine.execute_exchange())
        await settler.started.wait()

        state = ready_engine.set_from_amount("2")
        assert state.to_amount == "0.001500"
        assert state.phase is ExchangePhase.SETTLING

        settler.release.set()
        receipt = await task

        # Сообщение формируется по снапшоту запроса на момент SETTLING
        assert receipt is not None
        assert receipt.request.from_amount == "10"

    @pytest.mark.asyncio
    async def test_settlement_error_notifies(
        self, ready_engine: ExchangeEngine, sink: InMemoryNotificationSink
    ) -> None:
        """SettlementError → ERROR уведомление, IDLE, сумма сохранена."""
        ready_engine.settler = RecordingSettler(error=SettlementError("ledger rejected"))

        assert await ready_engine.execute_exchange() is None

        assert ready_engine.phase is ExchangePhase.IDLE
        assert ready_engine.state.from_amount == "10"
        assert sink.notifications[0].level is NotificationLevel.ERROR
        assert sink.messages == ["Exchange failed: ledger rejected"]

    @pytest.mark.asyncio
    async def test_settlement_timeout(self, sink: InMemoryNotificationSink) -> None:
        """Таймаут settlement → ERROR уведомление и IDLE."""
        engine = ExchangeEngine(
            sink,
            settler=SimulatedSettler(delay_sec=1.0),
            config=ExchangeConfig(settlement_timeout_sec=0.01),
        )
        engine.select_from_asset(ETH)
        engine.select_to_asset(ARB)
        engine.set_from_amount("1")

        assert await engine.execute_exchange() is None

        assert engine.phase is ExchangePhase.IDLE
        assert sink.messages == ["Exchange failed: settlement timed out after 0.01s"]

    @pytest.mark.asyncio
    async def test_cancellation_returns_to_idle(
        self, ready_engine: ExchangeEngine, sink: InMemoryNotificationSink
    ) -> None:
        """Отмена задачи возвращает engine в IDLE без уведомления."""
        settler = RecordingSettler(hold=True)
        ready_engine.settler = settler

        task = asyncio.create_task(ready_engine.execute_exchange())
        await settler.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert ready_engine.phase is ExchangePhase.IDLE
        assert ready_engine.state.from_amount == "10"
        assert sink.notifications == []

    @pytest.mark.asyncio
    async def test_exchange_possible_after_failure(self, ready_engine: ExchangeEngine) -> None:
        """После отказа settlement следующий обмен проходит."""
        ready_engine.settler = RecordingSettler(error=SettlementError("busy"))
        await ready_engine.execute_exchange()

        ready_engine.settler = RecordingSettler()
        assert await ready_engine.execute_exchange() is not None

    @pytest.mark.asyncio
    async def test_unexpected_settler_error_notifies(
        self,
        ready_engine: ExchangeEngine,
        sink: InMemoryNotificationSink,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Произвольное исключение settler → ERROR уведомление и IDLE, не SETTLING."""
        ready_engine.settler = RecordingSettler(error=RuntimeError("ledger down"))

        with caplog.at_level(logging.ERROR, logger="src.exchange.state_machine"):
            assert await ready_engine.execute_exchange() is None

        assert ready_engine.phase is ExchangePhase.IDLE
        assert not ready_engine.is_settling
        assert ready_engine.state.from_amount == "10"
        assert sink.notifications[0].level is NotificationLevel.ERROR
        assert sink.messages == ["Exchange failed: ledger down"]
        assert "ledger down" in caplog.text

        ready_engine.settler = RecordingSettler()
        assert await ready_engine.execute_exchange() is not None

    @pytest.mark.asyncio
    async def test_failing_sink_leaves_engine_idle(self, ready_engine: ExchangeEngine) -> None:
        """Исключение sink пробрасывается, engine при этом остаётся в IDLE."""
        ready_engine.notification_sink = FailingNotificationSink()

        with pytest.raises(RuntimeError, match="sink offline"):
            await ready_engine.execute_exchange()

        assert ready_engine.phase is ExchangePhase.IDLE
        ready_engine.notification_sink = InMemoryNotificationSink()
        ready_engine.set_from_amount("1")
        assert await ready_engine.execute_exchange() is not None

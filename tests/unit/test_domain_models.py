"""
Тесты для базовых доменных моделей: Asset, WalletBalance, ExchangeState

Проверяет:
1. Создание и валидацию моделей Pydantic
2. Immutability (frozen=True)
3. Сериализацию/десериализацию JSON
4. Граничные случаи и невалидные данные
"""

import pytest
from pydantic import ValidationError

from src.core.domain import (
    EMPTY_QUOTE,
    Asset,
    ExchangePhase,
    ExchangeState,
    FormattedWalletBalance,
    PriceRecord,
    Quote,
    WalletBalance,
    WalletRow,
)


# =============================================================================
# ASSET TESTS
# =============================================================================


class TestAsset:
    """Тесты для модели Asset"""

    @pytest.fixture
    def eth(self) -> Asset:
        """Валидный актив ETH"""
        return Asset(symbol="ETH", name="ETH", icon_url="icons/ETH.svg", price=1645.93)

    def test_valid_asset(self, eth: Asset) -> None:
        """Создание валидного актива с ненулевой ценой."""
        assert eth.symbol == "ETH"
        assert eth.price == 1645.93
        assert eth.is_priced

    def test_zero_price_allowed_but_not_priced(self) -> None:
        """Цена 0 допустима, но актив не годится как база курса."""
        free = Asset(symbol="FREE", name="FREE", icon_url="", price=0.0)
        assert not free.is_priced

    def test_negative_price_rejected(self) -> None:
        """Отрицательная цена → ValidationError."""
        with pytest.raises(ValidationError):
            Asset(symbol="ETH", name="ETH", icon_url="", price=-1.0)

    @pytest.mark.parametrize("price", [float("nan"), float("inf")])
    def test_non_finite_price_rejected(self, price: float) -> None:
        """NaN/Inf цена → ValidationError."""
        with pytest.raises(ValidationError, match="finite"):
            Asset(symbol="ETH", name="ETH", icon_url="", price=price)

    def test_empty_symbol_rejected(self) -> None:
        """Пустой symbol → ValidationError."""
        with pytest.raises(ValidationError):
            Asset(symbol="", name="ETH", icon_url="", price=1.0)

    def test_immutability(self, eth: Asset) -> None:
        """frozen=True: присваивание запрещено."""
        with pytest.raises(ValidationError):
            eth.price = 2000.0  # type: ignore[misc]

    def test_json_roundtrip(self, eth: Asset) -> None:
        """Сериализация в JSON и обратно сохраняет модель."""
        assert Asset.model_validate_json(eth.model_dump_json()) == eth


class TestPriceRecord:
    """Тесты для модели PriceRecord"""

    def test_extra_fields_ignored(self) -> None:
        """Поле date внешнего feed игнорируется."""
        record = PriceRecord.model_validate(
            {"currency": "ETH", "date": "2023-08-29T07:10:52.000Z", "price": 1645.93}
        )
        assert record.currency == "ETH"
        assert not hasattr(record, "date")

    def test_nan_price_rejected(self) -> None:
        """NaN цена → ValidationError."""
        with pytest.raises(ValidationError, match="price must be finite"):
            PriceRecord(currency="ETH", price=float("nan"))


# =============================================================================
# WALLET TESTS
# =============================================================================


class TestWalletModels:
    """Тесты для WalletBalance / FormattedWalletBalance / WalletRow"""

    def test_non_positive_amount_allowed(self) -> None:
        """Фильтрация amount <= 0 выполняется процессором, не моделью"""
        balance = WalletBalance(currency="ETH", amount=-1.0, blockchain="Ethereum")
        assert balance.amount == -1.0

    def test_non_finite_amount_rejected(self) -> None:
        """Inf amount → ValidationError."""
        with pytest.raises(ValidationError, match="amount must be finite"):
            WalletBalance(currency="ETH", amount=float("inf"), blockchain="Ethereum")

    def test_formatted_balance_extends_balance(self) -> None:
        """FormattedWalletBalance — это WalletBalance с полем formatted."""
        formatted = FormattedWalletBalance(
            currency="ETH", amount=1.5, blockchain="Ethereum", formatted="1.5000"
        )
        assert isinstance(formatted, WalletBalance)
        assert formatted.formatted == "1.5000"

    def test_row_usd_value_non_negative(self) -> None:
        """Отрицательная USD-оценка строки → ValidationError."""
        with pytest.raises(ValidationError):
            WalletRow(
                key="ETH-Ethereum",
                currency="ETH",
                blockchain="Ethereum",
                amount=1.0,
                formatted_amount="1.0000",
                usd_value=-1.0,
            )


# =============================================================================
# EXCHANGE STATE TESTS
# =============================================================================


class TestExchangeState:
    """Тесты для модели ExchangeState"""

    @pytest.fixture
    def pair_state(self) -> ExchangeState:
        """Состояние с выбранной парой ETH → ARB"""
        return ExchangeState(
            from_asset=Asset(symbol="ETH", name="ETH", icon_url="", price=2000.0),
            to_asset=Asset(symbol="ARB", name="ARB", icon_url="", price=1.5),
            from_amount="1",
        )

    def test_defaults(self) -> None:
        """Начальное состояние: ничего не выбрано, фаза IDLE."""
        state = ExchangeState()
        assert state.from_asset is None
        assert state.to_asset is None
        assert state.from_amount == ""
        assert state.to_amount == ""
        assert state.rate == 0.0
        assert state.phase is ExchangePhase.IDLE
        assert state.quote_error is None
        assert not state.has_pair

    def test_has_pair(self, pair_state: ExchangeState) -> None:
        """Оба актива выбраны → has_pair."""
        assert pair_state.has_pair

    def test_with_quote_returns_new_state(self, pair_state: ExchangeState) -> None:
        """with_quote создаёт новый снапшот, исходный не меняется."""
        quoted = pair_state.with_quote(Quote(rate=0.00075, to_amount="0.000750"))
        assert quoted is not pair_state
        assert quoted.rate == 0.00075
        assert quoted.to_amount == "0.000750"
        assert pair_state.rate == 0.0

    def test_with_quote_sets_error(self, pair_state: ExchangeState) -> None:
        """Пустой Quote с причиной сохраняет quote_error."""
        quoted = pair_state.with_quote(EMPTY_QUOTE, quote_error="zero price")
        assert quoted.rate == 0.0
        assert quoted.to_amount == ""
        assert quoted.quote_error == "zero price"

    def test_negative_rate_rejected(self) -> None:
        """Отрицательный курс → ValidationError."""
        with pytest.raises(ValidationError):
            ExchangeState(rate=-1.0)

    def test_immutability(self, pair_state: ExchangeState) -> None:
        """frozen=True: присваивание запрещено."""
        with pytest.raises(ValidationError):
            pair_state.from_amount = "2"  # type: ignore[misc]

    def test_phase_serializes_as_string(self, pair_state: ExchangeState) -> None:
        """Фаза сериализуется строкой."""
        assert pair_state.model_dump(mode="json")["phase"] == "IDLE"

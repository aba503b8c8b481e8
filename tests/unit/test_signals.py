"""
Unit tests for the signal generator.
"""

import numpy as np
import pytest

from tradesim.core.enums import SignalStrength, SignalType
from tradesim.core.models.price import PriceSeries
from tradesim.engine.signals import SignalGenerator


class IndicatorSeries:
    """Minimal series stand-in with fixed indicator values for the last two samples."""

    def __init__(
        self,
        n: int,
        rsi: float,
        macd: tuple[float, float] = (0.0, 0.0),
        signal: tuple[float, float] = (0.0, 0.0),
        close: float = 100.0,
    ):
        self._n = n
        self._close = close
        self._values = {
            "rsi14": np.full(n, rsi),
            "macd": np.zeros(n),
            "macd_signal": np.zeros(n),
        }
        self._values["macd"][-2:] = macd
        self._values["macd_signal"][-2:] = signal

    def __len__(self) -> int:
        return self._n

    def close_at(self, index: int) -> float:
        return self._close

    def indicator(self, name: str) -> np.ndarray:
        return self._values[name]


@pytest.fixture
def generator() -> SignalGenerator:
    return SignalGenerator()


class TestRsiSignals:
    """Test suite for RSI-driven signals."""

    def test_should_return_none_for_empty_series(self, generator: SignalGenerator) -> None:
        """Test an empty series gives no signal."""
        assert generator.generate(PriceSeries.from_closes([])) is None

    def test_should_buy_when_oversold(self, generator: SignalGenerator) -> None:
        """Test RSI below 30 gives a moderate BUY."""
        signal = generator.generate(IndicatorSeries(20, rsi=25.0))

        assert signal.signal_type == SignalType.BUY
        assert signal.strength == SignalStrength.MODERATE
        assert signal.probability_up == pytest.approx(57.5)
        assert signal.probability_down == pytest.approx(42.5)
        assert signal.confidence == pytest.approx(57.5)
        assert signal.target_price == pytest.approx(101.0)
        assert signal.stop_loss == pytest.approx(98.0)
        assert signal.reasoning == "RSI oversold at 25.0"

    def test_should_sell_strongly_when_very_overbought(self, generator: SignalGenerator) -> None:
        """Test RSI above 80 gives a strong SELL."""
        signal = generator.generate(IndicatorSeries(20, rsi=85.0))

        assert signal.signal_type == SignalType.SELL
        assert signal.strength == SignalStrength.STRONG
        assert signal.probability_down == pytest.approx(72.5)
        assert signal.target_price == pytest.approx(99.0)
        assert signal.stop_loss == pytest.approx(102.0)

    def test_should_cap_rsi_probability(self, generator: SignalGenerator) -> None:
        """Test RSI-only probability never exceeds 85."""
        signal = generator.generate(IndicatorSeries(20, rsi=5.0))

        assert signal.strength == SignalStrength.STRONG
        assert signal.probability_up == 85.0

    @pytest.mark.parametrize("rsi", [0.0, 50.0, 100.0])
    def test_should_not_signal_on_neutral_or_saturated_rsi(
        self, generator: SignalGenerator, rsi: float
    ) -> None:
        """Test RSI of exactly 0 or 100, or inside the band, gives nothing."""
        assert generator.generate(IndicatorSeries(20, rsi=rsi)) is None

    def test_should_need_fifteen_samples(self, generator: SignalGenerator) -> None:
        """Test RSI signals need at least 15 samples."""
        assert generator.generate(IndicatorSeries(14, rsi=25.0)) is None

    def test_should_signal_from_real_series(self, generator: SignalGenerator) -> None:
        """Test a decline with one small uptick is strongly oversold."""
        # Thirteen losses and one gain of equal size give RSI 100/14
        series = PriceSeries.from_closes([100.0 - i for i in range(16)] + [86.0])

        signal = generator.generate(series)

        assert signal.signal_type == SignalType.BUY
        assert signal.strength == SignalStrength.STRONG
        assert signal.indicators["rsi14"] == pytest.approx(100 / 14)
        assert signal.current_price == 86.0


class TestMacdSignals:
    """Test suite for MACD crossover handling."""

    def test_should_confirm_rsi_signal_with_crossover(self, generator: SignalGenerator) -> None:
        """Test a bullish cross upgrades an RSI BUY to STRONG."""
        series = IndicatorSeries(40, rsi=25.0, macd=(-1.0, 1.0), signal=(0.0, 0.5))

        signal = generator.generate(series)

        assert signal.strength == SignalStrength.STRONG
        assert signal.probability_up == pytest.approx(67.5)
        assert signal.reasoning == "RSI oversold at 25.0; MACD bullish crossover"

    def test_should_cap_confirmed_probability(self, generator: SignalGenerator) -> None:
        """Test confirmed probability never exceeds 90."""
        series = IndicatorSeries(40, rsi=10.0, macd=(-1.0, 1.0), signal=(0.0, 0.5))

        assert generator.generate(series).probability_up == 90.0

    def test_should_signal_on_crossover_alone(self, generator: SignalGenerator) -> None:
        """Test a bearish cross without an RSI signal gives a moderate SELL."""
        series = IndicatorSeries(40, rsi=50.0, macd=(1.0, -1.0), signal=(0.0, 0.5))

        signal = generator.generate(series)

        assert signal.signal_type == SignalType.SELL
        assert signal.strength == SignalStrength.MODERATE
        assert signal.probability_down == 65.0
        assert signal.probability_up == 35.0

    def test_should_ignore_opposing_crossover(self, generator: SignalGenerator) -> None:
        """Test a bearish cross does not change an RSI BUY."""
        series = IndicatorSeries(40, rsi=25.0, macd=(1.0, -1.0), signal=(0.0, 0.5))

        signal = generator.generate(series)

        assert signal.signal_type == SignalType.BUY
        assert signal.strength == SignalStrength.MODERATE
        assert "MACD" not in signal.reasoning

    def test_should_use_supplied_previous_values(self, generator: SignalGenerator) -> None:
        """Test previous MACD values passed in override the series."""
        series = PriceSeries.from_closes([100.0 + i for i in range(30)])

        assert generator.generate(series) is None

        signal = generator.generate(series, previous_macd=(-1.0, 0.0))

        assert signal.signal_type == SignalType.BUY
        assert signal.strength == SignalStrength.MODERATE
        assert signal.probability_up == 65.0

    def test_should_skip_macd_before_twenty_six_samples(self, generator: SignalGenerator) -> None:
        """Test MACD crossovers need 26 samples."""
        series = IndicatorSeries(25, rsi=50.0, macd=(-1.0, 1.0), signal=(0.0, 0.5))

        assert generator.generate(series, previous_macd=(-1.0, 0.0)) is None

"""
Signal generation for the newest sample of a price series.

RSI thresholds decide the base signal; a MACD crossover against the
previous sample strengthens it or produces a moderate one on its own.
"""

from loguru import logger

from tradesim.core.constants import MACD_MIN_SAMPLES, MIN_SIGNAL_DATA_POINTS
from tradesim.core.enums import SignalStrength, SignalType
from tradesim.core.models.pattern import Signal
from tradesim.core.models.price import PriceSeries

OVERSOLD_RSI = 30.0
STRONG_OVERSOLD_RSI = 20.0
OVERBOUGHT_RSI = 70.0
STRONG_OVERBOUGHT_RSI = 80.0
MAX_RSI_PROBABILITY = 85.0
MAX_CONFIRMED_PROBABILITY = 90.0
MACD_ONLY_PROBABILITY = 65.0
TARGET_MOVE = 0.01
STOP_MOVE = 0.02


class SignalGenerator:
    """Builds a BUY/SELL signal from the indicator snapshot."""

    def generate(
        self,
        series: PriceSeries,
        previous_macd: tuple[float, float] | None = None,
    ) -> Signal | None:
        """
        Generate a signal for the newest sample.

        Args:
            series: Oldest-first price series
            previous_macd: (macd, signal) of the previous sample; read from
                the series when omitted

        Returns:
            The signal, or None when neither RSI nor MACD gives one
        """
        n = len(series)
        if n == 0:
            return None

        index = n - 1
        close = series.close_at(index)
        rsi = float(series.indicator("rsi14")[index])
        macd = float(series.indicator("macd")[index])
        macd_signal = float(series.indicator("macd_signal")[index])

        signal_type: SignalType | None = None
        strength = SignalStrength.WEAK
        reasons: list[str] = []
        probability_up = 50.0
        probability_down = 50.0

        if n >= MIN_SIGNAL_DATA_POINTS and 0 < rsi < 100:
            if rsi < OVERSOLD_RSI:
                signal_type = SignalType.BUY
                strength = (
                    SignalStrength.STRONG if rsi < STRONG_OVERSOLD_RSI else SignalStrength.MODERATE
                )
                reasons.append(f"RSI oversold at {rsi:.1f}")
                probability_up = min(MAX_RSI_PROBABILITY, 50 + (OVERSOLD_RSI - rsi) * 1.5)
                probability_down = 100 - probability_up
            elif rsi > OVERBOUGHT_RSI:
                signal_type = SignalType.SELL
                strength = SignalStrength.MODERATE
                if rsi > STRONG_OVERBOUGHT_RSI:
                    strength = SignalStrength.STRONG
                reasons.append(f"RSI overbought at {rsi:.1f}")
                probability_down = min(MAX_RSI_PROBABILITY, 50 + (rsi - OVERBOUGHT_RSI) * 1.5)
                probability_up = 100 - probability_down
        elif n < MIN_SIGNAL_DATA_POINTS:
            logger.debug(
                f"Not enough data for RSI signal (have {n}, need {MIN_SIGNAL_DATA_POINTS})"
            )

        if previous_macd is None and index - 1 >= MACD_MIN_SAMPLES - 1:
            previous_macd = (
                float(series.indicator("macd")[index - 1]),
                float(series.indicator("macd_signal")[index - 1]),
            )

        if previous_macd is not None and n >= MACD_MIN_SAMPLES:
            previous_value, previous_signal = previous_macd

            if previous_value < previous_signal and macd > macd_signal:
                if signal_type == SignalType.BUY:
                    strength = SignalStrength.STRONG
                    reasons.append("MACD bullish crossover")
                    probability_up = min(MAX_CONFIRMED_PROBABILITY, probability_up + 10)
                    probability_down = 100 - probability_up
                elif signal_type is None:
                    signal_type = SignalType.BUY
                    strength = SignalStrength.MODERATE
                    reasons.append("MACD bullish crossover")
                    probability_up = MACD_ONLY_PROBABILITY
                    probability_down = 100 - MACD_ONLY_PROBABILITY

            if previous_value > previous_signal and macd < macd_signal:
                if signal_type == SignalType.SELL:
                    strength = SignalStrength.STRONG
                    reasons.append("MACD bearish crossover")
                    probability_down = min(MAX_CONFIRMED_PROBABILITY, probability_down + 10)
                    probability_up = 100 - probability_down
                elif signal_type is None:
                    signal_type = SignalType.SELL
                    strength = SignalStrength.MODERATE
                    reasons.append("MACD bearish crossover")
                    probability_down = MACD_ONLY_PROBABILITY
                    probability_up = 100 - MACD_ONLY_PROBABILITY

        if signal_type is None:
            return None

        if signal_type == SignalType.BUY:
            target_price = close * (1 + TARGET_MOVE)
            stop_loss = close * (1 - STOP_MOVE)
        else:
            target_price = close * (1 - TARGET_MOVE)
            stop_loss = close * (1 + STOP_MOVE)

        signal = Signal(
            signal_type=signal_type,
            strength=strength,
            confidence=max(probability_up, probability_down),
            probability_up=probability_up,
            probability_down=probability_down,
            current_price=close,
            target_price=target_price,
            stop_loss=stop_loss,
            reasoning="; ".join(reasons),
            indicators={"rsi14": rsi, "macd": macd, "macd_signal": macd_signal},
        )
        logger.info(f"Generated {signal.strength} {signal.signal_type} signal: {signal.reasoning}")
        return signal

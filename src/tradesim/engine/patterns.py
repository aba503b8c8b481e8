"""
Pattern scanner.

Flags six canned technical setups over a full price series using the
batch-mode indicator snapshot (Wilder RSI, SMA20, MACD, Bollinger width).
"""

from collections.abc import Callable

import numpy as np
from loguru import logger

from tradesim.core.constants import BOLLINGER_PERIOD, MACD_MIN_SAMPLES, MACD_SIGNAL_PERIOD
from tradesim.core.enums import CalculatorMode, PatternDirection, PatternType
from tradesim.core.models.pattern import PatternMatch
from tradesim.core.models.price import PriceSeries

# First index whose batch MACD signal is warmed up
MACD_SIGNAL_READY_INDEX = MACD_MIN_SAMPLES - 1 + MACD_SIGNAL_PERIOD - 1

OVERSOLD_RSI = 30.0
BOUNCE_RSI = 35.0
BREAKOUT_RSI = 60.0
BREAKOUT_LOOKBACK = 20
SQUEEZE_WINDOW = 5
SQUEEZE_MIN_DAYS = 4
SQUEEZE_EXPANSION = 1.5
SQUEEZE_FALLBACK_THRESHOLD = 5.0
MEAN_REVERSION_DEVIATION = 0.05
MEAN_REVERSION_RECOVERY = 0.7
DOUBLE_BOTTOM_WINDOW = 25
DOUBLE_BOTTOM_MIN_GAP = 10
DOUBLE_BOTTOM_TOLERANCE = 0.03


def _clamp(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


class PatternDetector:
    """Runs every pattern detector and de-duplicates the matches."""

    def __init__(self) -> None:
        self._detectors: dict[str, Callable[[PriceSeries], list[PatternMatch]]] = {
            "rsi_oversold_bounce": self.detect_rsi_oversold_bounce,
            "macd_golden_cross": self.detect_macd_golden_cross,
            "volatility_squeeze": self.detect_volatility_squeeze,
            "mean_reversion": self.detect_mean_reversion,
            "momentum_breakout": self.detect_momentum_breakout,
            "double_bottom": self.detect_double_bottom,
        }

    def detect(self, series: PriceSeries) -> list[PatternMatch]:
        """
        Scan series for every pattern.

        Matches sharing (pattern_type, end_time) are reported once; the
        first one found wins.
        """
        all_matches: list[PatternMatch] = []
        for name, detector in self._detectors.items():
            matches = detector(series)
            logger.debug(f"{name}: {len(matches)} matches")
            all_matches.extend(matches)

        unique: dict[tuple, PatternMatch] = {}
        for match in all_matches:
            unique.setdefault(match.dedup_key, match)

        logger.info(f"Found {len(unique)} pattern matches in {len(series)} price points")
        return list(unique.values())

    def _match(
        self,
        series: PriceSeries,
        pattern_type: PatternType,
        start_index: int,
        end_index: int,
        confidence: float,
        direction: PatternDirection,
        entry_price: float,
        target_price: float | None = None,
        stop_loss: float | None = None,
        **metadata: float,
    ) -> PatternMatch:
        return PatternMatch(
            pattern_type=pattern_type,
            start_index=start_index,
            end_index=end_index,
            start_time=series.timestamp_at(start_index).to_pydatetime(),
            end_time=series.timestamp_at(end_index).to_pydatetime(),
            confidence=_clamp(confidence),
            direction=direction,
            entry_price=float(entry_price),
            target_price=float(target_price) if target_price is not None else None,
            stop_loss=float(stop_loss) if stop_loss is not None else None,
            metadata={key: float(value) for key, value in metadata.items()},
        )

    def detect_rsi_oversold_bounce(self, series: PriceSeries) -> list[PatternMatch]:
        """RSI below 30, then still below 35, then back above 35."""
        closes = series.closes
        rsi = series.indicator("rsi14", CalculatorMode.BATCH)
        matches = []

        for i in range(2, len(series)):
            if rsi[i - 2] < OVERSOLD_RSI and rsi[i - 1] < BOUNCE_RSI and rsi[i] > BOUNCE_RSI:
                price = closes[i]
                matches.append(
                    self._match(
                        series,
                        PatternType.RSI_OVERSOLD_BOUNCE,
                        i - 2,
                        i,
                        confidence=(BOUNCE_RSI - rsi[i - 2]) / 15,
                        direction=PatternDirection.BULLISH,
                        entry_price=price,
                        target_price=price * 1.05,
                        stop_loss=price * 0.97,
                        rsi_low=rsi[i - 2],
                        rsi_signal=rsi[i],
                    )
                )
        return matches

    def detect_macd_golden_cross(self, series: PriceSeries) -> list[PatternMatch]:
        """MACD crosses above its signal line while still below zero."""
        closes = series.closes
        macd = series.indicator("macd", CalculatorMode.BATCH)
        signal = series.indicator("macd_signal", CalculatorMode.BATCH)
        matches = []

        for i in range(MACD_SIGNAL_READY_INDEX + 1, len(series)):
            if macd[i - 1] < signal[i - 1] and macd[i] > signal[i] and macd[i] < 0:
                price = closes[i]
                matches.append(
                    self._match(
                        series,
                        PatternType.MACD_GOLDEN_CROSS,
                        i - 1,
                        i,
                        confidence=abs(macd[i] - signal[i]) / 2 + 0.5,
                        direction=PatternDirection.BULLISH,
                        entry_price=price,
                        target_price=price * 1.04,
                        stop_loss=price * 0.98,
                        macd=macd[i],
                        signal=signal[i],
                    )
                )
        return matches

    def detect_volatility_squeeze(self, series: PriceSeries) -> list[PatternMatch]:
        """Several narrow Bollinger samples followed by a sharp expansion."""
        closes = series.closes
        width = series.indicator("bollinger_width", CalculatorMode.BATCH)
        matches = []

        positive = np.sort(width[width > 0])
        threshold = SQUEEZE_FALLBACK_THRESHOLD
        if len(positive):
            threshold = float(positive[int(len(positive) * 0.1)])

        first_index = BOLLINGER_PERIOD - 1 + SQUEEZE_WINDOW
        for i in range(first_index, len(series)):
            squeeze_days = int((width[i - SQUEEZE_WINDOW : i] < threshold).sum())
            if squeeze_days >= SQUEEZE_MIN_DAYS and width[i] > threshold * SQUEEZE_EXPANSION:
                rising = closes[i] > closes[i - 1]
                direction = PatternDirection.BULLISH if rising else PatternDirection.BEARISH
                matches.append(
                    self._match(
                        series,
                        PatternType.VOLATILITY_SQUEEZE,
                        i - SQUEEZE_WINDOW,
                        i,
                        confidence=squeeze_days / SQUEEZE_WINDOW,
                        direction=direction,
                        entry_price=closes[i],
                        squeeze_days=squeeze_days,
                        bb_width_expansion=width[i] / threshold,
                    )
                )
        return matches

    def detect_mean_reversion(self, series: PriceSeries) -> list[PatternMatch]:
        """Price stretched more than 5% from SMA20 snaps back toward it."""
        closes = series.closes
        sma20 = series.indicator("sma20", CalculatorMode.BATCH)
        matches = []

        for i in range(1, len(series)):
            if sma20[i] == 0 or sma20[i - 1] == 0:
                continue

            previous_deviation = (closes[i - 1] - sma20[i - 1]) / sma20[i - 1]
            current_deviation = (closes[i] - sma20[i]) / sma20[i]

            if (
                abs(previous_deviation) > MEAN_REVERSION_DEVIATION
                and abs(current_deviation) < abs(previous_deviation) * MEAN_REVERSION_RECOVERY
            ):
                direction = (
                    PatternDirection.BULLISH if previous_deviation < 0 else PatternDirection.BEARISH
                )
                matches.append(
                    self._match(
                        series,
                        PatternType.MEAN_REVERSION,
                        i - 1,
                        i,
                        confidence=abs(previous_deviation) * 10,
                        direction=direction,
                        entry_price=closes[i],
                        target_price=sma20[i],
                        prev_deviation=previous_deviation,
                        curr_deviation=current_deviation,
                    )
                )
        return matches

    def detect_momentum_breakout(self, series: PriceSeries) -> list[PatternMatch]:
        """Close above the previous 20-sample high with RSI above 60."""
        closes = series.closes
        rsi = series.indicator("rsi14", CalculatorMode.BATCH)
        matches = []

        for i in range(BREAKOUT_LOOKBACK, len(series)):
            breakout_price = closes[i - BREAKOUT_LOOKBACK : i].max()
            if closes[i] > breakout_price and rsi[i] > BREAKOUT_RSI:
                matches.append(
                    self._match(
                        series,
                        PatternType.MOMENTUM_BREAKOUT,
                        i - 5,
                        i,
                        confidence=(rsi[i] - 50) / 30,
                        direction=PatternDirection.BULLISH,
                        entry_price=closes[i],
                        target_price=closes[i] * 1.06,
                        stop_loss=breakout_price * 0.98,
                        breakout_price=breakout_price,
                        rsi=rsi[i],
                    )
                )
        return matches

    def detect_double_bottom(self, series: PriceSeries) -> list[PatternMatch]:
        """Two similar lows at least 10 samples apart and a close above the neckline."""
        closes = series.closes
        matches = []

        for i in range(DOUBLE_BOTTOM_WINDOW, len(series)):
            offset = i - DOUBLE_BOTTOM_WINDOW
            prices = closes[offset : i + 1]

            lows = [
                j
                for j in range(2, len(prices) - 2)
                if prices[j] < prices[j - 1]
                and prices[j] < prices[j - 2]
                and prices[j] < prices[j + 1]
                and prices[j] < prices[j + 2]
            ]
            if len(lows) < 2:
                continue

            first, second = lows[0], lows[-1]
            gap = abs(prices[first] - prices[second]) / prices[first]
            if second - first < DOUBLE_BOTTOM_MIN_GAP or gap >= DOUBLE_BOTTOM_TOLERANCE:
                continue

            neckline = prices[first:second].max()
            last_price = prices[-1]
            if last_price <= neckline:
                continue

            matches.append(
                self._match(
                    series,
                    PatternType.DOUBLE_BOTTOM,
                    offset + first,
                    i,
                    confidence=1 - gap / DOUBLE_BOTTOM_TOLERANCE,
                    direction=PatternDirection.BULLISH,
                    entry_price=last_price,
                    target_price=last_price + (neckline - prices[first]),
                    stop_loss=min(prices[first], prices[second]) * 0.98,
                    first_bottom=prices[first],
                    second_bottom=prices[second],
                    neckline=neckline,
                )
            )
        return matches

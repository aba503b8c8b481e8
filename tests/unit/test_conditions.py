"""
Unit tests for rule condition parsing and evaluation.
"""

import pytest

from tradesim.core.enums import ComparisonOperator, MacdSignal, PriceDirection
from tradesim.core.exceptions.engine import ValidationError
from tradesim.core.models.conditions import (
    DayOfWeekCondition,
    MacdCondition,
    PriceChangeCondition,
    RsiCondition,
    TimeRangeCondition,
    UnsupportedCondition,
    condition_to_dict,
    parse_condition,
)
from tradesim.core.models.price import PriceSeries
from tradesim.engine.conditions import ConditionEvaluator, sunday_based_weekday


class TestParseCondition:
    """Test suite for parse_condition."""

    def test_should_parse_price_change_with_aliases(self) -> None:
        """Test percent and duration aliases are accepted."""
        condition = parse_condition(
            {"type": "price_change", "direction": "DOWN", "percent": 2.5, "duration": 3600}
        )

        assert condition == PriceChangeCondition(PriceDirection.DOWN, 2.5, 3600)

    def test_should_default_price_change_direction_to_any(self) -> None:
        """Test a missing direction means any."""
        condition = parse_condition({"type": "price_change", "min_percent": 1})

        assert condition == PriceChangeCondition(PriceDirection.ANY, 1.0)

    def test_should_map_legacy_price_change_operator(self) -> None:
        """Test gt/lt operators and the value threshold of the legacy form."""
        up = parse_condition({"type": "price_change", "operator": "gt", "value": 5})
        down = parse_condition({"type": "price_change", "operator": "lt", "value": 2})

        assert up == PriceChangeCondition(PriceDirection.UP, 5.0)
        assert down == PriceChangeCondition(PriceDirection.DOWN, 2.0)

    def test_should_prefer_direction_over_operator(self) -> None:
        """Test an explicit direction wins and a zero min_percent falls back to value."""
        raw = {
            "type": "price_change",
            "direction": "down",
            "operator": "gt",
            "min_percent": 0,
            "value": 3,
        }

        condition = parse_condition(raw)

        assert condition == PriceChangeCondition(PriceDirection.DOWN, 3.0)

    def test_should_default_rsi_threshold_to_neutral(self) -> None:
        """Test a missing or non-numeric RSI value means 50."""
        assert parse_condition({"type": "rsi", "operator": ">"}) == RsiCondition(
            ComparisonOperator.GREATER_THAN, 50.0
        )
        assert parse_condition({"type": "rsi", "operator": "<", "value": "low"}) == RsiCondition(
            ComparisonOperator.LESS_THAN, 50.0
        )

    def test_should_accept_camel_case_hours(self) -> None:
        """Test startHour/endHour spellings and the whole-day defaults."""
        assert parse_condition(
            {"type": "time_range", "startHour": 9, "endHour": 17}
        ) == TimeRangeCondition(9, 17)
        assert parse_condition({"type": "time_range", "startHour": 8}) == TimeRangeCondition(8, 23)
        assert parse_condition({"type": "time_range"}) == TimeRangeCondition(0, 23)

    def test_should_parse_rsi_operator_aliases(self) -> None:
        """Test RSI operators accept symbolic and word forms."""
        assert parse_condition({"type": "rsi", "operator": "lt", "value": 30}) == RsiCondition(
            ComparisonOperator.LESS_THAN, 30.0
        )
        assert parse_condition(
            {"kind": "rsi", "operator": "crosses_above", "value": 70}
        ) == RsiCondition(ComparisonOperator.CROSSES_ABOVE, 70.0)

    def test_should_parse_macd_condition_key(self) -> None:
        """Test the MACD state can be given under "condition"."""
        condition = parse_condition({"type": "macd", "condition": "bullish_cross"})

        assert condition == MacdCondition(MacdSignal.BULLISH_CROSS)

    def test_should_parse_time_and_day_conditions(self) -> None:
        """Test time_range and day_of_week parsing."""
        assert parse_condition(
            {"type": "time_range", "start_hour": 9, "end_hour": 17}
        ) == TimeRangeCondition(9, 17)
        assert parse_condition({"type": "day_of_week", "days": [1, 2, 2]}) == DayOfWeekCondition(
            frozenset({1, 2})
        )

    def test_should_mark_unknown_kind_as_unsupported(self) -> None:
        """Test unknown kinds never raise."""
        condition = parse_condition({"type": "volume_spike", "threshold": 3})

        assert isinstance(condition, UnsupportedCondition)
        assert condition.kind == "volume_spike"
        assert condition.reason == "unknown kind"
        assert condition.payload == {"type": "volume_spike", "threshold": 3}

    @pytest.mark.parametrize(
        "raw",
        [
            {"type": "rsi", "value": 30},
            {"type": "rsi", "operator": "==", "value": 30},
            {"type": "rsi", "operator": ">", "value": 150},
            {"type": "macd", "signal": "sideways"},
            {"type": "time_range", "start_hour": 18, "end_hour": 9},
            {"type": "day_of_week", "days": [7]},
            {"type": "price_change", "direction": "sideways", "min_percent": 1},
        ],
    )
    def test_should_mark_malformed_conditions_as_unsupported(self, raw: dict) -> None:
        """Test malformed fields produce an UnsupportedCondition."""
        condition = parse_condition(raw)

        assert isinstance(condition, UnsupportedCondition)
        assert condition.kind == raw["type"]
        assert condition.reason

    def test_should_convert_conditions_back_to_dicts(self) -> None:
        """Test condition_to_dict output parses to the same condition."""
        conditions = [
            PriceChangeCondition(PriceDirection.UP, 5.0, 600),
            RsiCondition(ComparisonOperator.GREATER_THAN, 70.0),
            MacdCondition(MacdSignal.HISTOGRAM_NEGATIVE),
            TimeRangeCondition(0, 23),
            DayOfWeekCondition(frozenset({0, 6})),
        ]
        for condition in conditions:
            assert parse_condition(condition_to_dict(condition)) == condition

    def test_should_keep_unsupported_payload(self) -> None:
        """Test unsupported conditions serialize to their raw payload."""
        raw = {"type": "news", "keyword": "opec"}
        assert condition_to_dict(parse_condition(raw)) == raw


class TestConditionModels:
    """Test suite for direct condition construction."""

    def test_should_reject_negative_percent(self) -> None:
        """Test min_percent must be non-negative."""
        with pytest.raises(ValidationError, match="min_percent"):
            PriceChangeCondition(PriceDirection.UP, -1.0)

    def test_should_reject_reversed_time_range(self) -> None:
        """Test time ranges do not wrap around midnight."""
        with pytest.raises(ValidationError, match="must not be after"):
            TimeRangeCondition(22, 2)

    def test_should_reject_empty_days(self) -> None:
        """Test day_of_week needs at least one day."""
        with pytest.raises(ValidationError, match="days must not be empty"):
            DayOfWeekCondition(frozenset())


class TestConditionEvaluator:
    """Test suite for ConditionEvaluator."""

    @pytest.fixture
    def evaluator(self) -> ConditionEvaluator:
        return ConditionEvaluator()

    def test_should_return_false_for_out_of_range_index(
        self, evaluator: ConditionEvaluator
    ) -> None:
        """Test indices outside the series never match."""
        series = PriceSeries.from_closes([100.0] * 5)
        condition = TimeRangeCondition(0, 23)

        assert evaluator.evaluate(condition, series, 5) is False
        assert evaluator.evaluate(condition, series, -1) is False

    def test_should_compare_price_change_over_five_samples(
        self, evaluator: ConditionEvaluator
    ) -> None:
        """Test price_change compares with the close five samples back."""
        series = PriceSeries.from_closes([90.0, 100.0, 100.0, 100.0, 100.0, 100.0, 110.0])

        assert evaluator.evaluate(PriceChangeCondition(PriceDirection.UP, 10.0), series, 6)
        assert evaluator.evaluate(PriceChangeCondition(PriceDirection.ANY, 10.0), series, 6)
        assert not evaluator.evaluate(PriceChangeCondition(PriceDirection.DOWN, 10.0), series, 6)
        assert not evaluator.evaluate(PriceChangeCondition(PriceDirection.UP, 10.5), series, 6)

    def test_should_not_fire_legacy_price_change_on_small_moves(
        self, evaluator: ConditionEvaluator
    ) -> None:
        """Test the gt/value form only fires once the move reaches the threshold."""
        condition = parse_condition({"type": "price_change", "operator": "gt", "value": 5})
        series = PriceSeries.from_closes([100.0] * 10 + [100.5, 106.0])

        hits = [i for i in range(len(series)) if evaluator.evaluate(condition, series, i)]

        assert hits == [11]

    def test_should_shorten_price_change_lookback_near_start(
        self, evaluator: ConditionEvaluator
    ) -> None:
        """Test early indices compare with the first sample."""
        series = PriceSeries.from_closes([100.0, 100.0, 90.0])
        condition = PriceChangeCondition(PriceDirection.DOWN, 10.0)

        assert evaluator.evaluate(condition, series, 2)
        assert not evaluator.evaluate(condition, series, 0)

    def test_should_compare_rsi_with_threshold(self, evaluator: ConditionEvaluator) -> None:
        """Test RSI less-than and greater-than checks."""
        series = PriceSeries.from_closes([100.0 + i for i in range(30)])

        assert evaluator.evaluate(RsiCondition(ComparisonOperator.GREATER_THAN, 70.0), series, 20)
        assert not evaluator.evaluate(RsiCondition(ComparisonOperator.LESS_THAN, 30.0), series, 20)
        assert not evaluator.evaluate(
            RsiCondition(ComparisonOperator.GREATER_THAN, 70.0), series, 5
        )

    def test_should_detect_rsi_crossing(self, evaluator: ConditionEvaluator) -> None:
        """Test RSI crossing above a threshold between two samples."""
        # RSI is 0 at index 15 and about 79 at index 16
        series = PriceSeries.from_closes([100.0 - i for i in range(16)] + [135.0])
        above = RsiCondition(ComparisonOperator.CROSSES_ABOVE, 70.0)
        below = RsiCondition(ComparisonOperator.CROSSES_BELOW, 70.0)

        assert evaluator.evaluate(above, series, 16)
        assert not evaluator.evaluate(above, series, 15)
        assert not evaluator.evaluate(below, series, 16)
        assert not evaluator.evaluate(above, series, 0)

    def test_should_check_macd_histogram_sign(self, evaluator: ConditionEvaluator) -> None:
        """Test histogram sign conditions on a steady uptrend."""
        series = PriceSeries.from_closes([100.0 + i for i in range(40)])

        assert evaluator.evaluate(MacdCondition(MacdSignal.HISTOGRAM_POSITIVE), series, 35)
        assert not evaluator.evaluate(MacdCondition(MacdSignal.HISTOGRAM_NEGATIVE), series, 35)

    def test_should_detect_bearish_macd_cross_after_reversal(
        self, evaluator: ConditionEvaluator
    ) -> None:
        """Test a bearish cross fires once the uptrend reverses."""
        closes = [100.0 + i for i in range(40)] + [139.0 - 3 * i for i in range(1, 21)]
        series = PriceSeries.from_closes(closes)
        bearish = MacdCondition(MacdSignal.BEARISH_CROSS)
        bullish = MacdCondition(MacdSignal.BULLISH_CROSS)

        bearish_hits = [i for i in range(len(closes)) if evaluator.evaluate(bearish, series, i)]

        assert len(bearish_hits) == 1
        assert bearish_hits[0] > 39
        assert not any(evaluator.evaluate(bullish, series, i) for i in range(len(closes)))

    def test_should_detect_bullish_macd_cross_after_reversal(
        self, evaluator: ConditionEvaluator
    ) -> None:
        """Test a bullish cross fires once the downtrend reverses."""
        closes = [140.0 - i for i in range(40)] + [101.0 + 3 * i for i in range(1, 21)]
        series = PriceSeries.from_closes(closes)
        bullish = MacdCondition(MacdSignal.BULLISH_CROSS)
        bearish = MacdCondition(MacdSignal.BEARISH_CROSS)

        bullish_hits = [i for i in range(len(closes)) if evaluator.evaluate(bullish, series, i)]

        assert len(bullish_hits) == 1
        assert bullish_hits[0] > 39
        assert not any(evaluator.evaluate(bearish, series, i) for i in range(len(closes)))

    def test_should_not_report_macd_cross_before_warm_up(
        self, evaluator: ConditionEvaluator
    ) -> None:
        """Test crosses need both samples at or after index 26."""
        closes = [100.0 - i for i in range(26)] + [74.0 + 5 * i for i in range(1, 10)]
        series = PriceSeries.from_closes(closes)

        for signal in (MacdSignal.BULLISH_CROSS, MacdSignal.BEARISH_CROSS):
            assert not any(
                evaluator.evaluate(MacdCondition(signal), series, i) for i in range(27)
            )

    def test_should_match_inclusive_hour_range(self, evaluator: ConditionEvaluator) -> None:
        """Test time_range includes both end hours."""
        series = PriceSeries.from_closes([100.0] * 24)
        condition = TimeRangeCondition(9, 17)

        matches = [i for i in range(24) if evaluator.evaluate(condition, series, i)]

        assert matches == list(range(9, 18))

    def test_should_use_sunday_based_days(self, evaluator: ConditionEvaluator) -> None:
        """Test day_of_week numbers days from Sunday = 0."""
        # 2025-01-01 is a Wednesday and 2025-01-05 a Sunday
        series = PriceSeries.from_closes([100.0] * 100)

        assert sunday_based_weekday(series.timestamp_at(0)) == 3
        assert evaluator.evaluate(DayOfWeekCondition(frozenset({3})), series, 0)
        assert evaluator.evaluate(DayOfWeekCondition(frozenset({0})), series, 96)
        assert not evaluator.evaluate(DayOfWeekCondition(frozenset({1, 2})), series, 96)

    def test_should_never_fire_unsupported_conditions(self, evaluator: ConditionEvaluator) -> None:
        """Test unsupported conditions always evaluate to False."""
        series = PriceSeries.from_closes([100.0] * 30)
        condition = parse_condition({"type": "volume_spike"})

        assert not any(evaluator.evaluate(condition, series, i) for i in range(30))

"""
Backtest service.

Loads the requested price window, runs the simulator and persists the
result. A failed write never discards a computed result.
"""

from datetime import datetime

from loguru import logger

from tradesim.core.interfaces.collaborators import BacktestResultStore, PriceHistoryStore
from tradesim.core.models.backtest import BacktestConfig, BacktestResult
from tradesim.core.models.rule import RuleDefinition
from tradesim.core.utils.decorators import log_operation
from tradesim.engine.backtest_simulator import BacktestSimulator, ProgressCallback


class BacktestService:
    """Runs and stores backtests."""

    def __init__(
        self,
        price_store: PriceHistoryStore,
        result_store: BacktestResultStore,
        config: BacktestConfig | None = None,
    ):
        self.price_store = price_store
        self.result_store = result_store
        self.simulator = BacktestSimulator(config)

    @log_operation
    def run(
        self,
        rule: RuleDefinition,
        period_start: datetime | None = None,
        period_end: datetime | None = None,
        progress_callback: ProgressCallback | None = None,
        config: BacktestConfig | None = None,
    ) -> BacktestResult:
        """
        Backtest rule over the stored history between period_start and period_end.

        config overrides the service-wide configuration for this run only.

        Raises:
            InsufficientDataError: If the window holds too few price points
        """
        series = self.price_store.load_series(period_start, period_end)
        simulator = BacktestSimulator(config) if config is not None else self.simulator
        result = simulator.run(rule, series, progress_callback=progress_callback)

        try:
            result_id = self.result_store.save(result)
        except Exception as e:
            logger.warning(f"Backtest for rule '{rule.name}' computed but not saved: {e}")
            return result.with_persistence(None, False)

        return result.with_persistence(result_id, True)

    def get(self, result_id: str) -> BacktestResult | None:
        return self.result_store.get(result_id)

"""
Core constants and limits.

Defines engine-wide warm-up floors, sizing caps and statistical defaults
shared by the rule evaluator, the backtest simulator and the scanners.
"""

# Indicator periods
RSI_PERIOD = 14
MACD_FAST_PERIOD = 12
MACD_SLOW_PERIOD = 26
MACD_SIGNAL_PERIOD = 9
BOLLINGER_PERIOD = 20
BOLLINGER_STD_MULTIPLIER = 2.0
SMA_PERIODS = (5, 10, 20, 50)

# Neutral values returned when history is too short
NEUTRAL_RSI = 50.0

# Warm-up floors (number of samples / first evaluable index)
RULE_WARMUP_INDEX = 26  # No rule may fire before this index
MACD_MIN_SAMPLES = 26  # MACD values are zero below this many samples
MIN_BACKTEST_DATA_POINTS = 50  # Backtest precondition
MIN_PATTERN_DATA_POINTS = 50  # Pattern scan precondition
MIN_SIGNAL_DATA_POINTS = 15  # RSI signal generation floor

# Condition evaluation
PRICE_CHANGE_MAX_LOOKBACK = 5  # Samples compared by price_change conditions

# Position sizing
MAX_EQUITY_FRACTION_PER_POSITION = 0.10  # Never risk more than 10% of equity
DEFAULT_POSITION_SIZE = 1000.0
DEFAULT_INITIAL_CAPITAL = 100000.0

# Exit defaults (percent) applied when a rule leaves them unset
DEFAULT_STOP_LOSS_PERCENT = 5.0
DEFAULT_TAKE_PROFIT_PERCENT = 3.0

# Equity curve down-sampling (one point every N walked indices)
DEFAULT_EQUITY_SAMPLE_INTERVAL = 10

# Statistics
PROFIT_FACTOR_SENTINEL = 999.0  # Stored instead of infinity when there are no losses
TRADING_DAYS_PER_YEAR = 252

# System limits
MIN_INITIAL_CAPITAL = 100.0  # Minimum starting capital
MAX_INITIAL_CAPITAL = 100000000.0  # Maximum starting capital (100M)
MAX_STORED_BACKTEST_RESULTS = 500  # In-memory result store bound
MAX_RECORDED_EVENTS = 1000  # Bookings and notifications kept per in-memory recorder

"""
Pump state inference from water level trends.

The sensor only reports the level, so the pump state is inferred from the
mean step of the most recent samples:

* a clear rise means the pump is filling the tank,
* a clear fall means the tank is draining with the pump idle,
* a flat level keeps the pump on only while the tank is below the fill
  ceiling.
"""
from typing import Sequence

from core.models.actuator_state import ActuatorState
from core.models.config_data import trendConfigData

DEFAULT_TREND_CONFIG = trendConfigData()


def average_change(levels: Sequence[float], window: int) -> float:
    """Mean of consecutive first differences over the last `window` levels.

    Returns 0.0 when fewer than two levels are available.
    """
    recent = list(levels)[-window:]
    if len(recent) < 2:
        return 0.0
    total = sum(recent[i] - recent[i - 1] for i in range(1, len(recent)))
    return total / (len(recent) - 1)


def infer(
    current_level: float,
    history: Sequence[float],
    config: trendConfigData = DEFAULT_TREND_CONFIG,
) -> ActuatorState:
    """Infer the pump state from the current level and recent history.

    Args:
        current_level: Latest level in percent
        history: Recent levels, most recent last
        config: Trend thresholds

    Returns:
        ActuatorState.OFF while fewer than `config.min_samples` samples exist.
    """
    if len(history) < config.min_samples:
        return ActuatorState.OFF

    avg_change = average_change(history, config.window)

    if avg_change > config.rising_threshold:
        return ActuatorState.ON
    if avg_change < config.falling_threshold:
        return ActuatorState.OFF
    return ActuatorState.ON if current_level <= config.fill_ceiling else ActuatorState.OFF

"""
Rule-based alert derivation.

`derive` is a pure function of the current monitor state: it is evaluated
again after every committed state change and its result replaces the
previous alert list entirely.
"""
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from core.models.actuator_state import ActuatorState
from core.models.alert import Alert, AlertSeverity
from core.models.config_data import alertConfigData
from core.models.connection_status import ConnectionStatus
from core.models.reading import Reading
from core.processing.trend_engine import average_change

DEFAULT_ALERT_CONFIG = alertConfigData()

# Rule identities (stable per rule, not per occurrence)
LEVEL_CRITICAL = (1, "level_critical")
LEVEL_LOW = (2, "level_low")
PUMP_IDLE = (3, "pump_idle")
CONNECTION_LOST = (4, "connection_lost")
BATTERY_LOW = (5, "battery_low")
PUMP_FILLING = (6, "pump_filling")


def format_relative_time(instant: Optional[datetime], now: datetime) -> str:
    """Human readable age of `instant` relative to `now`."""
    if instant is None:
        return "Just now"
    seconds = int((now - instant).total_seconds())
    if seconds < 60:
        return "Just now"
    minutes = seconds // 60
    if minutes < 60:
        return "1 minute ago" if minutes == 1 else f"{minutes} minutes ago"
    hours = minutes // 60
    if hours < 24:
        return "1 hour ago" if hours == 1 else f"{hours} hours ago"
    days = hours // 24
    return "1 day ago" if days == 1 else f"{days} days ago"


def _make(rule: tuple[int, str], severity: AlertSeverity, message: str,
          occurred_at: str, resolved: bool = False) -> Alert:
    alert_id, rule_name = rule
    return Alert(
        id=alert_id,
        rule=rule_name,
        severity=severity,
        message=message,
        occurred_at=occurred_at,
        resolved=resolved,
    )


def derive(
    reading: Optional[Reading],
    actuator_state: ActuatorState,
    history: Sequence[float],
    connectivity: ConnectionStatus,
    now: Optional[datetime] = None,
    config: alertConfigData = DEFAULT_ALERT_CONFIG,
    last_success_at: Optional[datetime] = None,
) -> List[Alert]:
    """Derive the alert list for the given state.

    Rules fire independently except the two level rules, where the critical
    one takes precedence. Level, pump and battery rules need a reading.
    The result is ordered by severity, then by rule evaluation order.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    alerts: List[Alert] = []

    if reading is not None:
        level = reading.level
        reading_age = format_relative_time(reading.timestamp, now)

        if level < config.critical_level:
            alerts.append(_make(
                LEVEL_CRITICAL, AlertSeverity.DANGER,
                f"Critical: Water level at {level:g}% - immediate attention required",
                reading_age,
            ))
        elif level < config.low_level:
            alerts.append(_make(
                LEVEL_LOW, AlertSeverity.WARNING,
                f"Warning: Water level low at {level:g}%",
                reading_age,
            ))

        if actuator_state == ActuatorState.OFF and level < config.optimal_level:
            alerts.append(_make(
                PUMP_IDLE, AlertSeverity.WARNING,
                "Smart pump is OFF while water level is below optimal range",
                reading_age,
            ))

        # Requires strictly more samples than the trend window
        if actuator_state == ActuatorState.ON and len(history) > config.pump_trend_window:
            avg = average_change(history, config.pump_trend_window)
            if avg > config.pump_trend_threshold:
                alerts.append(_make(
                    PUMP_FILLING, AlertSeverity.INFO,
                    f"Smart pump activated - water level increasing ({avg:.1f}%/cycle)",
                    reading_age,
                    resolved=True,
                ))

    if connectivity == ConnectionStatus.ERROR:
        alerts.append(_make(
            CONNECTION_LOST, AlertSeverity.DANGER,
            "Connection to level sensor lost",
            format_relative_time(last_success_at, now),
        ))

    if reading is not None and reading.battery is not None and reading.battery < config.battery_low:
        alerts.append(_make(
            BATTERY_LOW, AlertSeverity.WARNING,
            f"Sensor battery low: {reading.battery:g}%",
            format_relative_time(reading.timestamp, now),
        ))

    # sorted() is stable, so rule order is kept within a severity
    return sorted(alerts, key=lambda alert: alert.severity.rank)


def active_count(alerts: Sequence[Alert]) -> int:
    """Number of unresolved alerts."""
    return sum(1 for alert in alerts if not alert.resolved)

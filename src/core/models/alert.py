"""Alert data model."""
from dataclasses import dataclass
from enum import Enum


class AlertSeverity(Enum):
    """Alert severities, most severe first."""
    DANGER = "danger"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.DANGER: 0,
    AlertSeverity.WARNING: 1,
    AlertSeverity.INFO: 2,
}


@dataclass(frozen=True)
class Alert:
    """
    A derived alert. The list of alerts is regenerated on every recompute, so
    `id` only identifies the rule that fired, not an alert lifecycle.
    """
    id: int
    rule: str
    severity: AlertSeverity
    message: str
    occurred_at: str
    resolved: bool = False

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from library_admin.stream import ValueStream

logger = logging.getLogger(__name__)


class AlertType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass
class Alert:
    type: AlertType
    message: str
    keep_after_route_change: bool = False


class AlertService:
    """User-visible, dismissible notifications.

    Alerts are published on ``alerts`` as they are raised; ``clear()`` publishes
    None. Alerts raised with ``keep_after_route_change`` survive the next
    navigation, everything else is dropped by ``route_changed()``.
    """

    def __init__(self) -> None:
        self.active: List[Alert] = []
        self.alerts = ValueStream("alerts")

    def success(self, message: str, keep_after_route_change: bool = False) -> Alert:
        return self._alert(Alert(AlertType.SUCCESS, message, keep_after_route_change))

    def error(self, message: str, keep_after_route_change: bool = False) -> Alert:
        return self._alert(Alert(AlertType.ERROR, message, keep_after_route_change))

    def info(self, message: str, keep_after_route_change: bool = False) -> Alert:
        return self._alert(Alert(AlertType.INFO, message, keep_after_route_change))

    def warn(self, message: str, keep_after_route_change: bool = False) -> Alert:
        return self._alert(Alert(AlertType.WARNING, message, keep_after_route_change))

    def clear(self) -> None:
        self.active.clear()
        self.alerts.emit(None)

    def dismiss(self, alert: Alert) -> None:
        if alert in self.active:
            self.active.remove(alert)

    def route_changed(self, url: Optional[str] = None) -> None:
        # Sticky alerts are shown once on the next page, then behave like normal ones
        kept = [a for a in self.active if a.keep_after_route_change]
        for alert in kept:
            alert.keep_after_route_change = False
        self.active = kept

    def _alert(self, alert: Alert) -> Alert:
        if alert.type == AlertType.ERROR:
            logger.warning(f"Alert: {alert.message}")
        else:
            logger.info(f"Alert: {alert.message}")
        self.active.append(alert)
        self.alerts.emit(alert)
        return alert

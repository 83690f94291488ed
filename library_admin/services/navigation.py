import logging
from typing import List, Optional

from library_admin.services.alert_service import AlertService
from library_admin.stream import ValueStream

logger = logging.getLogger(__name__)


class Navigator:
    """Records navigation intents; the host UI decides what a URL means."""

    def __init__(self, alert_service: Optional[AlertService] = None) -> None:
        self.history: List[str] = []
        self.navigations = ValueStream("navigations")
        if alert_service is not None:
            self.navigations.subscribe(alert_service.route_changed)

    @property
    def current_url(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    def navigate_by_url(self, url: str) -> None:
        logger.info(f"Navigating to {url}")
        self.history.append(url)
        self.navigations.emit(url)

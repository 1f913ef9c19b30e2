"""Reports Service - server summary with a local fallback"""

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from pydantic import ValidationError

from dormpay.core.exceptions import ApiError
from dormpay.schemas.report import ReportsSummary
from dormpay.schemas.student import Student
from dormpay.services.aggregation import build_reports_summary
from dormpay.services.api_client import ApiClient
from dormpay.utils.time import get_utc_now

logger = logging.getLogger(__name__)


class ReportsService:
    """
    Holds the server-computed reports summary.

    When the summary endpoint fails, ``summary()`` recomputes the figures from
    the locally loaded active students instead. Those figures only know about
    what the client has loaded, so they can differ from the server's.
    """

    def __init__(self, api: ApiClient, clock: Callable[[], datetime] = get_utc_now):
        self._api = api
        self._clock = clock
        self.data: Optional[ReportsSummary] = None
        self.loading = False
        self.error: Optional[str] = None

    async def init(self) -> bool:
        return await self.load()

    async def teardown(self) -> None:
        self.data = None
        self.loading = False
        self.error = None

    async def load(self) -> bool:
        self.loading = True
        self.error = None
        try:
            self.data = await self._api.get_reports_summary()
            return True
        except ApiError as e:
            logger.error("Failed to load reports: %s", e)
            self.data = None
            self.error = f"Failed to load reports ({e.status_code}): {e.message}"
            return False
        except ValidationError as e:
            logger.error("Unexpected reports summary: %s", e)
            self.data = None
            self.error = "Failed to load reports: unexpected response from the server"
            return False
        finally:
            self.loading = False

    async def refresh(self) -> bool:
        return await self.load()

    @property
    def is_fallback(self) -> bool:
        return self.data is None

    def summary(self, active_students: Sequence[Student], now: Optional[datetime] = None) -> ReportsSummary:
        """Server figures when available, otherwise a local computation."""
        if self.data is not None:
            return self.data
        return build_reports_summary(active_students, now or self._clock())

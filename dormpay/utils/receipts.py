import calendar
from datetime import datetime
from typing import Optional

from dormpay.utils.time import get_utc_now


def generate_receipt_number(now: Optional[datetime] = None) -> str:
    """
    Receipt number in the form REC-<yyyymmdd><last 3 digits of epoch ms>.

    ``now`` is a naive UTC datetime; e.g. 2024-03-20 10:30:00.123 gives
    ``REC-20240320123``.
    """
    now = now or get_utc_now()
    epoch_ms = calendar.timegm(now.utctimetuple()) * 1000 + now.microsecond // 1000
    return f"REC-{now.strftime('%Y%m%d')}{str(epoch_ms)[-3:]}"

# daily_coin/utils/china_time.py

from datetime import date, datetime, timedelta
from typing import Optional

import pytz

# Every daily boundary (toss, usage count, click ledger, ranking) uses this
# single fixed offset, whatever the server's own timezone is.
CHINA_TZ = pytz.FixedOffset(8 * 60)


def china_now() -> datetime:
    return datetime.now(CHINA_TZ)


def to_china(moment: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(CHINA_TZ)


def china_today(now: Optional[datetime] = None) -> date:
    return to_china(now or china_now()).date()


def china_yesterday(now: Optional[datetime] = None) -> date:
    return china_today(now) - timedelta(days=1)

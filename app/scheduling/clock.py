from datetime import datetime, timezone


class SystemClock:
    """Wall clock in naive UTC, the form every booking datetime is stored in"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock:
    def __init__(self, moment: datetime):
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


system_clock = SystemClock()


def get_clock():
    return system_clock

"""Period clock: absolute time → integer period index since summon."""

from ..exceptions import InvalidParameter
from ..ledger.interfaces import Clock


class PeriodClock:
    """Wraps the host clock with the summon time and period duration."""

    def __init__(self, clock: Clock, summon_time: int, period_duration: int):
        if period_duration < 1:
            raise InvalidParameter("period_duration must be > 0")
        self._clock = clock
        self.summon_time = summon_time
        self.period_duration = period_duration

    def period_at(self, timestamp: int) -> int:
        # Clock skew before summon still reads as period 0
        if timestamp <= self.summon_time:
            return 0
        return (timestamp - self.summon_time) // self.period_duration

    def current_period(self) -> int:
        return self.period_at(self._clock.now())

    def __repr__(self) -> str:
        return (
            f"<PeriodClock summon={self.summon_time} "
            f"duration={self.period_duration}s period={self.current_period()}>"
        )

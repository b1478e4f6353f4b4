from .daily_log import DailyLog
from .profile import Profile
from .computed_score import ComputedScore
from .benchmark_aggregate import BenchmarkAggregate
from .user_correlation import UserCorrelation

__all__ = [
    "DailyLog",
    "Profile",
    "ComputedScore",
    "BenchmarkAggregate",
    "UserCorrelation",
]

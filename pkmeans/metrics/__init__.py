from .timers import Timer
from .metrics import speedup, efficiency, throughput, overhead_ratio

__all__ = [
    "Timer",
    "speedup",
    "efficiency",
    "throughput",
    "overhead_ratio",
]

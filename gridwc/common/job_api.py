# gridwc/common/job_api.py

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Optional

# token (lowercased bytes, no whitespace) -> count > 0
WordCount = Dict[bytes, int]


class TaskState(str, Enum):
    RUNNING     = "RUNNING"
    CANCELLED   = "CANCELLED"
    COMPLETED   = "COMPLETED"
    FAILED_OPEN = "FAILED_OPEN"


class RunState(str, Enum):
    RUNNING   = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    TIMED_OUT = "TIMED_OUT"


class UsageError(ValueError):
    """No input paths were supplied."""


class DeadlineExceeded(TimeoutError):
    """The global deadline fired before the aggregate was published."""


@dataclass
class RunTimeline:
    t_start: float
    t_tokenize_end: Optional[float] = None
    t_finish: Optional[float] = None
    status: RunState = RunState.RUNNING
    files: Dict[str, TaskState] = field(default_factory=dict)
    delivered: int = 0

    def count(self, state: TaskState) -> int:
        return sum(1 for s in self.files.values() if s == state)

    @property
    def total_s(self) -> Optional[float]:
        if self.t_finish is None:
            return None
        return self.t_finish - self.t_start

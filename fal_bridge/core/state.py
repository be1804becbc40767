import time
from dataclasses import dataclass, field


@dataclass
class AppState:
    started_at: float = field(default_factory=time.monotonic)

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at


# Global application state
state = AppState()

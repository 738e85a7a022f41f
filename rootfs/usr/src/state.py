"""
AcuaponicDuino Bridge State

Bridge context: configuration, error state and traffic counters.
"""

import logging

from pydantic import BaseModel, Field

from config import ConfigModel
from constants import ForwardOutcome

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------------------------
# Models
# ------------------------------------------------------------------------------------

class BridgeStats(BaseModel):
    """Traffic counters, mostly for diagnostics and tests."""
    lines_received: int = 0
    frames_published: int = 0
    lines_dropped: dict[str, int] = Field(default_factory=dict)
    messages_received: int = 0
    connect_attempts: int = 0

    def record(self, outcome: ForwardOutcome) -> None:
        """Count the outcome of one serial line."""
        if outcome == ForwardOutcome.PUBLISHED:
            self.frames_published += 1
        else:
            self.lines_dropped[outcome.value] = self.lines_dropped.get(outcome.value, 0) + 1

    @property
    def total_dropped(self) -> int:
        return sum(self.lines_dropped.values())


class BridgeContext:
    """
    Context holding the state shared by the bridge components.

    One instance is created at startup and passed to every component, the bridge
    keeps no module level state.
    """
    def __init__(self, config: ConfigModel | None = None):
        # Configuration
        self.config = config if config is not None else ConfigModel()

        # Counters
        self.stats = BridgeStats()

        # Error State
        self.lasterror_serial: str | None = None
        self.lasterror_mqtt: str | None = None

    def set_error(self, message: str | None, category: str = 'serial', level: int | None = None):
        """Set or clear an error state. Only changes are logged."""
        changed = False
        if category == 'serial':
            if message != self.lasterror_serial:
                self.lasterror_serial = message
                changed = True
        else:
            if message != self.lasterror_mqtt:
                self.lasterror_mqtt = message
                changed = True

        if changed and message:
            log_level = level if level is not None else logging.ERROR
            logger.log(log_level, f"[{category.upper()}] {message}")

"""Exception types raised by Phase Timeline.

The analytics core degrades gracefully on bad task data and never raises for
data-quality reasons; these exceptions cover configuration and I/O at the
edges of the system.
"""


class PhaseTimelineError(Exception):
    """Base exception for Phase Timeline errors."""
    pass


class ConfigError(PhaseTimelineError):
    """Invalid configuration values (unknown phase names, modes, etc.)."""
    pass


class FeedError(PhaseTimelineError):
    """A task feed or export could not be read or decoded."""
    pass

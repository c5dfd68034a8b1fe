class ChrometraceError(Exception):
    """Base class for every error raised by chrometrace."""


class SerializationError(ChrometraceError, ValueError):
    """Event data could not be encoded as JSON."""


class SinkError(ChrometraceError, OSError):
    """Writing the trace to its output failed."""


class SamplerError(ChrometraceError):
    """Stacks could not be captured from the target process."""

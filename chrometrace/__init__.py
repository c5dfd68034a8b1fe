from .engine import Chrometrace
from .errors import ChrometraceError, SamplerError, SerializationError, SinkError
from .events import Event, Phase
from .frames import Frame, Sample

__all__ = [
    "Chrometrace",
    "ChrometraceError",
    "Event",
    "Frame",
    "Phase",
    "Sample",
    "SamplerError",
    "SerializationError",
    "SinkError",
]

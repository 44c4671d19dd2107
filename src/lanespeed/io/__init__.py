from .base import FrameSource
from .memory import InMemoryFrameSource, constant_rate_timestamps
from .video import VideoReader, VideoReaderConfig

__all__ = [
    "FrameSource",
    "InMemoryFrameSource",
    "VideoReader",
    "VideoReaderConfig",
    "constant_rate_timestamps",
]

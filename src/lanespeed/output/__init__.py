from .overlay import OverlayRenderer
from .status import NO_SPEED, FrameStatus, format_speed, format_status

__all__ = ["FrameStatus", "NO_SPEED", "OverlayRenderer", "format_speed", "format_status"]

"""Line editing on top of a gap buffer."""

from .gapbuffer import GapBuffer, WriteMode
from .line import EditorState, LineEditor

__all__ = [
    "EditorState",
    "GapBuffer",
    "LineEditor",
    "WriteMode",
]

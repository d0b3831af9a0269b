from .note import Note, NoteType
from .play_mode import PlayMode, get_keys
from .chart import Chart
from .chart_factory import ChartFactory

__all__ = ["Note", "NoteType", "PlayMode", "get_keys", "Chart", "ChartFactory"]

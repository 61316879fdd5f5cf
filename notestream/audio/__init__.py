"""Audio capture and level monitoring module."""

from .source import AudioSource, MicrophoneSource, DeviceAcquisitionError
from .capture import AudioCapture
from .level_monitor import LevelMonitor
from .recorder import ChunkRecorder, RecorderFault, RecorderState

__all__ = [
    'AudioSource',
    'MicrophoneSource',
    'DeviceAcquisitionError',
    'AudioCapture',
    'LevelMonitor',
    'ChunkRecorder',
    'RecorderFault',
    'RecorderState',
]

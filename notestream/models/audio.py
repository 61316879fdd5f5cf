"""Audio-related data models."""

import io
import wave
from dataclasses import dataclass


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_frames: int
    current_level: float = 0.0


@dataclass
class AudioFrame:
    """A single audio frame with timestamp."""
    data: bytes
    timestamp: float  # Time when this frame was captured
    frame_number: int


@dataclass
class AudioChunk:
    """A fixed-duration block of recorded audio, ready for transcription."""
    chunk_id: str
    session_id: str
    sequence_number: int
    audio_data: bytes  # Raw 16-bit PCM
    sample_rate: int = 16000
    channels: int = 1
    sample_width: int = 2
    started_at: float = 0.0
    ended_at: float = 0.0

    @property
    def size(self) -> int:
        return len(self.audio_data)

    @property
    def duration_seconds(self) -> float:
        bytes_per_second = self.sample_rate * self.channels * self.sample_width
        return len(self.audio_data) / bytes_per_second

    def to_wav(self) -> bytes:
        """Wrap the PCM data in a WAV container."""
        buffer = io.BytesIO()
        with wave.open(buffer, 'wb') as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.sample_rate)
            wf.writeframes(self.audio_data)
        return buffer.getvalue()

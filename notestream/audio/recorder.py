"""Chunk recorder: cuts the live frame stream into fixed-duration chunks."""

import time
import logging
from enum import Enum
from typing import Optional

from ..models.audio import AudioChunk

logger = logging.getLogger(__name__)


class RecorderFault(Exception):
    """The recorder is in a state it cannot record from."""


class RecorderState(Enum):
    INACTIVE = "inactive"
    RECORDING = "recording"
    CLOSED = "closed"


class ChunkRecorder:
    """Accumulates frames into chunks of chunk_duration_seconds.

    After each chunk the recorder goes inactive and drops frames until it
    is resumed.
    """

    def __init__(self,
                 session_id: str,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 sample_width: int = 2,
                 chunk_duration_seconds: float = 1.0):
        self.session_id = session_id
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_width = sample_width
        self.chunk_duration_seconds = chunk_duration_seconds

        self.bytes_per_chunk = int(sample_rate * channels * sample_width * chunk_duration_seconds)
        self.state = RecorderState.INACTIVE
        self.buffer = bytearray()
        self.chunk_counter = 0
        self.chunk_start_time: Optional[float] = None

    def start(self) -> None:
        if self.state is RecorderState.CLOSED:
            raise RecorderFault("Recorder is closed")
        if self.state is RecorderState.RECORDING:
            raise RecorderFault("Recorder is already recording")

        self.buffer.clear()
        self.chunk_start_time = None
        self.state = RecorderState.RECORDING

    def resume(self) -> None:
        self.start()

    def write(self, data: bytes) -> Optional[AudioChunk]:
        """Add a frame; returns the finished chunk at a chunk boundary."""
        if self.state is not RecorderState.RECORDING or not data:
            return None

        if self.chunk_start_time is None:
            self.chunk_start_time = time.time()
        self.buffer.extend(data)

        if len(self.buffer) < self.bytes_per_chunk:
            return None

        self.chunk_counter += 1
        chunk = AudioChunk(
            chunk_id=f"{self.session_id}.chunk_{self.chunk_counter}",
            session_id=self.session_id,
            sequence_number=self.chunk_counter,
            audio_data=bytes(self.buffer),
            sample_rate=self.sample_rate,
            channels=self.channels,
            sample_width=self.sample_width,
            started_at=self.chunk_start_time,
            ended_at=time.time(),
        )
        self.buffer.clear()
        self.chunk_start_time = None
        self.state = RecorderState.INACTIVE
        return chunk

    def stop(self) -> None:
        """Close the recorder, discarding any partial chunk."""
        if self.buffer:
            logger.debug(f"Discarding {len(self.buffer)} bytes of partial chunk")
        self.buffer.clear()
        self.state = RecorderState.CLOSED

    @property
    def is_recording(self) -> bool:
        return self.state is RecorderState.RECORDING

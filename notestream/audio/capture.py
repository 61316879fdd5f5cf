"""Audio capture module with continuous reading in a background thread."""

import time
import logging
import threading
from threading import Thread, Event
from typing import Optional, Callable
from datetime import datetime

from ..models.audio import AudioStats, AudioFrame
from .source import AudioSource

logger = logging.getLogger(__name__)


class AudioCapture:
    """Continuous audio capture that hands every frame to a callback."""

    def __init__(
        self,
        source: AudioSource,
        callback: Callable[[AudioFrame], None],
        on_source_lost: Optional[Callable[[Exception], None]] = None,
    ):
        """Initialize audio capture.

        Args:
            source: Opened audio source to read frames from
            callback: Called with each AudioFrame, from the capture thread
            on_source_lost: Called once if the source fails while recording
        """
        self.source = source
        self.frame_callback = callback
        self.on_source_lost = on_source_lost

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_frames = 0

    def start_recording(self) -> None:
        """Start continuous recording in background thread."""
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        logger.info("Starting audio capture")
        self.stop_event.clear()
        self.start_time = datetime.now()
        self.total_frames = 0

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.is_recording = True
        self.recording_thread.start()

    def stop_recording(self) -> None:
        """Stop recording and release the source."""
        if not self.is_recording:
            logger.debug("No capture in progress")
            return

        logger.info("Stopping audio capture")
        self.stop_event.set()

        # Wait for recording thread to finish
        if (self.recording_thread and self.recording_thread.is_alive()
                and self.recording_thread is not threading.current_thread()):
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Capture thread did not stop cleanly")

        self.is_recording = False
        self.source.close()
        logger.info(f"Capture stopped. Total frames: {self.total_frames}")

    def _record_continuously(self) -> None:
        """Internal method: continuous reading loop in background thread."""
        while not self.stop_event.is_set():
            try:
                data = self.source.read_frame()
            except OSError as e:
                if self.stop_event.is_set():
                    break
                logger.error(f"Audio source lost: {e}")
                if self.on_source_lost:
                    self.on_source_lost(e)
                return

            self.total_frames += 1
            frame = AudioFrame(
                data=data,
                timestamp=time.time(),
                frame_number=self.total_frames,
            )
            self.frame_callback(frame)

    def get_recording_stats(self, current_level: float = 0.0) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.source.sample_rate,
            chunk_size=self.source.chunk_size,
            total_frames=self.total_frames,
            current_level=current_level,
        )

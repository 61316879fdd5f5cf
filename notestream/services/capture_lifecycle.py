"""Chunked capture lifecycle: recorder, chunk filtering and transcription results."""

import logging
from typing import Callable, Optional

from ..audio.recorder import ChunkRecorder, RecorderFault
from ..models.audio import AudioChunk
from ..models.events import TranscriptionCompletedEvent, TranscriptionFailedEvent
from ..models.session import SessionState
from ..transcription.consumers import TranscriptionConsumer
from .segmenter import FlushReason

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Speech detected but transcription unavailable."
DEFAULT_MIN_CHUNK_BYTES = 800
DEFAULT_MAX_CONSECUTIVE_ERRORS = 3


class CaptureLifecycle:
    """Owns the recorder of a session and the transcription of its chunks.

    All methods run on the pipeline's event thread. The accumulation buffer
    belongs to the pipeline (``host``); the lifecycle only asks it to append
    fragments and to flush.

    Args:
        host: The pipeline; needs append_fragment(text), check_staleness(),
            request_flush(reason), buffer_text and post_event(event)
        recorder_factory: Builds a recorder for a session id
        consumer_factory: Builds a transcription consumer given the callback
            that receives outcomes
        min_chunk_bytes: Chunks smaller than this are treated as noise
        max_consecutive_errors: Failures in a row before the fallback note
    """

    def __init__(self,
                 host,
                 recorder_factory: Callable[[str], ChunkRecorder],
                 consumer_factory: Callable[[Callable], TranscriptionConsumer],
                 min_chunk_bytes: int = DEFAULT_MIN_CHUNK_BYTES,
                 max_consecutive_errors: int = DEFAULT_MAX_CONSECUTIVE_ERRORS):
        self.host = host
        self.recorder_factory = recorder_factory
        self.consumer_factory = consumer_factory
        self.min_chunk_bytes = min_chunk_bytes
        self.max_consecutive_errors = max_consecutive_errors

        self.session: Optional[SessionState] = None
        self.recorder: Optional[ChunkRecorder] = None
        self.consumer: Optional[TranscriptionConsumer] = None
        self.recorder_restarts = 0
        self.stopped = True

    def start(self, session: SessionState) -> None:
        """Begin producing chunks for a new session."""
        self.session = session
        self.stopped = False
        self.recorder_restarts = 0
        self.consumer = self.consumer_factory(self.host.post_event)
        self.recorder = self._create_recorder()
        logger.info(f"Capture lifecycle started for session {session.session_id}")

    def _create_recorder(self) -> ChunkRecorder:
        if self.recorder is not None:
            self.recorder.stop()
        recorder = self.recorder_factory(self.session.session_id)
        recorder.start()
        return recorder

    def on_frame(self, data: bytes) -> None:
        if self.stopped or self.recorder is None:
            return

        chunk = self.recorder.write(data)
        if chunk is not None:
            self._handle_chunk(chunk)

    def _handle_chunk(self, chunk: AudioChunk) -> None:
        if chunk.size < self.min_chunk_bytes:
            logger.debug(f"Chunk {chunk.chunk_id} too small ({chunk.size} bytes), skipping transcription")
            self.session.chunks_discarded += 1
        else:
            logger.debug(f"Chunk {chunk.chunk_id} ready: {chunk.size} bytes, {chunk.duration_seconds:.2f}s")
            self.session.chunks_submitted += 1
            self.consumer.submit(chunk)

        self._resume()

    def _resume(self) -> None:
        """Resume recording after a chunk, re-creating the recorder if it faults."""
        if self.stopped:
            return
        try:
            self.recorder.resume()
        except RecorderFault as e:
            logger.warning(f"Error restarting recorder: {e}; creating a new one")
            self.recorder_restarts += 1
            self.recorder = self._create_recorder()

    def on_transcription_completed(self, event: TranscriptionCompletedEvent) -> None:
        if self.stopped:
            logger.debug(f"Discarding late transcription for {event.chunk_id}")
            return

        text = event.text.strip()
        if not text:
            logger.info(f"No transcription text returned for {event.chunk_id}")
            self._record_failure()
            return

        self.session.consecutive_transcription_errors = 0
        self.session.fallback_emitted = False
        self.host.append_fragment(text)
        self.host.check_staleness()

    def on_transcription_failed(self, event: TranscriptionFailedEvent) -> None:
        if self.stopped:
            logger.debug(f"Discarding late transcription failure for {event.chunk_id}")
            return

        kind = "timed out" if event.timed_out else "failed"
        logger.warning(f"Transcription {kind} for {event.chunk_id}: {event.error}")
        self._record_failure()

    def _record_failure(self) -> None:
        self.session.consecutive_transcription_errors += 1
        errors = self.session.consecutive_transcription_errors
        if errors < self.max_consecutive_errors:
            return

        # One fallback per outage
        if self.session.fallback_emitted or FALLBACK_MESSAGE in self.host.buffer_text:
            return

        logger.info(f"Added fallback message after {errors} consecutive transcription errors")
        self.session.fallback_emitted = True
        self.host.append_fragment(FALLBACK_MESSAGE)
        self.host.request_flush(FlushReason.FALLBACK)

    def stop(self) -> None:
        """Stop the recorder and abandon queued transcriptions."""
        if self.stopped:
            return
        self.stopped = True

        if self.recorder is not None:
            self.recorder.stop()
        if self.consumer is not None:
            self.consumer.shutdown(timeout=0.0)
        logger.info(f"Capture lifecycle stopped (recorder restarts: {self.recorder_restarts})")

    @property
    def pending_transcriptions(self) -> int:
        if self.consumer is None or self.stopped:
            return 0
        return self.consumer.in_flight

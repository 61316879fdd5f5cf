"""Note pipeline: turns a live audio stream into deduplicated notes.

One event thread owns all session state. The capture thread, the
transcription workers and the optional summarizer only post events onto
the pipeline's queue; every event carries the id of the session that
produced it, and events from any other session are dropped.
"""

import time
import queue
import random
import string
import asyncio
import logging
import threading
from datetime import datetime
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..analysis.dedup import Deduplicator
from ..analysis.quality import NOTEWORTHY_OVERRIDE_SCORE, analyze_content_quality, count_words
from ..analysis.summarizer import NoteSummarizer
from ..audio.capture import AudioCapture
from ..audio.level_monitor import LevelMonitor
from ..audio.recorder import ChunkRecorder
from ..audio.source import AudioSource, DeviceAcquisitionError, MicrophoneSource
from ..config import NoteStreamConfig
from ..models.audio import AudioFrame
from ..models.events import (
    AudioFrameEvent,
    NoteDraftedEvent,
    SourceLostEvent,
    StopEvent,
    TranscriptionCompletedEvent,
    TranscriptionFailedEvent,
)
from ..models.notes import ContentQuality, Note
from ..models.session import SessionState
from ..models.ui import PipelineStatus
from ..transcription.base import AbstractTranscriptionBackend
from ..transcription.consumers import TranscriptionConsumer
from .capture_lifecycle import CaptureLifecycle
from .publisher import NotePublisher
from .segmenter import FlushReason, SegmentationSettings, Segmenter

logger = logging.getLogger(__name__)

STOP_TIMEOUT_SECONDS = 5.0


def generate_session_id() -> str:
    """Timestamp-based session id with a random suffix."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{timestamp}_{random_suffix}"


class NotePipeline:
    """Orchestrates capture, transcription, segmentation and note emission."""

    def __init__(self,
                 config: NoteStreamConfig,
                 backend: AbstractTranscriptionBackend,
                 note_callback: Optional[Callable[[Note], None]] = None,
                 existing_notes_provider: Optional[Callable[[], Iterable[str]]] = None,
                 summarizer: Optional[NoteSummarizer] = None,
                 source_factory: Optional[Callable[[], AudioSource]] = None,
                 consumer_factory: Optional[Callable[[Callable], TranscriptionConsumer]] = None,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize the pipeline.

        Args:
            config: Application configuration
            backend: Initialized transcription backend
            note_callback: Receives every accepted Note (default: publish on pubsub)
            existing_notes_provider: Returns the note contents currently visible
                to the user, for the acceptance-time duplicate gate
            summarizer: Optional LLM summarizer applied to noteworthy segments
            source_factory: Builds the audio source when start_session gets none
            consumer_factory: Builds the transcription consumer for a session
            clock: Monotonic clock in seconds
        """
        self.config = config
        self.backend = backend
        self.note_callback = note_callback or NotePublisher().get_callback()
        self.existing_notes_provider = existing_notes_provider
        self.summarizer = summarizer
        self.source_factory = source_factory or self._create_microphone_source
        self.consumer_factory = consumer_factory or self._create_consumer
        self.clock = clock

        self.language = config.get('transcription.language', 'en')
        self.settings = SegmentationSettings.from_config(config)
        self.level_monitor = LevelMonitor(
            history_size=config.get('level_monitor.history_size', 20),
            channels=config.get('audio.channels', 1),
        )
        self.segmenter = Segmenter(self.settings)
        self.deduplicator = Deduplicator()
        self.lifecycle = CaptureLifecycle(
            host=self,
            recorder_factory=self._create_recorder,
            consumer_factory=self.consumer_factory,
            min_chunk_bytes=config.get('capture.min_chunk_bytes', 800),
            max_consecutive_errors=config.get('capture.max_consecutive_errors', 3),
        )

        # Session state, touched only by the event thread once a session runs
        self.session: Optional[SessionState] = None
        self.is_recording = False
        self.audio_capture: Optional[AudioCapture] = None
        self.source: Optional[AudioSource] = None
        self.last_quality: Optional[ContentQuality] = None
        self.last_transcript = ""
        self._fragments: List[str] = []
        self._buffered_words = 0
        self._pending_drafts = 0

        # Threads
        self._events: "queue.Queue" = queue.Queue()
        self._event_thread: Optional[threading.Thread] = None
        self._summary_executor: Optional[ThreadPoolExecutor] = None
        self._stop_processed = threading.Event()
        self._lock = threading.Lock()

    # Factories

    def _create_microphone_source(self) -> AudioSource:
        return MicrophoneSource(
            sample_rate=self.config.get('audio.sample_rate', 16000),
            chunk_size=self.config.get('audio.chunk_size', 512),
            channels=self.config.get('audio.channels', 1),
            device_index=self.config.get('audio.device_index'),
        )

    def _create_consumer(self, result_callback: Callable) -> TranscriptionConsumer:
        return TranscriptionConsumer(
            name="transcription",
            backend=self.backend,
            result_callback=result_callback,
            language=self.language,
            timeout=self.config.get('capture.transcription_timeout_seconds', 10.0),
            max_concurrent_threads=self.config.get('capture.max_concurrent_transcriptions', 4),
        )

    def _create_recorder(self, session_id: str) -> ChunkRecorder:
        if self.source is not None:
            sample_rate = self.source.sample_rate
            channels = self.source.channels
            sample_width = self.source.sample_width
        else:
            sample_rate = self.config.get('audio.sample_rate', 16000)
            channels = self.config.get('audio.channels', 1)
            sample_width = 2
        return ChunkRecorder(
            session_id,
            sample_rate=sample_rate,
            channels=channels,
            sample_width=sample_width,
            chunk_duration_seconds=self.config.get('capture.chunk_duration_seconds', 1.0),
        )

    # Session lifecycle

    def start_session(self, source: Optional[AudioSource] = None) -> Dict[str, Any]:
        """Acquire the audio source and start a new session.

        Returns:
            Result dictionary with success status and session details
        """
        with self._lock:
            if self.is_recording:
                return {
                    "success": False,
                    "error": "Already recording",
                    "session_id": self.session.session_id if self.session else None,
                }

            source = source or self.source_factory()
            try:
                source.open()
            except DeviceAcquisitionError as e:
                logger.error(f"Could not acquire audio source: {e}")
                return {
                    "success": False,
                    "error": str(e),
                    "error_type": "DeviceAcquisitionError",
                }

            self.source = source
            self._events = queue.Queue()
            self._stop_processed.clear()
            session = self.begin_session()

            if self.summarizer is not None:
                self._summary_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="NoteSummarizer")

            self._event_thread = threading.Thread(
                target=self._run_event_loop,
                args=(self._events,),
                name="PipelineEventThread",
                daemon=True,
            )
            self._event_thread.start()

            self.audio_capture = AudioCapture(
                source,
                callback=self._on_audio_frame,
                on_source_lost=self._on_source_lost,
            )
            self.audio_capture.start_recording()
            self.is_recording = True

            logger.info(f"Started session: {session.session_id}")
            return {
                "success": True,
                "session_id": session.session_id,
                "started_at": session.started_at.isoformat(),
            }

    def begin_session(self, session_id: Optional[str] = None) -> SessionState:
        """Reset all per-session state and start the capture lifecycle.

        Called by start_session; tests drive a session through this and
        process_event without any threads.
        """
        self.session = SessionState(session_id=session_id or generate_session_id())
        self._fragments.clear()
        self._buffered_words = 0
        self._pending_drafts = 0
        self.last_quality = None
        self.last_transcript = ""
        self.deduplicator.reset()
        self.level_monitor.reset()
        if self.source is not None:
            self.level_monitor.channels = self.source.channels
        self.segmenter.begin(self.session, self.clock())
        self.lifecycle.start(self.session)
        return self.session

    def stop_session(self) -> Dict[str, Any]:
        """Stop the current session, flushing whatever is still buffered.

        Returns:
            Result dictionary with session statistics
        """
        with self._lock:
            if not self.is_recording:
                return {
                    "success": True,
                    "session_id": self.session.session_id if self.session else None,
                    "message": "Not recording",
                }

            session = self.session
            logger.info(f"Stopping session: {session.session_id}")

            if self.audio_capture is not None:
                self.audio_capture.stop_recording()

            # The shutdown flush runs on the event thread, after every queued frame
            self.post_event(StopEvent(session_id=session.session_id))
            if not self._stop_processed.wait(timeout=STOP_TIMEOUT_SECONDS):
                logger.warning("Event thread did not process the stop request in time")

            if self._summary_executor is not None:
                self._summary_executor.shutdown(wait=True)
                self._summary_executor = None

            self._events.put(None)
            if self._event_thread is not None and self._event_thread is not threading.current_thread():
                self._event_thread.join(timeout=STOP_TIMEOUT_SECONDS)
                if self._event_thread.is_alive():
                    logger.warning("Event thread did not stop cleanly")
            self._event_thread = None

            self.is_recording = False
            duration = (datetime.now() - session.started_at).total_seconds()
            logger.info(f"Session {session.session_id} stopped: {session.notes_emitted} notes, "
                        f"{session.filtered_count} filtered")

            return {
                "success": True,
                "session_id": session.session_id,
                "duration_seconds": duration,
                "notes_emitted": session.notes_emitted,
                "filtered_count": session.filtered_count,
                "chunks_submitted": session.chunks_submitted,
                "chunks_discarded": session.chunks_discarded,
            }

    def get_status(self) -> PipelineStatus:
        session = self.session
        current_level = self.level_monitor.current_level
        audio_stats = None
        if self.audio_capture is not None:
            audio_stats = self.audio_capture.get_recording_stats(current_level)
        return PipelineStatus(
            session_id=session.session_id if session else None,
            is_recording=self.is_recording,
            is_processing=self.is_processing,
            current_level=current_level,
            content_quality=self.last_quality,
            filtered_count=session.filtered_count if session else 0,
            notes_emitted=session.notes_emitted if session else 0,
            pending_transcriptions=self.lifecycle.pending_transcriptions,
            buffered_words=self._buffered_words,
            audio=audio_stats,
        )

    @property
    def is_processing(self) -> bool:
        return self.lifecycle.pending_transcriptions > 0 or self._pending_drafts > 0

    # Event queue

    def post_event(self, event) -> None:
        """Hand an event to the event thread. Safe from any thread."""
        self._events.put(event)

    def _run_event_loop(self, events: "queue.Queue") -> None:
        logger.debug("Pipeline event thread started")
        while True:
            event = events.get()
            if event is None:
                break
            try:
                self.process_event(event)
            except Exception as e:
                logger.error(f"Error processing {type(event).__name__}: {e}", exc_info=True)
        logger.debug("Pipeline event thread stopped")

    def process_event(self, event) -> None:
        """Apply one event to the session state. Runs on the event thread."""
        if self.session is None or event.session_id != self.session.session_id:
            logger.debug(f"Ignoring {type(event).__name__} from session {event.session_id}")
            return

        if isinstance(event, AudioFrameEvent):
            self._on_frame_event(event)
        elif isinstance(event, TranscriptionCompletedEvent):
            self.lifecycle.on_transcription_completed(event)
        elif isinstance(event, TranscriptionFailedEvent):
            self.lifecycle.on_transcription_failed(event)
        elif isinstance(event, NoteDraftedEvent):
            self._pending_drafts = max(0, self._pending_drafts - 1)
            self._on_note_drafted(event)
        elif isinstance(event, SourceLostEvent):
            self._on_source_lost_event(event)
        elif isinstance(event, StopEvent):
            self._on_stop_event()
        else:
            logger.warning(f"Unknown event type: {type(event).__name__}")

    # Producers (other threads)

    def _on_audio_frame(self, frame: AudioFrame) -> None:
        self.post_event(AudioFrameEvent(
            session_id=self.session.session_id,
            audio_data=frame.data,
            timestamp=frame.timestamp,
            frame_number=frame.frame_number,
        ))

    def _on_source_lost(self, error: Exception) -> None:
        self.post_event(SourceLostEvent(session_id=self.session.session_id, error=str(error)))

    # Handlers (event thread)

    def _on_frame_event(self, event: AudioFrameEvent) -> None:
        if self.session.stopped:
            return

        self.level_monitor.sample(event.audio_data)
        reason = self.segmenter.on_level_sample(
            self.level_monitor.recent(self.settings.silence_window),
            self._buffered_words,
            self.clock(),
        )
        if reason is not None:
            self.request_flush(reason)

        self.lifecycle.on_frame(event.audio_data)

    def _on_source_lost_event(self, event: SourceLostEvent) -> None:
        logger.error(f"Audio source lost, ending session {event.session_id}: {event.error}")
        self.level_monitor.stop()
        threading.Thread(target=self.stop_session, name="SessionTeardownThread", daemon=True).start()

    def _on_stop_event(self) -> None:
        if self.session.stopped:
            return

        self.lifecycle.stop()
        self.level_monitor.stop()
        self.segmenter.end()
        if self._fragments:
            self.request_flush(FlushReason.SHUTDOWN)
        self.session.stopped = True
        self._stop_processed.set()

    # Accumulation buffer

    @property
    def buffer_text(self) -> str:
        return " ".join(self._fragments).strip()

    @property
    def buffered_word_count(self) -> int:
        return self._buffered_words

    def append_fragment(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        self._fragments.append(text)
        self._buffered_words += count_words(text)
        logger.debug(f"Buffered fragment ({self._buffered_words} words): {text}")

    def check_staleness(self) -> None:
        reason = self.segmenter.on_fragment(self._buffered_words, self.clock())
        if reason is not None:
            self.request_flush(reason)

    def request_flush(self, reason: FlushReason) -> None:
        """Finalize the buffer into a candidate note.

        Every flush but the shutdown flush needs at least the minimum word
        count; the shutdown flush takes whatever is buffered.
        """
        text = self.buffer_text
        if not text:
            return
        if reason is not FlushReason.SHUTDOWN and self._buffered_words < self.settings.min_content_words:
            logger.debug(f"Skipping {reason.value} flush: only {self._buffered_words} words buffered")
            return

        self._fragments.clear()
        self._buffered_words = 0
        self.segmenter.mark_flushed(self.clock())
        self.last_transcript = text

        logger.info(f"Processing accumulated content ({reason.value}): {text}")
        self._process_segment(text)

    # Scoring and emission

    def _process_segment(self, text: str) -> None:
        if self.deduplicator.is_exact_repeat(text):
            logger.info(f"Exact repeat of an accepted note, skipping: {text}")
            return

        quality = analyze_content_quality(text)
        if not quality.is_noteworthy and quality.score >= NOTEWORTHY_OVERRIDE_SCORE:
            quality = ContentQuality(
                score=quality.score,
                is_noteworthy=True,
                reason="Content may contain useful information",
            )
        self.last_quality = quality

        if not quality.is_noteworthy:
            self.session.filtered_count += 1
            logger.info(f"Content filtered out: {quality.reason} (score: {quality.score:.2f})")
            return

        if self.summarizer is None or self._summary_executor is None:
            self._on_note_drafted(NoteDraftedEvent(
                session_id=self.session.session_id,
                raw_transcript=text,
                content=text,
                quality=quality,
            ))
            return

        self._pending_drafts += 1
        self._summary_executor.submit(self._summarize, self.session.session_id, text, quality)

    def _summarize(self, session_id: str, text: str, quality: ContentQuality) -> None:
        """Runs on the summarizer worker; posts the draft back."""
        try:
            content = asyncio.run(self.summarizer.summarize(text))
        except Exception as e:
            logger.error(f"Summarizer failed: {e}", exc_info=True)
            content = None

        self.post_event(NoteDraftedEvent(
            session_id=session_id,
            raw_transcript=text,
            content=content,
            quality=quality,
        ))

    def _on_note_drafted(self, event: NoteDraftedEvent) -> None:
        content = (event.content or "").strip()
        if not content:
            self.session.filtered_count += 1
            logger.info(f"No noteworthy content in: {event.raw_transcript}")
            return

        if self.deduplicator.is_near_duplicate(content):
            logger.info(f"Near-duplicate of an accepted note, skipping: {content}")
            return
        if self.deduplicator.is_exact_repeat(content):
            logger.info(f"Exact repeat of an accepted note, skipping: {content}")
            return

        if self.existing_notes_provider is not None:
            existing = list(self.existing_notes_provider())
        else:
            existing = self.deduplicator.accepted
        if self.deduplicator.is_similar_to_existing(content, existing):
            logger.info(f"Similar to an existing note, skipping: {content}")
            return

        note = Note(content=content, raw_transcript=event.raw_transcript)
        self.deduplicator.register(content)
        self.session.notes_emitted += 1
        logger.info(f"Creating new note: {content}")
        self.note_callback(note)

"""Transcription consumer: a worker pool that transcribes audio chunks."""

import time
import asyncio
import logging
import threading
import queue
from typing import Optional, Callable, NamedTuple, Union

from ..models.audio import AudioChunk
from ..models.events import TranscriptionCompletedEvent, TranscriptionFailedEvent
from .base import AbstractTranscriptionBackend, TranscriptionError, TranscriptionTimeout

logger = logging.getLogger(__name__)

TranscriptionOutcome = Union[TranscriptionCompletedEvent, TranscriptionFailedEvent]


class TranscriptionTask(NamedTuple):
    """A task to be processed by a worker thread."""
    chunk: AudioChunk
    language: str
    timeout: float


class TranscriptionConsumer:
    """Manages a pool of worker threads to process transcription tasks from a queue.

    Several calls may be in flight at once; each outcome is reported through
    result_callback as soon as its call returns, so outcomes can arrive out
    of submission order.
    """

    def __init__(self,
                 name: str,
                 backend: AbstractTranscriptionBackend,
                 result_callback: Callable[[TranscriptionOutcome], None],
                 language: str = "en",
                 timeout: float = 10.0,
                 max_concurrent_threads: int = 4):
        self.name = name
        self.backend = backend
        self.result_callback = result_callback
        self.language = language
        self.timeout = timeout
        self.max_concurrent_threads = max_concurrent_threads

        # Thread-safe queue for transcription tasks
        self.task_queue: "queue.Queue[Optional[TranscriptionTask]]" = queue.Queue()
        self.worker_threads = []
        self.shutdown_event = threading.Event()

        self._in_flight = 0
        self._in_flight_lock = threading.Lock()

        self._start_workers()

    def _start_workers(self):
        """Create and start the pool of worker threads."""
        for i in range(self.max_concurrent_threads):
            thread = threading.Thread(target=self._worker_loop)
            thread.name = f"worker_{self.name}_{i}"
            thread.daemon = True
            thread.start()
            self.worker_threads.append(thread)
        logger.info(
            f"Started {len(self.worker_threads)} {self.name} transcription workers")

    def _worker_loop(self):
        """The main loop for each worker thread. Initializes an asyncio loop."""
        thread_name = threading.current_thread().name
        logger.debug(f"Worker thread {thread_name} starting")

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        try:
            while True:
                # Block indefinitely until a task is available
                task = self.task_queue.get()

                if task is None:
                    # Sentinel value received, time to exit
                    logger.debug(f"Worker {thread_name} received sentinel, exiting.")
                    self.task_queue.task_done()
                    break

                try:
                    outcome = loop.run_until_complete(self._transcribe(task))
                except Exception as e:
                    logger.error(f"Unhandled exception in transcription task for {thread_name}: {e}", exc_info=True)
                    outcome = TranscriptionFailedEvent(
                        session_id=task.chunk.session_id,
                        chunk_id=task.chunk.chunk_id,
                        sequence_number=task.chunk.sequence_number,
                        error=f"{type(e).__name__}: {e}",
                    )
                try:
                    self.result_callback(outcome)
                except Exception as e:
                    logger.error(f"Result callback failed for {task.chunk.chunk_id}: {e}", exc_info=True)
                finally:
                    with self._in_flight_lock:
                        self._in_flight -= 1
                    self.task_queue.task_done()
        finally:
            loop.close()
            logger.debug(f"Worker thread {thread_name} exiting and closing its event loop.")

    def submit(self, chunk: AudioChunk) -> None:
        """Queue a chunk for transcription."""
        if self.shutdown_event.is_set():
            logger.debug(f"Consumer {self.name} is shut down, dropping {chunk.chunk_id}")
            return

        with self._in_flight_lock:
            self._in_flight += 1
        logger.debug(f"Putting task on queue for {self.name}; "
                     f"chunk={chunk.chunk_id}; size={chunk.size} bytes")
        self.task_queue.put(TranscriptionTask(chunk=chunk, language=self.language, timeout=self.timeout))

    async def _transcribe(self, task: TranscriptionTask) -> TranscriptionOutcome:
        """The core transcription logic for a single chunk."""
        chunk = task.chunk
        start_time = time.time()
        logger.info(f"Transcribing chunk: {chunk.chunk_id} using {self.backend.service_name}")

        try:
            text = await asyncio.wait_for(
                self.backend.transcribe(chunk, task.language, task.timeout),
                timeout=task.timeout,
            )
        except (asyncio.TimeoutError, TranscriptionTimeout) as e:
            logger.warning(f"Transcription of {chunk.chunk_id} timed out after {task.timeout}s")
            return TranscriptionFailedEvent(
                session_id=chunk.session_id,
                chunk_id=chunk.chunk_id,
                sequence_number=chunk.sequence_number,
                error=str(e) or "timeout",
                timed_out=True,
            )
        except TranscriptionError as e:
            logger.warning(f"Transcription of {chunk.chunk_id} failed: {e}")
            return TranscriptionFailedEvent(
                session_id=chunk.session_id,
                chunk_id=chunk.chunk_id,
                sequence_number=chunk.sequence_number,
                error=str(e),
            )

        processing_time = time.time() - start_time
        logger.info(f"{self.name.upper()}: '{text}' ({processing_time:.2f}s)")
        return TranscriptionCompletedEvent(
            session_id=chunk.session_id,
            chunk_id=chunk.chunk_id,
            sequence_number=chunk.sequence_number,
            text=text or "",
            processing_time=processing_time,
        )

    def shutdown(self, timeout: float = 0.0) -> bool:
        """Stop accepting work and let the workers exit.

        Args:
            timeout: Seconds to wait for queued tasks before stopping the
                workers; 0 abandons them

        Returns:
            True if no task was left unfinished
        """
        logger.info(f"Shutting down {self.name} consumer...")
        self.shutdown_event.set()

        if timeout <= 0:
            # Drop queued work; calls already running finish on their own
            dropped = 0
            while True:
                try:
                    self.task_queue.get_nowait()
                except queue.Empty:
                    break
                with self._in_flight_lock:
                    self._in_flight -= 1
                self.task_queue.task_done()
                dropped += 1
            if dropped:
                logger.info(f"[{self.name}] Dropped {dropped} queued transcription tasks")
        else:
            start_time = time.time()
            while time.time() - start_time < timeout:
                if self.task_queue.unfinished_tasks == 0:
                    break
                time.sleep(0.05)
            else:
                logger.warning(
                    f"[{self.name}] Timeout reached while waiting for queue. "
                    f"{self.task_queue.unfinished_tasks} tasks remain."
                )

        clean = self.task_queue.unfinished_tasks == 0
        for _ in self.worker_threads:
            self.task_queue.put(None)

        logger.info(f"{self.name} consumer shutdown complete.")
        return clean

    @property
    def in_flight(self) -> int:
        """Number of submitted chunks whose outcome has not been reported."""
        with self._in_flight_lock:
            return self._in_flight

import pytest
import time
import asyncio
import logging
import threading
from unittest.mock import MagicMock

from notestream.models.audio import AudioChunk
from notestream.models.events import TranscriptionCompletedEvent, TranscriptionFailedEvent
from notestream.transcription.base import AbstractTranscriptionBackend, TranscriptionError
from notestream.transcription.consumers import TranscriptionConsumer

logger = logging.getLogger(__name__)


class MockTranscriptionBackend(AbstractTranscriptionBackend):
    """A mock backend that simulates transcription delay."""

    service_name = "mock"

    def __init__(self, processing_time: float = 0.1):
        super().__init__("en")
        self.processing_time = processing_time

    async def transcribe(self, chunk, language, timeout):
        logger.debug(f"MockBackend: Starting transcription for {chunk.chunk_id} (will take {self.processing_time}s)")
        await asyncio.sleep(self.processing_time)
        logger.debug(f"MockBackend: Finished transcription for {chunk.chunk_id}")
        return f"Transcription for {chunk.chunk_id}"

    def initialize(self) -> bool:
        return True

    def cleanup(self) -> None:
        pass


class FailingBackend(MockTranscriptionBackend):

    def __init__(self, error: Exception):
        super().__init__(0.0)
        self.error = error

    async def transcribe(self, chunk, language, timeout):
        raise self.error


@pytest.fixture
def mock_backend():
    """Provides a mock transcription backend."""
    return MockTranscriptionBackend(processing_time=0.2)


@pytest.fixture
def mock_result_callback():
    """Provides a mock callback function to capture results."""
    return MagicMock()


def create_dummy_chunk(sequence: int, session_id: str = "session") -> AudioChunk:
    """Creates a dummy audio chunk for testing."""
    return AudioChunk(
        chunk_id=f"{session_id}.chunk_{sequence}",
        session_id=session_id,
        sequence_number=sequence,
        audio_data=b'\x00' * 32000,
    )


def wait_for_calls(callback, count, timeout=5.0):
    deadline = time.time() + timeout
    while callback.call_count < count and time.time() < deadline:
        time.sleep(0.01)


@pytest.mark.unit
def test_successful_transcription_reports_completed_event(mock_result_callback):
    consumer = TranscriptionConsumer(
        name="test_consumer",
        backend=MockTranscriptionBackend(processing_time=0.0),
        result_callback=mock_result_callback,
        max_concurrent_threads=1,
    )
    consumer.submit(create_dummy_chunk(1))
    wait_for_calls(mock_result_callback, 1)
    consumer.shutdown()

    event = mock_result_callback.call_args[0][0]
    assert isinstance(event, TranscriptionCompletedEvent)
    assert event.session_id == "session"
    assert event.chunk_id == "session.chunk_1"
    assert event.text == "Transcription for session.chunk_1"


@pytest.mark.unit
def test_timeout_reports_timed_out_failure(mock_result_callback):
    consumer = TranscriptionConsumer(
        name="test_consumer",
        backend=MockTranscriptionBackend(processing_time=1.0),
        result_callback=mock_result_callback,
        timeout=0.05,
        max_concurrent_threads=1,
    )
    consumer.submit(create_dummy_chunk(1))
    wait_for_calls(mock_result_callback, 1)
    consumer.shutdown()

    event = mock_result_callback.call_args[0][0]
    assert isinstance(event, TranscriptionFailedEvent)
    assert event.timed_out is True


@pytest.mark.unit
def test_backend_error_reports_failure(mock_result_callback):
    consumer = TranscriptionConsumer(
        name="test_consumer",
        backend=FailingBackend(TranscriptionError("service unavailable")),
        result_callback=mock_result_callback,
        max_concurrent_threads=1,
    )
    consumer.submit(create_dummy_chunk(1))
    wait_for_calls(mock_result_callback, 1)
    consumer.shutdown()

    event = mock_result_callback.call_args[0][0]
    assert isinstance(event, TranscriptionFailedEvent)
    assert event.timed_out is False
    assert "service unavailable" in event.error


@pytest.mark.unit
def test_unexpected_error_still_reports_failure(mock_result_callback):
    consumer = TranscriptionConsumer(
        name="test_consumer",
        backend=FailingBackend(KeyError("text")),
        result_callback=mock_result_callback,
        max_concurrent_threads=1,
    )
    consumer.submit(create_dummy_chunk(1))
    wait_for_calls(mock_result_callback, 1)
    consumer.shutdown()

    event = mock_result_callback.call_args[0][0]
    assert isinstance(event, TranscriptionFailedEvent)
    assert "KeyError" in event.error
    assert consumer.in_flight == 0


@pytest.mark.unit
def test_consumer_shutdown_completes_with_pending_tasks(mock_backend, mock_result_callback):
    """
    Tests that the consumer shuts down gracefully even when there are tasks in the queue
    and a worker is busy.
    """
    consumer = TranscriptionConsumer(
        name="test_consumer",
        backend=mock_backend,
        result_callback=mock_result_callback,
        max_concurrent_threads=1,
    )

    # Put 5 tasks on the queue. The worker will start the first one.
    for i in range(5):
        consumer.submit(create_dummy_chunk(i))
        time.sleep(0.01)  # ensure they are processed in order

    # Give the first task a moment to be picked up by the worker
    time.sleep(0.1)

    # At this point, worker is busy with task 0, and 4 tasks are in the queue.
    shutdown_successful = consumer.shutdown(timeout=5.0)

    assert shutdown_successful, "Shutdown method timed out or failed"
    assert mock_result_callback.call_count == 5, "Not all tasks were processed before shutdown"


@pytest.mark.unit
def test_shutdown_without_waiting_drops_queued_tasks(mock_backend, mock_result_callback):
    consumer = TranscriptionConsumer(
        name="test_consumer",
        backend=mock_backend,
        result_callback=mock_result_callback,
        max_concurrent_threads=1,
    )
    for i in range(5):
        consumer.submit(create_dummy_chunk(i))
    time.sleep(0.05)

    consumer.shutdown(timeout=0.0)
    for thread in consumer.worker_threads:
        thread.join(timeout=2.0)

    # Only the call that was already running finishes
    assert mock_result_callback.call_count == 1
    assert consumer.in_flight == 0

    consumer.submit(create_dummy_chunk(99))
    assert consumer.in_flight == 0


@pytest.mark.unit
def test_calls_run_concurrently(mock_result_callback):
    backend = MockTranscriptionBackend(processing_time=0.3)
    consumer = TranscriptionConsumer(
        name="test_consumer",
        backend=backend,
        result_callback=mock_result_callback,
        max_concurrent_threads=3,
    )

    start = time.time()
    for i in range(3):
        consumer.submit(create_dummy_chunk(i))
    assert consumer.in_flight == 3
    wait_for_calls(mock_result_callback, 3)
    elapsed = time.time() - start
    consumer.shutdown()

    assert mock_result_callback.call_count == 3
    assert elapsed < 0.8
    assert consumer.in_flight == 0


@pytest.mark.unit
def test_worker_threads_are_named_and_daemon(mock_backend, mock_result_callback):
    consumer = TranscriptionConsumer(
        name="named",
        backend=mock_backend,
        result_callback=mock_result_callback,
        max_concurrent_threads=2,
    )
    try:
        names = [thread.name for thread in consumer.worker_threads]
        assert names == ["worker_named_0", "worker_named_1"]
        assert all(thread.daemon for thread in consumer.worker_threads)
        assert all(isinstance(thread, threading.Thread) for thread in consumer.worker_threads)
    finally:
        consumer.shutdown()

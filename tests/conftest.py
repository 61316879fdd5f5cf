"""Pytest configuration and fixtures for NoteStream tests."""

import asyncio
import logging
import threading
from typing import Callable, List, Optional
from unittest.mock import Mock, patch

import numpy as np
import pytest

from notestream.audio.source import AudioSource, DeviceAcquisitionError
from notestream.config import NoteStreamConfig
from notestream.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without threads or hardware")
    config.addinivalue_line("markers", "integration: tests that run the threaded pipeline")
    config.addinivalue_line("markers", "slow: tests that take more than a second")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakeAudioSource(AudioSource):
    """Audio source that replays scripted frames, then silence.

    With fail_after set, read_frame raises OSError once that many frames
    have been read, as a disconnected device would.
    """

    def __init__(self, frames: Optional[List[bytes]] = None, chunk_size: int = 512,
                 fail_on_open: bool = False, fail_after: Optional[int] = None,
                 frame_interval: float = 0.0):
        self.sample_rate = 16000
        self.channels = 1
        self.chunk_size = chunk_size
        self.frames = list(frames or [])
        self.fail_on_open = fail_on_open
        self.fail_after = fail_after
        self.frame_interval = frame_interval
        self.frames_read = 0
        self.opened = False
        self.closed = False
        self._stop = threading.Event()

    def open(self) -> None:
        if self.fail_on_open:
            raise DeviceAcquisitionError("No input device available")
        self.opened = True

    def read_frame(self) -> bytes:
        if self.fail_after is not None and self.frames_read >= self.fail_after:
            raise OSError("Device unplugged")
        if self.frame_interval:
            self._stop.wait(self.frame_interval)
        self.frames_read += 1
        if self.frames:
            return self.frames.pop(0)
        return b'\x00' * (self.chunk_size * 2)

    def close(self) -> None:
        self.closed = True
        self._stop.set()


class ScriptedBackend(AbstractTranscriptionBackend):
    """Backend that answers with scripted texts or errors, in call order."""

    service_name = "scripted"

    def __init__(self, responses: Optional[List] = None, default: str = "",
                 delay: float = 0.0):
        super().__init__("en")
        self.responses = list(responses or [])
        self.default = default
        self.delay = delay
        self.calls = []
        self.lock = threading.Lock()

    async def transcribe(self, chunk, language, timeout):
        with self.lock:
            self.calls.append(chunk)
            response = self.responses.pop(0) if self.responses else self.default
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(response, Exception):
            raise response
        return response

    def initialize(self) -> bool:
        return True

    def cleanup(self) -> None:
        pass


class RecordingConsumer:
    """Stands in for TranscriptionConsumer; keeps submitted chunks."""

    def __init__(self, result_callback: Callable):
        self.result_callback = result_callback
        self.submitted = []
        self.shut_down = False

    def submit(self, chunk) -> None:
        if not self.shut_down:
            self.submitted.append(chunk)

    def shutdown(self, timeout: float = 0.0) -> bool:
        self.shut_down = True
        return True

    @property
    def in_flight(self) -> int:
        return 0


class RecordingConsumerFactory:
    """Consumer factory that remembers every consumer it built."""

    def __init__(self):
        self.consumers: List[RecordingConsumer] = []

    def __call__(self, result_callback: Callable) -> RecordingConsumer:
        consumer = RecordingConsumer(result_callback)
        self.consumers.append(consumer)
        return consumer

    @property
    def current(self) -> RecordingConsumer:
        return self.consumers[-1]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_source_class():
    return FakeAudioSource


@pytest.fixture
def scripted_backend():
    return ScriptedBackend()


@pytest.fixture
def scripted_backend_class():
    return ScriptedBackend


@pytest.fixture
def consumer_factory():
    return RecordingConsumerFactory()


@pytest.fixture
def test_config():
    """In-memory configuration with the documented defaults."""
    return NoteStreamConfig.from_dict({
        "audio": {
            "sample_rate": 16000,
            "chunk_size": 512,
            "channels": 1,
        },
        "capture": {
            "chunk_duration_seconds": 1.0,
            "min_chunk_bytes": 800,
            "max_consecutive_errors": 3,
            "transcription_timeout_seconds": 10.0,
            "max_concurrent_transcriptions": 2,
        },
        "segmentation": {
            "pause_detection_seconds": 0.4,
            "min_silence_level": 0.02,
            "silence_window": 5,
            "min_content_words": 3,
            "max_content_words": 150,
            "min_seconds_between_notes": 0.8,
            "stale_flush_seconds": 3.0,
        },
        "level_monitor": {"history_size": 20},
        "transcription": {"backend": "whisper", "language": "en"},
    })


@pytest.fixture
def sample_audio_chunk():
    """One 512-sample frame of a 440 Hz tone."""
    sample_rate = 16000
    duration = 512 / sample_rate
    t = np.linspace(0, duration, 512, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    return (wave_data * 32767).astype(np.int16).tobytes()


@pytest.fixture
def audio_test_data():
    """Generate various audio test data patterns."""
    def generate_audio(pattern="sine", duration_seconds=1.0, sample_rate=16000, amplitude=0.5):
        """Generate audio data for testing.

        Args:
            pattern: Type of audio pattern ('sine', 'noise', 'silence')
            duration_seconds: Duration of audio
            sample_rate: Sample rate in Hz
            amplitude: Peak amplitude in [0, 1]

        Returns:
            bytes: Audio data as bytes
        """
        samples = int(duration_seconds * sample_rate)

        if pattern == "sine":
            t = np.linspace(0, duration_seconds, samples, False)
            wave_data = np.sin(2 * np.pi * 440 * t)
        elif pattern == "noise":
            rng = np.random.default_rng(1234)
            wave_data = rng.uniform(-1, 1, samples)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        audio_data = (wave_data * amplitude * 32767).astype(np.int16)
        return audio_data.tobytes()

    return generate_audio


@pytest.fixture
def silent_frame():
    return b'\x00' * 1024


@pytest.fixture
def loud_frame(audio_test_data):
    return audio_test_data("noise", duration_seconds=512 / 16000)


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = b'\x00' * 1024  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }

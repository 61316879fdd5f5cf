"""Audio sources: where raw PCM frames come from."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import pyaudio

logger = logging.getLogger(__name__)


class DeviceAcquisitionError(Exception):
    """The audio input device could not be opened."""


class AudioSource(ABC):
    """A live source of 16-bit PCM frames."""

    sample_rate: int = 16000
    channels: int = 1
    chunk_size: int = 512
    sample_width: int = 2

    @abstractmethod
    def open(self) -> None:
        """Acquire the device.

        Raises:
            DeviceAcquisitionError: If the device cannot be opened
        """
        pass

    @abstractmethod
    def read_frame(self) -> bytes:
        """Block until the next frame of chunk_size samples is available.

        Raises:
            OSError: If the device went away
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Stop the stream and release the device."""
        pass


class MicrophoneSource(AudioSource):
    """Microphone input through PyAudio."""

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 512,
        channels: int = 1,
        device_index: Optional[int] = None,
        format: int = pyaudio.paInt16,
    ):
        """Initialize microphone source.

        Args:
            sample_rate: Audio sample rate
            chunk_size: Samples per read; sets the level sampling cadence
            channels: Number of audio channels (1 for mono)
            device_index: PyAudio input device, None for the default
            format: Audio format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.device_index = device_index
        self.format = format

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None

    def open(self) -> None:
        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.device_index,
                frames_per_buffer=self.chunk_size,
                stream_callback=None
            )
        except (OSError, ValueError) as e:
            self.close()
            raise DeviceAcquisitionError(f"Could not open audio input: {e}") from e

        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")

    def read_frame(self) -> bytes:
        if self.stream is None:
            raise OSError("Audio stream is not open")
        return self.stream.read(self.chunk_size, exception_on_overflow=False)

    def close(self) -> None:
        if self.stream is not None:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except OSError as e:
                logger.warning(f"Error closing audio stream: {e}")
            self.stream = None
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

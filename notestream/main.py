"""Main application entry point for NoteStream."""

import sys
import argparse
import logging
from pathlib import Path
from typing import Optional

from . import __version__
from .analysis.summarizer import ChatGPTNoteEngine, NoteSummarizer
from .config import NoteStreamConfig
from .services.pipeline import NotePipeline
from .transcription.base import AbstractTranscriptionBackend
from .transcription.whisper_backend import WhisperBackend
from .ui.note_board import NoteBoard
from .ui.notes_screen import NotesScreen

logger = logging.getLogger(__name__)


def create_backend(config: NoteStreamConfig, name: str) -> AbstractTranscriptionBackend:
    """Build and initialize the configured transcription backend."""
    if name == "google":
        # Imported here so the Google client libraries load only when used
        from .transcription.google_backend import GoogleSpeechBackend

        backend = GoogleSpeechBackend(
            credentials_path=config.get_google_credentials_path(),
            sample_rate=config.get('audio.sample_rate', 16000),
            language=config.get('google_cloud.language', 'en-US'),
            use_enhanced=config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True),
        )
    elif name == "whisper":
        backend = WhisperBackend(
            api_key=config.get_openai_api_key(),
            model=config.get('openai.transcription_model', 'whisper-1'),
            language=config.get('transcription.language', 'en'),
        )
    else:
        raise ValueError(f"Unknown transcription backend: {name}")

    if not backend.initialize():
        raise RuntimeError(f"{backend.service_name} backend failed to initialize")
    logger.info(f"✅ {backend.service_name} backend initialized")
    return backend


def create_summarizer(config: NoteStreamConfig) -> NoteSummarizer:
    engine = ChatGPTNoteEngine(
        api_key=config.get_openai_api_key(),
        model=config.get('openai.summary_model', 'gpt-4o'),
    )
    return NoteSummarizer(engine)


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = NoteStreamConfig(config_path)
        # Set up logging (command line overrides config)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.pipeline: Optional[NotePipeline] = None
        self.board: Optional[NoteBoard] = None
        self.screen: Optional[NotesScreen] = None
        self.backend: Optional[AbstractTranscriptionBackend] = None

    def init(self, backend_name: Optional[str] = None, summarize: bool = False) -> None:
        logger.info("Initializing services...")

        backend_name = backend_name or self.config.get('transcription.backend', 'whisper')
        self.backend = create_backend(self.config, backend_name)

        summarizer = None
        if summarize or self.config.get('summarizer.enabled', False):
            summarizer = create_summarizer(self.config)
            logger.info("Note summarizer enabled")

        self.board = NoteBoard()
        self.pipeline = NotePipeline(
            self.config,
            self.backend,
            existing_notes_provider=self.board.contents,
            summarizer=summarizer,
        )
        self.screen = NotesScreen(self.board, self.pipeline.get_status)

    def run(self, duration: Optional[int]) -> bool:
        result = self.pipeline.start_session()
        if not result["success"]:
            logger.error(f"Could not start session: {result['error']}")
            self.screen.console.print(f"❌ {result['error']}", style="bold red")
            return False

        try:
            self.screen.run(duration)
        finally:
            self.cleanup()
        return True

    def cleanup(self) -> None:
        if self.pipeline is not None:
            result = self.pipeline.stop_session()
            logger.info(f"Session result: {result}")
        if self.screen is not None:
            self.screen.print_notes()
        if self.board is not None:
            self.board.close()
        if self.backend is not None:
            self.backend.cleanup()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/notestream.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("NoteStream starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for NoteStream."""
    parser = argparse.ArgumentParser(
        description="NoteStream - turn live speech into short notes",
        epilog="Press Ctrl+C to stop the session",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: looks for notestream.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config, else INFO)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        help="Stop the session after this many seconds (default: run until Ctrl+C)"
    )

    parser.add_argument(
        "--backend",
        choices=["whisper", "google"],
        help="Transcription backend (overrides transcription.backend)"
    )

    parser.add_argument(
        "--summarize",
        action="store_true",
        help="Condense each noteworthy segment into a short note with ChatGPT"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"NoteStream v{__version__}"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.init(args.backend, args.summarize)
        if not server.run(args.duration):
            sys.exit(1)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

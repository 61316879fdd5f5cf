"""Integration tests for complete note-taking sessions.

These run the real threads: capture thread, pipeline event thread,
transcription workers and the summarizer worker. Audio comes from a fake
source and text from a scripted backend.
"""

import time

import pytest

from notestream.services.pipeline import NotePipeline
from notestream.ui.note_board import NoteBoard

REPORT = "The report shows a 20% increase in Q3 revenue"


def wait_until(predicate, timeout=5.0):
    deadline = time.time() + timeout
    while not predicate() and time.time() < deadline:
        time.sleep(0.01)
    return predicate()


class FakeSummarizer:

    def __init__(self, summary):
        self.summary = summary
        self.texts = []

    async def summarize(self, text):
        self.texts.append(text)
        return self.summary


@pytest.fixture
def held_config(test_config):
    """Configuration where only the session stop flushes the buffer."""
    test_config.set('segmentation.pause_detection_seconds', 60.0)
    test_config.set('segmentation.stale_flush_seconds', 60.0)
    test_config.set('capture.max_consecutive_errors', 100)
    return test_config


@pytest.mark.integration
class TestPipelineSession:

    def test_pause_produces_note(self, test_config, scripted_backend_class, fake_source_class):
        notes = []
        backend = scripted_backend_class(responses=[REPORT])
        source = fake_source_class(frame_interval=0.01)
        pipeline = NotePipeline(test_config, backend, note_callback=notes.append)

        result = pipeline.start_session(source)
        assert result["success"] is True
        assert source.opened is True

        try:
            assert wait_until(lambda: len(notes) >= 1)
        finally:
            stop_result = pipeline.stop_session()

        assert notes[0].content == REPORT
        assert stop_result["success"] is True
        assert stop_result["chunks_submitted"] >= 1
        assert source.closed is True
        assert pipeline.is_recording is False

    def test_stop_flushes_buffered_words(self, held_config, scripted_backend_class, fake_source_class):
        notes = []
        backend = scripted_backend_class(responses=[REPORT])
        pipeline = NotePipeline(held_config, backend, note_callback=notes.append)

        pipeline.start_session(fake_source_class(frame_interval=0.01))
        try:
            assert wait_until(lambda: pipeline.get_status().buffered_words > 0)
        finally:
            result = pipeline.stop_session()

        assert [note.content for note in notes] == [REPORT]
        assert result["notes_emitted"] == 1

    def test_summarizer_writes_note_text(self, held_config, scripted_backend_class, fake_source_class):
        notes = []
        summarizer = FakeSummarizer("Q3 revenue rose 20%.")
        backend = scripted_backend_class(responses=[REPORT])
        pipeline = NotePipeline(held_config, backend, note_callback=notes.append, summarizer=summarizer)

        pipeline.start_session(fake_source_class(frame_interval=0.01))
        try:
            assert wait_until(lambda: pipeline.get_status().buffered_words > 0)
        finally:
            pipeline.stop_session()

        assert summarizer.texts == [REPORT]
        assert len(notes) == 1
        assert notes[0].content == "Q3 revenue rose 20%."
        assert notes[0].raw_transcript == REPORT

    def test_summarizer_can_reject_segment(self, held_config, scripted_backend_class, fake_source_class):
        notes = []
        backend = scripted_backend_class(responses=[REPORT])
        pipeline = NotePipeline(held_config, backend, note_callback=notes.append,
                                summarizer=FakeSummarizer(None))

        pipeline.start_session(fake_source_class(frame_interval=0.01))
        try:
            assert wait_until(lambda: pipeline.get_status().buffered_words > 0)
        finally:
            result = pipeline.stop_session()

        assert notes == []
        assert result["filtered_count"] == 1

    def test_late_transcription_is_discarded(self, held_config, scripted_backend_class, fake_source_class):
        notes = []
        backend = scripted_backend_class(responses=[REPORT], delay=0.5)
        pipeline = NotePipeline(held_config, backend, note_callback=notes.append)

        pipeline.start_session(fake_source_class(frame_interval=0.01))
        try:
            assert wait_until(lambda: len(backend.calls) >= 1)
        finally:
            pipeline.stop_session()

        # Let the in-flight call finish after the session is gone
        time.sleep(0.7)
        assert notes == []
        assert pipeline.buffer_text == ""

    def test_device_loss_ends_session(self, test_config, scripted_backend, fake_source_class):
        source = fake_source_class(fail_after=20, frame_interval=0.005)
        pipeline = NotePipeline(test_config, scripted_backend, note_callback=lambda note: None)

        pipeline.start_session(source)

        assert wait_until(lambda: not pipeline.is_recording)
        assert source.closed is True
        assert pipeline.level_monitor.is_active is False

        # A new session can start on a fresh source
        replacement = fake_source_class(frame_interval=0.01)
        assert pipeline.start_session(replacement)["success"] is True
        pipeline.stop_session()
        assert replacement.closed is True

    def test_status_reports_capture_stats(self, test_config, scripted_backend, fake_source_class):
        pipeline = NotePipeline(test_config, scripted_backend, note_callback=lambda note: None)

        pipeline.start_session(fake_source_class(frame_interval=0.01))
        try:
            assert wait_until(lambda: pipeline.get_status().audio.total_frames >= 5)
            status = pipeline.get_status()
        finally:
            pipeline.stop_session()

        assert status.is_recording is True
        assert status.audio.is_recording is True
        assert status.audio.sample_rate == 16000
        assert status.audio.duration_seconds > 0.0
        assert pipeline.get_status().audio.is_recording is False

    def test_second_start_is_refused(self, test_config, scripted_backend, fake_source_class):
        pipeline = NotePipeline(test_config, scripted_backend, note_callback=lambda note: None)

        first = pipeline.start_session(fake_source_class(frame_interval=0.01))
        try:
            second = pipeline.start_session(fake_source_class(frame_interval=0.01))
        finally:
            pipeline.stop_session()

        assert second["success"] is False
        assert second["session_id"] == first["session_id"]

    def test_notes_reach_board_through_pubsub(self, held_config, scripted_backend_class, fake_source_class):
        board = NoteBoard()
        backend = scripted_backend_class(responses=[REPORT])
        pipeline = NotePipeline(held_config, backend, existing_notes_provider=board.contents)

        try:
            pipeline.start_session(fake_source_class(frame_interval=0.01))
            try:
                assert wait_until(lambda: pipeline.get_status().buffered_words > 0)
            finally:
                pipeline.stop_session()

            assert board.contents() == [REPORT]
        finally:
            board.close()

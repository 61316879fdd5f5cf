"""Note publisher module for pub/sub event publishing."""

import logging
from typing import Callable
from pubsub import pub
from ..models.notes import Note

logger = logging.getLogger(__name__)

NOTES_TOPIC = "notes.accepted"


class NotePublisher:
    """Publishes accepted notes using pubsub.pub for pub/sub architecture."""

    def __init__(self, topic: str = NOTES_TOPIC):
        """Initialize note publisher.

        Args:
            topic: Pub/sub topic name for accepted notes
        """
        self.topic = topic
        logger.info(f"NotePublisher initialized with topic: {topic}")

    def publish_note(self, note: Note) -> None:
        """Publish a note to the pub/sub topic.

        Args:
            note: Note to publish
        """
        pub.sendMessage(self.topic, note=note)
        logger.debug(f"Published note: {note.id}")

    def get_callback(self) -> Callable[[Note], None]:
        """Get callback function for the pipeline to emit notes with.

        Returns:
            Callback function that publishes notes
        """
        return self.publish_note

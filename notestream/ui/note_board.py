"""Note board: the notes the user currently sees.

Subscribes to the accepted-notes topic and keeps the visible notes in
order. The user may remove or edit notes; the pipeline reads contents()
for its acceptance-time similarity gate, which compares against the edited
text. A removed note is still rejected for the rest of the session, since
the pipeline's exact-repeat and near-duplicate checks keep their own record
of accepted notes.
"""

import logging
import threading
from typing import List, Optional

from pubsub import pub

from ..models.notes import Note
from ..services.publisher import NOTES_TOPIC

logger = logging.getLogger(__name__)


class NoteBoard:
    """Thread-safe list of visible notes fed by pubsub."""

    def __init__(self, topic: str = NOTES_TOPIC):
        self.topic = topic
        self.notes: List[Note] = []
        self.lock = threading.RLock()

        pub.subscribe(self._on_note, topic)
        logger.info(f"NoteBoard subscribed to {topic}")

    def _on_note(self, note: Note) -> None:
        with self.lock:
            self.notes.append(note)
        logger.debug(f"NoteBoard received note {note.id}")

    def contents(self) -> List[str]:
        """Contents of the visible notes, oldest first."""
        with self.lock:
            return [note.content for note in self.notes]

    def snapshot(self) -> List[Note]:
        with self.lock:
            return list(self.notes)

    def get(self, note_id: str) -> Optional[Note]:
        with self.lock:
            for note in self.notes:
                if note.id == note_id:
                    return note
        return None

    def remove(self, note_id: str) -> bool:
        """Remove a note. Returns False if no note has that id."""
        with self.lock:
            for index, note in enumerate(self.notes):
                if note.id == note_id:
                    del self.notes[index]
                    logger.info(f"Removed note {note_id}")
                    return True
        return False

    def edit(self, note_id: str, content: str) -> bool:
        """Replace the content of a note, keeping its id and timestamps."""
        content = content.strip()
        if not content:
            return self.remove(note_id)

        with self.lock:
            for index, note in enumerate(self.notes):
                if note.id == note_id:
                    self.notes[index] = Note(
                        content=content,
                        raw_transcript=note.raw_transcript,
                        id=note.id,
                        created_at=note.created_at,
                    )
                    logger.info(f"Edited note {note_id}")
                    return True
        return False

    def clear(self) -> None:
        with self.lock:
            self.notes.clear()

    def close(self) -> None:
        """Stop listening for new notes."""
        try:
            pub.unsubscribe(self._on_note, self.topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")

    def __len__(self) -> int:
        with self.lock:
            return len(self.notes)

"""Terminal presentation for NoteStream."""

from .note_board import NoteBoard
from .notes_screen import NotesScreen

__all__ = ["NoteBoard", "NotesScreen"]

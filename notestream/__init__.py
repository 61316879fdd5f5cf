"""NoteStream: live speech to short notes."""

__version__ = "0.1.0"

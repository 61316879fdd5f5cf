"""Terminal notes screen with a live level meter."""

import time
import logging
from typing import Callable, Optional

from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.ui import PipelineStatus
from .note_board import NoteBoard

logger = logging.getLogger(__name__)

LEVEL_BAR_WIDTH = 20


def level_bar(level: float, width: int = LEVEL_BAR_WIDTH) -> str:
    filled = int(max(0.0, min(1.0, level)) * width)
    return "█" * filled + "░" * (width - filled)


class NotesScreen:
    """Renders pipeline status and the note board with rich Live."""

    def __init__(self,
                 board: NoteBoard,
                 status_provider: Callable[[], PipelineStatus],
                 console: Optional[Console] = None,
                 refresh_per_second: int = 10):
        self.board = board
        self.status_provider = status_provider
        self.console = console or Console()
        self.refresh_per_second = refresh_per_second
        self.running = False

    def create_layout(self) -> Layout:
        """Create the main UI layout."""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main", ratio=1),
            Layout(name="footer", size=3),
        )
        layout["main"].split_row(
            Layout(name="status_panel", ratio=1),
            Layout(name="notes_panel", ratio=2),
        )
        return layout

    def update_header(self, layout: Layout, status: PipelineStatus) -> None:
        title = Text("🎙️  NoteStream", style="bold blue")
        if status.is_recording:
            state = ("🔴 LISTENING", "bold red")
        else:
            state = ("⏹️  STOPPED", "bold yellow")

        header_text = Text.assemble(
            title, "  |  ",
            state,
            "  |  ",
            f"Session: {status.session_id or 'None'}",
        )
        layout["header"].update(Panel(Align.center(header_text), style="bright_blue"))

    def update_status_panel(self, layout: Layout, status: PipelineStatus) -> None:
        table = Table(title="🎵 Pipeline", show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")

        if status.audio is not None:
            table.add_row("Duration", f"{status.audio.duration_seconds:.1f}s")
            table.add_row("Frames", str(status.audio.total_frames))
        table.add_row("Level", f"{level_bar(status.current_level)} {status.current_level:.2f}")
        table.add_row("Processing", "🔄 Busy" if status.is_processing else "Idle")
        table.add_row("Pending transcriptions", str(status.pending_transcriptions))
        table.add_row("Buffered words", str(status.buffered_words))
        table.add_row("Notes", str(status.notes_emitted))
        table.add_row("Filtered", str(status.filtered_count))

        quality = status.content_quality
        if quality is not None:
            style = "green" if quality.is_noteworthy else "red"
            table.add_row("Last quality", Text(f"{quality.score:.2f} {quality.reason}", style=style))

        layout["status_panel"].update(Panel(table, border_style="green"))

    def update_notes_panel(self, layout: Layout) -> None:
        notes = self.board.snapshot()
        if not notes:
            body = Text("Notes appear here as you speak", style="dim white italic")
        else:
            body = Table.grid(padding=(0, 1))
            body.add_column(style="dim")
            body.add_column()
            for note in notes[-20:]:
                body.add_row(note.created_at.astimezone().strftime("%H:%M:%S"), note.content)

        layout["notes_panel"].update(Panel(body, title="📝 Notes", border_style="blue"))

    def update_footer(self, layout: Layout) -> None:
        controls = Text.assemble(
            ("Ctrl+C", "bold red"), " Stop session",
        )
        layout["footer"].update(Panel(Align.center(controls), style="bright_black"))

    def update_display(self, layout: Layout) -> None:
        status = self.status_provider()
        self.update_header(layout, status)
        self.update_status_panel(layout, status)
        self.update_notes_panel(layout)
        self.update_footer(layout)

    def run(self, duration: Optional[float] = None) -> None:
        """Show the screen until duration elapses, the session ends or Ctrl+C."""
        layout = self.create_layout()
        deadline = time.monotonic() + duration if duration else None
        self.running = True

        try:
            with Live(layout, console=self.console,
                      refresh_per_second=self.refresh_per_second, screen=True):
                while self.running:
                    self.update_display(layout)
                    if deadline is not None and time.monotonic() >= deadline:
                        break
                    if not self.status_provider().is_recording:
                        logger.info("Session ended, closing screen")
                        break
                    time.sleep(1.0 / self.refresh_per_second)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.running = False

    def stop(self) -> None:
        self.running = False

    def print_notes(self) -> None:
        """Print the final note list after the live screen is gone."""
        notes = self.board.snapshot()
        if not notes:
            self.console.print("No notes captured.", style="yellow")
            return

        self.console.print(f"📝 {len(notes)} notes", style="bold green")
        for index, note in enumerate(notes, 1):
            self.console.print(f"  {index}. {note.content}")

"""Executable Textual app that hosts the vitamin key grammar."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Input, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use vitamin.adapters.textual.app"
    ) from exc

from vitamin.host import TextView
from vitamin.runtime import telemetry

from .controller import TextualUIHooks, TextualVitaminAdapter

CARET = "▏"


def render_view(view: TextView) -> str:
    """Plain-text rendering of the visible lines with a caret marker."""

    pos = view.current_pos
    text = view.text[:pos] + CARET + view.text[pos:]
    lines = text.split(view.eol)
    first = view.first_visible_line
    return "\n".join(lines[first : first + view.lines_on_screen])


@dataclass
class UIState:
    view_text: str = ""
    status_text: str = ""
    prompt_label: Optional[str] = None


class VitaminApp(App[None]):
    """Minimal Textual UI embedding the modal interpreter."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#buffer-view {
		height: 1fr;
		border: round $accent;
		padding: 0 1;
		content-align: left top;
		overflow: auto;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#prompt-line {
		height: 3;
		display: none;
	}
	"""

    BINDINGS = [
        ("ctrl+c", "quit", "Quit"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, *, text: str = "", name: str = "untitled") -> None:
        super().__init__()
        self._state = UIState()
        self.view = TextView(text, name=name)
        self.adapter: TextualVitaminAdapter | None = None
        self._buffer_widget: Static | None = None
        self._status_widget: Static | None = None
        self._prompt_widget: Input | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="buffer-area"):
            self._buffer_widget = Static("", id="buffer-view", markup=False)
            yield self._buffer_widget
        self._prompt_widget = Input(id="prompt-line")
        yield self._prompt_widget
        self._status_widget = Static("", id="status-line", markup=False)
        yield self._status_widget
        yield Footer()

    def on_mount(self) -> None:
        hooks = TextualUIHooks(
            update_view=self._update_view,
            update_status=self._update_status,
            show_prompt=self._show_prompt,
            handle_event=self._handle_event,
        )
        self.adapter = TextualVitaminAdapter(self.view, hooks)

    def on_key(self, event: events.Key) -> None:
        if not self.adapter or self._state.prompt_label is not None:
            return
        if event.key in {"ctrl+c", "ctrl+q"}:
            return
        if not self.adapter.active and event.key == "escape":
            self.adapter.enter()
        else:
            self.adapter.handle_textual_key(event.key, text=event.character)
        event.stop()

    def on_input_submitted(self, message: Input.Submitted) -> None:
        if self.adapter:
            self.adapter.submit_prompt(message.value)

    def on_descendant_blur(self, message: events.DescendantBlur) -> None:
        if self.adapter and message.widget is self._prompt_widget:
            self.adapter.cancel_prompt()

    def _update_view(self, view: TextView) -> None:
        self._state.view_text = render_view(view)
        if self._buffer_widget:
            self._buffer_widget.update(self._state.view_text)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _show_prompt(self, label: Optional[str]) -> None:
        self._state.prompt_label = label
        widget = self._prompt_widget
        if widget is None:
            return
        widget.display = label is not None
        if label is not None:
            widget.placeholder = label
            widget.value = ""
            widget.focus()
        elif self._buffer_widget:
            self.set_focus(None)

    def _handle_event(self, name: str, payload: Any | None) -> None:
        if name == "vitamin.entered":
            self._update_status("-- VITAMIN --")


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the vitamin Textual demo.")
    parser.add_argument("path", nargs="?", help="File to open (read-only demo)")
    parser.add_argument(
        "--telemetry-preset",
        choices=("development", "production", "quiet"),
        default="quiet",
        help="Logging preset; logs go to VITAMIN_LOG_FILE or stderr",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    telemetry.configure(preset=args.telemetry_preset)
    text, name = "", "untitled"
    if args.path:
        path = Path(args.path)
        text, name = path.read_text(encoding="utf-8"), path.name
    VitaminApp(text=text, name=name).run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()

"""Textual-facing adapter: key source, prompt bridge and UI hooks for a Dispatcher."""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from vitamin.grammar import ENTERED_EVENT, EXITED_EVENT, Dispatcher
from vitamin.host import KeyHandler, TextView
from vitamin.runtime import telemetry

KEY_ALIASES = {"escape": "esc", "return": "enter", "ctrl+i": "tab", "ctrl+h": "backspace"}


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


def normalize_key(key: str, character: Optional[str] = None) -> str:
    """Map a Textual key event onto a keycode: printable characters win."""

    if character == " ":
        return "space"
    if character and len(character) == 1 and character.isprintable():
        return character
    key = KEY_ALIASES.get(key, key)
    return key.replace("escape", "esc")


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_view: Callable[[TextView], None]
    update_status: Callable[[str], None] = _noop
    show_prompt: Callable[[Optional[str]], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    log: Callable[[str], None] = _noop


class TextualPrompt:
    """Prompt bridge: the app shows an input widget and reports back here."""

    def __init__(self, hooks: TextualUIHooks) -> None:
        self._hooks = hooks
        self._on_submit: Optional[Callable[[str], None]] = None
        self.label: Optional[str] = None

    @property
    def active(self) -> bool:
        return self._on_submit is not None

    def run(self, label: str, on_submit: Callable[[str], None]) -> None:
        self.label = label
        self._on_submit = on_submit
        self._hooks.show_prompt(label)

    def submit(self, text: str) -> None:
        callback = self._close()
        if callback is not None:
            callback(text)

    def cancel(self) -> None:
        self._close()

    def _close(self) -> Optional[Callable[[str], None]]:
        callback, self._on_submit = self._on_submit, None
        self.label = None
        self._hooks.show_prompt(None)
        return callback


class TextualVitaminAdapter:
    """Bridges a Dispatcher and its view to a Textual-friendly surface.

    The adapter is the dispatcher's key source: keys the dispatcher does not
    consume get the host's default treatment (typing into the view).
    """

    def __init__(
        self,
        view: TextView,
        hooks: TextualUIHooks,
        *,
        dispatcher: Optional[Dispatcher] = None,
    ) -> None:
        self.view = view
        self.hooks = hooks
        self.prompt = TextualPrompt(hooks)
        self.dispatcher = dispatcher or Dispatcher(
            view, prompt=self.prompt, status=self._status
        )
        self._handlers: List[KeyHandler] = []
        self._subscribe_events()
        self.dispatcher.connect(self)
        self._refresh_view()

    # KeySource protocol

    def connect(self, handler: KeyHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def disconnect(self, handler: KeyHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    @property
    def active(self) -> bool:
        return self.dispatcher.active

    def enter(self) -> None:
        """Re-enter the modal interface after it was exited."""

        if not self.dispatcher.active:
            self.dispatcher.connect(self)

    def handle_textual_key(self, key: str, *, text: Optional[str] = None) -> bool:
        keycode = normalize_key(key, text)
        self._log_state("key ->", key=keycode)
        consumed = False
        for handler in list(self._handlers):
            if handler(keycode):
                consumed = True
                break
        if not consumed:
            self._insert_natively(keycode)
        self._refresh_view()
        self._log_state("result <-", consumed=consumed, state=self.dispatcher.state.value)
        return consumed

    def submit_prompt(self, text: str) -> None:
        self.prompt.submit(text)
        self._refresh_view()

    def cancel_prompt(self) -> None:
        """The prompt lost focus: resume the waiting command with no text."""

        if not self.prompt.active:
            return
        self.prompt.cancel()
        self.dispatcher.prompt_closed()
        self._refresh_view()

    def _insert_natively(self, keycode: str) -> None:
        view = self.view
        if keycode == "backspace":
            if view.anchor == view.current_pos and view.current_pos > 0:
                view.set_selection(view.current_pos - 1, view.current_pos)
            view.clear()
        elif keycode == "enter":
            view.add_text(view.eol)
        elif keycode in ("space", "tab"):
            view.add_text(" " if keycode == "space" else "\t")
        elif len(keycode) == 1 and keycode.isprintable():
            view.add_text(keycode)

    def _status(self, text: str) -> None:
        self.hooks.update_status(text)

    def _subscribe_events(self) -> None:
        bus = self.dispatcher.bus
        for event in (ENTERED_EVENT, EXITED_EVENT, "command.complete"):
            bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", bus_event=name)
        self.hooks.handle_event(name, payload)
        if name == EXITED_EVENT:
            self.hooks.update_status("-- EXITED --")

    def _refresh_view(self) -> None:
        self.hooks.update_view(self.view)

    def _log_state(self, prefix: str, **fields: object) -> None:
        with suppress(Exception):
            snapshot = self._state_metadata()
            snapshot.update({k: v for k, v in fields.items() if v is not None})
            parts = [prefix] + [f"{key}={value!r}" for key, value in snapshot.items()]
            line = " ".join(parts)
            self.hooks.log(line)
            telemetry.record_event("adapter.key", level="debug", data=snapshot)

    def _state_metadata(self) -> Dict[str, object]:
        command = self.dispatcher.command
        return {
            "active": self.dispatcher.active,
            "state": self.dispatcher.state.value,
            "caret": self.view.current_pos,
            "anchor": self.view.anchor,
            "pending": command.status if command is not None else "",
            "view": self.view.name,
        }


__all__ = ["TextualPrompt", "TextualUIHooks", "TextualVitaminAdapter", "normalize_key"]

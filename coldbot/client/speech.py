"""
Voice input capability.

`SpeechInput` drives a platform speech-recognition engine (injected, see
`RecognitionEngine`) and exposes three states:

- ``IDLE``: not listening
- ``LISTENING``: a recognition session is running
- ``ERROR``: the last session ended with an error (``start`` is allowed again)

The engine stops on its own on silence or error and reports it through
``on_end`` / ``on_error``; only final transcripts are forwarded to the single
``on_final_transcript`` callback.
"""

import logging
from enum import Enum
from typing import Callable, Optional, Protocol

logger = logging.getLogger("uvicorn")


class SpeechState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    ERROR = "error"


class RecognitionEngine(Protocol):
    """What `SpeechInput` needs from a speech-recognition backend."""

    def start(
        self,
        on_result: Callable[[str, bool], None],
        on_error: Callable[[str], None],
        on_end: Callable[[], None],
    ) -> None:
        """Begin listening. ``on_result(transcript, is_final)`` per utterance."""

    def stop(self) -> None:
        """Stop listening; the engine then calls ``on_end``."""


class SpeechInput:
    """
    Speech-to-text toggle for the chat input.

    Parameters
    ----------
    engine : RecognitionEngine
        Recognition backend.
    on_final_transcript : Callable[[str], None] | None
        Receives each final transcript.
    """

    def __init__(
        self,
        engine: RecognitionEngine,
        on_final_transcript: Optional[Callable[[str], None]] = None,
    ):
        self.engine = engine
        self.on_final_transcript = on_final_transcript
        self.state = SpeechState.IDLE
        self.last_error: Optional[str] = None

    @property
    def is_listening(self) -> bool:
        return self.state is SpeechState.LISTENING

    def start(self) -> None:
        if self.is_listening:
            return
        self.last_error = None
        self.state = SpeechState.LISTENING
        try:
            self.engine.start(self._handle_result, self._handle_error, self._handle_end)
        except Exception as e:
            logger.error(f"Speech recognition could not start: {e}")
            self._handle_error(str(e))

    def stop(self) -> None:
        if not self.is_listening:
            return
        self.engine.stop()
        self.state = SpeechState.IDLE

    def toggle(self) -> SpeechState:
        """Start when idle (or after an error), stop when listening."""
        if self.is_listening:
            self.stop()
        else:
            self.start()
        return self.state

    def _handle_result(self, transcript: str, is_final: bool) -> None:
        if not is_final:
            return
        transcript = transcript.strip()
        if transcript and self.on_final_transcript is not None:
            self.on_final_transcript(transcript)

    def _handle_error(self, error: str) -> None:
        self.last_error = error
        self.state = SpeechState.ERROR

    def _handle_end(self) -> None:
        if self.state is SpeechState.LISTENING:
            self.state = SpeechState.IDLE

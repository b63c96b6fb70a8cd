"""
Chat state machine.

States: ``IDLE`` → ``AWAITING_RESPONSE`` → ``IDLE`` (on success or error).

`submit` ignores blank drafts and calls made while a response is pending.
On success the bot answer is appended and the draft cleared; on failure
`error` is set, nothing is appended and the typed draft is kept. There is no
cancellation.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from coldbot.client.api_client import ChatApiClient, ChatApiError
from coldbot.client.speech import SpeechInput, SpeechState

logger = logging.getLogger("uvicorn")

COMMUNICATION_ERROR = "Erreur de communication"


class ChatState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


@dataclass
class ChatMessage:
    role: str
    """'user' or 'bot'."""
    text: str
    exchange_id: Optional[str] = None
    feedback: Optional[bool] = None


@dataclass
class ChatSession:
    """
    One chat pane.

    Attributes
    ----------
    api : ChatApiClient
        Backend client.
    speech : SpeechInput | None
        Voice input; its final transcript replaces the draft.
    messages : list[ChatMessage]
        Rendered messages, oldest first.
    draft : str
        Text in the input box.
    conversation_id : str | None
        Conversation continued by the next submit.
    error : str | None
        Inline error of the last submit.
    """

    api: ChatApiClient
    speech: Optional[SpeechInput] = None
    messages: List[ChatMessage] = field(default_factory=list)
    draft: str = ""
    conversation_id: Optional[str] = None
    error: Optional[str] = None
    state: ChatState = ChatState.IDLE

    def __post_init__(self):
        if self.speech is not None:
            self.speech.on_final_transcript = self.set_draft

    @property
    def loading(self) -> bool:
        return self.state is ChatState.AWAITING_RESPONSE

    def set_draft(self, text: str) -> None:
        self.draft = text

    def toggle_voice(self) -> Optional[SpeechState]:
        if self.speech is None:
            return None
        return self.speech.toggle()

    def submit(self) -> bool:
        """
        Send the current draft.

        Returns
        -------
        bool
            True when an answer was received.
        """
        text = self.draft.strip()
        if not text or self.loading:
            return False

        draft = self.draft
        self.error = None
        self.state = ChatState.AWAITING_RESPONSE
        user_message = ChatMessage(role="user", text=text)
        self.messages.append(user_message)
        self.draft = ""
        try:
            reply = self.api.send_message(text, conversation_id=self.conversation_id)
        except ChatApiError as e:
            logger.warning(f"Chat request failed: {e.detail}")
            self.messages.remove(user_message)
            self.draft = draft
            self.error = COMMUNICATION_ERROR
            return False
        finally:
            self.state = ChatState.IDLE

        self.conversation_id = reply.get("conversationId") or self.conversation_id
        self.messages.append(
            ChatMessage(role="bot", text=reply["text"], exchange_id=reply.get("exchangeId"))
        )
        return True

    def rate(
        self,
        message: ChatMessage,
        is_positive: bool,
        reason: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> dict:
        """Send feedback on a bot message and remember the rating."""
        if message.role != "bot" or not message.exchange_id:
            raise ValueError("Only recorded bot answers can be rated")
        stored = self.api.send_feedback(message.exchange_id, is_positive, reason=reason, comment=comment)
        message.feedback = is_positive
        return stored

    def load_conversation(self, conversation: dict) -> None:
        """Show a conversation from the sidebar and continue it."""
        self.messages = []
        for exchange in conversation.get("exchanges", []):
            self.messages.append(ChatMessage(role="user", text=exchange["question"]))
            self.messages.append(
                ChatMessage(role="bot", text=exchange["answer"], exchange_id=exchange["id"])
            )
        self.conversation_id = conversation.get("id")
        self.error = None

    def reset(self) -> None:
        """Start a new conversation."""
        self.messages = []
        self.draft = ""
        self.conversation_id = None
        self.error = None
        self.state = ChatState.IDLE

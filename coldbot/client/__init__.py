"""
Client Package — Python chat client
===================================

A headless rendition of the browser chat loop, usable from scripts and
tests:

- api_client
    `ChatApiClient`, a synchronous httpx client for the ColdBot API
    (sign-in, chat, feedback, conversations).

- chat_session
    `ChatSession`, the chat state machine (idle → awaiting-response → idle)
    holding messages, draft, loading flag, conversation id and error.

- speech
    `SpeechInput`, the voice-input capability wrapping an injected
    recognition engine; its final transcript replaces the chat draft.
"""

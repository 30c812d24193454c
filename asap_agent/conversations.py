"""Per-session chat history."""

import json
from collections import OrderedDict
from typing import List

from pydantic import ValidationError as PydanticValidationError

from asap_agent import schemas
from asap_agent.config import MAX_SESSIONS_IN_MEMORY
from asap_agent.exceptions import StorageError
from asap_agent.logger import LoggerMixin
from asap_agent.storage import CacheStorage

MESSAGES_KEY_PREFIX = "asap_agent_messages"


class ConversationStore(LoggerMixin):
    """
    Keeps the message list of each chat session.

    Reads go through an in-memory copy; every change is written back to
    storage. A failed write keeps the in-memory copy, a failed or corrupt read
    yields an empty history.

    At most ``max_sessions`` non-empty histories are held in memory; the least
    recently used one is dropped from memory (not from storage) beyond that.
    """

    def __init__(self, storage: CacheStorage, max_sessions: int = MAX_SESSIONS_IN_MEMORY):
        self.storage = storage
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, List[schemas.ChatMessage]]" = OrderedDict()

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{MESSAGES_KEY_PREFIX}:{session_id}"

    def _load(self, session_id: str) -> List[schemas.ChatMessage]:
        try:
            blob = self.storage.load(self._key(session_id))
        except StorageError as e:
            self.logger.warning(f"Could not load history for {session_id}: {e}")
            return []
        if not blob:
            return []
        try:
            raw = json.loads(blob)
            return [schemas.ChatMessage.model_validate(item) for item in raw]
        except (ValueError, TypeError, RecursionError, PydanticValidationError) as e:
            self.logger.warning(f"Discarding corrupt history for {session_id}: {e}")
            return []

    def _save(self, session_id: str, messages: List[schemas.ChatMessage]) -> None:
        blob = json.dumps([m.model_dump(mode="json") for m in messages])
        try:
            self.storage.save(self._key(session_id), blob)
        except StorageError as e:
            self.logger.warning(f"Could not persist history for {session_id}: {e}")

    def _messages(self, session_id: str) -> List[schemas.ChatMessage]:
        if session_id in self._sessions:
            self._sessions.move_to_end(session_id)
            return self._sessions[session_id]
        return self._load(session_id)

    def _remember(self, session_id: str, messages: List[schemas.ChatMessage]) -> None:
        self._sessions[session_id] = messages
        self._sessions.move_to_end(session_id)
        while len(self._sessions) > self.max_sessions:
            self._sessions.popitem(last=False)

    def __len__(self) -> int:
        return len(self._sessions)

    def history(self, session_id: str) -> List[schemas.ChatMessage]:
        messages = self._messages(session_id)
        # Unknown or empty sessions are not kept in memory
        if messages:
            self._remember(session_id, messages)
        return list(messages)

    def append(self, session_id: str, message: schemas.ChatMessage) -> None:
        messages = self._messages(session_id)
        messages.append(message)
        self._remember(session_id, messages)
        self._save(session_id, messages)

    def clear(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        try:
            self.storage.delete(self._key(session_id))
        except StorageError as e:
            self.logger.warning(f"Could not delete history for {session_id}: {e}")

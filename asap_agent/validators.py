"""Validation functions for chat requests."""

import re

from asap_agent import schemas
from asap_agent.config import MAX_QUESTION_LENGTH
from asap_agent.exceptions import ValidationError

ALLOWED_HISTORY_ROLES = {"user", "assistant"}
SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def validate_chat_request(req: schemas.ChatRequest) -> None:
    """
    Validate a chat request before it reaches the agent.

    An empty question is allowed; it simply rarely matches anything.

    Raises:
        ValidationError: If the question, session id or history is invalid
    """
    if len(req.question) > MAX_QUESTION_LENGTH:
        raise ValidationError(
            f"Question must be {MAX_QUESTION_LENGTH} characters or less, got {len(req.question)}"
        )

    if req.session_id is not None:
        validate_session_id(req.session_id)

    for idx, turn in enumerate(req.history, 1):
        if turn.role not in ALLOWED_HISTORY_ROLES:
            raise ValidationError(
                f"History turn {idx} has unsupported role '{turn.role}' (expected user or assistant)"
            )


def validate_session_id(session_id: str) -> None:
    """
    Raises:
        ValidationError: If session_id is not 1-64 letters, digits, '-' or '_'
    """
    if not SESSION_ID_PATTERN.match(session_id):
        raise ValidationError("Session id must be 1-64 characters of letters, digits, '-' or '_'")


def validate_proxy_messages(req: schemas.ProxyRequest) -> None:
    """
    Raises:
        ValidationError: If the passthrough conversation is empty or malformed
    """
    if not req.messages:
        raise ValidationError("messages must contain at least one turn")
    for idx, msg in enumerate(req.messages, 1):
        if not isinstance(msg.get("role"), str) or "content" not in msg:
            raise ValidationError(f"Message {idx} must have a role and content")

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime, timezone
import uuid

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=_utcnow)

# Prior turn as sent by a client that keeps its own history
class HistoryTurn(BaseModel):
    role: str
    content: str

class ChatRequest(BaseModel):
    question: str
    session_id: Optional[str] = None
    history: List[HistoryTurn] = Field(default_factory=list)

class ChatReply(BaseModel):
    response: str
    source: Literal["cache", "canned", "upstream", "fallback"]

class ChatOut(ChatReply):
    session_id: Optional[str] = None

class ConversationOut(BaseModel):
    session_id: str
    messages: List[ChatMessage]

# OpenAI-style passthrough body; extra keys are ignored, the model is fixed server-side
class ProxyRequest(BaseModel):
    messages: List[Dict[str, Any]]

    model_config = ConfigDict(extra="ignore")

class CacheStatsOut(BaseModel):
    size: int
    max_size: int
    ttl_ms: int
    proxy_size: int

class CacheClearOut(BaseModel):
    removed: int
    proxy_removed: int

from fastapi import FastAPI, Depends, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from asap_agent.config import (
    ALLOWED_ORIGINS,
    CHAT_HISTORY_LIMIT,
    DEEPSEEK_API_KEY,
    DEEPSEEK_API_URL,
    DEEPSEEK_MODEL,
    OPENROUTER_API_KEY,
    OPENROUTER_API_URL,
    OPENROUTER_MODEL,
    PROXY_CACHE_TTL,
)
from asap_agent import schemas, validators
from asap_agent.agent import ChatAgent
from asap_agent.cache import ProxyCache, SimilarityResponseCache
from asap_agent.conversations import ConversationStore
from asap_agent.exceptions import ExternalAPIError, ValidationError
from asap_agent.logger import logger
from asap_agent.rate_limiter import limiter, rate_limit_exceeded_handler, chat_rate_limit
from asap_agent.storage import build_storage
from asap_agent.upstream import UpstreamClient
import time

storage = build_storage()
response_cache = SimilarityResponseCache(storage=storage)
proxy_cache = ProxyCache(ttl_seconds=PROXY_CACHE_TTL)
conversation_store = ConversationStore(storage)

agent = ChatAgent(
    cache=response_cache,
    upstream=UpstreamClient(DEEPSEEK_API_URL, DEEPSEEK_API_KEY, DEEPSEEK_MODEL),
)
proxy_client = UpstreamClient(OPENROUTER_API_URL, OPENROUTER_API_KEY, OPENROUTER_MODEL)

app = FastAPI(title="ASAP Agent")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc)},
    )


# === Dependencies (overridable in tests) ===

def get_agent() -> ChatAgent:
    return agent

def get_conversations() -> ConversationStore:
    return conversation_store

def get_response_cache() -> SimilarityResponseCache:
    return response_cache

def get_proxy_cache() -> ProxyCache:
    return proxy_cache

def get_proxy_client() -> UpstreamClient:
    return proxy_client


# === Health ===

@app.get("/")
def read_root():
    return {"message": "Welcome to ASAP Agent!"}

@app.get("/health")
def health():
    return {"status": "ok"}


# === Chat ===

@app.post("/chat", response_model=schemas.ChatOut)
@chat_rate_limit()
async def chat(
    request: Request,
    req: schemas.ChatRequest,
    chat_agent: ChatAgent = Depends(get_agent),
    conversations: ConversationStore = Depends(get_conversations),
):
    start_time = time.time()
    validators.validate_chat_request(req)

    if req.session_id:
        history = conversations.history(req.session_id)
    else:
        history = req.history
    if CHAT_HISTORY_LIMIT > 0:
        history = history[-CHAT_HISTORY_LIMIT:]
    else:
        history = []

    reply = await chat_agent.respond(req.question, history)

    if req.session_id:
        conversations.append(req.session_id, schemas.ChatMessage(role="user", content=req.question))
        conversations.append(req.session_id, schemas.ChatMessage(role="assistant", content=reply.response))

    elapsed = time.time() - start_time
    logger.info(f"POST /chat answered from {reply.source} in {elapsed:.3f} seconds")
    return schemas.ChatOut(response=reply.response, source=reply.source, session_id=req.session_id)

@app.get("/chat/{session_id}/messages", response_model=schemas.ConversationOut)
def get_messages(session_id: str, conversations: ConversationStore = Depends(get_conversations)):
    validators.validate_session_id(session_id)
    return schemas.ConversationOut(session_id=session_id, messages=conversations.history(session_id))

@app.delete("/chat/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def clear_messages(session_id: str, conversations: ConversationStore = Depends(get_conversations)):
    validators.validate_session_id(session_id)
    conversations.clear(session_id)


# -------- OpenRouter passthrough --------

@app.post("/chat/completions")
async def chat_completions(
    req: schemas.ProxyRequest,
    cache: ProxyCache = Depends(get_proxy_cache),
    client: UpstreamClient = Depends(get_proxy_client),
):
    validators.validate_proxy_messages(req)
    cache_key = ProxyCache.make_key(req.messages)

    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    try:
        data = await client.forward(req.messages)
    except ExternalAPIError as e:
        logger.error(f"Chat error: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to get response from OpenRouter"},
        )

    cache.set(cache_key, data)
    return data


# === Cache maintenance ===

@app.get("/cache/stats", response_model=schemas.CacheStatsOut)
def cache_stats(
    cache: SimilarityResponseCache = Depends(get_response_cache),
    proxy: ProxyCache = Depends(get_proxy_cache),
):
    return schemas.CacheStatsOut(**cache.stats(), proxy_size=len(proxy))

@app.delete("/cache", response_model=schemas.CacheClearOut)
def clear_cache(
    cache: SimilarityResponseCache = Depends(get_response_cache),
    proxy: ProxyCache = Depends(get_proxy_cache),
):
    removed = cache.clear()
    proxy_removed = proxy.clear()
    logger.info(f"Cleared {removed} cached responses and {proxy_removed} proxy entries")
    return schemas.CacheClearOut(removed=removed, proxy_removed=proxy_removed)

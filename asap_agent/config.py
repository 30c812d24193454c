import os
from dotenv import load_dotenv
from typing import List

load_dotenv()

# Upstream providers
# The agent talks to DeepSeek; the /chat/completions passthrough talks to OpenRouter.
# Missing keys are not fatal: upstream calls fail and the agent falls back to canned replies.
DEEPSEEK_API_KEY = os.getenv("DEEPSEEK_API_KEY", "")
DEEPSEEK_API_URL = os.getenv("DEEPSEEK_API_URL", "https://api.deepseek.com/v1/chat/completions")
DEEPSEEK_MODEL = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")

OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_API_URL = os.getenv("OPENROUTER_API_URL", "https://openrouter.ai/api/v1/chat/completions")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "openrouter/openai/gpt-3.5-turbo")

UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "30"))

# Response cache
# CACHE_BACKEND: "file" (JSON files under CACHE_DIR), "sql" (DATABASE_URL) or "memory"
CACHE_BACKEND = os.getenv("CACHE_BACKEND", "file").lower()
CACHE_DIR = os.getenv("CACHE_DIR", ".cache")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./asap_agent.db")

CACHE_MAX_SIZE = int(os.getenv("CACHE_MAX_SIZE", "50"))
CACHE_TTL_MS = int(os.getenv("CACHE_TTL_MS", str(1000 * 60 * 60 * 24)))  # 24 hours

# Proxy passthrough cache, in seconds (1 minute; 5 * 60 also works well)
PROXY_CACHE_TTL = int(os.getenv("PROXY_CACHE_TTL", "60"))

# Chat settings
CHAT_HISTORY_LIMIT = int(os.getenv("CHAT_HISTORY_LIMIT", "20"))
# Chat histories kept in memory at once; older ones are re-read from storage on demand
MAX_SESSIONS_IN_MEMORY = int(os.getenv("MAX_SESSIONS_IN_MEMORY", "500"))
MAX_QUESTION_LENGTH = int(os.getenv("MAX_QUESTION_LENGTH", "2000"))

# CORS configuration
ALLOWED_ORIGINS_STR = os.getenv("ALLOWED_ORIGINS", "*")
ALLOWED_ORIGINS: List[str] = [origin.strip() for origin in ALLOWED_ORIGINS_STR.split(",")]

# Application settings
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Server (python -m asap_agent)
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

# Rate limiting
# Cached and canned answers are cheap, but every miss costs one upstream call.
# - "20/minute" = comfortable for a single visitor chatting
# - "5/minute"  = stricter, for free-tier provider keys
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
CHAT_RATE_LIMIT = os.getenv("CHAT_RATE_LIMIT", "20/minute")

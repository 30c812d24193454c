"""Chat dispatch: cache first, canned replies, then the upstream provider."""

from typing import Dict, List, Sequence

from asap_agent import schemas
from asap_agent.cache import SimilarityResponseCache
from asap_agent.exceptions import ExternalAPIError
from asap_agent.logger import LoggerMixin
from asap_agent.prompts import (
    CANNED_RESPONSES,
    FALLBACK_RESPONSE,
    PROCESSING_ERROR_RESPONSE,
    SYSTEM_PROMPT,
    match_canned,
)
from asap_agent.upstream import UpstreamClient


class ChatAgent(LoggerMixin):
    """
    Answers visitor questions for the ASAP Agent chat window.

    Only answers produced by a canned keyword reply before any upstream call,
    or by a successful upstream completion, are written to the cache. Fallback
    text after an upstream failure is returned but never cached, so the next
    identical question tries upstream again.
    """

    def __init__(
        self,
        cache: SimilarityResponseCache,
        upstream: UpstreamClient,
        canned: Dict[str, str] = CANNED_RESPONSES,
        system_prompt: str = SYSTEM_PROMPT,
        temperature: float = 0.7,
        max_tokens: int = 800,
    ):
        self.cache = cache
        self.upstream = upstream
        self.canned = canned
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build_messages(self, question: str, history: Sequence) -> List[Dict[str, str]]:
        """System instruction, prior turns in order, then the new question."""
        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend({"role": turn.role, "content": turn.content} for turn in history)
        messages.append({"role": "user", "content": question})
        return messages

    async def respond(self, question: str, history: Sequence = ()) -> schemas.ChatReply:
        cached = self.cache.get(question)
        if cached is not None:
            self.logger.info("Answered from cache")
            return schemas.ChatReply(response=cached, source="cache")

        canned = match_canned(question, self.canned)
        if canned is not None:
            self.cache.set(question, canned)
            return schemas.ChatReply(response=canned, source="canned")

        try:
            text = await self.upstream.complete(
                self.build_messages(question, history),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except ExternalAPIError as e:
            self.logger.error(f"Upstream chat error: {e}")
            canned = match_canned(question, self.canned)
            if canned is not None:
                return schemas.ChatReply(response=canned, source="canned")
            return schemas.ChatReply(response=FALLBACK_RESPONSE, source="fallback")
        except Exception as e:
            self.logger.error(f"Error answering chat question: {e}", exc_info=True)
            return schemas.ChatReply(response=PROCESSING_ERROR_RESPONSE, source="fallback")

        self.cache.set(question, text)
        return schemas.ChatReply(response=text, source="upstream")

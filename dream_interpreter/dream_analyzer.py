import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from .cache import InterpretationCache, cache_key
from .errors import DreamNotFoundError, DreamValidationError
from .history import HistoryContextBuilder, HistoryStore
from .knowledge_base import DreamKnowledgeBase
from .models import (
    MAX_DREAM_LENGTH,
    MIN_DREAM_LENGTH,
    ContextBundle,
    DreamEntry,
    FavoriteRequest,
    InterpretationResult,
    InterpretRequest,
    SaveDreamRequest,
)
from .offline import offline_interpretation
from .providers import DreamProvider
from .sentiment import analyze_sentiment

logger = logging.getLogger(__name__)

SAVED_DREAMS_LIMIT = 50


def validate_dream_text(text: Optional[str]) -> str:
    """Return the trimmed text or raise DreamValidationError."""
    if not text or not isinstance(text, str):
        raise DreamValidationError("Dream text is required")

    trimmed = text.strip()
    if not trimmed:
        raise DreamValidationError("Dream text cannot be empty")
    if len(trimmed) < MIN_DREAM_LENGTH:
        raise DreamValidationError(f"Dream text must be at least {MIN_DREAM_LENGTH} characters")
    if len(trimmed) > MAX_DREAM_LENGTH:
        raise DreamValidationError(f"Dream text can be at most {MAX_DREAM_LENGTH} characters")
    return trimmed


class DreamInterpreter:
    """
    Fallback orchestrator: builds the prompt context, then walks the provider
    chain strictly in order until one succeeds. When all of them fail the
    offline responder answers, so interpret() never raises.
    """

    def __init__(
        self,
        providers: List[DreamProvider],
        knowledge_base: DreamKnowledgeBase,
        history: HistoryContextBuilder,
    ):
        self.providers = list(providers)
        self.knowledge_base = knowledge_base
        self.history = history

    @property
    def provider_names(self) -> List[str]:
        return [provider.name for provider in self.providers]

    async def build_context(self, dream_text: str, user_id: Optional[str]) -> ContextBundle:
        history_summary = await self.history.build(user_id)
        symbol_references = self.knowledge_base.extract_context(dream_text)
        if symbol_references:
            logger.info("Symbol context found and attached")
        return ContextBundle(history_summary=history_summary, symbol_references=symbol_references)

    async def interpret(self, request: InterpretRequest) -> InterpretationResult:
        dream_text = request.dream_text or ""
        context = await self.build_context(dream_text, request.user_id)

        for provider in self.providers:
            logger.info(
                "Trying provider %s [persona: %s] [user: %s]",
                provider.name,
                request.persona or "default",
                request.user_name or "anonymous",
            )
            try:
                result = await provider.interpret(
                    dream_text,
                    context=context,
                    persona=request.persona,
                    user_name=request.user_name,
                )
            except Exception:
                logger.exception("Provider %s failed, moving to the next one", provider.name)
                continue
            logger.info("Interpretation served by %s", provider.name)
            return result

        logger.warning("All providers failed, answering in offline mode")
        return offline_interpretation(dream_text)


class InterpretationService:
    """Request-level flow: validation, cache lookup, orchestration, cache write."""

    def __init__(
        self,
        interpreter: DreamInterpreter,
        cache: InterpretationCache,
        history_store: HistoryStore,
    ):
        self.interpreter = interpreter
        self.cache = cache
        self.history_store = history_store

    async def interpret(self, request: InterpretRequest) -> InterpretationResult:
        dream_text = validate_dream_text(request.dream_text)
        request = request.model_copy(update={"dream_text": dream_text})

        key = cache_key(dream_text, request.user_id, request.persona)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info(
                "Cache HIT (%d/%d = %.0f%%)",
                self.cache.hits,
                self.cache.hits + self.cache.misses,
                self.cache.hit_ratio() * 100,
            )
            return cached

        logger.info(
            "Cache MISS, calling interpretation chain (%d/%d)",
            self.cache.hits,
            self.cache.hits + self.cache.misses,
        )
        result = await self.interpreter.interpret(request)
        self.cache.set(key, result)
        return result

    async def list_dreams(self, user_id: Optional[str]) -> List[DreamEntry]:
        """A user's saved dreams, newest first. An unreadable store reads as empty."""
        if not user_id:
            raise DreamValidationError("userId is required")
        try:
            entries = await self.history_store.entries_for(user_id)
        except Exception:
            logger.exception("Could not load saved dreams for user %s", user_id)
            return []
        entries.sort(key=lambda entry: entry.date, reverse=True)
        return entries[:SAVED_DREAMS_LIMIT]

    async def save_dream(self, request: SaveDreamRequest) -> DreamEntry:
        if not request.user_id:
            raise DreamValidationError("userId is required")
        dream_text = validate_dream_text(request.dream_text)
        if not request.interpretation or not request.interpretation.strip():
            raise DreamValidationError("Interpretation is required")
        if request.energy is None or not 0 <= request.energy <= 100:
            raise DreamValidationError("Energy must be a number between 0 and 100")

        date = request.date or datetime.now(timezone.utc)
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)

        entry = DreamEntry(
            id=f"dream-{uuid.uuid4().hex}",
            user_id=request.user_id,
            dream_text=dream_text,
            interpretation=request.interpretation.strip(),
            energy=round(request.energy),
            symbols=request.symbols or [],
            sentiment=analyze_sentiment(dream_text),
            date=date,
        )
        return await self.history_store.append(entry)

    async def delete_dream(self, dream_id: str, user_id: Optional[str]) -> None:
        if not user_id:
            raise DreamValidationError("userId is required")
        if not await self.history_store.delete(dream_id, user_id):
            raise DreamNotFoundError(dream_id)
        logger.info("Deleted dream %s for user %s", dream_id, user_id)

    async def set_favorite(self, dream_id: str, request: FavoriteRequest) -> DreamEntry:
        if not request.user_id:
            raise DreamValidationError("userId is required")
        entry = await self.history_store.set_favorite(dream_id, request.user_id, request.is_favorite)
        if entry is None:
            raise DreamNotFoundError(dream_id)
        return entry

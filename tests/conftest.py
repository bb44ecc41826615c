"""
Shared fixtures. Nothing here talks to a real model backend.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from dream_interpreter.cache import InterpretationCache
from dream_interpreter.config import DEFAULT_SYMBOLS_PATH, Settings
from dream_interpreter.dream_analyzer import DreamInterpreter, InterpretationService
from dream_interpreter.history import HistoryContextBuilder, InMemoryHistoryStore
from dream_interpreter.knowledge_base import DreamKnowledgeBase
from dream_interpreter.models import DreamEntry, DreamSymbol, InterpretationResult
from dream_interpreter.providers import DreamProvider


class FakeProvider(DreamProvider):
    """Records every call and either returns a fixed result or raises."""

    def __init__(self, name: str, result: Optional[InterpretationResult] = None,
                 error: Optional[Exception] = None, call_log: Optional[List[str]] = None):
        self.name = name
        self.result = result or InterpretationResult(
            interpretation=f"Interpretation from {name}",
            energy=80,
            symbols=[DreamSymbol(name="Test Symbol", meaning="test")],
        )
        self.error = error
        self.calls = []
        self.call_log = call_log if call_log is not None else []

    async def interpret(self, dream_text, context=None, persona=None, user_name=None):
        self.calls.append({
            "dream_text": dream_text,
            "context": context,
            "persona": persona,
            "user_name": user_name,
        })
        self.call_log.append(self.name)
        if self.error is not None:
            raise self.error
        return self.result


def make_entry(user_id: str, text: str, days_ago: int, energy: int = 60, symbols=None) -> DreamEntry:
    return DreamEntry(
        id=f"dream-{user_id}-{days_ago}",
        user_id=user_id,
        dream_text=text,
        interpretation="saved interpretation",
        energy=energy,
        symbols=symbols if symbols is not None else [{"name": "Deniz", "meaning": "emotions"}],
        date=datetime(2026, 10, 1, tzinfo=timezone.utc) - timedelta(days=days_ago),
    )


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def knowledge_base():
    return DreamKnowledgeBase.from_file(DEFAULT_SYMBOLS_PATH)


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()


@pytest.fixture
def make_service(knowledge_base, history_store):
    def _make(providers: List[DreamProvider], ttl: float = 600.0) -> InterpretationService:
        interpreter = DreamInterpreter(
            providers=providers,
            knowledge_base=knowledge_base,
            history=HistoryContextBuilder(history_store),
        )
        return InterpretationService(
            interpreter=interpreter,
            cache=InterpretationCache(ttl=ttl),
            history_store=history_store,
        )
    return _make

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

MIN_DREAM_LENGTH = 10
MAX_DREAM_LENGTH = 5000


class DreamSymbol(BaseModel):
    name: str
    meaning: str = ""


class InterpretationResult(BaseModel):
    """Canonical answer returned to the caller, whichever backend produced it."""
    interpretation: str = Field(description="multi-paragraph interpretation of the dream")
    energy: int = Field(ge=0, le=100, description="0 = very negative, 50 = neutral, 100 = very positive")
    symbols: List[DreamSymbol] = Field(default_factory=list)


class InterpretRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dream_text: Optional[str] = Field(None, alias="dreamText")
    user_id: Optional[str] = Field(None, alias="userId")
    persona: Optional[str] = None
    user_name: Optional[str] = Field(None, alias="userName")


class ContextBundle(BaseModel):
    """Per-request prompt context. Rebuilt for every call and never persisted."""
    history_summary: str = ""
    symbol_references: str = ""

    def is_empty(self) -> bool:
        return not self.history_summary and not self.symbol_references


class DreamEntry(BaseModel):
    """A saved dream as kept by the history store."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userId")
    dream_text: str = Field(alias="dreamText")
    interpretation: str = ""
    energy: int = 50
    symbols: List[Any] = Field(default_factory=list)
    sentiment: Optional[str] = None
    date: datetime
    is_favorite: bool = Field(False, alias="isFavorite")

    def symbol_names(self) -> List[str]:
        names = []
        for symbol in self.symbols:
            if isinstance(symbol, dict):
                name = symbol.get("name")
            else:
                name = symbol
            if name:
                names.append(str(name))
        return names


class SaveDreamRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")
    dream_text: Optional[str] = Field(None, alias="dreamText")
    interpretation: Optional[str] = None
    energy: Optional[float] = None
    symbols: Optional[List[Any]] = None
    date: Optional[datetime] = None


class FavoriteRequest(BaseModel):
    """Omitting isFavorite toggles the current flag."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")
    is_favorite: Optional[bool] = Field(None, alias="isFavorite")

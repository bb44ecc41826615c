import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

EMOJI_MAP = {
    "su": "💧", "ateş": "🔥", "uçmak": "🕊️", "düşmek": "⬇️", "yılan": "🐍",
    "köpek": "🐕", "kedi": "🐈", "ev": "🏠", "araba": "🚗", "ölüm": "💀",
    "bebek": "👶", "para": "💰", "deniz": "🌊", "dağ": "⛰️", "ay": "🌙",
    "güneş": "☀️", "yıldız": "⭐", "kuş": "🐦", "ağaç": "🌳", "ayna": "🪞",
    "kapı": "🚪", "merdiven": "🪜", "diş": "🦷", "saç": "💇", "göz": "👁️",
    "yemek": "🍽️", "ekmek": "🍞", "kitap": "📖", "yol": "🛣️",
}
DEFAULT_EMOJI = "✨"


class SymbolDetail(BaseModel):
    general: str
    positive: str = ""
    negative: str = ""


class DreamKnowledgeBase:
    """Static symbol dictionary used to ground prompts in known meanings."""

    def __init__(self, symbols: Optional[Dict[str, SymbolDetail]] = None):
        self.symbols: Dict[str, SymbolDetail] = {
            key.lower(): detail for key, detail in (symbols or {}).items()
        }

    @classmethod
    def from_file(cls, path: Path) -> "DreamKnowledgeBase":
        """Load the symbol file. A missing or broken file yields an empty base."""
        if not path.exists():
            logger.warning("Symbol file %s not found, knowledge base is empty", path)
            return cls()
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            symbols = {key: SymbolDetail(**detail) for key, detail in raw.items()}
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.error("Failed to load symbol file %s: %s", path, e)
            return cls()
        logger.info("Loaded %d dream symbols from %s", len(symbols), path)
        return cls(symbols)

    def __len__(self) -> int:
        return len(self.symbols)

    def extract_symbols(self, dream_text: str) -> List[str]:
        """Keys of every symbol that appears anywhere in the dream text."""
        lower_text = dream_text.lower()
        return [key for key in self.symbols if key in lower_text]

    def extract_context(self, dream_text: str) -> str:
        """Render the meanings of every matched symbol as a prompt snippet."""
        blocks = []
        for key in self.extract_symbols(dream_text):
            detail = self.symbols[key]
            blocks.append(
                f"- {key.upper()} ({EMOJI_MAP.get(key, DEFAULT_EMOJI)}):\n"
                f"  * General: {detail.general}\n"
                f"  * Positive: {detail.positive}\n"
                f"  * Negative: {detail.negative}"
            )

        if not blocks:
            return ""

        return (
            "📚 REFERENCES FROM THE SYMBOL DICTIONARY (found in the user's dream):\n"
            + "\n\n".join(blocks)
        )

    def all_symbols(self) -> List[Dict[str, str]]:
        return [
            {
                "symbol": key,
                "meaning": detail.general,
                "emoji": EMOJI_MAP.get(key, DEFAULT_EMOJI),
            }
            for key, detail in self.symbols.items()
        ]

import os
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_SYMBOLS_PATH = PACKAGE_DIR / "data" / "dream_symbols.json"
DEFAULT_HISTORY_PATH = Path("data") / "dreams.json"

# Fastest / cheapest first
DEFAULT_PROVIDER_CHAIN: Tuple[str, ...] = ("gemini", "groq", "openai")

DEFAULT_PERSONA = "DEEP_ANALYST"


class ModelParameters(BaseModel):
    """Sampling parameters shared by every provider."""
    model_config = ConfigDict(frozen=True)

    temperature: float = 0.7
    top_k: int = 40
    max_output_tokens: int = 8192


class Persona(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    role: str = Field(description="voice and identity instructions")
    instructions: str = Field(description="output-format contract, including the JSON shape")


_OUTPUT_RULES = """
### OUTPUT RULES:
- Do NOT use markdown (**bold**, *italic*, ### headings, - lists). Write plain text.
- Do NOT use bullet points. Write flowing paragraphs, like a story.
- If a user name is given, open with "Dear [Name],".
"""

PERSONAS: Dict[str, Persona] = {
    # Master persona: psychological, mystical and practical at once
    "DEEP_ANALYST": Persona(
        key="DEEP_ANALYST",
        role=(
            "You are a Jungian dream analyst and mystic sage with forty years of experience. "
            "You blend Carl Jung's archetypes, the Sufi tradition of dream reading and modern "
            "neuroscience. Speak in a warm, friendly and sincere tone."
        ),
        instructions="""
### LANGUAGE RULE (VERY IMPORTANT):
Write the WHOLE interpretation in the language the dream was written in.

### YOUR ANALYSIS (internal, do not echo it):
1. ATMOSPHERE: feel the emotional climate and energy of the dream.
2. SYMBOLS: read every symbol from an archetypal, cultural and personal angle.
3. STORY: find the unconscious narrative that ties the symbols together.
4. MESSAGE: reveal the deeper message the dream carries for the dreamer.
""" + _OUTPUT_RULES + """- TONE: the warm voice of a wise friend. Speak to the dreamer as "you".
- DEPTH: never fall back on shallow advice such as "you should rest" or "you are stressed".

### JSON OUTPUT FORMAT:
{
  "interpretation": "At least 3 flowing paragraphs, in the dream's language, no headings or bullets.",
  "inner_journey": "The psychological depth of the dream.",
  "spiritual_practice": "A concrete practice suggestion.",
  "awareness_message": "One powerful sentence of insight.",
  "energy": 0-100,
  "symbols": [
    {"name": "Symbol1", "meaning": "Short meaning"},
    {"name": "Symbol2", "meaning": "Short meaning"}
  ]
}
""",
    ),
    "ANALYST": Persona(
        key="ANALYST",
        role="You are Dr. Aether, a senior clinical psychiatrist and master Jungian analyst with forty years of practice.",
        instructions=_OUTPUT_RULES + """- VOICE: academic and authoritative, yet deeply empathetic.
- FOCUS: archetypes, unconscious drives, childhood wounds and the shadow self.

### JSON OUTPUT FORMAT:
{
  "interpretation": "A DEEP analysis of 3-4 paragraphs.",
  "inner_journey": "The psychological defence mechanisms you detect.",
  "spiritual_practice": "A concrete exercise for integrating the unconscious.",
  "awareness_message": "One piercing question.",
  "energy": 0-100,
  "symbols": [{"name": "Symbol", "meaning": "Meaning"}]
}
""",
    ),
    "MYSTIC": Persona(
        key="MYSTIC",
        role="You are an ancient seer who looks beyond time and space.",
        instructions=_OUTPUT_RULES + """- VOICE: poetic, mysterious, ancient and spiritual.
- FOCUS: karma, the evolution of the soul, chakras and energy.

### JSON OUTPUT FORMAT:
{
  "interpretation": "A mystical reading of 3 paragraphs.",
  "inner_journey": "The soul's current stage of growth.",
  "spiritual_practice": "A ritual or meditation suggestion.",
  "awareness_message": "An ancient mantra.",
  "energy": 0-100,
  "symbols": [{"name": "Symbol", "meaning": "Meaning"}]
}
""",
    ),
    "GUIDE": Persona(
        key="GUIDE",
        role="You are a sharp life coach who walks beside the user on their life journey.",
        instructions=_OUTPUT_RULES + """- VOICE: modern, energetic, speaking to the user as "you".
- FOCUS: daily life, career and relationships.

### JSON OUTPUT FORMAT:
{
  "interpretation": "A motivating reading of 3 paragraphs.",
  "inner_journey": "Strengths and areas for growth.",
  "spiritual_practice": "An actionable plan.",
  "awareness_message": "A powerful motto.",
  "energy": 0-100,
  "symbols": [{"name": "Symbol", "meaning": "Meaning"}]
}
""",
    ),
}


def get_persona(persona_key: Optional[str], default_key: str = DEFAULT_PERSONA) -> Persona:
    """Resolve a persona, falling back to the default for absent or unknown keys."""
    if persona_key and persona_key in PERSONAS:
        return PERSONAS[persona_key]
    return PERSONAS.get(default_key, PERSONAS[DEFAULT_PERSONA])


def _split_chain(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return DEFAULT_PROVIDER_CHAIN
    names = tuple(name.strip().lower() for name in raw.split(",") if name.strip())
    return names or DEFAULT_PROVIDER_CHAIN


class Settings(BaseModel):
    """Process-wide configuration, read once from the environment."""
    model_config = ConfigDict(frozen=True)

    gemini_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    claude_api_key: Optional[str] = None

    gemini_model: str = "gemini-2.5-flash"
    groq_model: str = "llama-3.3-70b-versatile"
    openai_model: str = "gpt-4o"
    groq_base_url: str = "https://api.groq.com/openai/v1"

    provider_chain: Tuple[str, ...] = DEFAULT_PROVIDER_CHAIN
    provider_timeout: float = 60.0
    provider_max_retries: int = 1

    active_persona: str = DEFAULT_PERSONA
    model_params: ModelParameters = ModelParameters()

    cache_ttl_seconds: float = 600.0
    cache_check_period: float = 120.0

    interpret_rate_limit: str = "20 per 15 minutes"
    dreams_rate_limit: str = "50 per 15 minutes"

    symbols_path: Path = DEFAULT_SYMBOLS_PATH
    history_path: Path = DEFAULT_HISTORY_PATH

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            claude_api_key=os.getenv("CLAUDE_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            groq_model=os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            provider_chain=_split_chain(os.getenv("PROVIDER_CHAIN")),
            provider_timeout=float(os.getenv("PROVIDER_TIMEOUT", "60")),
            provider_max_retries=int(os.getenv("PROVIDER_MAX_RETRIES", "1")),
            active_persona=os.getenv("ACTIVE_PERSONA", DEFAULT_PERSONA),
            cache_ttl_seconds=float(os.getenv("CACHE_TTL_SECONDS", "600")),
            cache_check_period=float(os.getenv("CACHE_CHECK_PERIOD", "120")),
            interpret_rate_limit=os.getenv("INTERPRET_RATE_LIMIT", "20 per 15 minutes"),
            dreams_rate_limit=os.getenv("DREAMS_RATE_LIMIT", "50 per 15 minutes"),
            symbols_path=Path(os.getenv("SYMBOLS_PATH", str(DEFAULT_SYMBOLS_PATH))),
            history_path=Path(os.getenv("DREAM_HISTORY_PATH", str(DEFAULT_HISTORY_PATH))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
        )

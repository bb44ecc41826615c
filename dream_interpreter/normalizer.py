"""
Best-effort conversion of raw model output into an InterpretationResult.

Models are asked for JSON but do not always deliver it. Parsing runs an
ordered list of repair strategies and stops at the first one that yields a
JSON object; if none does, a degraded result is synthesized so the caller
always gets the canonical shape.
"""
import json
import logging
import math
import re
from typing import Any, Callable, Dict, List, Optional

from .models import DreamSymbol, InterpretationResult

logger = logging.getLogger(__name__)

DEFAULT_ENERGY = 50
RAW_PREVIEW_LENGTH = 500
EMPTY_INTERPRETATION = "An interpretation could not be generated."
DIVIDER = "━" * 22

_FENCE_RE = re.compile(r"```(?:json)?\n?", re.IGNORECASE)
_STRING_LITERAL_RE = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)


def _parse_direct(raw: str) -> Any:
    return json.loads(raw)


def _strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw).strip()


def _parse_without_fences(raw: str) -> Any:
    return json.loads(_strip_code_fences(raw))


def _escape_newlines_in_strings(text: str) -> str:
    """Escape raw line breaks that sit inside string literals."""
    def _escape(match: re.Match) -> str:
        return match.group(0).replace("\r\n", "\\n").replace("\n", "\\n").replace("\r", "\\n")

    return _STRING_LITERAL_RE.sub(_escape, text)


def _parse_with_escaped_newlines(raw: str) -> Any:
    return json.loads(_escape_newlines_in_strings(_strip_code_fences(raw)))


def _outermost_object(text: str) -> str:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("no JSON object in model output")
    return text[start:end + 1]


def _parse_outermost_object(raw: str) -> Any:
    """Drop chatter around the object, e.g. 'Here is your JSON: {...}'."""
    return json.loads(_escape_newlines_in_strings(_outermost_object(_strip_code_fences(raw))))


PARSE_STRATEGIES: List[Callable[[str], Any]] = [
    _parse_direct,
    _parse_without_fences,
    _parse_with_escaped_newlines,
    _parse_outermost_object,
]


def parse_structured_output(raw: str) -> Optional[Dict[str, Any]]:
    """Return the first JSON object any strategy can recover, else None."""
    for strategy in PARSE_STRATEGIES:
        try:
            parsed = strategy(raw)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def coerce_energy(value: Any) -> int:
    """Clamp to [0, 100]; anything non-numeric becomes the neutral 50."""
    if isinstance(value, bool) or value is None:
        return DEFAULT_ENERGY
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return DEFAULT_ENERGY
    if not isinstance(value, (int, float)) or math.isnan(value) or math.isinf(value):
        return DEFAULT_ENERGY
    return int(max(0, min(100, round(value))))


def coerce_symbols(value: Any) -> List[DreamSymbol]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []

    symbols = []
    for item in value:
        if isinstance(item, dict):
            name = item.get("name") or item.get("symbol")
            meaning = item.get("meaning") or ""
        else:
            name, meaning = item, ""
        if name is None or isinstance(name, (dict, list)):
            continue
        name = str(name).strip()
        if not name:
            continue
        symbols.append(DreamSymbol(name=name, meaning=str(meaning)))
    return symbols


def _section(title: str, body: str) -> str:
    return f"\n\n{DIVIDER}\n{title}\n{DIVIDER}\n\n{body}"


def enrich_interpretation(parsed: Dict[str, Any]) -> str:
    """Fold the optional richer fields into the main interpretation text."""
    text = parsed.get("interpretation")
    text = str(text).strip() if text else ""
    if not text:
        text = EMPTY_INTERPRETATION

    if parsed.get("inner_journey"):
        text += _section("✨ Your Inner Journey", str(parsed["inner_journey"]))
    if parsed.get("spiritual_practice"):
        text += _section("🌟 Today's Guidance", str(parsed["spiritual_practice"]))
    if parsed.get("awareness_message"):
        text += f'\n\n💫 "{parsed["awareness_message"]}"'
    elif parsed.get("awareness"):
        text += f"\n\n💫 {parsed['awareness']}"
    return text


def degraded_result(raw: str) -> InterpretationResult:
    preview = raw[:RAW_PREVIEW_LENGTH]
    return InterpretationResult(
        interpretation=(
            "Your dream interpretation arrived, but a technical formatting problem occurred. "
            f"Here is the raw text: {preview}..."
            '\n\n💫 "There was a technical hiccup, but your inner journey continues."'
        ),
        energy=DEFAULT_ENERGY,
        symbols=[],
    )


def normalize_parsed(parsed: Dict[str, Any]) -> InterpretationResult:
    return InterpretationResult(
        interpretation=enrich_interpretation(parsed),
        energy=coerce_energy(parsed.get("energy")),
        symbols=coerce_symbols(parsed.get("symbols")),
    )


def normalize_response(raw: str) -> InterpretationResult:
    parsed = parse_structured_output(raw)
    if parsed is None:
        logger.error("Could not recover JSON from model output, returning degraded result")
        return degraded_result(raw)
    return normalize_parsed(parsed)

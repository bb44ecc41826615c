from typing import List, NamedTuple

from .models import DreamSymbol, InterpretationResult


class CannedInterpretation(NamedTuple):
    keyword: str
    interpretation: str
    energy: int
    symbols: List[DreamSymbol]


# Used when every provider has failed
CANNED_INTERPRETATIONS: List[CannedInterpretation] = [
    CannedInterpretation(
        keyword="deniz",
        interpretation=(
            "This dream points to your emotional world, your unconscious and the flow of life. "
            "The sea usually stands for emotional depth, fears of the unknown or a search for freedom.\n\n"
            "A calm sea mirrors inner peace and emotional balance, while rough waves can reflect "
            "the turbulence you are going through.\n\n"
            "For Carl Jung, water is the symbol of the unconscious. Sea dreams often show a wish to "
            "travel inward and discover yourself. Listen to your feelings and try to express them "
            "rather than hold them back."
        ),
        energy=75,
        symbols=[DreamSymbol(name="Deniz", meaning="Emotional world, the unconscious, freedom")],
    ),
    CannedInterpretation(
        keyword="uçmak",
        interpretation=(
            "Flying dreams usually symbolize freedom, success and the wish to rise above limits. "
            "You may be in a period where you feel strong and free.\n\n"
            "If the flight is easy and joyful, you feel in control of your life and able to reach "
            "your goals. If it is a struggle, you may be facing some obstacles.\n\n"
            "Freud linked flying to vital energy, Jung to personal growth and potential. Stay "
            "focused on your goals and find the courage to move past your fears."
        ),
        energy=92,
        symbols=[DreamSymbol(name="Uçmak", meaning="Freedom, success, rising above limits")],
    ),
    CannedInterpretation(
        keyword="yılan",
        interpretation=(
            "Snake dreams speak of transformation, healing or a threat. The snake is a many-layered "
            "symbol whose meaning shifts from culture to culture.\n\n"
            "Because a snake sheds its skin it stands for change and rebirth, yet it can also point "
            "to hidden enemies, dangers or suppressed fears.\n\n"
            "For Jung the snake is an archetype of the collective unconscious that carries wisdom. "
            "Consider which changes in your life are due, and stay open to them."
        ),
        energy=58,
        symbols=[DreamSymbol(name="Yılan", meaning="Transformation, healing, threat")],
    ),
]

GENERIC_INTERPRETATION = CannedInterpretation(
    keyword="",
    interpretation=(
        "🎭 Demo mode is active\n\n"
        "Your dream holds intriguing symbols. Our interpretation services are unavailable right "
        "now, so this is a general reading rather than a personal one.\n\n"
        "Dreams are messages from the unconscious. Every symbol, feeling and event is a "
        "reflection of your inner world, and the people, places and objects in it are usually "
        "tied to your own experiences and emotions.\n\n"
        "Please try again in a little while for a full interpretation."
    ),
    energy=65,
    symbols=[DreamSymbol(name="Demo Symbol", meaning="This is a demo interpretation")],
)


def offline_interpretation(dream_text: str) -> InterpretationResult:
    """Keyword-matched canned answer. Needs nothing external and cannot fail."""
    lower_text = dream_text.lower()
    chosen = GENERIC_INTERPRETATION
    for canned in CANNED_INTERPRETATIONS:
        if canned.keyword in lower_text:
            chosen = canned
            break
    return InterpretationResult(
        interpretation=chosen.interpretation,
        energy=chosen.energy,
        symbols=[symbol.model_copy() for symbol in chosen.symbols],
    )

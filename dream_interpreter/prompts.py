from typing import Optional

from langchain_core.prompts import PromptTemplate

from .config import DEFAULT_PERSONA, get_persona
from .models import ContextBundle

INTERPRETATION_TEMPLATE = PromptTemplate.from_template(
    """
{role}

{instructions}

### 👤 USER:
{user_clause}

### 🔮 DREAM TEXT:
\"\"\"{dream_text}\"\"\"
{context_sections}"""
)

HISTORY_HEADER = "### 🧠 PAST DREAM CONTEXT (for personalization):"
SYMBOLS_HEADER = "### 📚 SYMBOL REFERENCES:"


def user_clause(user_name: Optional[str]) -> str:
    if user_name:
        return f'The user\'s name is {user_name}. Begin your interpretation with "Dear {user_name},".'
    return 'The user\'s name is unknown. Begin your interpretation with "Dear Dream Traveler,".'


def context_sections(context: Optional[ContextBundle]) -> str:
    if context is None or context.is_empty():
        return ""
    sections = []
    if context.history_summary:
        sections.append(f"{HISTORY_HEADER}\n{context.history_summary}")
    if context.symbol_references:
        sections.append(f"{SYMBOLS_HEADER}\n{context.symbol_references}")
    return "\n" + "\n\n".join(sections) + "\n"


def compose_prompt(
    dream_text: str,
    context: Optional[ContextBundle] = None,
    persona: Optional[str] = None,
    user_name: Optional[str] = None,
    default_persona: str = DEFAULT_PERSONA,
) -> str:
    """Build the full provider prompt. Unknown personas fall back to the default."""
    selected = get_persona(persona, default_persona)
    return INTERPRETATION_TEMPLATE.format(
        role=selected.role,
        instructions=selected.instructions.strip(),
        user_clause=user_clause(user_name),
        dream_text=dream_text,
        context_sections=context_sections(context),
    )

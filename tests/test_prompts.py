from dream_interpreter.config import PERSONAS, get_persona
from dream_interpreter.models import ContextBundle
from dream_interpreter.prompts import HISTORY_HEADER, SYMBOLS_HEADER, compose_prompt

DREAM = "I was swimming in a dark sea under a full moon."


def test_sections_are_in_order():
    context = ContextBundle(history_summary="DREAM #1 ...", symbol_references="- DENIZ ...")
    persona = PERSONAS["MYSTIC"]

    prompt = compose_prompt(DREAM, context=context, persona="MYSTIC", user_name="Ayşe")

    positions = [
        prompt.index(persona.role),
        prompt.index(persona.instructions.strip()),
        prompt.index('"Dear Ayşe,"'),
        prompt.index(f'"""{DREAM}"""'),
        prompt.index(HISTORY_HEADER),
        prompt.index(SYMBOLS_HEADER),
    ]
    assert positions == sorted(positions)


def test_unknown_persona_resolves_to_default():
    default_prompt = compose_prompt(DREAM)
    unknown_prompt = compose_prompt(DREAM, persona="NOT_A_PERSONA")

    assert unknown_prompt == default_prompt
    assert PERSONAS["DEEP_ANALYST"].role in default_prompt


def test_configured_default_persona_is_used():
    prompt = compose_prompt(DREAM, persona=None, default_persona="GUIDE")
    assert PERSONAS["GUIDE"].role in prompt


def test_anonymous_user_gets_generic_greeting():
    prompt = compose_prompt(DREAM)
    assert '"Dear Dream Traveler,"' in prompt


def test_empty_context_adds_no_headers():
    prompt = compose_prompt(DREAM, context=ContextBundle())
    assert HISTORY_HEADER not in prompt
    assert SYMBOLS_HEADER not in prompt


def test_only_symbol_context():
    prompt = compose_prompt(DREAM, context=ContextBundle(symbol_references="- AY ..."))
    assert SYMBOLS_HEADER in prompt
    assert HISTORY_HEADER not in prompt


def test_braces_in_dream_text_are_kept_verbatim():
    text = 'I saw a sign that read {"exit": true}'
    assert text in compose_prompt(text)


def test_get_persona_never_raises():
    assert get_persona(None).key == "DEEP_ANALYST"
    assert get_persona("").key == "DEEP_ANALYST"
    assert get_persona("ANALYST").key == "ANALYST"
    assert get_persona("missing", default_key="also-missing").key == "DEEP_ANALYST"

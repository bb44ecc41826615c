import re
from typing import Iterable

POSITIVE_WORDS = [
    "mutlu", "sevinç", "huzur", "güzel", "harika", "başarı", "aşk", "sevgi",
    "umut", "şans", "kazanmak", "gülmek", "dans", "şarkı", "hediye", "bayram",
    "güneş", "ışık", "çiçek", "bahçe", "cennet", "melek", "barış", "dostluk",
    "zafer", "övgü", "onur", "gurur", "coşku", "neşe", "keyif", "rahatlık",
]

NEGATIVE_WORDS = [
    "üzgün", "korku", "endişe", "kaygı", "acı", "ölüm", "kaza", "tehlike",
    "düşmek", "kayıp", "yalnız", "terk", "hastalık", "ağrı", "kötü", "karanlık",
    "çığlık", "ağlamak", "öfke", "kavga", "savaş", "kan", "yara", "cehennem",
    "şeytan", "kabus", "dehşet", "panik", "stres", "depresyon", "umutsuz",
]

SENTIMENT_LABELS = ("very_negative", "negative", "neutral", "positive", "very_positive")


def _count_words(text: str, words: Iterable[str]) -> int:
    return sum(len(re.findall(rf"\b{re.escape(word)}\b", text)) for word in words)


def analyze_sentiment(text: str) -> str:
    """
    Coarse mood label for a saved dream, from whole-word hits against the
    positive and negative word lists. No hits means "neutral".
    """
    lower_text = text.lower()
    positive = _count_words(lower_text, POSITIVE_WORDS)
    negative = _count_words(lower_text, NEGATIVE_WORDS)

    total = positive + negative
    if total == 0:
        return "neutral"

    ratio = (positive - negative) / total
    if ratio > 0.5:
        return "very_positive"
    if ratio > 0.1:
        return "positive"
    if ratio < -0.5:
        return "very_negative"
    if ratio < -0.1:
        return "negative"
    return "neutral"

import pytest

from dream_interpreter.sentiment import SENTIMENT_LABELS, analyze_sentiment


@pytest.mark.parametrize("text, label", [
    ("Bahçede mutlu ve huzur içindeydim", "very_positive"),
    ("Rüyamda korku ve panik vardı, her yer karanlık", "very_negative"),
    ("Bir trenle uzak bir şehre gidiyordum", "neutral"),
    ("Mutlu bir gün ama sonra korku geldi", "neutral"),
    ("Mutlu, umut dolu ve neşe içinde ama biraz korku da vardı", "positive"),
    ("Korku, kabus ve panik içinde bir an umut gördüm", "negative"),
])
def test_label_follows_word_balance(text, label):
    assert analyze_sentiment(text) == label


def test_only_whole_words_count():
    assert analyze_sentiment("Kanal boyunca yürüdüm") == "neutral"


def test_matching_ignores_case():
    assert analyze_sentiment("MUTLU bir rüya") == "very_positive"


def test_labels_are_from_the_fixed_set():
    assert analyze_sentiment("") in SENTIMENT_LABELS

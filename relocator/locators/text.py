"""Text normalization and similarity scoring for fuzzy matching."""

import re
from dataclasses import dataclass, field

MAX_TEXT_LENGTH = 500
MIN_WORD_LENGTH = 2
SIMILARITY_THRESHOLD = 0.40

# Blend applied when either string is short enough that word sets are sparse.
SHORT_TEXT_LENGTH = 20
WORD_WEIGHT = 0.6
BIGRAM_WEIGHT = 0.4

_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[^\w\s]")


def normalize_text(text: str | None, remove_punctuation: bool = False) -> str:
    """Trim, collapse whitespace, lowercase and truncate."""
    if not text:
        return ""
    normalized = _WHITESPACE.sub(" ", text.strip()).lower()[:MAX_TEXT_LENGTH]
    if remove_punctuation:
        normalized = _PUNCTUATION.sub("", normalized)
    return normalized


def extract_words(text: str) -> list[str]:
    """Unique words of at least two characters, in order of appearance."""
    if not text:
        return []
    words = _PUNCTUATION.sub(" ", text.lower()).split()
    return list(dict.fromkeys(w for w in words if len(w) >= MIN_WORD_LENGTH))


def dice_coefficient(a, b) -> float:
    """2 * |A & B| / (|A| + |B|) over unique items."""
    set_a, set_b = set(a), set(b)
    if not set_a and not set_b:
        return 1.0
    if not set_a or not set_b:
        return 0.0
    return 2 * len(set_a & set_b) / (len(set_a) + len(set_b))


def bigrams(text: str) -> set[str]:
    return {text[i : i + 2] for i in range(len(text) - 1)}


def bigram_similarity(a: str, b: str) -> float:
    """Dice coefficient over character bigrams."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return dice_coefficient(bigrams(a.lower()), bigrams(b.lower()))


@dataclass
class TextComparison:
    score: float
    is_match: bool
    normalized_target: str
    normalized_candidate: str
    common_words: list[str] = field(default_factory=list)


def compare_text(
    target: str,
    candidate: str,
    threshold: float = SIMILARITY_THRESHOLD,
    short_text_length: int = SHORT_TEXT_LENGTH,
    word_weight: float = WORD_WEIGHT,
    bigram_weight: float = BIGRAM_WEIGHT,
) -> TextComparison:
    """Score how similar two strings are after normalization.

    Identical normalized strings score 1. Otherwise the score is the word-set
    Dice coefficient, blended with bigram similarity when either string is
    shorter than ``short_text_length``.
    """
    norm_target = normalize_text(target)
    norm_candidate = normalize_text(candidate)

    if not norm_target or not norm_candidate:
        return TextComparison(0.0, False, norm_target, norm_candidate)

    if norm_target == norm_candidate:
        return TextComparison(1.0, True, norm_target, norm_candidate, extract_words(norm_target))

    target_words = extract_words(norm_target)
    candidate_words = extract_words(norm_candidate)
    score = dice_coefficient(target_words, candidate_words)

    if len(norm_target) < short_text_length or len(norm_candidate) < short_text_length:
        score = score * word_weight + bigram_similarity(norm_target, norm_candidate) * bigram_weight

    candidate_set = set(candidate_words)
    return TextComparison(
        score=score,
        is_match=score >= threshold,
        normalized_target=norm_target,
        normalized_candidate=norm_candidate,
        common_words=[w for w in target_words if w in candidate_set],
    )

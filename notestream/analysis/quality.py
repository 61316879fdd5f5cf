"""Content quality scoring for transcript segments.

Decides whether a flushed segment carries enough information to become a
note. The score starts from a base value for meeting the minimum length,
gains a fixed weight for every indicator that matches (once per indicator,
not per occurrence), loses a little for filler density, and is nudged by
length and question shape before being clamped to [0, 1].

Indicators are matched against the lower-cased text as plain substrings,
so short alternations such as ``as`` also fire inside longer words. The
proper-noun indicator is the exception: it needs the original casing.
"""

import re
import logging
from typing import List, NamedTuple, Pattern

from ..models.notes import ContentQuality

logger = logging.getLogger(__name__)

MIN_WORD_COUNT = 3
BASE_SCORE = 0.15
NOTEWORTHY_THRESHOLD = 0.15
# Callers treat anything at or above this as noteworthy as well, preferring
# to over-capture speech rather than drop it.
NOTEWORTHY_OVERRIDE_SCORE = 0.10

FILLER_PENALTY_WEIGHT = 0.1
IDEAL_LENGTH_BONUS = 0.05
EXCESSIVE_LENGTH_PENALTY = 0.05
IDEAL_MIN_WORDS = 5   # exclusive
IDEAL_MAX_WORDS = 100  # exclusive
EXCESSIVE_WORDS = 150
QUESTION_PENALTY = 0.02


class Indicator(NamedTuple):
    """A weighted information indicator."""
    name: str
    pattern: Pattern
    weight: float
    case_sensitive: bool = False


INFO_INDICATORS: List[Indicator] = [
    Indicator("numbers", re.compile(r"\d+(?:\.\d+)?(?:\s*%)?"), 0.12),
    # Capitalised word that does not open a sentence
    Indicator("proper nouns", re.compile(r"(?<=[^.!?\s]\s)[A-Z][a-z]+"), 0.08, case_sensitive=True),
    Indicator(
        "factual statements",
        re.compile(r"(?:is|are|was|were|has|have|had|can|could|should|would|will)\s+"),
        0.05,
    ),
    Indicator(
        "technical terms",
        re.compile(
            r"(?:algorithm|function|process|method|technique|system|framework|api|interface"
            r"|component|module|database|server|client|user|data|information|analysis"
            r"|research|study|report|result|finding)s?"
        ),
        0.08,
    ),
    Indicator(
        "comparisons",
        re.compile(r"(?:more|less|better|worse|higher|lower|increase|decrease|improve|reduce|enhance|diminish)"),
        0.05,
    ),
    Indicator(
        "time references",
        re.compile(
            r"(?:today|yesterday|tomorrow|last\s+\w+|next\s+\w+|in\s+\d+\s+\w+"
            r"|during|after|before|while|when)"
        ),
        0.05,
    ),
    Indicator(
        "causal relationships",
        re.compile(
            r"(?:because|since|as|therefore|thus|hence|consequently|due to|results in|causes"
            r"|affects|influences|impacts|leads to|follows from)"
        ),
        0.08,
    ),
    Indicator(
        "structured information",
        re.compile(
            r"(?:first|second|third|fourth|fifth|finally|lastly|next|then|also|additionally"
            r"|furthermore|moreover|in addition)"
        ),
        0.05,
    ),
    Indicator(
        "definitions",
        re.compile(r"(?:means|refers to|is defined as|is a|are|represents|signifies|denotes|indicates|suggests)"),
        0.05,
    ),
    Indicator(
        "names",
        re.compile(
            r"(?:john|jane|bob|alice|david|sarah|michael|james|robert|mary|william|elizabeth"
            r"|richard|joseph|thomas|charles|susan|jessica|daniel|jennifer)"
        ),
        0.05,
    ),
    Indicator(
        "work terms",
        re.compile(
            r"(?:meeting|call|conference|discussion|presentation|project|deadline|task|goal"
            r"|objective|plan|strategy|team|group|department|manager|client|customer|email"
            r"|report|document|file|folder)"
        ),
        0.05,
    ),
    Indicator(
        "locations",
        re.compile(
            r"(?:office|room|building|street|avenue|road|boulevard|city|town|state|country"
            r"|region|area|location|place|site)"
        ),
        0.05,
    ),
    Indicator(
        "action verbs",
        re.compile(
            r"(?:create|build|develop|implement|design|make|start|begin|finish|complete"
            r"|deliver|send|receive|update|change|modify|improve|fix|solve)"
        ),
        0.05,
    ),
]

FILLER_PATTERNS: List[Pattern] = [
    re.compile(
        r"(?:um|uh|like|you know|i mean|sort of|kind of|basically|actually|literally|honestly"
        r"|to be honest|i guess|i think|i believe|in my opinion)"
    ),
    re.compile(r"(?:so|well|right|okay|now|anyway|anyhow|whatever|as i was saying|where was i)"),
]

QUESTION_PATTERN = re.compile(
    r"\?|(?:who|what|when|where|why|how)\s+"
    r"(?:is|are|was|were|will|would|could|should|do|does|did|can|could)\s+"
    r"(?:the|a|an|it|they|we|you|i)\s+",
    re.IGNORECASE,
)


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def matched_indicators(text: str) -> List[Indicator]:
    """Return the indicators present in text, in table order."""
    normalized = text.lower().strip()
    found = []
    for indicator in INFO_INDICATORS:
        subject = text if indicator.case_sensitive else normalized
        if indicator.pattern.search(subject):
            found.append(indicator)
    return found


def filler_count(text: str) -> int:
    """Count filler and hedging matches in text."""
    normalized = text.lower().strip()
    return sum(len(pattern.findall(normalized)) for pattern in FILLER_PATTERNS)


def analyze_content_quality(text: str) -> ContentQuality:
    """Score a transcript segment for informational value.

    Args:
        text: Segment text as transcribed

    Returns:
        ContentQuality with a score in [0, 1], the noteworthy verdict and
        a human readable reason
    """
    if not text or not text.strip():
        return ContentQuality(score=0.0, is_noteworthy=False, reason="Empty content")

    normalized = text.lower().strip()
    word_count = count_words(normalized)

    if word_count < MIN_WORD_COUNT:
        return ContentQuality(score=0.1, is_noteworthy=False, reason="Content too short")

    score = BASE_SCORE

    found = matched_indicators(text)
    for indicator in found:
        score += indicator.weight

    score -= (filler_count(normalized) / word_count) * FILLER_PENALTY_WEIGHT

    if IDEAL_MIN_WORDS < word_count < IDEAL_MAX_WORDS:
        score += IDEAL_LENGTH_BONUS
    elif word_count > EXCESSIVE_WORDS:
        score -= EXCESSIVE_LENGTH_PENALTY

    if QUESTION_PATTERN.search(normalized):
        score -= QUESTION_PENALTY

    score = max(0.0, min(1.0, score))
    is_noteworthy = score >= NOTEWORTHY_THRESHOLD

    names = [indicator.name for indicator in found]
    if is_noteworthy:
        reason = f"Content contains {', '.join(names)}" if names else "Content meets minimum length"
    elif names:
        reason = f"Insufficient information density (score: {score:.2f})"
    else:
        reason = "No significant information detected"

    logger.debug(f"Scored segment ({word_count} words): {score:.2f} - {reason}")
    return ContentQuality(score=score, is_noteworthy=is_noteworthy, reason=reason)

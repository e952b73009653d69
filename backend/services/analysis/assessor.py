"""
Content quality, educational value, readability and difficulty scores.

Pure functions of already-extracted concepts and topics. Every score is
clamped into its documented range.
"""
import re
from typing import List

from models.analysis_models import (
    ConceptInfo,
    ConceptRelationship,
    DifficultyLevel,
    TopicInfo,
)
from services.analysis.concept_extractor import is_technical_term
from services.analysis.segmenter import count_syllables

ABSTRACT_TERMS = ['theory', 'concept', 'framework', 'principle', 'methodology', 'paradigm', 'hypothesis']

_STRUCTURE_MARKERS = [
    re.compile(r'\n\s*\n'),  # Blank lines
    re.compile(r'\d+\.'),  # Numbered lists
    re.compile(r'#{1,6}'),  # Markdown headers
]


def _clamp(value: float, low: float = 0.0, high: float = 10.0) -> float:
    return max(low, min(high, value))


def assess_content_quality(content: str, concepts: List[ConceptInfo], topics: List[TopicInfo]) -> float:
    """
    Score overall content quality (0-10).

    Args:
        content: Raw text; line breaks are used to detect structure
        concepts: Ranked concepts for the text
        topics: Topic clusters for the text
    """
    score = 0

    # Length band (0-2)
    word_count = len(content.split())
    if 100 <= word_count <= 5000:
        score += 2
    elif word_count > 50:
        score += 1

    # Concept richness (0-3)
    main_concepts = sum(1 for c in concepts if c.is_main_concept)
    if main_concepts > 5:
        score += 3
    elif main_concepts > 2:
        score += 2
    elif main_concepts > 0:
        score += 1

    # Topic coherence (0-2)
    if topics:
        avg_coherence = sum(t.coherence_score for t in topics) / len(topics)
        if avg_coherence > 7:
            score += 2
        elif avg_coherence > 5:
            score += 1

    # Definitions (0-2)
    defined = sum(1 for c in concepts if c.definitions)
    if defined > 3:
        score += 2
    elif defined > 0:
        score += 1

    # Structure (0-1)
    if any(marker.search(content) for marker in _STRUCTURE_MARKERS):
        score += 1

    return _clamp(score)


def assess_educational_value(
    concepts: List[ConceptInfo],
    objectives: List[str],
    relationships: List[ConceptRelationship],
) -> float:
    """Score educational value (0-10) from concept, objective and relationship counts."""
    score = 0

    high_importance = sum(1 for c in concepts if c.importance > 7)
    if high_importance > 3:
        score += 3
    elif high_importance > 1:
        score += 2
    elif high_importance > 0:
        score += 1

    if len(objectives) > 3:
        score += 2
    elif len(objectives) > 1:
        score += 1

    strong = sum(1 for r in relationships if r.strength > 0.7)
    if strong > 2:
        score += 2
    elif strong > 0:
        score += 1

    defined = sum(1 for c in concepts if c.definitions)
    if defined > 2:
        score += 2
    elif defined > 0:
        score += 1

    multi_context = sum(1 for c in concepts if len(c.context) > 1)
    if multi_context > 2:
        score += 1

    return _clamp(score)


def calculate_readability_score(content: str) -> float:
    """Simplified Flesch Reading Ease rescaled to 1-10 (higher reads easier)."""
    sentences = [s for s in re.split(r'[.!?]+', content) if len(s.strip()) > 5]
    words = content.split()

    if not sentences or not words:
        return 5.0

    syllables = sum(count_syllables(word) for word in words)
    avg_words_per_sentence = len(words) / len(sentences)
    avg_syllables_per_word = syllables / len(words)

    score = 206.835 - (1.015 * avg_words_per_sentence) - (84.6 * avg_syllables_per_word)
    return _clamp(score / 10, 1.0, 10.0)


def assess_difficulty(content: str, concepts: List[ConceptInfo], readability_score: float) -> DifficultyLevel:
    """Map readability, term density and abstract vocabulary to basic/intermediate/advanced."""
    difficulty = 0

    if readability_score < 4:
        difficulty += 2
    elif readability_score < 6:
        difficulty += 1

    technical = sum(1 for c in concepts if is_technical_term(c.term) or c.definitions)
    if technical > 8:
        difficulty += 2
    elif technical > 4:
        difficulty += 1

    lower = content.lower()
    if any(term in lower for term in ABSTRACT_TERMS):
        difficulty += 1

    if sum(1 for c in concepts if c.importance > 8) > 3:
        difficulty += 1

    if difficulty <= 1:
        return 'basic'
    if difficulty <= 3:
        return 'intermediate'
    return 'advanced'


def assess_topic_coherence(topics: List[TopicInfo]) -> float:
    """Mean topic coherence (0-10)."""
    if not topics:
        return 0.0
    return _clamp(sum(t.coherence_score for t in topics) / len(topics))

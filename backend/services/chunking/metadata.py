"""
Per-chunk metadata shared by the semantic and time-based chunkers.

The chunkers differ only in how they choose boundaries; the metadata they
attach comes from one builder parameterized by a ChunkProfile.
"""
import math
import re
from dataclasses import dataclass, field
from typing import List, Tuple

from models.analysis_models import DifficultyLevel
from models.chunk_models import SemanticBoundaries
from services.analysis.assessor import assess_difficulty, calculate_readability_score
from services.analysis.concept_extractor import (
    extract_concepts,
    extract_topic_terms,
    extract_topics,
    generate_learning_objectives,
)
from services.analysis.segmenter import count_words, preprocess_for_analysis, segment_paragraphs

TRANSITION_WORDS = [
    'however', 'therefore', 'in conclusion', 'furthermore', 'moreover', 'additionally',
    'on the other hand', 'in contrast', 'for example', 'in summary', 'to illustrate',
    'consequently', 'as a result', 'nevertheless', 'meanwhile', 'subsequently',
    'finally', 'lastly',
]
CONCLUSION_WORDS = [
    'conclusion', 'summary', 'therefore', 'thus', 'in summary', 'finally', 'lastly', 'to conclude',
]

_TRANSITION_START = re.compile(
    r'^(?:' + '|'.join(re.escape(w) for w in TRANSITION_WORDS) + r')\b',
    re.IGNORECASE,
)
_HEADER_LINE = re.compile(
    r'^(?:#{1,6}\s+.*|[A-Z][A-Z\s\-&()]+|\d+\.\s+.*|[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*:?)$'
)
_DEFINITION_CUES = re.compile(r':\s|is\s|are\s|means\s|refers to\s', re.IGNORECASE)
_EXAMPLE_CUES = re.compile(r'example|such as|for instance|including')

_EDUCATIONAL_INDICATORS = [
    re.compile(r'\b(define|definition|explain|concept|principle|theory|method|process)\b', re.IGNORECASE),
    re.compile(r'\b(important|significant|key|main|primary|essential|fundamental)\b', re.IGNORECASE),
    re.compile(r'\b(because|therefore|thus|however|moreover|furthermore)\b', re.IGNORECASE),
    re.compile(r'\b(example|such as|for instance|including)\b', re.IGNORECASE),
    re.compile(r'\b(compare|contrast|similar|different|relationship)\b', re.IGNORECASE),
]
_EXPLANATORY_PATTERNS = [
    re.compile(r'because|since|due to|as a result|therefore|thus|consequently', re.IGNORECASE),
    re.compile(r'however|although|despite|nevertheless|on the other hand', re.IGNORECASE),
    re.compile(r'for example|such as|including|specifically|namely', re.IGNORECASE),
]


def starts_with_transition(text: str) -> bool:
    return bool(_TRANSITION_START.match(text.strip()))


def starts_with_header(content: str) -> bool:
    """First line is a markdown, ALL CAPS, numbered or Title Case header."""
    stripped = content.strip()
    if not stripped:
        return False
    first_line = stripped.split('\n')[0].strip()
    return bool(_HEADER_LINE.match(first_line))


def ends_with_conclusion(content: str) -> bool:
    tail = ' '.join(re.split(r'[.!?]', content)[-2:]).lower()
    return any(word in tail for word in CONCLUSION_WORDS)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def merge_unique(first: List[str], second: List[str]) -> List[str]:
    return list(dict.fromkeys(first + second))


@dataclass(frozen=True)
class ChunkProfile:
    """Thresholds that distinguish one chunking strategy's metadata from another's."""
    name: str
    max_topics: int
    max_concepts: int
    concept_richness_steps: Tuple[int, int]
    completeness_base: float
    structure_bonus: bool


SEMANTIC_PROFILE = ChunkProfile(
    name="semantic",
    max_topics=8,
    max_concepts=10,
    concept_richness_steps=(3, 6),
    completeness_base=0.0,
    structure_bonus=False,
)

TIME_BASED_PROFILE = ChunkProfile(
    name="time_based",
    max_topics=5,
    max_concepts=8,
    concept_richness_steps=(2, 4),
    completeness_base=5.0,
    structure_bonus=True,
)


@dataclass
class ChunkMetadata:
    """Locally scoped analysis attached to a chunk"""
    word_count: int
    topics: List[str] = field(default_factory=list)
    key_concepts: List[str] = field(default_factory=list)
    learning_objectives: List[str] = field(default_factory=list)
    educational_value: float = 0.0
    difficulty_level: DifficultyLevel = "basic"
    semantic_boundaries: SemanticBoundaries = field(default_factory=SemanticBoundaries)


class ChunkMetadataBuilder:
    """Computes chunk metadata with the shared extraction and scoring heuristics."""

    def __init__(self, profile: ChunkProfile = SEMANTIC_PROFILE):
        self.profile = profile

    def build(self, content: str) -> ChunkMetadata:
        concepts = extract_concepts(content)
        topic_clusters = extract_topics(segment_paragraphs(content), concepts)
        topics = extract_topic_terms(content, self.profile.max_topics)
        key_concepts = [c.term for c in concepts[:self.profile.max_concepts]]

        flattened = preprocess_for_analysis(content)
        readability = calculate_readability_score(flattened)

        return ChunkMetadata(
            word_count=count_words(content),
            topics=topics,
            key_concepts=key_concepts,
            learning_objectives=generate_learning_objectives(concepts, topic_clusters)[:4],
            educational_value=self.assess_educational_value(content, key_concepts, topics),
            difficulty_level=assess_difficulty(flattened, concepts, readability),
            semantic_boundaries=SemanticBoundaries(
                starts_with_header=starts_with_header(content),
                ends_with_conclusion=ends_with_conclusion(content),
                conceptual_completeness=self.assess_conceptual_completeness(content, key_concepts, topics),
            ),
        )

    def assess_educational_value(self, content: str, concepts: List[str], topics: List[str]) -> float:
        """Base 5 plus length, richness and indicator bonuses, rounded into [1, 10]."""
        score = 5.0

        word_count = count_words(content)
        if word_count >= 200:
            score += 1
        if word_count >= 400:
            score += 1

        low, high = self.profile.concept_richness_steps
        if len(concepts) >= low:
            score += 1
        if len(concepts) >= high:
            score += 1

        if len(topics) >= 2:
            score += 1

        for pattern in _EDUCATIONAL_INDICATORS:
            if pattern.search(content):
                score += 0.5

        if len(_DEFINITION_CUES.findall(content)) >= 2:
            score += 1

        if self.profile.structure_bonus and ('\n\n' in content or '•' in content or '-' in content):
            score += 0.5

        return float(min(10, max(1, round_half_up(score))))

    def assess_conceptual_completeness(self, content: str, concepts: List[str], topics: List[str]) -> float:
        """How well the chunk explains what it mentions, 0-10."""
        completeness = self.profile.completeness_base
        lower = content.lower()
        has_example = bool(_EXAMPLE_CUES.search(content))

        for concept in concepts:
            if lower.count(concept.lower()) > 1:
                completeness += 1
            definition = re.compile(
                re.escape(concept) + r'\s+(?:is|are|means|refers to|defined as)',
                re.IGNORECASE,
            )
            if definition.search(content):
                completeness += 2
            if has_example:
                completeness += 1

        if topics:
            present = sum(1 for topic in topics if topic.lower() in lower)
            completeness += (present / len(topics)) * 2

        for pattern in _EXPLANATORY_PATTERNS:
            if pattern.search(content):
                completeness += 0.5

        return float(min(10, max(0, round_half_up(completeness))))

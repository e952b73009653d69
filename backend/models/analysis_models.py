"""
Data models for content analysis results.
"""
from dataclasses import dataclass, field
from typing import List, Literal

DifficultyLevel = Literal["basic", "intermediate", "advanced"]
TermType = Literal["technical", "concept", "definition", "example"]
RelationshipType = Literal["defines", "explains", "contrasts", "exemplifies", "causes", "relates_to"]


@dataclass
class ConceptInfo:
    """Candidate key term surfaced by the extraction passes"""
    term: str  # Display form
    frequency: int = 1  # Incremented each time another pass rediscovers the term
    importance: float = 0.0  # 0-10, set by the scoring pass
    context: List[str] = field(default_factory=list)  # Up to 3 example sentences
    definitions: List[str] = field(default_factory=list)
    is_main_concept: bool = False

    @property
    def key(self) -> str:
        """Normalized lookup key"""
        return self.term.lower().strip()


@dataclass
class TopicInfo:
    """Cluster of paragraphs sharing a dominant concept"""
    topic: str
    relevance: float
    keywords: List[str] = field(default_factory=list)  # Up to 5
    coherence_score: float = 0.0  # 0-10


@dataclass
class TermInfo:
    """Important term with a representative context sentence"""
    term: str
    type: TermType
    importance: float
    context: str = ""


@dataclass
class ConceptRelationship:
    """Relationship inferred from concepts sharing a sentence"""
    concept1: str
    concept2: str
    relationship: RelationshipType
    strength: float  # 0.0-1.0
    evidence: List[str] = field(default_factory=list)


@dataclass
class ContentAnalysis:
    """Aggregate analysis of a document or chunk"""
    key_concepts: List[ConceptInfo] = field(default_factory=list)  # At most 20
    main_topics: List[TopicInfo] = field(default_factory=list)  # At most 8
    learning_objectives: List[str] = field(default_factory=list)
    important_terms: List[TermInfo] = field(default_factory=list)
    conceptual_relationships: List[ConceptRelationship] = field(default_factory=list)
    difficulty_level: DifficultyLevel = "basic"

    # Scores, all 0-10
    content_quality: float = 0.0
    educational_value: float = 0.0
    readability_score: float = 5.0
    topic_coherence: float = 0.0

    @property
    def main_concepts(self) -> List[ConceptInfo]:
        return [c for c in self.key_concepts if c.is_main_concept]

"""
Data models for document chunks.
"""
from dataclasses import dataclass, field
from typing import List

from models.analysis_models import DifficultyLevel


@dataclass
class SemanticBoundaries:
    """How cleanly a chunk starts and ends"""
    starts_with_header: bool = False
    ends_with_conclusion: bool = False
    conceptual_completeness: float = 0.0  # 0-10


@dataclass
class SemanticChunk:
    """Bounded slice of a document produced by the structural/semantic chunker"""
    content: str  # Verbatim slice, trimmed
    index: int  # Dense, 0-based after refinement
    title: str
    topics: List[str] = field(default_factory=list)
    key_concepts: List[str] = field(default_factory=list)
    learning_objectives: List[str] = field(default_factory=list)
    educational_value: float = 0.0  # 0-10
    difficulty_level: DifficultyLevel = "basic"
    word_count: int = 0
    reading_time: int = 0  # minutes
    semantic_boundaries: SemanticBoundaries = field(default_factory=SemanticBoundaries)
    low_value: bool = False  # educational value in [3, 4)


@dataclass
class TimeBasedChunk:
    """Bounded slice of a document sized against a reading-time budget"""
    content: str
    index: int
    title: str
    topics: List[str] = field(default_factory=list)
    key_concepts: List[str] = field(default_factory=list)
    learning_objectives: List[str] = field(default_factory=list)
    educational_value: float = 0.0
    difficulty_level: DifficultyLevel = "basic"
    word_count: int = 0
    estimated_reading_time: float = 0.0  # seconds
    target_reading_time: float = 0.0  # seconds, the clamped target
    semantic_boundaries: SemanticBoundaries = field(default_factory=SemanticBoundaries)

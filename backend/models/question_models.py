"""
Data models for study question generation.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

QuestionType = Literal["multiple_choice", "true_false", "fill_in_blank", "short_answer"]
QUESTION_TYPES = ["multiple_choice", "true_false", "fill_in_blank", "short_answer"]

BloomLevel = Literal["remember", "understand", "apply", "analyze", "evaluate", "create"]
CognitiveLoad = Literal["low", "medium", "high"]


@dataclass
class Question:
    """Single study question with its answer and provenance"""
    id: str
    question: str
    type: QuestionType
    correct_answer: str
    difficulty: str = "medium"  # easy, medium or hard
    options: Optional[List[str]] = None  # Multiple choice only
    explanation: str = ""
    topic: str = "General"
    source_chunk: str = ""  # Sentence from the content that supports the answer
    bloom_level: BloomLevel = "understand"
    educational_value: float = 0.0  # 0-10, rescored during validation
    concepts_tested: List[str] = field(default_factory=list)
    cognitive_load: CognitiveLoad = "medium"


@dataclass
class QuestionValidation:
    """Outcome of the question quality check"""
    is_valid: bool
    educational_value: float
    issues: List[str] = field(default_factory=list)


@dataclass
class QuestionSetMetadata:
    total_generated: int = 0
    quality_filtered: int = 0
    average_quality: float = 0.0
    concepts_covered: List[str] = field(default_factory=list)
    difficulty_distribution: Dict[str, int] = field(default_factory=dict)


@dataclass
class QuestionSet:
    """Questions generated for one piece of content"""
    questions: List[Question] = field(default_factory=list)
    metadata: QuestionSetMetadata = field(default_factory=QuestionSetMetadata)
    generation_method: str = "standard"  # standard, simple_fallback or last_resort

"""
Pydantic response models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class ConceptModel(BaseModel):
    """Ranked key concept."""
    term: str
    frequency: int
    importance: float = Field(ge=0, le=10)
    context: List[str] = []
    definitions: List[str] = []
    is_main_concept: bool = False


class TopicModel(BaseModel):
    """Paragraph cluster sharing a dominant concept."""
    topic: str
    relevance: float
    keywords: List[str] = []
    coherence_score: float = Field(ge=0, le=10)


class TermModel(BaseModel):
    term: str
    type: str
    importance: float
    context: str = ""


class RelationshipModel(BaseModel):
    concept1: str
    concept2: str
    relationship: str
    strength: float = Field(ge=0, le=1)
    evidence: List[str] = []


class AnalysisResponse(BaseModel):
    """Response model for content analysis."""
    key_concepts: List[ConceptModel] = []
    main_topics: List[TopicModel] = []
    learning_objectives: List[str] = []
    important_terms: List[TermModel] = []
    conceptual_relationships: List[RelationshipModel] = []
    difficulty_level: str = "basic"
    content_quality: float = Field(default=0.0, ge=0, le=10)
    educational_value: float = Field(default=0.0, ge=0, le=10)
    readability_score: float = Field(default=5.0, ge=0, le=10)
    topic_coherence: float = Field(default=0.0, ge=0, le=10)


class SemanticBoundariesModel(BaseModel):
    starts_with_header: bool
    ends_with_conclusion: bool
    conceptual_completeness: float = Field(ge=0, le=10)


class SemanticChunkModel(BaseModel):
    """Chunk produced by the semantic chunker."""
    content: str
    index: int
    title: str
    topics: List[str] = []
    key_concepts: List[str] = []
    learning_objectives: List[str] = []
    educational_value: float
    difficulty_level: str
    word_count: int
    reading_time: int = Field(description="Reading time in minutes")
    semantic_boundaries: SemanticBoundariesModel
    low_value: bool = False


class TimeBasedChunkModel(BaseModel):
    """Chunk produced by the time-based chunker."""
    content: str
    index: int
    title: str
    topics: List[str] = []
    key_concepts: List[str] = []
    learning_objectives: List[str] = []
    educational_value: float
    difficulty_level: str
    word_count: int
    estimated_reading_time: float = Field(description="Reading time in seconds")
    target_reading_time: float = Field(description="Clamped target in seconds")
    semantic_boundaries: SemanticBoundariesModel


class SemanticChunkResponse(BaseModel):
    """Response model for semantic chunking."""
    chunks: List[SemanticChunkModel]
    total_chunks: int
    total_words: int
    cached: bool = False


class TimeBasedChunkResponse(BaseModel):
    """Response model for time-based chunking."""
    chunks: List[TimeBasedChunkModel]
    total_chunks: int
    total_reading_time: float = Field(description="Sum of chunk reading times in seconds")
    target_reading_time: float
    cached: bool = False


class SummaryResponse(BaseModel):
    """Response model for summary generation."""
    job_id: str
    summary: str
    word_count: int
    target_min_words: int
    target_max_words: int
    ideal_words: int
    chunk_count: int
    attempts: int
    converged: bool
    low_value_chunks: List[int] = []


class ProgressResponse(BaseModel):
    """Response model for progress polling."""
    job_id: str
    stage: str
    processed_chunks: int = Field(ge=0)
    total_chunks: int = Field(ge=0)
    last_updated: float
    error: Optional[str] = None


class RateLimitResponse(BaseModel):
    error: str
    retry_after: int


class QuestionModel(BaseModel):
    """Study question with its answer."""
    id: str
    question: str
    type: str
    correct_answer: str
    difficulty: str = "medium"
    options: Optional[List[str]] = None
    explanation: str = ""
    topic: str = "General"
    source_chunk: str = ""
    bloom_level: str = "understand"
    educational_value: float = Field(default=0.0, ge=0, le=10)
    concepts_tested: List[str] = []
    cognitive_load: str = "medium"


class QuizMetadataModel(BaseModel):
    difficulty_level: str
    concept_count: int
    meaningful_concepts: int
    educational_value: float
    content_quality: float
    generation_method: str
    total_generated: int
    quality_filtered: int
    average_quality: float


class QuizResponse(BaseModel):
    """Response model for study question generation."""
    questions: List[QuestionModel]
    learning_objectives: List[str] = []
    key_concepts: List[str] = []
    content_metadata: QuizMetadataModel
    suggestions: List[str] = []
    cached: bool = False

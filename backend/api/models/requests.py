"""
Pydantic request models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from core.config import DEFAULT_TARGET_READING_SECONDS


class AnalysisRequest(BaseModel):
    """Request model for content analysis."""
    content: str = Field(..., description="Document or chunk text to analyze")


class SemanticChunkRequest(BaseModel):
    """Request model for semantic chunking."""
    content: str = Field(..., description="Document text to chunk")


class TimeBasedChunkRequest(BaseModel):
    """Request model for time-based chunking."""
    content: str = Field(..., description="Document text to chunk")
    target_reading_time_seconds: float = Field(
        default=DEFAULT_TARGET_READING_SECONDS,
        gt=0,
        description="Target reading time per chunk in seconds (clamped to 120-900)",
    )


class SummaryOptionsModel(BaseModel):
    """Options shaping a summary."""
    study_purpose: str = Field(default="general understanding", description="Why the learner is studying")
    subject_type: str = Field(default="general", description="Subject area of the document")
    study_format: str = Field(default="structured notes", description="Desired summary format")
    knowledge_level: str = Field(default="intermediate", description="Learner's knowledge level")
    detail_level: int = Field(default=3, ge=1, le=5, description="Detail level 1-5 (10%-50% of source)")
    target_percentage: Optional[float] = Field(
        default=None, ge=5, le=80, description="Explicit target length as a percentage of the source"
    )
    include_examples: bool = Field(default=False, description="Keep illustrative examples")
    include_citations: bool = Field(default=False, description="Preserve citations")


class SummaryRequest(BaseModel):
    """Request model for summary generation."""
    content: str = Field(..., description="Document text to summarize")
    options: Optional[SummaryOptionsModel] = Field(default=None, description="Summary options (required)")
    job_id: Optional[str] = Field(default=None, description="Key for polling progress")


class QuizRequest(BaseModel):
    """Request model for study question generation."""
    content: str = Field(..., description="Chunk or short document to ask about")
    max_questions: int = Field(default=8, ge=1, le=20, description="Upper bound on returned questions")
    question_types: Optional[List[str]] = Field(
        default=None,
        description="multiple_choice, true_false, fill_in_blank or short_answer (all when omitted)",
    )

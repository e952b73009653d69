"""
Data models for summarization requests and results.
"""
from dataclasses import dataclass, field
from typing import List, Optional

# Detail level (1-5) to target summary length as a percentage of the source
DETAIL_LEVEL_PERCENTAGES = {1: 10, 2: 20, 3: 30, 4: 40, 5: 50}


@dataclass
class SummaryOptions:
    """User-facing knobs that shape the summary prompt and target length"""
    study_purpose: str = "general understanding"
    subject_type: str = "general"
    study_format: str = "structured notes"
    knowledge_level: str = "intermediate"
    detail_level: Optional[int] = 3  # 1-5, ignored when target_percentage is set
    target_percentage: Optional[float] = None  # 5-80
    include_examples: bool = False
    include_citations: bool = False

    @property
    def effective_percentage(self) -> float:
        if self.target_percentage is not None:
            return float(self.target_percentage)
        return float(DETAIL_LEVEL_PERCENTAGES.get(self.detail_level or 3, 30))


@dataclass
class LengthAdjustmentResult:
    """Outcome of the length-adjustment loop"""
    text: str
    word_count: int
    attempts: int  # Rewrite calls issued (0 if the first draft already fit)
    converged: bool


@dataclass
class SummaryResult:
    """Final summary with its convergence data"""
    summary: str
    word_count: int
    target_min_words: int
    target_max_words: int
    ideal_words: int
    chunk_count: int
    attempts: int
    converged: bool
    low_value_chunks: List[int] = field(default_factory=list)

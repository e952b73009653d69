"""
Document summarization - chunk, summarize, merge, then fit the length band.

Pipeline:
1. Derive the target word band from the source length and the requested detail
2. Split long documents with the semantic chunker (short ones are one chunk)
3. Summarize each chunk with a proportional share of the target
4. Merge section summaries when there is more than one
5. Run the length-adjustment loop on the merged draft
"""
import logging
import math
import uuid
from dataclasses import dataclass
from typing import List, Optional

from core.config import (
    LENGTH_ADJUST_MAX_ATTEMPTS,
    LLM_MAX_TOKENS,
    MIN_CONTENT_CHARS,
    SUMMARY_BAND_TOLERANCE,
    SUMMARY_MIN_WORDS,
    SUMMARY_SINGLE_PASS_WORDS,
)
from core.errors import InputError
from core.progress import COMPLETE_STAGE, FAILED_STAGE, ProgressTracker
from core.prompt_manager import PromptManager, prompt_manager
from models.summary_models import SummaryOptions, SummaryResult
from services.analysis.segmenter import count_words
from services.chunking.semantic_chunker import SemanticChunker
from services.summarization.length_adjuster import (
    TextGenerator,
    adjust_summary_length,
    strip_word_count_line,
)

logger = logging.getLogger(__name__)

MIN_CHUNK_SUMMARY_WORDS = 30
MIN_OUTPUT_TOKENS = 256
TOKENS_PER_WORD = 2


@dataclass
class WordBand:
    ideal: int
    minimum: int
    maximum: int


def compute_word_band(
    source_words: int,
    percentage: float,
    floor_words: int = SUMMARY_MIN_WORDS,
    tolerance: float = SUMMARY_BAND_TOLERANCE,
) -> WordBand:
    """Ideal count is percentage of the source (never below floor_words), band is +/- tolerance."""
    ideal = max(floor_words, round(source_words * percentage / 100))
    return WordBand(
        ideal=ideal,
        minimum=max(1, math.floor(round(ideal * (1 - tolerance), 6))),
        maximum=math.ceil(round(ideal * (1 + tolerance), 6)),
    )


def output_token_budget(words: int, cap: int = LLM_MAX_TOKENS) -> int:
    return min(cap, max(MIN_OUTPUT_TOKENS, math.ceil(words * TOKENS_PER_WORD)))


@dataclass
class _SourceChunk:
    content: str
    word_count: int
    low_value: bool = False


class DocumentSummarizer:
    """Produces a study summary whose length tracks the requested detail level."""

    def __init__(
        self,
        generate: TextGenerator,
        chunker: Optional[SemanticChunker] = None,
        progress: Optional[ProgressTracker] = None,
        prompts: PromptManager = prompt_manager,
        single_pass_words: int = SUMMARY_SINGLE_PASS_WORDS,
        max_attempts: int = LENGTH_ADJUST_MAX_ATTEMPTS,
        max_output_tokens: int = LLM_MAX_TOKENS,
    ):
        self.generate = generate
        self.chunker = chunker or SemanticChunker()
        self.progress = progress or ProgressTracker()
        self.prompts = prompts
        self.single_pass_words = single_pass_words
        self.max_attempts = max_attempts
        self.max_output_tokens = max_output_tokens

    def summarize(
        self,
        text: str,
        options: Optional[SummaryOptions],
        job_id: Optional[str] = None,
    ) -> SummaryResult:
        """
        Summarize a document.

        Args:
            text: Source document
            options: Summary options; required
            job_id: Key under which progress is reported

        Raises:
            InputError: If the text is too short or options are missing
            GenerationError: If any generation call fails
        """
        if not text or len(text.strip()) < MIN_CONTENT_CHARS:
            raise InputError(f"Text too short to summarize: need at least {MIN_CONTENT_CHARS} characters")
        if options is None:
            raise InputError("Summary options are required")

        job_id = job_id or str(uuid.uuid4())
        source = text.strip()
        source_words = count_words(source)
        band = compute_word_band(source_words, options.effective_percentage)

        logger.info(
            f"Summarizing {source_words} words for job {job_id}: "
            f"target {band.minimum}-{band.maximum} (ideal {band.ideal})"
        )
        self.progress.start(job_id, stage="Analyzing document structure")

        try:
            chunks = self._split(source, source_words)
            self.progress.update(job_id, total_chunks=len(chunks), stage="Summarizing sections")

            partials = self._summarize_chunks(chunks, band, options, job_id)

            if len(partials) > 1:
                self.progress.update(job_id, stage="Merging section summaries")
                draft = self._merge(partials, band, options)
            else:
                draft = partials[0] if partials else ''

            self.progress.update(job_id, stage="Adjusting summary length")
            adjusted = adjust_summary_length(
                draft,
                band.minimum,
                band.maximum,
                band.ideal,
                self.generate,
                output_token_budget(band.ideal, self.max_output_tokens),
                source_text=source,
                max_attempts=self.max_attempts,
            )
        except Exception as e:
            self.progress.update(job_id, stage=FAILED_STAGE, error=str(e))
            raise

        self.progress.update(job_id, stage=COMPLETE_STAGE, processed_chunks=len(chunks))

        return SummaryResult(
            summary=adjusted.text,
            word_count=adjusted.word_count,
            target_min_words=band.minimum,
            target_max_words=band.maximum,
            ideal_words=band.ideal,
            chunk_count=len(chunks),
            attempts=adjusted.attempts,
            converged=adjusted.converged,
            low_value_chunks=[i for i, chunk in enumerate(chunks) if chunk.low_value],
        )

    def _split(self, source: str, source_words: int) -> List[_SourceChunk]:
        if source_words <= self.single_pass_words:
            return [_SourceChunk(content=source, word_count=source_words)]

        return [
            _SourceChunk(content=chunk.content, word_count=chunk.word_count, low_value=chunk.low_value)
            for chunk in self.chunker.divide_into_semantic_chunks(source)
        ]

    def _summarize_chunks(
        self,
        chunks: List[_SourceChunk],
        band: WordBand,
        options: SummaryOptions,
        job_id: str,
    ) -> List[str]:
        """Summarize chunks in order; each gets a share of the target proportional to its length."""
        total_words = sum(chunk.word_count for chunk in chunks) or 1
        partials = []

        for i, chunk in enumerate(chunks):
            self.progress.update(
                job_id,
                stage=f"Summarizing section {i + 1} of {len(chunks)}",
                processed_chunks=i,
            )

            if chunk.word_count == 0:
                logger.warning(f"Section {i + 1} has no words; skipping")
                continue

            target_words = max(MIN_CHUNK_SUMMARY_WORDS, round(band.ideal * chunk.word_count / total_words))
            prompt = self.prompts.render(
                "chunk_summary",
                content=chunk.content,
                target_words=target_words,
                section_number=i + 1,
                section_count=len(chunks),
                **self._option_values(options),
            )
            summary = strip_word_count_line(
                self.generate(prompt, output_token_budget(target_words, self.max_output_tokens))
            )
            if summary:
                partials.append(summary)

            self.progress.update(job_id, processed_chunks=i + 1)

        return partials

    def _merge(self, partials: List[str], band: WordBand, options: SummaryOptions) -> str:
        summaries = '\n\n'.join(
            f"SECTION {i + 1}:\n{summary}" for i, summary in enumerate(partials)
        )
        prompt = self.prompts.render(
            "summary_merge",
            summaries=summaries,
            target_words=band.ideal,
            **self._option_values(options),
        )
        return strip_word_count_line(
            self.generate(prompt, output_token_budget(band.ideal, self.max_output_tokens))
        )

    @staticmethod
    def _option_values(options: SummaryOptions) -> dict:
        example_rule = ''
        if options.include_examples:
            example_rule = '- Keep one short example for each key idea when the text provides one'
        citation_rule = ''
        if options.include_citations:
            citation_rule = '- Preserve citations and references exactly as they appear'

        return {
            "study_purpose": options.study_purpose,
            "subject_type": options.subject_type,
            "study_format": options.study_format,
            "knowledge_level": options.knowledge_level,
            "example_rule": example_rule,
            "citation_rule": citation_rule,
        }

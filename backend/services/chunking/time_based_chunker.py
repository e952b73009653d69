"""
Time-Based Chunker - splits documents into chunks sized by reading time.

Paragraphs are packed greedily toward a per-chunk word budget derived from
the target reading time, then chunks far under target are merged forward.
"""
import logging
import math
import re
from typing import List, Optional

from core.config import (
    DEFAULT_TARGET_READING_SECONDS,
    MIN_CONTENT_CHARS,
    TIME_CHUNK_MAX_SECONDS,
    TIME_CHUNK_MIN_SECONDS,
    WORDS_PER_MINUTE,
)
from core.errors import InputError
from models.chunk_models import SemanticBoundaries, TimeBasedChunk
from services.analysis.segmenter import count_words, preprocess_document, split_paragraphs
from services.chunking.metadata import TIME_BASED_PROFILE, ChunkMetadataBuilder, merge_unique

logger = logging.getLogger(__name__)

SINGLE_CHUNK_TOLERANCE = 1.2
OVERFLOW_TOLERANCE = 1.3
BREAK_THRESHOLD = 0.7
MERGE_BELOW = 0.5
MERGE_CEILING = 1.3

TOPIC_ICONS = {
    'introduction': '🎯',
    'definition': '📖',
    'example': '💡',
    'process': '⚙️',
    'method': '🔬',
    'theory': '🧠',
    'history': '📜',
    'analysis': '📊',
    'conclusion': '✅',
    'summary': '📋',
}
DEFAULT_ICON = '📚'
FALLBACK_ICON = '📄'


class TimeBasedChunker:
    """Divides documents into chunks that each take about the target time to read."""

    def __init__(
        self,
        words_per_minute: int = WORDS_PER_MINUTE,
        min_chunk_seconds: int = TIME_CHUNK_MIN_SECONDS,
        max_chunk_seconds: int = TIME_CHUNK_MAX_SECONDS,
        min_content_chars: int = MIN_CONTENT_CHARS,
        metadata_builder: Optional[ChunkMetadataBuilder] = None,
    ):
        self.words_per_minute = words_per_minute
        self.min_chunk_seconds = min_chunk_seconds
        self.max_chunk_seconds = max_chunk_seconds
        self.min_content_chars = min_content_chars
        self.metadata_builder = metadata_builder or ChunkMetadataBuilder(TIME_BASED_PROFILE)

    def reading_time(self, word_count: int) -> float:
        """Seconds needed to read word_count words."""
        return (word_count / self.words_per_minute) * 60

    def clamp_target(self, target_seconds: float) -> float:
        return max(self.min_chunk_seconds, min(self.max_chunk_seconds, target_seconds))

    def divide_into_time_based_chunks(
        self,
        text: str,
        target_reading_time_seconds: float = DEFAULT_TARGET_READING_SECONDS,
    ) -> List[TimeBasedChunk]:
        """
        Divide a document into chunks of roughly the target reading time.

        Args:
            text: Document text
            target_reading_time_seconds: Desired seconds per chunk, clamped
                into [min_chunk_seconds, max_chunk_seconds]

        Raises:
            InputError: If the text is shorter than min_content_chars after trimming
        """
        if not text or len(text.strip()) < self.min_content_chars:
            raise InputError(
                f"Text too short for chunking: need at least {self.min_content_chars} characters"
            )

        target = self.clamp_target(target_reading_time_seconds)
        cleaned = preprocess_document(text)
        total_words = count_words(cleaned)
        total_time = self.reading_time(total_words)

        if total_time <= target * SINGLE_CHUNK_TOLERANCE:
            logger.info(f"Document reads in {total_time:.0f}s; returning a single chunk")
            return [self._create_single_chunk(cleaned, target)]

        estimated_chunks = math.ceil(total_time / target)
        target_words = total_words / estimated_chunks

        chunks = self._pack_paragraphs(cleaned, target_words, target)
        refined = self._refine(chunks, target)

        logger.info(
            f"Time-based chunking complete: {len(refined)} chunks for {total_words} words "
            f"(target {target:.0f}s each)"
        )
        return refined

    def _pack_paragraphs(self, text: str, target_words: float, target: float) -> List[TimeBasedChunk]:
        chunks: List[TimeBasedChunk] = []
        current: List[str] = []
        current_words = 0

        for paragraph in split_paragraphs(text):
            words = count_words(paragraph)
            would_overflow = current and current_words + words > target_words * OVERFLOW_TOLERANCE
            if would_overflow and current_words >= target_words * BREAK_THRESHOLD:
                chunks.append(self._create_chunk('\n\n'.join(current), len(chunks), target))
                current, current_words = [], 0

            current.append(paragraph)
            current_words += words

        if current:
            chunks.append(self._create_chunk('\n\n'.join(current), len(chunks), target))

        return chunks

    def _refine(self, chunks: List[TimeBasedChunk], target: float) -> List[TimeBasedChunk]:
        """Merge chunks under half the target into the next one when the result stays under 130%."""
        refined = []
        i = 0
        while i < len(chunks):
            chunk = chunks[i]
            following = chunks[i + 1] if i + 1 < len(chunks) else None

            if (
                following is not None
                and chunk.estimated_reading_time < target * MERGE_BELOW
                and chunk.estimated_reading_time + following.estimated_reading_time <= target * MERGE_CEILING
            ):
                refined.append(self._merge_chunks(chunk, following))
                i += 2
            else:
                refined.append(chunk)
                i += 1

        for index, chunk in enumerate(refined):
            chunk.index = index
        return refined

    def _merge_chunks(self, first: TimeBasedChunk, second: TimeBasedChunk) -> TimeBasedChunk:
        title = first.title if first.title == second.title else f"{first.title} & {second.title}"
        return TimeBasedChunk(
            content=f"{first.content}\n\n{second.content}",
            index=first.index,
            title=title,
            topics=merge_unique(first.topics, second.topics),
            key_concepts=merge_unique(first.key_concepts, second.key_concepts),
            learning_objectives=merge_unique(first.learning_objectives, second.learning_objectives),
            educational_value=max(first.educational_value, second.educational_value),
            difficulty_level=first.difficulty_level,
            word_count=first.word_count + second.word_count,
            estimated_reading_time=first.estimated_reading_time + second.estimated_reading_time,
            target_reading_time=first.target_reading_time,
            semantic_boundaries=SemanticBoundaries(
                starts_with_header=first.semantic_boundaries.starts_with_header,
                ends_with_conclusion=second.semantic_boundaries.ends_with_conclusion,
                conceptual_completeness=max(
                    first.semantic_boundaries.conceptual_completeness,
                    second.semantic_boundaries.conceptual_completeness,
                ),
            ),
        )

    def _create_chunk(self, content: str, index: int, target: float) -> TimeBasedChunk:
        metadata = self.metadata_builder.build(content)
        return TimeBasedChunk(
            content=content,
            index=index,
            title=self.generate_chunk_title(content, metadata.topics, index),
            topics=metadata.topics,
            key_concepts=metadata.key_concepts,
            learning_objectives=metadata.learning_objectives,
            educational_value=metadata.educational_value,
            difficulty_level=metadata.difficulty_level,
            word_count=metadata.word_count,
            estimated_reading_time=self.reading_time(metadata.word_count),
            target_reading_time=target,
            semantic_boundaries=metadata.semantic_boundaries,
        )

    def _create_single_chunk(self, content: str, target: float) -> TimeBasedChunk:
        chunk = self._create_chunk(content, 0, target)
        chunk.semantic_boundaries.conceptual_completeness = 10.0
        return chunk

    def generate_chunk_title(self, content: str, topics: List[str], index: int) -> str:
        """Icon plus the leading topic, else a phrase from the first sentence, else 'Section N'."""
        if topics:
            main_topic = topics[0]
            lower = main_topic.lower()
            icon = next((emoji for key, emoji in TOPIC_ICONS.items() if key in lower), DEFAULT_ICON)
            return f"{icon} {main_topic}"

        sentences = [s for s in re.split(r'[.!?]+', content) if s.strip()]
        if sentences:
            words = sentences[0].split()[:6]
            phrase = ' '.join(words).strip()
            if len(phrase) > 10:
                return f"{FALLBACK_ICON} {phrase}{'...' if len(phrase) > 40 else ''}"

        return f"{DEFAULT_ICON} Section {index + 1}"


def divide_into_time_based_chunks(
    text: str,
    target_reading_time_seconds: float = DEFAULT_TARGET_READING_SECONDS,
) -> List[TimeBasedChunk]:
    return TimeBasedChunker().divide_into_time_based_chunks(text, target_reading_time_seconds)

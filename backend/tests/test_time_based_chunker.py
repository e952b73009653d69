"""
Unit tests for the time-based chunker.
"""
import pytest

from core.errors import InputError
from models.chunk_models import SemanticBoundaries, TimeBasedChunk
from services.analysis.segmenter import count_words, preprocess_document
from services.chunking.time_based_chunker import TimeBasedChunker, divide_into_time_based_chunks


class TestTargetClamping:
    """Test reading-time bounds."""

    def test_clamps_low_and_high(self):
        chunker = TimeBasedChunker()
        assert chunker.clamp_target(30) == 120
        assert chunker.clamp_target(5000) == 900
        assert chunker.clamp_target(300) == 300

    def test_reading_time_at_200_wpm(self):
        assert TimeBasedChunker().reading_time(400) == 120


class TestChunking:
    """Test chunk production."""

    def test_short_input_rejected(self):
        with pytest.raises(InputError):
            divide_into_time_based_chunks("Too short to chunk.")

    def test_short_document_is_single_complete_chunk(self, photosynthesis_document):
        chunks = divide_into_time_based_chunks(photosynthesis_document, 180)
        assert len(chunks) == 1
        assert chunks[0].semantic_boundaries.conceptual_completeness == 10
        assert chunks[0].target_reading_time == 180

    def test_long_document_covers_every_word(self, long_document):
        chunks = divide_into_time_based_chunks(long_document, 180)
        assert len(chunks) > 1
        assert sum(c.word_count for c in chunks) == count_words(preprocess_document(long_document))
        assert [c.index for c in chunks] == list(range(len(chunks)))

    def test_chunk_metadata(self, long_document):
        for chunk in divide_into_time_based_chunks(long_document, 60):
            assert chunk.target_reading_time == 120
            assert chunk.estimated_reading_time == pytest.approx(chunk.word_count / 200 * 60)
            assert chunk.title
            assert len(chunk.topics) <= 5
            assert len(chunk.key_concepts) <= 8
            assert 1 <= chunk.educational_value <= 10


class TestPacking:
    """Test the 70% / 130% paragraph packing rule."""

    def _document(self, *word_counts):
        return "\n\n".join(" ".join(["growth"] * (n - 1)) + " ends." for n in word_counts)

    def test_chunks_fill_up_to_the_overflow_limit(self):
        # 1500 words at 180s: three chunks of about 500 words, closed only past 650
        chunks = divide_into_time_based_chunks(self._document(*[150] * 10), 180)
        assert [c.word_count for c in chunks] == [600, 600, 300]

    def test_undersized_chunk_keeps_accumulating_past_overflow(self):
        # 100 words is under 70% of the ~467 word target, so the 700 word paragraph joins it
        chunks = divide_into_time_based_chunks(self._document(100, 700, 300, 300), 180)
        assert [c.word_count for c in chunks] == [800, 600]
        assert [c.index for c in chunks] == [0, 1]


class TestRefinement:
    """Test merging of chunks far under target."""

    def _chunk(self, seconds, title):
        words = int(seconds / 60 * 200)
        return TimeBasedChunk(
            content=" ".join(["beta"] * words),
            index=0,
            title=title,
            word_count=words,
            estimated_reading_time=seconds,
            target_reading_time=180,
            semantic_boundaries=SemanticBoundaries(),
        )

    def test_short_chunk_merges_forward(self):
        chunker = TimeBasedChunker()
        refined = chunker._refine([self._chunk(30, "A"), self._chunk(100, "B"), self._chunk(200, "C")], 180)
        assert [c.title for c in refined] == ["A & B", "C"]
        assert refined[0].estimated_reading_time == 130
        assert [c.index for c in refined] == [0, 1]

    def test_merge_respects_ceiling(self):
        chunker = TimeBasedChunker()
        refined = chunker._refine([self._chunk(60, "A"), self._chunk(200, "B")], 180)
        assert len(refined) == 2


class TestTitles:
    """Test chunk title generation."""

    def test_icon_for_known_topic(self):
        title = TimeBasedChunker().generate_chunk_title("text", ["Introduction to Cells"], 0)
        assert title == "🎯 Introduction to Cells"

    def test_default_icon(self):
        assert TimeBasedChunker().generate_chunk_title("text", ["Mitosis"], 0) == "📚 Mitosis"

    def test_first_sentence_fallback(self):
        title = TimeBasedChunker().generate_chunk_title("cells grow and divide over time. more", [], 0)
        assert title == "📄 cells grow and divide over time"

    def test_section_number_fallback(self):
        assert TimeBasedChunker().generate_chunk_title("ok.", [], 2) == "📚 Section 3"

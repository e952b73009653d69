"""
Unit tests for the semantic chunker.
"""
import pytest

from conftest import make_paragraph
from core.errors import InputError
from models.chunk_models import SemanticBoundaries, SemanticChunk
from services.analysis.segmenter import preprocess_document, split_paragraphs
from services.chunking.metadata import (
    SEMANTIC_PROFILE,
    TIME_BASED_PROFILE,
    ChunkMetadataBuilder,
    ends_with_conclusion,
    starts_with_header,
)
from services.chunking.semantic_chunker import (
    SemanticChunker,
    _SentenceUnit,
    divide_into_semantic_chunks,
)


def _exactly_100_chars() -> str:
    text = ("Mitochondria produce energy for the cell. " * 5)[:100].rstrip()
    return text + "y" * (100 - len(text))


class TestInputBoundary:
    """Test the minimum input length."""

    def test_99_characters_rejected(self):
        text = _exactly_100_chars()[:99]
        with pytest.raises(InputError):
            divide_into_semantic_chunks(text)

    def test_100_characters_accepted(self):
        text = _exactly_100_chars()
        assert len(text) == 100
        chunks = divide_into_semantic_chunks(text)
        assert len(chunks) >= 1

    def test_whitespace_padding_does_not_count(self):
        with pytest.raises(InputError):
            divide_into_semantic_chunks("   " + "short text " * 5 + "   ")


class TestStructureDetection:
    """Test header detection."""

    def test_markdown_and_caps_headers(self):
        chunker = SemanticChunker()
        text = "# Title\n\nSome intro text.\n\nKEY IDEAS\n\nMore text here.\n\n1. First Step Explained\n\nBody."
        structure = chunker.analyze_document_structure(text)
        assert [h.kind for h in structure.headers] == ["markdown", "caps", "numbered"]
        assert structure.has_markdown_headers is True
        assert structure.has_numbered_sections is True

    def test_plain_paragraphs_have_no_headers(self, grouped_document):
        structure = SemanticChunker().analyze_document_structure(grouped_document)
        assert structure.headers == []
        assert len(structure.paragraphs) == 11

    def test_title_case_headers_drive_sectioning(self):
        chunker = SemanticChunker()
        text = (
            f"Cell Structure\n\n{make_paragraph('Genetics', 9)}\n\n"
            f"Cell Division:\n\n{make_paragraph('Botany', 9)}"
        )
        structure = chunker.analyze_document_structure(text)
        assert [(h.kind, h.text, h.level) for h in structure.headers] == [
            ("title", "Cell Structure", 2),
            ("title", "Cell Division", 2),
        ]

        sections = chunker.extract_sections(text, structure)
        assert [s.title for s in sections] == ["Cell Structure", "Cell Division"]
        assert all(s.has_structural_boundary for s in sections)

    def test_title_case_header_length_limit(self):
        line = "Photosynthesis Respiration Fermentation Transpiration Germination"
        assert len(line) >= 60
        assert SemanticChunker().analyze_document_structure(line).headers == []

    @pytest.mark.parametrize("line, is_header", [
        ("ABCD", False),
        ("ABCDEF", True),
        ("X" * 79, True),
        ("X" * 90, False),
        ("CELLS DIVIDE.", False),
    ])
    def test_caps_header_length_bounds(self, line, is_header):
        headers = SemanticChunker().analyze_document_structure(line).headers
        assert bool(headers) is is_header


class TestTopicGrouping:
    """Test when semantic paragraph grouping starts a new section."""

    def test_forced_break_above_max(self):
        chunker = SemanticChunker()
        assert chunker._should_break(140, 400, 1.0, "Plain text.", False, False) is True

    def test_low_similarity_breaks_at_70_percent_of_target(self):
        chunker = SemanticChunker()
        assert chunker._should_break(210, 50, 0.1, "Plain text.", False, False) is True
        assert chunker._should_break(200, 50, 0.1, "Plain text.", False, False) is False
        assert chunker._should_break(250, 50, 0.5, "Plain text.", False, False) is False

    def test_transition_breaks_at_80_percent_of_target(self):
        chunker = SemanticChunker()
        paragraph = "However, cells differ between tissues."
        assert chunker._should_break(240, 50, 1.0, paragraph, False, False) is True
        assert chunker._should_break(230, 50, 1.0, paragraph, False, False) is False

    def test_definition_run_breaks_at_target(self):
        chunker = SemanticChunker()
        assert chunker._should_break(300, 50, 1.0, "Plain text.", True, False) is True
        assert chunker._should_break(290, 50, 1.0, "Plain text.", True, False) is False
        assert chunker._should_break(300, 50, 1.0, "Plain text.", True, True) is False

    def test_section_under_min_is_never_broken_early(self):
        chunker = SemanticChunker()
        assert chunker._should_break(140, 50, 0.0, "However, cells differ.", True, False) is False

    def test_small_sections_stay_together(self):
        chunker = SemanticChunker()
        text = f"{make_paragraph('Genetics', 10)}\n\nHowever, {make_paragraph('Botany', 10)}"
        sections = chunker.extract_sections(text, chunker.analyze_document_structure(text))
        assert len(sections) == 1

    def test_grouping_splits_before_exceeding_max(self):
        chunker = SemanticChunker()
        text = f"{make_paragraph('Genetics', 30)}\n\n{make_paragraph('Genetics', 25)}"
        sections = chunker.extract_sections(text, chunker.analyze_document_structure(text))
        assert [len(s.content.split()) for s in sections] == [300, 250]


class TestSemanticBreak:
    """Test break placement inside oversized sections."""

    def _units(self, transition_at=(), paragraph_at=()):
        units = []
        for i in range(10):
            opener = "However the" if i in transition_at else "Then the"
            units.append(_SentenceUnit(
                f"{opener} cells divide again and again near here.", 10, i in paragraph_at,
            ))
        return units

    def test_transition_within_two_sentences_is_preferred(self):
        units = self._units(transition_at={7}, paragraph_at={4})
        assert SemanticChunker()._find_semantic_break(units, 0, 5) == 7

    def test_transition_outside_window_is_ignored(self):
        units = self._units(transition_at={8})
        assert SemanticChunker()._find_semantic_break(units, 0, 5) == 5

    def test_paragraph_start_used_without_transition(self):
        units = self._units(paragraph_at={4})
        assert SemanticChunker()._find_semantic_break(units, 0, 5) == 4


class TestCoverage:
    """Every paragraph lands in exactly one initial chunk."""

    def test_grouped_paragraphs_are_preserved_in_order(self, grouped_document):
        chunks = SemanticChunker().create_initial_chunks(grouped_document)
        rebuilt = [p for chunk in chunks for p in split_paragraphs(chunk.content)]
        assert rebuilt == split_paragraphs(preprocess_document(grouped_document))

    def test_header_sections_keep_preamble(self, headed_document):
        chunks = SemanticChunker().create_initial_chunks(headed_document)
        rebuilt = [p for chunk in chunks for p in split_paragraphs(chunk.content)]
        assert rebuilt == split_paragraphs(preprocess_document(headed_document))
        assert chunks[0].content.startswith("Overview of the unit")
        assert chunks[1].title == "Introduction"

    def test_oversized_paragraph_keeps_every_word(self, long_document):
        chunks = SemanticChunker().create_initial_chunks(long_document)
        words = " ".join(chunk.content for chunk in chunks).split()
        assert words == preprocess_document(long_document).split()


class TestWordBounds:
    """Test the size invariants."""

    def test_initial_chunks_never_exceed_max(self, long_document):
        chunks = SemanticChunker().create_initial_chunks(long_document)
        assert max(c.word_count for c in chunks) <= 500
        assert any("(Part" in c.title for c in chunks)

    @pytest.mark.parametrize("fixture_name", ["long_document", "grouped_document", "headed_document"])
    def test_refined_chunks_within_bounds(self, fixture_name, request):
        chunks = divide_into_semantic_chunks(request.getfixturevalue(fixture_name))
        for chunk in chunks:
            assert chunk.word_count <= 500
            assert chunk.word_count >= 150 or len(chunks) == 1

    def test_single_long_sentence_is_cut(self):
        chunker = SemanticChunker()
        text = " ".join(["lorem"] * 1200) + "."
        chunks = chunker.create_initial_chunks(text)
        assert all(c.word_count <= 500 for c in chunks)
        assert sum(c.word_count for c in chunks) == 1200

    def test_indices_are_dense(self, long_document):
        chunks = divide_into_semantic_chunks(long_document)
        assert [c.index for c in chunks] == list(range(len(chunks)))

    def test_invalid_sizes_rejected(self):
        with pytest.raises(ValueError):
            SemanticChunker(target_chunk_size=100, min_chunk_size=200, max_chunk_size=500)


class TestRefinement:
    """Test merging and filtering of initial chunks."""

    def _chunk(self, words, title, value=6.0):
        content = " ".join(["alpha"] * words)
        return SemanticChunk(
            content=content,
            index=0,
            title=title,
            educational_value=value,
            word_count=words,
            semantic_boundaries=SemanticBoundaries(),
        )

    def test_small_chunk_merges_forward(self):
        chunker = SemanticChunker()
        refined = chunker.refine_chunks([self._chunk(50, "A"), self._chunk(200, "B")])
        assert len(refined) == 1
        assert refined[0].word_count == 250
        assert refined[0].title == "A & B"

    def test_small_trailing_chunk_merges_backward(self):
        chunker = SemanticChunker()
        refined = chunker.refine_chunks([self._chunk(300, "A"), self._chunk(40, "B")])
        assert [c.word_count for c in refined] == [340]

    def test_part_titles_collapse(self):
        chunker = SemanticChunker()
        refined = chunker.refine_chunks([self._chunk(100, "Cells (Part 1)"), self._chunk(200, "Cells (Part 2)")])
        assert refined[0].title == "Cells"

    def test_sole_small_chunk_survives(self):
        refined = SemanticChunker().refine_chunks([self._chunk(40, "Only")])
        assert len(refined) == 1

    def test_low_value_chunks_dropped_or_flagged(self):
        chunker = SemanticChunker()
        refined = chunker.refine_chunks([
            self._chunk(200, "Keep"),
            self._chunk(200, "Drop", value=2.0),
            self._chunk(200, "Flag", value=3.0),
        ])
        assert [c.title for c in refined] == ["Keep", "Flag"]
        assert refined[1].low_value is True
        assert refined[0].low_value is False

    def test_low_value_sole_chunk_is_kept(self):
        refined = SemanticChunker().refine_chunks([self._chunk(200, "Only", value=1.0)])
        assert len(refined) == 1

    def test_backward_merge_keeps_low_value_flag(self):
        chunker = SemanticChunker()
        refined = chunker.refine_chunks([self._chunk(300, "A", value=3.5), self._chunk(40, "B", value=3.2)])
        assert [c.word_count for c in refined] == [340]
        assert refined[0].low_value is True

    def test_backward_merge_clears_flag_when_value_rises(self):
        chunker = SemanticChunker()
        refined = chunker.refine_chunks([self._chunk(300, "A", value=3.5), self._chunk(40, "B", value=6.0)])
        assert refined[0].low_value is False


class TestChunkMetadata:
    """Test the shared metadata builder."""

    def test_boundary_flags(self):
        assert starts_with_header("# Cells\nBody") is True
        assert starts_with_header("CELL DIVISION\nBody") is True
        assert starts_with_header("Cell Division:\nBody") is True
        assert starts_with_header("cells are small.") is False
        assert ends_with_conclusion("Cells divide. In summary, cells divide often.") is True
        assert ends_with_conclusion("Cells divide. They grow.") is False

    def test_educational_value_range(self, long_document):
        for profile in (SEMANTIC_PROFILE, TIME_BASED_PROFILE):
            metadata = ChunkMetadataBuilder(profile).build(long_document[:3000])
            assert 1 <= metadata.educational_value <= 10
            assert 0 <= metadata.semantic_boundaries.conceptual_completeness <= 10

    def test_profiles_limit_topics_and_concepts(self, long_document):
        semantic = ChunkMetadataBuilder(SEMANTIC_PROFILE).build(long_document)
        timed = ChunkMetadataBuilder(TIME_BASED_PROFILE).build(long_document)
        assert len(semantic.topics) <= 8 and len(semantic.key_concepts) <= 10
        assert len(timed.topics) <= 5 and len(timed.key_concepts) <= 8

    def test_educational_value_bonuses(self):
        builder = ChunkMetadataBuilder(SEMANTIC_PROFILE)
        text = "This is an important concept because it explains the process, for example by contrast."
        # 5 base + 1 richness + 1 topics + 2.5 indicators + 1 definition cues, clamped
        score = builder.assess_educational_value(text, ["a", "b", "c"], ["x", "y"])
        assert score == 10.0

"""
Unit tests for quality, educational value, readability and difficulty scoring.
"""
from models.analysis_models import ConceptInfo, ConceptRelationship, TopicInfo
from services.analysis.assessor import (
    assess_content_quality,
    assess_difficulty,
    assess_educational_value,
    assess_topic_coherence,
    calculate_readability_score,
)


def _concept(term, importance=5.0, definitions=None, main=False, contexts=1):
    return ConceptInfo(
        term=term,
        importance=importance,
        definitions=definitions or [],
        is_main_concept=main,
        context=[f"{term} context {i}." for i in range(contexts)],
    )


class TestContentQuality:
    """Test the additive quality score."""

    def test_rich_structured_content_scores_high(self):
        content = "## Heading\n\n" + "word " * 200
        concepts = [_concept(f"Term{i}", main=True, definitions=["d"]) for i in range(6)]
        topics = [TopicInfo(topic="T", relevance=5, coherence_score=8)]
        assert assess_content_quality(content, concepts, topics) == 10

    def test_empty_inputs_score_zero(self):
        assert assess_content_quality("", [], []) == 0


class TestEducationalValue:
    """Test the educational value score."""

    def test_counts_important_concepts_objectives_and_relationships(self):
        concepts = [_concept(f"C{i}", importance=8, definitions=["d"], contexts=2) for i in range(4)]
        relationships = [ConceptRelationship("A", "B", "defines", 0.9) for _ in range(3)]
        objectives = ["o1", "o2", "o3", "o4"]
        assert assess_educational_value(concepts, objectives, relationships) == 10

    def test_nothing_scores_zero(self):
        assert assess_educational_value([], [], []) == 0


class TestReadability:
    """Test the rescaled Flesch score."""

    def test_simple_text_reads_easily(self):
        text = "The cat sat on the mat. The dog ran to the park. We all had fun today."
        assert calculate_readability_score(text) >= 8

    def test_dense_text_reads_harder(self):
        text = (
            "Electrophysiological characterization of neurotransmitter-mediated "
            "intercellular communication necessitates sophisticated instrumentation "
            "and considerable methodological expertise."
        )
        simple = "The cat sat on the mat. The dog ran to the park."
        assert calculate_readability_score(text) < calculate_readability_score(simple)

    def test_no_sentences_defaults_to_five(self):
        assert calculate_readability_score("") == 5.0

    def test_score_is_clamped(self):
        assert 1 <= calculate_readability_score("A b c d e f g h i. " * 20) <= 10


class TestDifficulty:
    """Test difficulty banding."""

    def test_easy_text_is_basic(self):
        assert assess_difficulty("The cat sat on the mat.", [], 9.0) == "basic"

    def test_hard_text_is_advanced(self):
        concepts = [_concept(f"Term{i}", importance=9, definitions=["d"]) for i in range(10)]
        content = "A theory of everything."
        assert assess_difficulty(content, concepts, 2.0) == "advanced"

    def test_middle_band(self):
        concepts = [_concept(f"Term{i}") for i in range(5)]
        assert assess_difficulty("Plain words only.", concepts, 5.0) == "intermediate"


class TestTopicCoherence:
    def test_mean_of_topics(self):
        topics = [TopicInfo("A", 1, coherence_score=4), TopicInfo("B", 1, coherence_score=8)]
        assert assess_topic_coherence(topics) == 6

    def test_no_topics(self):
        assert assess_topic_coherence([]) == 0.0

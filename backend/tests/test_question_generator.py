"""
Unit tests for study question generation.
"""
import json
from unittest.mock import Mock

import pytest

from conftest import PHOTOSYNTHESIS_DOCUMENT
from core.errors import GenerationError, InputError
from models.analysis_models import ConceptInfo, ContentAnalysis
from models.question_models import Question
from services.questions.question_generator import (
    QuestionGenerator,
    concept_questions,
    content_suggestions,
    filter_question_types,
    fuzzy_match,
    optimal_question_count,
    parse_generated_questions,
    partial_match,
    select_diverse_questions,
    template_questions,
    validate_question_quality,
)

PHOTOSYNTHESIS_CONTEXT = (
    "Photosynthesis is the process by which green plants convert light energy into chemical energy."
)
CHLOROPHYLL_CONTEXT = "The leaves contain chlorophyll, a green pigment that absorbs light."

GENERATED_RESPONSE = "Here are your questions:\n" + json.dumps([
    {
        "question": "Which pigment in leaves absorbs light energy?",
        "type": "multiple_choice",
        "options": ["Chlorophyll", "Glucose", "Oxygen", "Water"],
        "correctAnswer": "Chlorophyll",
        "difficulty": "easy",
        "explanation": "Chlorophyll is the green pigment that absorbs light.",
        "topic": "Chlorophyll",
    },
]) + "\nGood luck!"


def concept(term, importance=8.0, context=None):
    return ConceptInfo(term=term, importance=importance, context=context or [], is_main_concept=True)


@pytest.fixture
def analysis():
    return ContentAnalysis(
        key_concepts=[
            concept("Photosynthesis", 9.0, [PHOTOSYNTHESIS_CONTEXT]),
            concept("Chlorophyll", 7.0, [CHLOROPHYLL_CONTEXT]),
            concept("Glucose", 6.0),
        ],
        educational_value=7.0,
    )


def question(id, topic, **fields):
    return Question(id=id, question=f"Question about {topic}?", type="short_answer",
                    correct_answer=topic, concepts_tested=[topic], **fields)


class TestCounting:
    """Test question count and type selection."""

    def test_optimal_question_count(self):
        assert optimal_question_count(8, 3) == 4
        assert optimal_question_count(8, 0) == 2
        assert optimal_question_count(3, 10) == 3

    def test_filter_question_types(self):
        assert len(filter_question_types(None)) == 4
        assert filter_question_types(["true_false", "essay"]) == ["true_false"]
        assert filter_question_types(["essay"]) == ["multiple_choice", "true_false"]


class TestMatching:
    def test_fuzzy_match(self):
        assert fuzzy_match("chlorophyl", "chlorophyll")
        assert not fuzzy_match("ab", "abc")
        assert not fuzzy_match("xyz", "photosynthesis")

    def test_partial_match(self):
        content = "green plants convert light energy into sugar"
        assert partial_match("green plants convert", content)
        assert not partial_match("purple dragons fly", content)
        assert not partial_match("ab", content)


class TestValidation:
    """Test question scoring."""

    def test_good_question_scores_high(self, analysis):
        q = Question(
            id="q1",
            question="What pigment absorbs light in leaves?",
            type="short_answer",
            correct_answer="Chlorophyll",
            explanation="Chlorophyll is the green pigment that absorbs light.",
        )
        validation = validate_question_quality(q, analysis, PHOTOSYNTHESIS_DOCUMENT)
        assert validation.is_valid
        assert validation.educational_value == 9
        assert validation.issues == []

    def test_trivial_answer_is_rejected(self, analysis):
        q = Question(id="q2", question="Fill in the blank: _____ leaves contain chlorophyll.",
                     type="fill_in_blank", correct_answer="The")
        validation = validate_question_quality(q, analysis, PHOTOSYNTHESIS_DOCUMENT)
        assert not validation.is_valid
        assert "Answer is a trivial word" in validation.issues

    def test_multiple_choice_needs_three_options(self, analysis):
        q = Question(id="q3", question="Which pigment absorbs light?", type="multiple_choice",
                     correct_answer="Chlorophyll", options=["Chlorophyll", "Glucose"])
        validation = validate_question_quality(q, analysis, PHOTOSYNTHESIS_DOCUMENT)
        assert "Too few options" in validation.issues
        assert validation.educational_value == 7

    def test_higher_bloom_levels_earn_bonus(self, analysis):
        q = Question(id="q4", question="How would you apply photosynthesis to farming?",
                     type="short_answer", correct_answer="Photosynthesis", bloom_level="apply")
        assert validate_question_quality(q, analysis, PHOTOSYNTHESIS_DOCUMENT).educational_value == 9


class TestHeuristicQuestions:
    """Test template and concept questions."""

    def test_template_questions(self, analysis):
        questions = template_questions(analysis, PHOTOSYNTHESIS_DOCUMENT)
        assert [q.id for q in questions] == ["template_def_0", "template_def_1", "template_tf_0", "template_tf_1"]
        assert questions[0].correct_answer in questions[0].options
        assert questions[2].correct_answer == "True"
        assert questions[0].source_chunk == PHOTOSYNTHESIS_CONTEXT

    def test_concept_questions_blank_the_term(self, analysis):
        questions = concept_questions(analysis, PHOTOSYNTHESIS_DOCUMENT)
        assert len(questions) == 3
        assert questions[0].question.startswith("Fill in the blank: _____ is the process")
        assert "chlorophyll" not in questions[1].question.lower()
        assert questions[2].correct_answer == "Glucose"
        assert "key concept" in questions[2].question


class TestSelection:
    def test_new_concepts_are_preferred(self):
        questions = [question("a", "A"), question("b1", "B"), question("b2", "B"), question("c", "C")]
        selected = select_diverse_questions(questions, 3)
        assert [q.id for q in selected] == ["a", "b1", "c"]

    def test_remaining_slots_fill_by_rank(self):
        questions = [question("a1", "A"), question("a2", "A"), question("a3", "A"), question("b", "B")]
        selected = select_diverse_questions(questions, 4)
        assert len(selected) == 4

    def test_first_two_questions_taken_regardless_of_concept(self):
        questions = [question("a1", "A"), question("a2", "A"), question("a3", "A")]
        assert [q.id for q in select_diverse_questions(questions, 2)] == ["a1", "a2"]


class TestParsing:
    """Test reading questions out of generator output."""

    def test_array_is_extracted_from_prose(self):
        questions = parse_generated_questions(GENERATED_RESPONSE, PHOTOSYNTHESIS_DOCUMENT)
        assert len(questions) == 1
        assert questions[0].id == "generated_0"
        assert questions[0].correct_answer == "Chlorophyll"
        assert questions[0].options == ["Chlorophyll", "Glucose", "Oxygen", "Water"]

    def test_unknown_type_becomes_short_answer(self):
        response = json.dumps([{"question": "Why do leaves look green?", "type": "essay",
                                "correct_answer": "Chlorophyll", "options": ["x"]}])
        questions = parse_generated_questions(response, PHOTOSYNTHESIS_DOCUMENT)
        assert questions[0].type == "short_answer"
        assert questions[0].options is None
        assert questions[0].source_chunk.startswith("Photosynthesis takes place mainly in the leaves")
        assert questions[0].source_chunk.endswith("...")

    def test_malformed_json_gives_no_questions(self):
        assert parse_generated_questions('[{"question": "broken", }]', PHOTOSYNTHESIS_DOCUMENT) == []
        assert parse_generated_questions("no questions here", PHOTOSYNTHESIS_DOCUMENT) == []


class TestQuestionGenerator:
    """Test the full generation flow and its fallbacks."""

    def test_generated_questions_rank_first(self, analysis):
        generate = Mock(return_value=GENERATED_RESPONSE)
        result = QuestionGenerator(generate).generate_questions(PHOTOSYNTHESIS_DOCUMENT, analysis=analysis)

        generate.assert_called_once()
        prompt = generate.call_args[0][0]
        assert "Photosynthesis, Chlorophyll, Glucose" in prompt
        assert result.generation_method == "standard"
        assert [q.id for q in result.questions] == ["generated_0", "template_def_0", "concept_2", "template_def_1"]
        assert result.metadata.total_generated == 8
        assert result.metadata.quality_filtered == 4
        assert "Glucose" in result.metadata.concepts_covered

    def test_question_types_are_respected(self, analysis):
        result = QuestionGenerator().generate_questions(
            PHOTOSYNTHESIS_DOCUMENT, question_types=["true_false"], analysis=analysis
        )
        assert len(result.questions) == 2
        assert all(q.type == "true_false" for q in result.questions)

    def test_generation_error_falls_back_to_heuristics(self, analysis):
        generate = Mock(side_effect=GenerationError("quota", status_code=429))
        result = QuestionGenerator(generate).generate_questions(PHOTOSYNTHESIS_DOCUMENT, analysis=analysis)
        assert result.generation_method == "standard"
        assert result.questions
        assert not any(q.id.startswith("generated_") for q in result.questions)

    def test_simple_fallback_without_analyzed_concepts(self):
        content = (
            "Mitochondria produce energy for the cell through respiration. "
            "Ribosomes build proteins from amino acids in the cytoplasm. "
            "Membranes control what enters and leaves each compartment."
        )
        result = QuestionGenerator().generate_questions(content, analysis=ContentAnalysis())
        assert result.generation_method == "simple_fallback"
        assert [q.type for q in result.questions] == ["true_false", "multiple_choice"]
        assert result.questions[0].topic == "Mitochondria"
        assert result.questions[1].topic == "Ribosomes"

    def test_last_resort_for_content_without_concepts(self):
        content = (
            "there is a lot going on here and not much of it is worth learning. "
            "it rambles from one thing to the next without naming anything at all."
        )
        result = QuestionGenerator().generate_questions(content, analysis=ContentAnalysis())
        assert result.generation_method == "last_resort"
        assert len(result.questions) == 2
        assert all(q.type == "short_answer" for q in result.questions)

    def test_short_content_is_rejected(self):
        with pytest.raises(InputError):
            QuestionGenerator().generate_questions("Too short.")

    def test_suggestions_for_weak_content(self):
        suggestions = content_suggestions(ContentAnalysis(), "last_resort")
        assert len(suggestions) == 3
        assert content_suggestions(
            ContentAnalysis(key_concepts=[concept("A"), concept("B")], educational_value=8), "standard"
        ) == []

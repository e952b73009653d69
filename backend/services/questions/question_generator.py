"""
Study question generation driven by content analysis.

Candidate questions come from three strategies:
1. Questions written by the text generator, when one is configured
2. Template questions about the main concepts
3. Fill-in-the-blank questions built from concept context sentences

Candidates are rescored, filtered and picked for concept diversity. When
none survive, simple analysis-based questions are used instead, and when
the content has no usable concepts at all, generic comprehension questions.
"""
import json
import logging
import math
import re
from typing import Dict, List, Optional, Sequence

from core.config import LLM_MAX_TOKENS, MIN_CONTENT_CHARS
from core.errors import GenerationError, InputError
from core.prompt_manager import PromptManager, prompt_manager
from models.analysis_models import ConceptInfo, ContentAnalysis
from models.question_models import (
    QUESTION_TYPES,
    Question,
    QuestionSet,
    QuestionSetMetadata,
    QuestionValidation,
)
from services.analysis.content_analyzer import analyze_content_for_learning
from services.summarization.length_adjuster import TextGenerator

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 15000
MAX_GENERATED_QUESTIONS = 6
MEANINGFUL_IMPORTANCE = 4
MIN_QUESTION_VALUE = 5
MAX_QUESTION_ISSUES = 2
DEFAULT_TYPES = ["multiple_choice", "true_false"]

TRIVIAL_ANSWERS = {
    'the', 'and', 'or', 'a', 'an', 'is', 'are', 'was', 'were',
    'to', 'in', 'on', 'at', 'for', 'with', 'by',
}
_SIMPLE_CONCEPT_STOPWORDS = {
    'The', 'This', 'That', 'These', 'Those', 'With', 'From', 'They', 'Were', 'Been', 'Have', 'Will',
}
_JSON_ARRAY = re.compile(r'\[\s*\{.*\}\s*\]', re.DOTALL)


# ----------------------------------------------------------------------
# Counting and filtering helpers
# ----------------------------------------------------------------------

def meaningful_concepts(analysis: ContentAnalysis) -> List[ConceptInfo]:
    """Main concepts important enough to ask about."""
    return [c for c in analysis.main_concepts if c.importance > MEANINGFUL_IMPORTANCE]


def optimal_question_count(requested: int, meaningful: int) -> int:
    """About 1.5 questions per meaningful concept, at least two, never more than requested."""
    return min(requested, max(2, math.floor(meaningful * 1.5)))


def filter_question_types(requested: Optional[Sequence[str]]) -> List[str]:
    if requested is None:
        return list(QUESTION_TYPES)
    valid = [t for t in requested if t in QUESTION_TYPES]
    return valid or list(DEFAULT_TYPES)


def fuzzy_match(first: str, second: str) -> bool:
    """True when most characters of the shorter string occur in the longer one."""
    if not first or not second:
        return False
    longer, shorter = (first, second) if len(first) > len(second) else (second, first)
    if len(shorter) < 3:
        return False
    matches = sum(1 for ch in shorter if ch in longer)
    return matches / len(shorter) > 0.6


def partial_match(answer: str, content: str) -> bool:
    """True when more than half of the answer's longer words appear in the content."""
    if not answer or len(answer) < 3:
        return False
    words = [w for w in answer.split() if len(w) > 2]
    if not words:
        return False
    found = [w for w in words if w in content]
    return len(found) / len(words) > 0.5


def conceptual_match(answer: str, concepts: Sequence[str]) -> bool:
    return any(
        concept in answer or answer in concept or fuzzy_match(answer, concept)
        for concept in concepts
    )


def extract_relevant_context(content: str, question: str, answer: str) -> str:
    """First sentence mentioning the answer or a longer question word, truncated to 150 chars."""
    sentences = re.findall(r'[^.!?]+[.!?]+', content)
    lower_answer = answer.lower()
    question_words = [w for w in question.lower().split() if len(w) > 3]

    for sentence in sentences:
        lower = sentence.lower()
        if (lower_answer and lower_answer in lower) or any(w in lower for w in question_words):
            return sentence.strip()[:150] + '...'

    return content[:150] + '...'


# ----------------------------------------------------------------------
# Quality checks
# ----------------------------------------------------------------------

def validate_question_quality(
    question: Question,
    analysis: ContentAnalysis,
    content: str,
) -> QuestionValidation:
    """
    Score a question from 8 down (or up) to a 0-10 educational value.

    Trivial answers are the heaviest penalty. A question is valid at a
    value of 5 or more with no more than two issues.
    """
    issues = []
    value = 8.0
    answer = (question.correct_answer or '').strip()
    lower_answer = answer.lower()

    if not question.question or len(question.question) < 10:
        issues.append('Question text too short')
        value -= 3

    if lower_answer in TRIVIAL_ANSWERS:
        issues.append('Answer is a trivial word')
        value -= 6

    if len(answer) < 2:
        issues.append('Answer too short')
        value -= 2

    concepts = [c.term.lower() for c in analysis.key_concepts]
    lower_question = question.question.lower()
    relates_to_concepts = any(
        concept in lower_question
        or (lower_answer and (concept in lower_answer or lower_answer in concept))
        or fuzzy_match(lower_answer, concept)
        for concept in concepts
    )
    if not relates_to_concepts:
        issues.append('Question does not relate to identified concepts')
        value -= 2

    lower_content = content.lower()
    content_related = (
        len(lower_answer) <= 3
        or lower_answer in lower_content
        or partial_match(lower_answer, lower_content)
        or conceptual_match(lower_answer, concepts)
        or question.type == 'true_false'
        or answer in ('True', 'False')
    )
    if not content_related:
        issues.append('Answer not clearly related to content')
        value -= 1

    if question.type == 'multiple_choice' and question.options is not None and len(question.options) < 3:
        issues.append('Too few options')
        value -= 1

    if len(question.explanation) > 20:
        value += 1
    if question.bloom_level in ('apply', 'analyze', 'evaluate'):
        value += 1

    value = max(0.0, min(10.0, value))
    return QuestionValidation(
        is_valid=value >= MIN_QUESTION_VALUE and len(issues) <= MAX_QUESTION_ISSUES,
        educational_value=value,
        issues=issues,
    )


def validate_and_rank_questions(
    questions: List[Question],
    analysis: ContentAnalysis,
    content: str,
) -> List[Question]:
    """Keep valid questions, rescored, best first."""
    validated = []
    for question in questions:
        validation = validate_question_quality(question, analysis, content)
        if validation.is_valid:
            question.educational_value = validation.educational_value
            validated.append(question)
        else:
            logger.debug(f"Question filtered out ({', '.join(validation.issues)}): {question.question[:50]}")

    return sorted(validated, key=lambda q: q.educational_value, reverse=True)


def select_diverse_questions(questions: List[Question], max_questions: int) -> List[Question]:
    """Prefer questions that test a concept not yet covered, then fill by rank."""
    if len(questions) <= max_questions:
        return list(questions)

    selected: List[Question] = []
    used_concepts = set()

    for question in questions:
        if len(selected) >= max_questions:
            break
        tested = question.concepts_tested or [question.topic]
        if any(c not in used_concepts for c in tested) or len(used_concepts) < 2:
            selected.append(question)
            used_concepts.update(tested)

    for question in questions:
        if len(selected) >= max_questions:
            break
        if question not in selected:
            selected.append(question)

    return selected[:max_questions]


def build_metadata(selected: List[Question], total_generated: int) -> QuestionSetMetadata:
    average = sum(q.educational_value for q in selected) / len(selected) if selected else 0.0

    covered: List[str] = []
    for question in selected:
        for concept in question.concepts_tested or [question.topic]:
            if concept and concept not in covered:
                covered.append(concept)

    distribution: Dict[str, int] = {}
    for question in selected:
        distribution[question.difficulty] = distribution.get(question.difficulty, 0) + 1

    return QuestionSetMetadata(
        total_generated=total_generated,
        quality_filtered=len(selected),
        average_quality=round(average, 1),
        concepts_covered=covered,
        difficulty_distribution=distribution,
    )


# ----------------------------------------------------------------------
# Heuristic question builders
# ----------------------------------------------------------------------

def template_questions(analysis: ContentAnalysis, content: str) -> List[Question]:
    """Significance (multiple choice) and true/false questions for the top main concepts."""
    main = analysis.main_concepts[:4]
    questions = []

    for i, concept in enumerate(main[:2]):
        correct = f"{concept.term} is an important concept discussed in the content"
        questions.append(Question(
            id=f"template_def_{i}",
            question=f"What is the significance of {concept.term} in this context?",
            type='multiple_choice',
            options=[
                correct,
                f"{concept.term} is barely mentioned",
                f"{concept.term} is not relevant to the topic",
                f"{concept.term} is used as a counterexample",
            ],
            correct_answer=correct,
            explanation=f"{concept.term} is identified as a key concept with high importance in the content.",
            topic=concept.term,
            source_chunk=_concept_source(concept, content),
            educational_value=7,
            concepts_tested=[concept.term],
        ))

    for i, concept in enumerate(main[:2]):
        questions.append(Question(
            id=f"template_tf_{i}",
            question=f"True or False: {concept.term} is essential for understanding the main topic discussed.",
            type='true_false',
            correct_answer='True',
            difficulty='easy',
            explanation=f"{concept.term} is a main concept that helps explain the core ideas.",
            topic=concept.term,
            source_chunk=_concept_source(concept, content),
            educational_value=7,
            concepts_tested=[concept.term],
            cognitive_load='low',
        ))

    return questions


def concept_questions(analysis: ContentAnalysis, content: str) -> List[Question]:
    """One fill-in-the-blank question per main concept, blanking the term in its context sentence."""
    questions = []
    for i, concept in enumerate(analysis.main_concepts[:3]):
        prompt = "_____ is a key concept that helps explain the main ideas in this content."
        for sentence in concept.context:
            blanked = re.sub(re.escape(concept.term), '_____', sentence, flags=re.IGNORECASE)
            if blanked != sentence:
                prompt = blanked.strip()
                break

        questions.append(Question(
            id=f"concept_{i}",
            question=f"Fill in the blank: {prompt}",
            type='fill_in_blank',
            correct_answer=concept.term,
            explanation=f"{concept.term} is identified as a key concept in the content analysis.",
            topic=concept.term,
            source_chunk=_concept_source(concept, content),
            bloom_level='remember',
            educational_value=6,
            concepts_tested=[concept.term],
            cognitive_load='low',
        ))
    return questions


def _concept_source(concept: ConceptInfo, content: str) -> str:
    return concept.context[0] if concept.context else content[:100]


def extract_simple_concepts(content: str) -> List[str]:
    """Up to five distinct capitalized words, for text the analyzer found no concepts in."""
    concepts: List[str] = []
    for word in re.findall(r'\b[A-Z][a-zA-Z]{2,}\b', content):
        if 3 < len(word) < 20 and word not in _SIMPLE_CONCEPT_STOPWORDS and word not in concepts:
            concepts.append(word)
    return concepts[:5]


def simple_fallback_questions(content: str, analysis: ContentAnalysis, count: int) -> List[Question]:
    """Alternating true/false and multiple choice questions naming the content's concepts."""
    sentences = [s.strip() for s in re.split(r'[.!?]+', content) if len(s.strip()) > 20]
    concepts = [c.term for c in analysis.key_concepts] or extract_simple_concepts(content)
    if not concepts:
        return []

    questions = []
    for i in range(min(count, max(2, len(sentences)))):
        concept = concepts[i % len(concepts)]
        sentence = sentences[i % len(sentences)] if sentences else content[:100]

        if i % 2 == 0:
            questions.append(Question(
                id=f"fallback_tf_{i}",
                question=f"True or False: The content discusses {concept}.",
                type='true_false',
                correct_answer='True',
                difficulty='easy',
                explanation=f"{concept} is mentioned in the provided content.",
                topic=concept,
                source_chunk=sentence,
                educational_value=5,
                concepts_tested=[concept],
                cognitive_load='low',
            ))
        else:
            correct = f"Information about {concept}"
            questions.append(Question(
                id=f"fallback_mc_{i}",
                question=f"What is mentioned in the content regarding {concept}?",
                type='multiple_choice',
                options=[correct, 'Unrelated information', 'No specific details', 'Contradictory statements'],
                correct_answer=correct,
                difficulty='easy',
                explanation=f"The content provides information about {concept}.",
                topic=concept,
                source_chunk=sentence,
                educational_value=5,
                concepts_tested=[concept],
                cognitive_load='low',
            ))

    return questions


LAST_RESORT_PROMPTS = [
    "Based on the content, what information is provided?",
    "What is the main idea of the content?",
    "Describe one key point made in the content.",
]


def last_resort_questions(content: str, count: int) -> List[Question]:
    """Generic comprehension questions, at most three."""
    return [
        Question(
            id=f"last_resort_{i}",
            question=LAST_RESORT_PROMPTS[i],
            type='short_answer',
            correct_answer='The content provides educational information on the topic.',
            difficulty='easy',
            explanation='This question tests basic comprehension of the content.',
            source_chunk=content[:100] + '...',
            educational_value=5,
            cognitive_load='low',
        )
        for i in range(min(count, len(LAST_RESORT_PROMPTS)))
    ]


def content_suggestions(analysis: ContentAnalysis, generation_method: str) -> List[str]:
    """Hints for the learner when the content made for weak questions."""
    suggestions = []
    if generation_method != "standard":
        suggestions.append("Content had limited educational concepts; questions are basic comprehension checks.")
    if analysis.educational_value < 5:
        suggestions.append("Try content with more definitions, examples and explanations.")
    if len(meaningful_concepts(analysis)) < 2:
        suggestions.append("Longer passages covering several related concepts produce more varied questions.")
    return suggestions


def _passes_basic_check(question: Question) -> bool:
    answer = question.correct_answer or ''
    return bool(question.question) and len(answer) > 1 and answer.lower() not in TRIVIAL_ANSWERS


# ----------------------------------------------------------------------
# Generator
# ----------------------------------------------------------------------

class QuestionGenerator:
    """Builds study questions for a chunk or short document."""

    def __init__(
        self,
        generate: Optional[TextGenerator] = None,
        prompts: PromptManager = prompt_manager,
        max_output_tokens: int = LLM_MAX_TOKENS,
    ):
        self.generate = generate
        self.prompts = prompts
        self.max_output_tokens = max_output_tokens

    def generate_questions(
        self,
        content: str,
        max_questions: int = 8,
        question_types: Optional[Sequence[str]] = None,
        analysis: Optional[ContentAnalysis] = None,
    ) -> QuestionSet:
        """
        Generate up to max_questions questions about content.

        Args:
            content: Chunk or document text
            max_questions: Upper bound on returned questions
            question_types: Allowed types for the primary strategies
            analysis: Precomputed analysis of content, if the caller has one

        Raises:
            InputError: If the content is shorter than the minimum length
        """
        if not content or len(content.strip()) < MIN_CONTENT_CHARS:
            raise InputError(
                f"Content too short for question generation: need at least {MIN_CONTENT_CHARS} characters"
            )
        if len(content) > MAX_CONTENT_CHARS:
            logger.warning(
                f"Content has {len(content)} characters (over {MAX_CONTENT_CHARS}); "
                f"consider chunking it first"
            )

        analysis = analysis or analyze_content_for_learning(content)
        types = filter_question_types(question_types)
        meaningful = meaningful_concepts(analysis)
        count = optimal_question_count(max_questions, max(1, len(meaningful)))
        logger.info(f"Generating {count} questions for {len(meaningful)} meaningful concepts")

        unsuitable = self.check_content_suitability(analysis, content)
        if unsuitable:
            logger.warning(f"Content not suitable for standard question generation: {unsuitable}")
            question_set = QuestionSet()
        else:
            question_set = self.generate_comprehensive_questions(content, analysis, count, types)

        if not question_set.questions:
            questions = simple_fallback_questions(content, analysis, count)
            question_set = QuestionSet(
                questions=questions,
                metadata=build_metadata(questions, len(questions)),
                generation_method="simple_fallback",
            )

        kept = [q for q in question_set.questions if _passes_basic_check(q)]
        if kept:
            question_set.questions = kept
        elif not question_set.questions:
            questions = last_resort_questions(content, count)
            question_set = QuestionSet(
                questions=questions,
                metadata=build_metadata(questions, len(questions)),
                generation_method="last_resort",
            )

        logger.info(
            f"Question generation complete: {len(question_set.questions)} questions "
            f"via {question_set.generation_method}"
        )
        return question_set

    def check_content_suitability(self, analysis: ContentAnalysis, content: str) -> Optional[str]:
        """Reason the content cannot support standard questions, or None."""
        if not analysis.key_concepts:
            return "No identifiable educational concepts found"
        if analysis.educational_value < 2:
            return "Content has very low educational value"
        if not any(len(c.term) > 2 and c.importance > 2 for c in analysis.key_concepts):
            return "No meaningful concepts found"
        return None

    def generate_comprehensive_questions(
        self,
        content: str,
        analysis: ContentAnalysis,
        count: int,
        question_types: Sequence[str],
    ) -> QuestionSet:
        candidates = (
            self._generated_questions(content, analysis, count, question_types)
            + template_questions(analysis, content)
            + concept_questions(analysis, content)
        )
        allowed = [q for q in candidates if q.type in question_types]
        validated = validate_and_rank_questions(allowed, analysis, content)
        selected = select_diverse_questions(validated, count)

        logger.debug(
            f"{len(candidates)} candidates, {len(allowed)} of allowed types, "
            f"{len(validated)} valid, {len(selected)} selected"
        )
        return QuestionSet(
            questions=selected,
            metadata=build_metadata(selected, len(candidates)),
            generation_method="standard",
        )

    def _generated_questions(
        self,
        content: str,
        analysis: ContentAnalysis,
        count: int,
        question_types: Sequence[str],
    ) -> List[Question]:
        if self.generate is None:
            return []

        concepts = ', '.join(c.term for c in analysis.main_concepts[:5])
        prompt = self.prompts.render(
            "question_generation",
            question_count=min(MAX_GENERATED_QUESTIONS, count),
            concepts=concepts or 'the main ideas',
            question_types=', '.join(question_types),
            content=content,
        )

        try:
            response = self.generate(prompt, self.max_output_tokens)
        except GenerationError as e:
            logger.warning(f"Generated questions unavailable, using heuristic questions: {e}")
            return []

        return parse_generated_questions(response, content)


def parse_generated_questions(response: str, content: str) -> List[Question]:
    """Read the JSON array of questions out of a generator response."""
    match = _JSON_ARRAY.search(response or '')
    if not match:
        logger.warning("No JSON question array found in generator response")
        return []

    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse generated questions: {e}")
        return []

    questions = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        text = str(item.get('question') or '').strip()
        answer = item.get('correctAnswer', item.get('correct_answer'))
        if not text or answer is None:
            continue

        question_type = item.get('type') if item.get('type') in QUESTION_TYPES else 'short_answer'
        options = item.get('options') if question_type == 'multiple_choice' else None
        topic = str(item.get('topic') or 'General')
        questions.append(Question(
            id=f"generated_{i}",
            question=text,
            type=question_type,
            correct_answer=str(answer),
            difficulty=str(item.get('difficulty') or 'medium'),
            options=[str(o) for o in options] if isinstance(options, list) else None,
            explanation=str(item.get('explanation') or ''),
            topic=topic,
            source_chunk=str(item.get('sourceChunk') or '') or extract_relevant_context(content, text, str(answer)),
            educational_value=8,
            concepts_tested=[topic],
        ))

    return questions

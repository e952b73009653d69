"""
Study question API routes.
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends

from api.dependencies import enforce_rate_limit, get_question_generator, get_result_cache
from api.models.requests import QuizRequest
from api.models.responses import QuestionModel, QuizMetadataModel, QuizResponse
from core.cache import ResultCache, make_cache_key
from services.analysis.content_analyzer import analyze_content_for_learning
from services.questions.question_generator import (
    QuestionGenerator,
    content_suggestions,
    meaningful_concepts,
)

router = APIRouter()


@router.post("", response_model=QuizResponse, dependencies=[Depends(enforce_rate_limit)])
def generate_quiz(
    request: QuizRequest,
    cache: ResultCache = Depends(get_result_cache),
    generator: QuestionGenerator = Depends(get_question_generator),
):
    """Generate study questions about a chunk or short document."""
    types = sorted(request.question_types) if request.question_types is not None else "all"
    key = make_cache_key(request.content, "quiz", request.max_questions, types)
    cached = cache.get(key)
    if cached is not None:
        return cached.model_copy(update={"cached": True})

    analysis = analyze_content_for_learning(request.content)
    question_set = generator.generate_questions(
        request.content,
        max_questions=request.max_questions,
        question_types=request.question_types,
        analysis=analysis,
    )
    metadata = question_set.metadata

    response = QuizResponse(
        questions=[QuestionModel(**asdict(q)) for q in question_set.questions],
        learning_objectives=analysis.learning_objectives,
        key_concepts=[c.term for c in analysis.key_concepts[:10]],
        content_metadata=QuizMetadataModel(
            difficulty_level=analysis.difficulty_level,
            concept_count=len(analysis.key_concepts),
            meaningful_concepts=len(meaningful_concepts(analysis)),
            educational_value=analysis.educational_value,
            content_quality=analysis.content_quality,
            generation_method=question_set.generation_method,
            total_generated=metadata.total_generated,
            quality_filtered=metadata.quality_filtered,
            average_quality=metadata.average_quality,
        ),
        suggestions=content_suggestions(analysis, question_set.generation_method),
    )
    cache.set(key, response)
    return response

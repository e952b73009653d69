"""
Content analysis API routes.
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends

from api.dependencies import enforce_rate_limit, get_result_cache
from api.models.requests import AnalysisRequest
from api.models.responses import AnalysisResponse
from core.cache import ResultCache, make_cache_key
from services.analysis.content_analyzer import analyze_content_for_learning

router = APIRouter()


@router.post("", response_model=AnalysisResponse, dependencies=[Depends(enforce_rate_limit)])
def analyze(request: AnalysisRequest, cache: ResultCache = Depends(get_result_cache)):
    """Extract concepts, topics, objectives and scores from a document."""
    key = make_cache_key(request.content, "analysis")
    cached = cache.get(key)
    if cached is not None:
        return cached

    analysis = analyze_content_for_learning(request.content)
    response = AnalysisResponse(**asdict(analysis))
    cache.set(key, response)
    return response

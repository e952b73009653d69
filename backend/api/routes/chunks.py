"""
Chunking API routes.
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends

from api.dependencies import (
    enforce_rate_limit,
    get_result_cache,
    get_semantic_chunker,
    get_time_based_chunker,
)
from api.models.requests import SemanticChunkRequest, TimeBasedChunkRequest
from api.models.responses import (
    SemanticChunkModel,
    SemanticChunkResponse,
    TimeBasedChunkModel,
    TimeBasedChunkResponse,
)
from core.cache import ResultCache, make_cache_key
from services.chunking.semantic_chunker import SemanticChunker
from services.chunking.time_based_chunker import TimeBasedChunker

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@router.post("/semantic", response_model=SemanticChunkResponse)
def semantic_chunks(
    request: SemanticChunkRequest,
    cache: ResultCache = Depends(get_result_cache),
    chunker: SemanticChunker = Depends(get_semantic_chunker),
):
    """Split a document into topically coherent chunks of 150-500 words."""
    key = make_cache_key(request.content, "semantic")
    cached = cache.get(key)
    if cached is not None:
        return cached.model_copy(update={"cached": True})

    chunks = chunker.divide_into_semantic_chunks(request.content)
    response = SemanticChunkResponse(
        chunks=[SemanticChunkModel(**asdict(chunk)) for chunk in chunks],
        total_chunks=len(chunks),
        total_words=sum(chunk.word_count for chunk in chunks),
    )
    cache.set(key, response)
    return response


@router.post("/time-based", response_model=TimeBasedChunkResponse)
def time_based_chunks(
    request: TimeBasedChunkRequest,
    cache: ResultCache = Depends(get_result_cache),
    chunker: TimeBasedChunker = Depends(get_time_based_chunker),
):
    """Split a document into chunks that each take about the target time to read."""
    target = chunker.clamp_target(request.target_reading_time_seconds)
    key = make_cache_key(request.content, "time-based", target)
    cached = cache.get(key)
    if cached is not None:
        return cached.model_copy(update={"cached": True})

    chunks = chunker.divide_into_time_based_chunks(request.content, target)
    response = TimeBasedChunkResponse(
        chunks=[TimeBasedChunkModel(**asdict(chunk)) for chunk in chunks],
        total_chunks=len(chunks),
        total_reading_time=sum(chunk.estimated_reading_time for chunk in chunks),
        target_reading_time=target,
    )
    cache.set(key, response)
    return response

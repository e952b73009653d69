"""
Summary generation API routes.
"""
import uuid

from fastapi import APIRouter, Depends

from api.dependencies import enforce_rate_limit, get_progress_tracker, get_summarizer
from api.models.requests import SummaryRequest
from api.models.responses import ProgressResponse, SummaryResponse
from core.errors import InputError
from core.progress import ProgressTracker
from models.summary_models import SummaryOptions
from services.summarization.summarizer import DocumentSummarizer

router = APIRouter()


@router.post("", response_model=SummaryResponse, dependencies=[Depends(enforce_rate_limit)])
def create_summary(
    request: SummaryRequest,
    summarizer: DocumentSummarizer = Depends(get_summarizer),
):
    """
    Summarize a document synchronously.

    Runs in the threadpool so progress can be polled while generation calls are in flight.
    """
    if request.options is None:
        raise InputError("Summary options are required")

    job_id = request.job_id or f"job_{uuid.uuid4().hex[:12]}"
    options = SummaryOptions(**request.options.model_dump())
    result = summarizer.summarize(request.content, options, job_id=job_id)

    return SummaryResponse(
        job_id=job_id,
        summary=result.summary,
        word_count=result.word_count,
        target_min_words=result.target_min_words,
        target_max_words=result.target_max_words,
        ideal_words=result.ideal_words,
        chunk_count=result.chunk_count,
        attempts=result.attempts,
        converged=result.converged,
        low_value_chunks=result.low_value_chunks,
    )


@router.get("/progress/{job_id}", response_model=ProgressResponse)
async def get_progress(job_id: str, progress: ProgressTracker = Depends(get_progress_tracker)):
    """Current stage of a summary job; stale jobs report a timeout."""
    state = progress.get(job_id)
    return ProgressResponse(
        job_id=job_id,
        stage=state.stage,
        processed_chunks=state.processed_chunks,
        total_chunks=state.total_chunks,
        last_updated=state.last_updated,
        error=state.error,
    )

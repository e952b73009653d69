"""
Shared service instances and FastAPI dependency providers.

Routes receive these through Depends so tests can swap them with
app.dependency_overrides.
"""
from fastapi import Depends, Request

from core.cache import ResultCache
from core.errors import StudyAssistError
from core.gemini_client import gemini
from core.progress import ProgressTracker
from core.rate_limiter import RateLimiter
from services.chunking.semantic_chunker import SemanticChunker
from services.chunking.time_based_chunker import TimeBasedChunker
from services.questions.question_generator import QuestionGenerator
from services.summarization.length_adjuster import TextGenerator
from services.summarization.summarizer import DocumentSummarizer

# Process-wide instances (in-memory, replace with Redis for multi-process deployments)
result_cache = ResultCache()
rate_limiter = RateLimiter()
progress_tracker = ProgressTracker()


class RateLimitExceeded(StudyAssistError):
    """Raised when a client has used up its request window."""

    def __init__(self, retry_after: int):
        super().__init__(f"Rate limit exceeded. Retry after {retry_after} seconds.")
        self.retry_after = retry_after


def client_key(request: Request) -> str:
    """Client identifier: first X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host
    return "unknown"


def get_result_cache() -> ResultCache:
    return result_cache


def get_rate_limiter() -> RateLimiter:
    return rate_limiter


def get_progress_tracker() -> ProgressTracker:
    return progress_tracker


def get_generator() -> TextGenerator:
    return gemini


def get_semantic_chunker() -> SemanticChunker:
    return SemanticChunker()


def get_time_based_chunker() -> TimeBasedChunker:
    return TimeBasedChunker()


def get_summarizer(
    generate: TextGenerator = Depends(get_generator),
    chunker: SemanticChunker = Depends(get_semantic_chunker),
    progress: ProgressTracker = Depends(get_progress_tracker),
) -> DocumentSummarizer:
    return DocumentSummarizer(generate, chunker=chunker, progress=progress)


def get_question_generator(generate: TextGenerator = Depends(get_generator)) -> QuestionGenerator:
    return QuestionGenerator(generate)


def enforce_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
    """Reject the request with RateLimitExceeded once the client's window is full."""
    decision = limiter.check(client_key(request))
    if not decision.allowed:
        raise RateLimitExceeded(decision.retry_after)

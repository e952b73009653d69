"""
Length adjustment - rewrites a draft summary until its word count lands in a band.

Each attempt sends one rewrite prompt to the text generator. The loop stops as
soon as the measured count is inside [min_words, max_words] or the attempt
limit is reached; non-convergence is reported, not raised.
"""
import logging
import re
from typing import Callable, Optional

from core.config import LENGTH_ADJUST_MAX_ATTEMPTS
from core.errors import InputError
from core.prompt_manager import PromptManager, prompt_manager
from models.summary_models import LengthAdjustmentResult

logger = logging.getLogger(__name__)

TextGenerator = Callable[[str, int], str]

SOURCE_EXCERPT_CHARS = 12000

_WORD_COUNT_LINE = re.compile(r'^\W*word count\b', re.IGNORECASE)
_MARKUP_TAG = re.compile(r'<[^>]+>')


def strip_word_count_line(text: str) -> str:
    """Remove trailing 'Word count: N' annotations models like to append."""
    lines = (text or '').rstrip().split('\n')
    while lines and (not lines[-1].strip() or _WORD_COUNT_LINE.match(lines[-1].strip())):
        lines.pop()
    return '\n'.join(lines).strip()


def count_summary_words(text: str) -> int:
    """Word count ignoring a trailing word-count line and bracketed markup tags."""
    cleaned = strip_word_count_line(text)
    cleaned = _MARKUP_TAG.sub(' ', cleaned)
    cleaned = re.sub(r'[\r\n\t]+', ' ', cleaned)
    cleaned = re.sub(r' {2,}', ' ', cleaned)
    return len(cleaned.split())


def build_adjustment_prompt(
    draft: str,
    current_words: int,
    min_words: int,
    max_words: int,
    ideal_words: int,
    source_text: Optional[str] = None,
    prompts: PromptManager = prompt_manager,
) -> str:
    expand = current_words < min_words
    gap = abs(ideal_words - current_words)
    percent = round(gap / max(1, current_words) * 100)

    if expand:
        direction_rule = (
            f"Add about {gap} words by elaborating on points already made: "
            f"explanations, definitions and examples from the source"
        )
    else:
        direction_rule = (
            f"Remove about {gap} words by cutting repetition, minor details and "
            f"secondary examples while keeping every key idea"
        )

    source_section = ''
    if source_text:
        source_section = f'\nSOURCE:\n"""\n{source_text[:SOURCE_EXCERPT_CHARS]}\n"""\n'

    return prompts.render(
        "length_adjustment",
        direction="EXPAND" if expand else "REDUCE",
        current_words=current_words,
        min_words=min_words,
        max_words=max_words,
        ideal_words=ideal_words,
        word_gap=gap,
        gap_direction="more" if expand else "fewer",
        percent_gap=percent,
        direction_rule=direction_rule,
        draft=draft,
        source_section=source_section,
    )


def adjust_summary_length(
    draft: str,
    min_words: int,
    max_words: int,
    ideal_words: int,
    generate: TextGenerator,
    max_output_tokens: int,
    source_text: Optional[str] = None,
    max_attempts: int = LENGTH_ADJUST_MAX_ATTEMPTS,
) -> LengthAdjustmentResult:
    """
    Rewrite a draft until its word count is within [min_words, max_words].

    Args:
        draft: Initial summary text
        min_words: Inclusive lower bound of the band
        max_words: Inclusive upper bound of the band
        ideal_words: Count the rewrite prompt aims for
        generate: Text generator called as generate(prompt, max_output_tokens)
        max_output_tokens: Output token budget for each rewrite
        source_text: Optional source the rewrite may draw on when expanding
        max_attempts: Maximum number of rewrite calls

    Returns:
        LengthAdjustmentResult with the last text produced and whether it converged

    Raises:
        InputError: If the band is malformed
        GenerationError: Propagated from the generator
    """
    if not (0 < min_words <= ideal_words <= max_words):
        raise InputError(
            f"Invalid word band: min={min_words}, ideal={ideal_words}, max={max_words}"
        )

    text = strip_word_count_line(draft)
    word_count = count_summary_words(text)

    if min_words <= word_count <= max_words:
        return LengthAdjustmentResult(text=text, word_count=word_count, attempts=0, converged=True)

    for attempt in range(1, max_attempts + 1):
        logger.info(
            f"Length adjustment attempt {attempt}/{max_attempts}: "
            f"{word_count} words, target {min_words}-{max_words}"
        )
        prompt = build_adjustment_prompt(
            text, word_count, min_words, max_words, ideal_words, source_text
        )
        text = strip_word_count_line(generate(prompt, max_output_tokens))
        word_count = count_summary_words(text)

        if min_words <= word_count <= max_words:
            logger.info(f"Summary length converged at {word_count} words after {attempt} attempts")
            return LengthAdjustmentResult(
                text=text, word_count=word_count, attempts=attempt, converged=True
            )

    logger.warning(
        f"Summary length did not converge after {max_attempts} attempts: "
        f"{word_count} words, target {min_words}-{max_words}"
    )
    return LengthAdjustmentResult(
        text=text, word_count=word_count, attempts=max_attempts, converged=False
    )

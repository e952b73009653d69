"""
Unit tests for summarization orchestration.
"""
from unittest.mock import Mock

import pytest

from conftest import exact_length_generator, make_document
from core.errors import GenerationError, InputError
from core.progress import ProgressTracker
from models.summary_models import SummaryOptions
from services.summarization.summarizer import (
    DocumentSummarizer,
    compute_word_band,
    output_token_budget,
)


class TestWordBand:
    """Test target length derivation."""

    def test_detail_level_percentage(self):
        band = compute_word_band(1000, SummaryOptions(detail_level=2).effective_percentage)
        assert band.ideal == 200
        assert band.minimum == 170
        assert band.maximum == 230

    def test_explicit_percentage_wins(self):
        options = SummaryOptions(detail_level=5, target_percentage=10)
        assert compute_word_band(1000, options.effective_percentage).ideal == 100

    def test_floor_of_fifty_words(self):
        assert compute_word_band(120, 10).ideal == 50

    def test_token_budget(self):
        assert output_token_budget(1000) == 2000
        assert output_token_budget(10) == 256
        assert output_token_budget(100000, cap=4096) == 4096


class TestSummarize:
    """Test the summarize pipeline with a stub generator."""

    def test_short_document_is_single_pass(self, grouped_document):
        generate = Mock(side_effect=exact_length_generator)
        progress = ProgressTracker()
        summarizer = DocumentSummarizer(generate, progress=progress)

        result = summarizer.summarize(grouped_document, SummaryOptions(detail_level=3), job_id="job-1")

        assert result.chunk_count == 1
        assert result.converged is True
        assert result.target_min_words <= result.word_count <= result.target_max_words
        assert generate.call_count == 1
        assert progress.get("job-1").stage == "Complete"

    def test_long_document_is_chunked_and_merged(self):
        document = make_document([10] * 20)
        generate = Mock(side_effect=exact_length_generator)
        summarizer = DocumentSummarizer(generate, single_pass_words=1000)

        result = summarizer.summarize(document, SummaryOptions(detail_level=1))

        assert result.chunk_count > 1
        assert result.converged is True
        # One call per chunk plus the merge call
        assert generate.call_count == result.chunk_count + 1
        merge_prompt = generate.call_args_list[-1][0][0]
        assert "SECTION 1:" in merge_prompt

    def test_prompt_reflects_options(self, grouped_document):
        generate = Mock(side_effect=exact_length_generator)
        options = SummaryOptions(
            study_purpose="exam revision",
            subject_type="biology",
            include_examples=True,
            include_citations=True,
        )
        DocumentSummarizer(generate).summarize(grouped_document, options)

        prompt = generate.call_args_list[0][0][0]
        assert "exam revision" in prompt
        assert "biology" in prompt
        assert "example" in prompt
        assert "citations" in prompt

    def test_length_adjustment_runs_when_draft_misses(self, grouped_document):
        generate = Mock(side_effect=["too short"] + [" ".join(["word"] * 270)])
        result = DocumentSummarizer(generate).summarize(grouped_document, SummaryOptions(detail_level=3))
        assert result.attempts == 1
        assert result.converged is True

    def test_short_text_rejected(self):
        with pytest.raises(InputError):
            DocumentSummarizer(Mock()).summarize("Too short.", SummaryOptions())

    def test_missing_options_rejected(self, grouped_document):
        with pytest.raises(InputError):
            DocumentSummarizer(Mock()).summarize(grouped_document, None)

    def test_generation_failure_marks_progress(self, grouped_document):
        generate = Mock(side_effect=GenerationError("upstream down", status_code=503))
        progress = ProgressTracker()
        summarizer = DocumentSummarizer(generate, progress=progress)

        with pytest.raises(GenerationError):
            summarizer.summarize(grouped_document, SummaryOptions(), job_id="job-2")

        state = progress.get("job-2")
        assert state.stage == "Failed"
        assert state.error == "upstream down"

    def test_repeated_jobs_keep_progress_bounded(self, grouped_document):
        progress = ProgressTracker(max_jobs=5)
        summarizer = DocumentSummarizer(Mock(side_effect=exact_length_generator), progress=progress)

        for i in range(12):
            summarizer.summarize(grouped_document, SummaryOptions(), job_id=f"job-{i}")

        assert len(progress) == 5
        assert progress.get("job-11").stage == "Complete"

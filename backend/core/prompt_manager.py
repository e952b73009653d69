"""
Centralized prompt file management with fallback templates.
"""
import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

REQUIRED_PROMPTS = ["chunk_summary", "summary_merge", "length_adjustment", "question_generation"]


class PromptManager:
    """Manages prompt file loading with consistent fallback behavior."""

    def __init__(self, prompts_dir: Optional[Path] = None):
        from core.config import PROMPTS_DIR
        self.prompts_dir = prompts_dir or PROMPTS_DIR
        self.loaded_prompts: Dict[str, str] = {}

        # Fallback templates
        self.fallback_templates = {
            "chunk_summary": self._get_chunk_summary_fallback(),
            "summary_merge": self._get_summary_merge_fallback(),
            "length_adjustment": self._get_length_adjustment_fallback(),
            "question_generation": self._get_question_generation_fallback(),
        }

    def get_prompt(self, prompt_name: str) -> str:
        """
        Load prompt by name with fallback.

        Args:
            prompt_name: Name of prompt file (without .txt extension)

        Returns:
            Prompt template string
        """
        # Return cached if already loaded
        if prompt_name in self.loaded_prompts:
            return self.loaded_prompts[prompt_name]

        prompt_file = self.prompts_dir / f"{prompt_name}.txt"

        if prompt_file.exists():
            try:
                template = prompt_file.read_text(encoding="utf-8")

                if not template.strip():
                    raise ValueError(f"Prompt file is empty: {prompt_file}")

                self.loaded_prompts[prompt_name] = template
                return template

            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load prompt file {prompt_file}: {e}")
                # Fall through to fallback

        if prompt_name in self.fallback_templates:
            logger.info(f"Using fallback template for: {prompt_name}")
            template = self.fallback_templates[prompt_name]
            self.loaded_prompts[prompt_name] = template
            return template

        raise FileNotFoundError(
            f"Prompt file not found and no fallback available: {prompt_name}.txt. "
            f"Expected at: {prompt_file}"
        )

    def render(self, prompt_name: str, **values) -> str:
        """Fill a template's {placeholders}."""
        return self.get_prompt(prompt_name).format(**values)

    def _get_chunk_summary_fallback(self) -> str:
        """Fallback template for summarizing one section of a document."""
        return """You are an expert study assistant writing {study_format} for a {knowledge_level} learner.

Summarize the following section of a {subject_type} document for {study_purpose}.
This is section {section_number} of {section_count}.

SECTION:
\"\"\"
{content}
\"\"\"

RULES:
1. Aim for about {target_words} words
2. Use only information present in the section
3. Keep technical terminology exactly as written
{example_rule}
{citation_rule}

Write the summary now. Do not add a preamble."""

    def _get_summary_merge_fallback(self) -> str:
        """Fallback template for merging section summaries."""
        return """You are an expert study assistant writing {study_format} for a {knowledge_level} learner.

Combine the section summaries below into one coherent summary of a {subject_type} document for {study_purpose}.

SECTION SUMMARIES:
{summaries}

RULES:
1. Aim for about {target_words} words
2. Remove repetition between sections and keep their order
3. Do not introduce facts that are not in the section summaries

Write the combined summary now. Do not add a preamble."""

    def _get_length_adjustment_fallback(self) -> str:
        """Fallback template for the length-adjustment rewrite."""
        return """You are editing a study summary to fit a word budget.

ACTION: {direction}
The draft has {current_words} words. It must have between {min_words} and {max_words} words.
TARGET: {ideal_words} words ({word_gap} words {gap_direction}, {percent_gap}% of the draft).

RULES:
1. {direction_rule}
2. Only use information already present in the draft or the source below
3. Keep the existing structure and headings where possible
4. Output only the rewritten summary

DRAFT:
\"\"\"
{draft}
\"\"\"
{source_section}"""

    def _get_question_generation_fallback(self) -> str:
        """Fallback template for generated study questions."""
        return """Create {question_count} educational questions from this content.

CONTENT:
\"\"\"
{content}
\"\"\"

KEY CONCEPTS TO TEST: {concepts}
QUESTION TYPES: {question_types}

Answers must come from the content. Respond with a JSON array only:
[{{"question": "...", "type": "multiple_choice", "options": ["A", "B", "C", "D"], "correctAnswer": "...", "difficulty": "medium", "explanation": "...", "topic": "...", "sourceChunk": "..."}}]"""


# Global prompt manager instance
prompt_manager = PromptManager()

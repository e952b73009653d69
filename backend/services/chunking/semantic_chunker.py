"""
Semantic Chunker - splits long documents into bounded, topically coherent chunks.

Pipeline:
1. Normalize the document, keeping its line and paragraph structure
2. Detect headers (markdown, ALL CAPS, numbered, Title Case) and definition density
3. Section by headers when there are at least two, otherwise group
   paragraphs by topic similarity
4. Split oversized sections at sentence boundaries near the word budget
5. Refine: absorb undersized chunks into neighbours, drop chunks with
   negligible educational value, renumber
"""
import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from core.config import CHUNK_MAX_SIZE, CHUNK_MIN_SIZE, CHUNK_TARGET_SIZE, MIN_CONTENT_CHARS
from core.errors import InputError
from models.chunk_models import SemanticBoundaries, SemanticChunk
from services.analysis.concept_extractor import (
    extract_paragraph_topics,
    extract_topic_terms,
    topic_similarity,
)
from services.analysis.segmenter import (
    count_words,
    extract_sentences,
    preprocess_document,
    split_paragraphs,
)
from services.chunking.metadata import (
    SEMANTIC_PROFILE,
    ChunkMetadataBuilder,
    merge_unique,
    starts_with_transition,
)

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE_READING = 200
MIN_EDUCATIONAL_VALUE = 3
LOW_EDUCATIONAL_VALUE = 4
BREAK_SEARCH_WINDOW = 2

_MARKDOWN_HEADER = re.compile(r'^(#{1,6})\s+(.+)$')
_CAPS_HEADER = re.compile(r'^(?=.*[A-Z])[A-Z\s\-&()]+$')
_TITLE_CASE_HEADER = re.compile(r'^([A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,5})\s*:?$')
_NUMBERED_HEADER = re.compile(r'^(\d+(?:\.\d+)*)\.?\s+([A-Z].{2,})$')
_DEFINITION = re.compile(
    r'\b(?:is|are|means|refers to|defined as|can be defined as)\b'
    r'|^[A-Z][^.]*:\s'
    r'|\b(?:definition|concept|term)\b',
    re.IGNORECASE,
)
_LIST_ITEM = re.compile(r'^(?:[-*•]|\d+[.)])\s+')
_PART_SUFFIX = re.compile(r'\s*\(Part \d+\)$')


@dataclass
class DocumentHeader:
    text: str
    level: int
    line_index: int
    kind: str  # markdown, caps, numbered or title


@dataclass
class DocumentStructure:
    """Structural signals detected in a normalized document"""
    headers: List[DocumentHeader] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    list_items: int = 0
    has_markdown_headers: bool = False
    has_numbered_sections: bool = False
    definition_count: int = 0
    definition_density: float = 0.0


@dataclass
class DocumentSection:
    content: str
    title: str
    header_level: int = 0
    has_structural_boundary: bool = False


@dataclass
class _SentenceUnit:
    text: str
    words: int
    starts_paragraph: bool


def _is_definition(paragraph: str) -> bool:
    return bool(_DEFINITION.search(paragraph))


def _title_case(term: str) -> str:
    return ' '.join(word[:1].upper() + word[1:] for word in term.split())


class SemanticChunker:
    """
    Divides documents into chunks of roughly target_chunk_size words.

    Every chunk is a verbatim slice of the normalized document and no
    chunk exceeds max_chunk_size words. Chunks under min_chunk_size are
    merged or rebalanced with a neighbour when one exists.
    """

    def __init__(
        self,
        target_chunk_size: int = CHUNK_TARGET_SIZE,
        min_chunk_size: int = CHUNK_MIN_SIZE,
        max_chunk_size: int = CHUNK_MAX_SIZE,
        min_content_chars: int = MIN_CONTENT_CHARS,
        metadata_builder: Optional[ChunkMetadataBuilder] = None,
    ):
        if not 0 < min_chunk_size <= target_chunk_size <= max_chunk_size:
            raise ValueError(
                f"Chunk sizes must satisfy 0 < min <= target <= max, got "
                f"{min_chunk_size}/{target_chunk_size}/{max_chunk_size}"
            )
        self.target_chunk_size = target_chunk_size
        self.min_chunk_size = min_chunk_size
        self.max_chunk_size = max_chunk_size
        self.min_content_chars = min_content_chars
        self.metadata_builder = metadata_builder or ChunkMetadataBuilder(SEMANTIC_PROFILE)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def divide_into_semantic_chunks(self, text: str) -> List[SemanticChunk]:
        """
        Divide a document into semantic chunks.

        Raises:
            InputError: If the text is shorter than min_content_chars after trimming
        """
        chunks = self.create_initial_chunks(text)
        refined = self.refine_chunks(chunks)

        logger.info(
            f"Semantic chunking complete: {len(refined)} chunks "
            f"(avg {sum(c.word_count for c in refined) // max(1, len(refined))} words)"
        )
        return refined

    def create_initial_chunks(self, text: str) -> List[SemanticChunk]:
        """Sections split down to the word budget, before refinement."""
        if not text or len(text.strip()) < self.min_content_chars:
            raise InputError(
                f"Text too short for chunking: need at least {self.min_content_chars} characters"
            )

        cleaned = preprocess_document(text)
        structure = self.analyze_document_structure(cleaned)
        sections = self.extract_sections(cleaned, structure)

        logger.debug(
            f"Detected {len(structure.headers)} headers, {len(structure.paragraphs)} paragraphs, "
            f"{len(sections)} sections"
        )

        chunks: List[SemanticChunk] = []
        for section in sections:
            if count_words(section.content) > self.max_chunk_size:
                pieces = self._split_large_section(section.content)
                for part, piece in enumerate(pieces, start=1):
                    title = f"{section.title} (Part {part})" if len(pieces) > 1 else section.title
                    chunks.append(self._create_chunk(piece, title))
            else:
                chunks.append(self._create_chunk(section.content, section.title))

        for index, chunk in enumerate(chunks):
            chunk.index = index
        return chunks

    # ------------------------------------------------------------------
    # Structure detection
    # ------------------------------------------------------------------

    def analyze_document_structure(self, text: str) -> DocumentStructure:
        structure = DocumentStructure()

        for line_index, raw_line in enumerate(text.split('\n')):
            line = raw_line.strip()
            if not line:
                continue

            markdown = _MARKDOWN_HEADER.match(line)
            numbered = _NUMBERED_HEADER.match(line)
            title_case = _TITLE_CASE_HEADER.match(line)
            if markdown:
                structure.headers.append(DocumentHeader(
                    text=markdown.group(2).strip(),
                    level=len(markdown.group(1)),
                    line_index=line_index,
                    kind="markdown",
                ))
                structure.has_markdown_headers = True
            elif _CAPS_HEADER.match(line) and 5 < len(line) < 80:
                structure.headers.append(DocumentHeader(
                    text=line, level=1, line_index=line_index, kind="caps",
                ))
            elif numbered and len(line) < 100:
                structure.headers.append(DocumentHeader(
                    text=numbered.group(2).strip(),
                    level=numbered.group(1).count('.') + 1,
                    line_index=line_index,
                    kind="numbered",
                ))
                structure.has_numbered_sections = True
            elif title_case and len(line) < 60:
                structure.headers.append(DocumentHeader(
                    text=title_case.group(1), level=2, line_index=line_index, kind="title",
                ))
            elif _LIST_ITEM.match(line):
                structure.list_items += 1

        structure.paragraphs = split_paragraphs(text)
        structure.definition_count = sum(1 for p in structure.paragraphs if _is_definition(p))
        if structure.paragraphs:
            structure.definition_density = structure.definition_count / len(structure.paragraphs)

        return structure

    # ------------------------------------------------------------------
    # Sectioning
    # ------------------------------------------------------------------

    def extract_sections(self, text: str, structure: DocumentStructure) -> List[DocumentSection]:
        if len(structure.headers) >= 2:
            return self._sections_by_headers(text, structure.headers)
        return self._sections_by_topic(text)

    def _sections_by_headers(self, text: str, headers: List[DocumentHeader]) -> List[DocumentSection]:
        """Each header opens a section running to the next header; text before the first is kept."""
        lines = text.split('\n')
        offsets = []
        position = 0
        for line in lines:
            offsets.append(position)
            position += len(line) + 1

        sections = []
        preamble = text[:offsets[headers[0].line_index]].strip()
        if preamble:
            sections.append(DocumentSection(
                content=preamble,
                title=self.generate_section_title(preamble),
            ))

        for i, header in enumerate(headers):
            start = offsets[header.line_index]
            end = offsets[headers[i + 1].line_index] if i + 1 < len(headers) else len(text)
            content = text[start:end].strip()
            if content:
                sections.append(DocumentSection(
                    content=content,
                    title=header.text,
                    header_level=header.level,
                    has_structural_boundary=True,
                ))

        return sections

    def _sections_by_topic(self, text: str) -> List[DocumentSection]:
        """Group consecutive paragraphs until a size, topic or transition break."""
        sections = []
        current: List[str] = []
        current_words = 0
        current_topics: set = set()
        current_definitions = 0

        for paragraph in split_paragraphs(text):
            words = count_words(paragraph)
            paragraph_topics = extract_paragraph_topics(paragraph)
            is_definition = _is_definition(paragraph)

            if current and self._should_break(
                current_words,
                words,
                topic_similarity(current_topics, paragraph_topics),
                paragraph,
                current_definitions * 2 >= len(current),
                is_definition,
            ):
                sections.append(self._topic_section(current))
                current, current_words, current_topics, current_definitions = [], 0, set(), 0

            current.append(paragraph)
            current_words += words
            current_topics |= paragraph_topics
            current_definitions += int(is_definition)

        if current:
            sections.append(self._topic_section(current))

        return sections

    def _should_break(
        self,
        current_words: int,
        paragraph_words: int,
        similarity: float,
        paragraph: str,
        definition_heavy: bool,
        paragraph_is_definition: bool,
    ) -> bool:
        if current_words + paragraph_words > self.max_chunk_size:
            return True
        if current_words < self.min_chunk_size:
            return False
        if similarity < 0.2 and current_words >= self.target_chunk_size * 0.7:
            return True
        if starts_with_transition(paragraph) and current_words >= self.target_chunk_size * 0.8:
            return True
        if definition_heavy and not paragraph_is_definition and current_words >= self.target_chunk_size:
            return True
        return False

    def _topic_section(self, paragraphs: List[str]) -> DocumentSection:
        content = '\n\n'.join(paragraphs)
        return DocumentSection(content=content, title=self.generate_section_title(content))

    def generate_section_title(self, content: str) -> str:
        topics = extract_topic_terms(content, limit=3)
        if topics:
            return ' & '.join(_title_case(t) for t in topics[:2])

        first_sentence = re.split(r'[.!?]', content.strip(), maxsplit=1)[0]
        words = first_sentence.split()[:6]
        if words:
            return ' '.join(words) + ('...' if len(first_sentence.split()) > 6 else '')
        return "Untitled Section"

    # ------------------------------------------------------------------
    # Oversized sections
    # ------------------------------------------------------------------

    def _sentence_units(self, content: str) -> List[_SentenceUnit]:
        units = []
        for paragraph in split_paragraphs(content):
            sentences = extract_sentences(paragraph, min_length=0) or [paragraph]
            for position, sentence in enumerate(sentences):
                units.extend(self._cut_long_sentence(sentence, starts_paragraph=position == 0))
        return units

    def _cut_long_sentence(self, sentence: str, starts_paragraph: bool) -> List[_SentenceUnit]:
        words = sentence.split()
        if len(words) <= self.max_chunk_size:
            return [_SentenceUnit(sentence, len(words), starts_paragraph)]

        logger.warning(
            f"ChunkingDegenerate: sentence of {len(words)} words exceeds "
            f"{self.max_chunk_size}; cutting at word boundaries"
        )
        units = []
        for start in range(0, len(words), self.max_chunk_size):
            piece = words[start:start + self.max_chunk_size]
            units.append(_SentenceUnit(' '.join(piece), len(piece), starts_paragraph and start == 0))
        return units

    @staticmethod
    def _join_units(units: List[_SentenceUnit]) -> str:
        parts = []
        for i, unit in enumerate(units):
            if i > 0:
                parts.append('\n\n' if unit.starts_paragraph else ' ')
            parts.append(unit.text)
        return ''.join(parts)

    def _split_large_section(self, content: str) -> List[str]:
        """Pack sentences into pieces of balanced size, never above max_chunk_size words."""
        units = self._sentence_units(content)
        total = sum(u.words for u in units)
        budget = total / max(1, math.ceil(total / self.target_chunk_size))

        pieces = []
        start = 0
        while start < len(units):
            end = start
            words = 0
            while end < len(units):
                next_words = words + units[end].words
                if end > start and next_words > self.max_chunk_size:
                    break
                if end > start and next_words > budget and (next_words - budget) >= (budget - words):
                    break
                words = next_words
                end += 1

            if end < len(units):
                end = self._find_semantic_break(units, start, end)

            pieces.append(self._join_units(units[start:end]))
            start = end

        return pieces

    def _find_semantic_break(self, units: List[_SentenceUnit], start: int, natural: int) -> int:
        """
        Prefer a nearby sentence opening with a transition word, then a
        paragraph start, falling back to the natural break.
        """
        candidates = range(
            max(start + 1, natural - BREAK_SEARCH_WINDOW),
            min(len(units) - 1, natural + BREAK_SEARCH_WINDOW) + 1,
        )

        def fits(candidate: int) -> bool:
            return sum(u.words for u in units[start:candidate]) <= self.max_chunk_size

        ordered = sorted(candidates, key=lambda c: (abs(c - natural), c))
        for candidate in ordered:
            if starts_with_transition(units[candidate].text) and fits(candidate):
                return candidate
        for candidate in ordered:
            if units[candidate].starts_paragraph and fits(candidate):
                return candidate
        return natural

    # ------------------------------------------------------------------
    # Chunk construction and refinement
    # ------------------------------------------------------------------

    def _create_chunk(self, content: str, title: str, index: int = 0) -> SemanticChunk:
        metadata = self.metadata_builder.build(content)
        return SemanticChunk(
            content=content,
            index=index,
            title=title,
            topics=metadata.topics,
            key_concepts=metadata.key_concepts,
            learning_objectives=metadata.learning_objectives,
            educational_value=metadata.educational_value,
            difficulty_level=metadata.difficulty_level,
            word_count=metadata.word_count,
            reading_time=max(1, math.ceil(metadata.word_count / WORDS_PER_MINUTE_READING)),
            semantic_boundaries=metadata.semantic_boundaries,
        )

    def refine_chunks(self, chunks: List[SemanticChunk]) -> List[SemanticChunk]:
        """
        Absorb undersized chunks and filter by educational value.

        An undersized chunk merges forward when the result fits, otherwise
        backward into the previous chunk, otherwise the pair is rebalanced
        into two halves that both reach min_chunk_size.
        """
        pending = list(chunks)
        refined: List[SemanticChunk] = []
        i = 0

        while i < len(pending):
            chunk = pending[i]
            following = pending[i + 1] if i + 1 < len(pending) else None

            if chunk.word_count < self.min_chunk_size and (following is not None or refined):
                if following is not None and chunk.word_count + following.word_count <= self.max_chunk_size:
                    pending[i + 1] = self._merge_chunks(chunk, following)
                    i += 1
                    continue

                if refined and refined[-1].word_count + chunk.word_count <= self.max_chunk_size:
                    refined[-1] = self._merge_chunks(refined[-1], chunk)
                    self._flag_low_value(refined[-1])
                    i += 1
                    continue

                if following is not None:
                    balanced = self._rebalance(chunk, following)
                    if balanced:
                        pending[i], pending[i + 1] = balanced
                        chunk = pending[i]
                elif refined:
                    balanced = self._rebalance(refined[-1], chunk)
                    if balanced:
                        refined[-1], chunk = balanced
                        self._flag_low_value(refined[-1])

                if chunk.word_count < self.min_chunk_size:
                    logger.warning(
                        f"ChunkingDegenerate: chunk '{chunk.title}' has {chunk.word_count} words, "
                        f"below minimum {self.min_chunk_size}"
                    )

            has_others = bool(refined) or i + 1 < len(pending)
            if chunk.educational_value < MIN_EDUCATIONAL_VALUE and has_others:
                logger.warning(
                    f"Dropping chunk '{chunk.title}' with educational value {chunk.educational_value}"
                )
                i += 1
                continue

            self._flag_low_value(chunk)
            refined.append(chunk)
            i += 1

        for index, chunk in enumerate(refined):
            chunk.index = index
        return refined

    def _flag_low_value(self, chunk: SemanticChunk) -> None:
        chunk.low_value = chunk.educational_value < LOW_EDUCATIONAL_VALUE
        if chunk.low_value:
            logger.warning(f"Low educational value chunk: '{chunk.title}' ({chunk.educational_value})")

    def _merge_chunks(self, first: SemanticChunk, second: SemanticChunk) -> SemanticChunk:
        if 'Part' in first.title:
            title = _PART_SUFFIX.sub('', first.title)
        elif first.title == second.title:
            title = first.title
        else:
            title = f"{first.title} & {second.title}"

        word_count = first.word_count + second.word_count
        return SemanticChunk(
            content=f"{first.content}\n\n{second.content}",
            index=first.index,
            title=title,
            topics=merge_unique(first.topics, second.topics),
            key_concepts=merge_unique(first.key_concepts, second.key_concepts),
            learning_objectives=merge_unique(first.learning_objectives, second.learning_objectives),
            educational_value=max(first.educational_value, second.educational_value),
            difficulty_level=first.difficulty_level,
            word_count=word_count,
            reading_time=max(1, math.ceil(word_count / WORDS_PER_MINUTE_READING)),
            semantic_boundaries=SemanticBoundaries(
                starts_with_header=first.semantic_boundaries.starts_with_header,
                ends_with_conclusion=second.semantic_boundaries.ends_with_conclusion,
                conceptual_completeness=max(
                    first.semantic_boundaries.conceptual_completeness,
                    second.semantic_boundaries.conceptual_completeness,
                ),
            ),
        )

    def _rebalance(
        self, first: SemanticChunk, second: SemanticChunk
    ) -> Optional[Tuple[SemanticChunk, SemanticChunk]]:
        """Re-split a neighbouring pair into two halves; None if either would be undersized."""
        units = self._sentence_units(f"{first.content}\n\n{second.content}")
        total = sum(u.words for u in units)

        best = None
        left = 0
        for split in range(1, len(units)):
            left += units[split - 1].words
            right = total - left
            if min(left, right) < self.min_chunk_size or max(left, right) > self.max_chunk_size:
                continue
            if best is None or abs(left - right) < best[1]:
                best = (split, abs(left - right))

        if best is None:
            return None

        split = best[0]
        return (
            self._create_chunk(self._join_units(units[:split]), first.title, first.index),
            self._create_chunk(self._join_units(units[split:]), second.title, second.index),
        )


def divide_into_semantic_chunks(text: str) -> List[SemanticChunk]:
    """Chunk with the configured default sizes."""
    return SemanticChunker().divide_into_semantic_chunks(text)

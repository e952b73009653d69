"""
Sentence, paragraph and word segmentation heuristics.

All functions are pure and tolerate empty or malformed input.
"""
import re
from typing import List

_SENTENCE_BOUNDARY = re.compile(r'(?<=[.!?])\s+(?=[A-Z])')
_PARAGRAPH_BOUNDARY = re.compile(r'\n\s*\n+')
_ABBREVIATION = re.compile(r'\b(Dr|Mr|Mrs|Ms|Prof|etc|vs|Inc|Ltd|Corp)\.')
_DECIMAL = re.compile(r'\b\d+\.\d+\b')
_DOT_MASK = '<!DOT!>'


def preprocess_for_analysis(content: str) -> str:
    """Flatten all whitespace and normalize quotes (line structure is discarded)."""
    text = re.sub(r'\s+', ' ', content or '')
    text = text.replace('\u201c', '"').replace('\u201d', '"')
    text = text.replace('\u2018', "'").replace('\u2019', "'")
    return text.strip()


def preprocess_document(content: str) -> str:
    """
    Normalize a document while preserving its line and paragraph structure.

    Operations:
        - Collapse horizontal whitespace and non-breaking spaces
        - Normalize curly quotes and en/em dashes
        - Collapse runs of blank lines to a single blank line
    """
    text = (content or '').replace('\r\n', '\n').replace('\r', '\n')
    text = text.replace('\u00a0', ' ')
    text = re.sub(r'[ \t\f\v]+', ' ', text)
    text = re.sub(r' *\n *', '\n', text)
    text = re.sub(r'\n{3,}', '\n\n', text)

    # Fix common encoding issues
    text = text.replace('\u201c', '"').replace('\u201d', '"')
    text = text.replace('\u2018', "'").replace('\u2019', "'")
    text = text.replace('\u2013', '-').replace('\u2014', '-')

    return text.strip()


def segment_sentences(text: str) -> List[str]:
    """
    Split on sentence-ending punctuation followed by an uppercase letter.

    Abbreviations and decimals are not protected; see extract_sentences.
    """
    if not text:
        return []
    return [s.strip() for s in _SENTENCE_BOUNDARY.split(text) if len(s.strip()) > 10]


def segment_paragraphs(text: str, min_length: int = 50) -> List[str]:
    """Split on blank lines, discarding paragraphs of min_length characters or fewer."""
    if not text:
        return []
    return [p.strip() for p in _PARAGRAPH_BOUNDARY.split(text) if len(p.strip()) > min_length]


def split_paragraphs(text: str) -> List[str]:
    """Split on blank lines keeping every non-empty paragraph."""
    return segment_paragraphs(text, min_length=0)


def extract_sentences(text: str, min_length: int = 10) -> List[str]:
    """
    Sentence splitter that masks abbreviation and decimal periods first.

    Args:
        text: Text to split
        min_length: Fragments of this many characters or fewer are dropped;
            pass 0 to keep every fragment (needed when re-joining text).
    """
    if not text:
        return []

    masked = _ABBREVIATION.sub(lambda m: m.group(1) + _DOT_MASK, text)
    masked = _DECIMAL.sub(lambda m: m.group(0).replace('.', _DOT_MASK), masked)

    sentences = []
    for piece in _SENTENCE_BOUNDARY.split(masked):
        sentence = piece.replace(_DOT_MASK, '.').strip()
        if sentence and len(sentence) > min_length:
            sentences.append(sentence)
    return sentences


def count_words(text: str) -> int:
    """Whitespace-token count."""
    return len((text or '').split())


def count_syllables(word: str) -> int:
    """Count syllables in a word (vowel groups with a silent-e correction)."""
    word = word.lower().strip(".,!?;:()[]{}\"'")
    if len(word) <= 3:
        return 1

    vowels = 'aeiouy'
    count = 0
    prev_was_vowel = False

    for char in word:
        is_vowel = char in vowels
        if is_vowel and not prev_was_vowel:
            count += 1
        prev_was_vowel = is_vowel

    # Handle silent e
    if word.endswith('e') and count > 1:
        count -= 1

    return max(1, count)

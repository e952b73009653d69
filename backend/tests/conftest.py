"""
Shared sample documents and generator stubs for the test suite.
"""
import re

import pytest

TOPICS = [
    "Genetics", "Ecology", "Evolution", "Metabolism", "Immunology",
    "Neuroscience", "Botany", "Physiology", "Microbiology", "Anatomy",
]

PHOTOSYNTHESIS_DOCUMENT = (
    "Photosynthesis is the process by which green plants convert light energy into "
    "chemical energy stored in glucose. Photosynthesis takes place mainly in the leaves "
    "of green plants. Photosynthesis combines carbon dioxide and water using sunlight. "
    "Photosynthesis also releases oxygen into the atmosphere as a by-product.\n\n"
    "Plants need sunlight, water and carbon dioxide to grow. The leaves contain chlorophyll, "
    "a green pigment that absorbs light. Without enough light the plant cannot produce the "
    "sugars it needs for growth and repair.\n\n"
    "Scientists study these reactions to improve crop yields. Understanding how energy moves "
    "through living systems helps explain food chains and the balance of gases in the air "
    "we breathe."
)


def make_paragraph(topic: str, sentences: int) -> str:
    """Paragraph of ten-word sentences that all open with the topic name."""
    return " ".join(
        f"{topic} research shows that result number {i} matters for students."
        for i in range(sentences)
    )


def make_document(sentence_counts) -> str:
    """Blank-line separated paragraphs, cycling through TOPICS."""
    return "\n\n".join(
        make_paragraph(TOPICS[i % len(TOPICS)], count)
        for i, count in enumerate(sentence_counts)
    )


def requested_words(prompt: str) -> int:
    """Word count a prompt asks for (length-adjustment target or summary aim)."""
    match = re.search(r"TARGET: (\d+) words", prompt) or re.search(r"about (\d+) words", prompt)
    return int(match.group(1)) if match else 100


def exact_length_generator(prompt: str, max_output_tokens: int) -> str:
    """Generator stub that always returns exactly the requested number of words."""
    return " ".join(["word"] * requested_words(prompt))


@pytest.fixture
def photosynthesis_document():
    return PHOTOSYNTHESIS_DOCUMENT


@pytest.fixture
def long_document():
    """About 2,200 words: varied paragraph sizes plus one oversized paragraph."""
    return make_document([6, 9, 4, 12, 70, 8, 3, 15, 10, 5, 20, 7, 11, 6, 9, 4, 13, 8, 5, 7])


@pytest.fixture
def grouped_document():
    """About 900 words of short and medium paragraphs, no headers."""
    return make_document([8, 6, 10, 7, 9, 5, 12, 6, 11, 8, 9])


@pytest.fixture
def headed_document():
    sections = []
    for i, topic in enumerate(["Introduction", "Cell Structure", "Cell Division", "Summary"]):
        sections.append(f"## {topic}\n\n{make_paragraph(TOPICS[i], 9)}\n\n{make_paragraph(TOPICS[i + 4], 7)}")
    return "Overview of the unit and how to use it.\n\n" + "\n\n".join(sections)

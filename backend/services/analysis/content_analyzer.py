"""
Whole-text content analysis for learning material.
"""
import logging

from models.analysis_models import ContentAnalysis
from services.analysis.assessor import (
    assess_content_quality,
    assess_difficulty,
    assess_educational_value,
    assess_topic_coherence,
    calculate_readability_score,
)
from services.analysis.concept_extractor import (
    extract_concepts,
    extract_terms_with_context,
    extract_topics,
    generate_learning_objectives,
    map_concept_relationships,
)
from services.analysis.segmenter import (
    preprocess_for_analysis,
    segment_paragraphs,
    segment_sentences,
)

logger = logging.getLogger(__name__)


def analyze_content_for_learning(content: str) -> ContentAnalysis:
    """
    Analyze a document or chunk.

    Pipeline:
        1. Flatten whitespace; segment sentences (flattened) and paragraphs (raw)
        2. Extract and rank concepts
        3. Cluster paragraphs into topics
        4. Derive terms, objectives and concept relationships
        5. Score quality, educational value, readability, coherence, difficulty

    Never raises on malformed text; empty input yields an empty analysis.
    """
    clean_content = preprocess_for_analysis(content)
    if not clean_content:
        return ContentAnalysis()

    sentences = segment_sentences(clean_content)
    paragraphs = segment_paragraphs(content)

    concepts = extract_concepts(clean_content)
    topics = extract_topics(paragraphs, concepts)
    terms = extract_terms_with_context(concepts)
    objectives = generate_learning_objectives(concepts, topics)
    relationships = map_concept_relationships(concepts, sentences)

    readability = calculate_readability_score(clean_content)
    analysis = ContentAnalysis(
        key_concepts=concepts,
        main_topics=topics,
        learning_objectives=objectives,
        important_terms=terms,
        conceptual_relationships=relationships,
        difficulty_level=assess_difficulty(clean_content, concepts, readability),
        content_quality=assess_content_quality(content, concepts, topics),
        educational_value=assess_educational_value(concepts, objectives, relationships),
        readability_score=readability,
        topic_coherence=assess_topic_coherence(topics),
    )

    logger.info(
        f"Analysis complete: {len(concepts)} concepts "
        f"({len(analysis.main_concepts)} main), {len(topics)} topics, "
        f"quality={analysis.content_quality}, value={analysis.educational_value}, "
        f"difficulty={analysis.difficulty_level}"
    )
    return analysis

"""
Concept and topic extraction.

Regex and frequency heuristics stand in for real NLP here: several independent
passes propose candidate terms, candidates are merged by normalized term,
scored, ranked and then clustered into topics by paragraph.
"""
import math
import re
from typing import Dict, Iterable, List, Optional, Set, Tuple

from models.analysis_models import (
    ConceptInfo,
    ConceptRelationship,
    TermInfo,
    TopicInfo,
)
from services.analysis.segmenter import preprocess_for_analysis

MAX_CONCEPTS = 20
MAX_TOPICS = 8
MAX_TERMS = 15
MAX_RELATIONSHIPS = 10
MAX_OBJECTIVES = 5
MAX_CONTEXTS = 3
MAIN_CONCEPT_SHARE = 0.3
MAIN_CONCEPT_MIN = 3
MAIN_CONCEPT_IMPORTANCE = 7

STOP_WORDS = {
    'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
    'an', 'a', 'this', 'that', 'these', 'those', 'is', 'are', 'was', 'were',
    'be', 'been', 'being', 'have', 'has', 'had', 'do', 'does', 'did', 'will',
    'would', 'could', 'should', 'may', 'might', 'can', 'must', 'then', 'than',
    'when', 'where', 'why', 'how', 'what', 'which', 'who', 'whom', 'whose',
    'some', 'any', 'each', 'every', 'all', 'both', 'either', 'neither',
    'more', 'most', 'less', 'least', 'much', 'many', 'few', 'several',
    'other', 'another', 'same', 'different', 'such', 'very', 'really',
    'just', 'only', 'also', 'even', 'still', 'already', 'yet', 'again',
    'into', 'onto', 'from', 'through', 'during', 'before', 'after', 'above',
    'below', 'between', 'among', 'under', 'over', 'about', 'against', 'within',
}

COMMON_CAPITALIZED = {
    'The', 'This', 'That', 'These', 'Those', 'With', 'From', 'They', 'Were',
    'Been', 'Have', 'Will', 'Would', 'Could', 'Should', 'When', 'Where',
    'What', 'Which', 'Some', 'Many', 'Most', 'Other', 'Each', 'Such',
}

_TECHNICAL_PATTERNS = [
    re.compile(r'\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,3}\b'),  # Multi-word proper nouns
    re.compile(r'\b[A-Z]{2,}\b(?!\s*[.!?])'),  # Acronyms (not at sentence end)
    re.compile(r'\b[a-z]+(?:-[a-z]+)+\b'),  # Hyphenated terms
    re.compile(r'\b\w+(?:tion|sion|ment|ness|ity|ism|ology|graphy)\b'),  # Technical suffixes
]

_DEFINITION_PATTERNS = [
    # "Term is/are/means/refers to/defined as [definition]"
    re.compile(
        r'([A-Za-z][A-Za-z\s]{2,30})\s+(?:is|are|means|refers to|defined as)\s+([^.!?]{10,200})[.!?]',
        re.IGNORECASE,
    ),
    # "Term: [definition]"
    re.compile(r'([A-Za-z][A-Za-z\s]{2,30}):\s*([^.\n]{10,200})[.\n]', re.IGNORECASE),
]

_EMPHASIS_PATTERNS = [
    re.compile(r'"([^"]{3,50})"'),  # Quoted terms
    re.compile(r'\*\*([^*]{3,50})\*\*'),  # Bold markdown
    re.compile(r'\*([^*]{3,50})\*'),  # Italic markdown
    re.compile(r'\b([A-Z][A-Z\s]{3,30})\b'),  # ALL CAPS phrases
]

_TOPIC_TERM_PATTERNS = [
    re.compile(r'\b[a-z]+(?:-[a-z]+)+\b'),
    re.compile(r'\b\w+(?:tion|sion|ment|ness|ity|ism|ology|graphy|ics)\b'),
]

_ACTION_VERBS = {
    'basic': ['Identify', 'Define', 'List', 'Describe'],
    'intermediate': ['Explain', 'Compare', 'Analyze', 'Classify'],
    'advanced': ['Evaluate', 'Create', 'Synthesize', 'Critique'],
}

# (cue phrases, relationship type, strength), checked in order
_RELATIONSHIP_CUES = [
    (('is a', 'defined as'), 'defines', 0.9),
    (('because', 'causes', 'results in'), 'causes', 0.8),
    (('however', 'unlike', 'different'), 'contrasts', 0.7),
    (('example', 'such as', 'for instance'), 'exemplifies', 0.6),
    (('explain', 'therefore'), 'explains', 0.7),
]


def is_technical_term(term: str) -> bool:
    """Capitalized, or carries an internal run of two or more capitals."""
    return bool(re.match(r'^[A-Z]', term) or re.search(r'[A-Z]{2,}', term))


def _unique(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


def _normalize_space(term: str) -> str:
    return ' '.join(term.split())


# ----------------------------------------------------------------------------
# Extraction passes
# ----------------------------------------------------------------------------

def extract_technical_terms(content: str) -> List[str]:
    """Multi-word capitalized phrases, acronyms, hyphenated and suffixed words."""
    terms = []
    for pattern in _TECHNICAL_PATTERNS:
        for match in pattern.finditer(content):
            term = _normalize_space(match.group(0))
            if 3 < len(term) < 50:
                terms.append(term)
    return _unique(terms)


def extract_defined_terms(content: str) -> List[Tuple[str, str]]:
    """(term, definition) pairs from "X is Y" and "X: Y" sentence patterns."""
    definitions = []
    for pattern in _DEFINITION_PATTERNS:
        for match in pattern.finditer(content):
            definitions.append((_normalize_space(match.group(1)), match.group(2).strip()))
    return definitions


def extract_emphasized_terms(content: str) -> List[str]:
    """Quoted strings, markdown bold/italic spans and ALL CAPS phrases."""
    terms = []
    for pattern in _EMPHASIS_PATTERNS:
        for match in pattern.finditer(content):
            term = _normalize_space(match.group(1))
            if 2 < len(term) < 50:
                terms.append(term)
    return _unique(terms)


def extract_frequent_terms(content: str, min_count: int = 3, limit: int = 15) -> List[Tuple[str, int]]:
    """Lowercase words of four or more letters seen at least min_count times."""
    frequency: Dict[str, int] = {}
    for word in re.findall(r'\b[a-z]{3,}\b', content.lower()):
        if word not in STOP_WORDS and len(word) > 3:
            frequency[word] = frequency.get(word, 0) + 1

    frequent = [(term, count) for term, count in frequency.items() if count >= min_count]
    frequent.sort(key=lambda item: item[1], reverse=True)
    return frequent[:limit]


def extract_contexts(term: str, content: str, max_contexts: int = MAX_CONTEXTS) -> List[str]:
    """Up to max_contexts sentences mentioning the term, clipped to 150 characters."""
    pattern = re.compile(
        r'[^.!?]*(?<!\w)' + re.escape(term) + r'(?!\w)[^.!?]*[.!?]',
        re.IGNORECASE,
    )
    contexts = []
    for match in pattern.finditer(content):
        sentence = match.group(0).strip()
        contexts.append(sentence[:150] + ('...' if len(sentence) > 150 else ''))
        if len(contexts) >= max_contexts:
            break
    return contexts


def _add_or_update(
    concepts: Dict[str, ConceptInfo],
    term: str,
    content: str,
    definition: Optional[str] = None,
) -> None:
    key = term.lower().strip()
    if len(key) < 2:
        return

    existing = concepts.get(key)
    if existing:
        existing.frequency += 1
        if definition and definition not in existing.definitions:
            existing.definitions.append(definition)
        return

    concepts[key] = ConceptInfo(
        term=term.strip(),
        context=extract_contexts(term.strip(), content),
        definitions=[definition] if definition else [],
    )


# ----------------------------------------------------------------------------
# Scoring and ranking
# ----------------------------------------------------------------------------

def calculate_concept_importance(concept: ConceptInfo, content: str) -> float:
    """Additive 0-10 importance score."""
    score = 0.0

    # Frequency (0-3 points)
    score += min(3.0, concept.frequency / 2)

    # Has a definition
    if concept.definitions:
        score += 2

    # Reasonable length
    if 4 <= len(concept.term) <= 25:
        score += 1

    # Appears early in the document
    lead = content[:int(len(content) * 0.2)].lower()
    if concept.term.lower() in lead:
        score += 2

    # Seen in more than one context
    if len(concept.context) > 1:
        score += 1

    if is_technical_term(concept.term):
        score += 1

    return min(10.0, score)


def extract_concepts(content: str, limit: int = MAX_CONCEPTS) -> List[ConceptInfo]:
    """
    Run every extraction pass and return ranked concepts.

    The result is sorted by importance (descending) and truncated to limit.
    The top max(3, ceil(30%)) of the returned list, plus anything scoring
    above 7, are marked as main concepts.
    """
    text = preprocess_for_analysis(content)
    if not text:
        return []

    concepts: Dict[str, ConceptInfo] = {}

    for term in extract_technical_terms(text):
        _add_or_update(concepts, term, text)

    for term, definition in extract_defined_terms(text):
        _add_or_update(concepts, term, text, definition)

    for term in extract_emphasized_terms(text):
        _add_or_update(concepts, term, text)

    for term, _count in extract_frequent_terms(text):
        _add_or_update(concepts, term, text)

    for concept in concepts.values():
        concept.importance = calculate_concept_importance(concept, text)

    ranked = sorted(concepts.values(), key=lambda c: c.importance, reverse=True)[:limit]

    threshold = max(MAIN_CONCEPT_MIN, math.ceil(len(ranked) * MAIN_CONCEPT_SHARE))
    for rank, concept in enumerate(ranked):
        concept.is_main_concept = rank < threshold or concept.importance > MAIN_CONCEPT_IMPORTANCE

    return ranked


# ----------------------------------------------------------------------------
# Topic clustering
# ----------------------------------------------------------------------------

def calculate_topic_coherence(paragraphs: List[str], concepts: List[ConceptInfo]) -> float:
    """Mean over concepts of (share of paragraphs containing it) x importance, capped at 10."""
    if not paragraphs or not concepts:
        return 0.0

    lowered = [p.lower() for p in paragraphs]
    total = 0.0
    for concept in concepts:
        term = concept.term.lower()
        appearances = sum(1 for p in lowered if term in p)
        total += (appearances / len(paragraphs)) * concept.importance

    return min(10.0, total / len(concepts))


def extract_topics(paragraphs: List[str], concepts: List[ConceptInfo]) -> List[TopicInfo]:
    """
    Cluster paragraphs by their dominant concept.

    Paragraphs mentioning no known concept are left out of every cluster.
    """
    clusters: Dict[str, List[str]] = {}

    for paragraph in paragraphs:
        lower = paragraph.lower()
        present = [c for c in concepts if c.term.lower() in lower]
        if not present:
            continue
        dominant = max(present, key=lambda c: c.importance)
        clusters.setdefault(dominant.term, []).append(paragraph)

    topics = []
    for topic_name, members in clusters.items():
        lowered = [p.lower() for p in members]
        relevant = [c for c in concepts if any(c.term.lower() in p for p in lowered)]
        topics.append(TopicInfo(
            topic=topic_name,
            relevance=sum(c.importance for c in relevant) / len(relevant),
            keywords=[c.term for c in relevant[:5]],
            coherence_score=calculate_topic_coherence(members, relevant),
        ))

    topics.sort(key=lambda t: t.relevance, reverse=True)
    return topics[:MAX_TOPICS]


# ----------------------------------------------------------------------------
# Terms, objectives and relationships
# ----------------------------------------------------------------------------

def extract_terms_with_context(concepts: List[ConceptInfo]) -> List[TermInfo]:
    terms = []
    for concept in concepts[:MAX_TERMS]:
        if concept.definitions:
            term_type = 'definition'
        elif is_technical_term(concept.term):
            term_type = 'technical'
        else:
            term_type = 'concept'

        terms.append(TermInfo(
            term=concept.term,
            type=term_type,
            importance=concept.importance,
            context=concept.context[0] if concept.context else '',
        ))
    return terms


def generate_learning_objectives(concepts: List[ConceptInfo], topics: List[TopicInfo]) -> List[str]:
    """Bloom-style objectives for the leading main concepts and topics."""
    objectives = []
    main_concepts = [c for c in concepts if c.is_main_concept][:3]

    for index, concept in enumerate(main_concepts):
        if concept.importance > 8:
            verbs = _ACTION_VERBS['advanced']
        elif concept.importance > 6:
            verbs = _ACTION_VERBS['intermediate']
        else:
            verbs = _ACTION_VERBS['basic']
        verb = verbs[index % len(verbs)]

        if concept.definitions:
            objectives.append(f"{verb} the concept of {concept.term} and its significance")
        else:
            objectives.append(f"{verb} how {concept.term} relates to the main topic")

    for topic in topics[:2]:
        objectives.append(f"Analyze the key principles and applications of {topic.topic}")

    if len(main_concepts) > 1:
        pair = ' and '.join(c.term for c in main_concepts[:2])
        objectives.append(f"Evaluate the relationships between {pair}")

    return objectives[:MAX_OBJECTIVES]


def infer_relationship(sentences: List[str]) -> Tuple[str, float]:
    """Relationship type and strength from cue phrases in shared sentences."""
    combined = ' '.join(sentences).lower()
    for cues, relationship, strength in _RELATIONSHIP_CUES:
        if any(cue in combined for cue in cues):
            return relationship, strength
    return 'relates_to', 0.5


def map_concept_relationships(concepts: List[ConceptInfo], sentences: List[str]) -> List[ConceptRelationship]:
    """Relationships for every ordered concept pair that shares a sentence."""
    lowered = [(s, s.lower()) for s in sentences]
    relationships = []

    for first in concepts:
        first_term = first.term.lower()
        for second in concepts:
            if first.term == second.term:
                continue
            second_term = second.term.lower()
            shared = [s for s, lower in lowered if first_term in lower and second_term in lower]
            if not shared:
                continue

            relationship, strength = infer_relationship(shared)
            relationships.append(ConceptRelationship(
                concept1=first.term,
                concept2=second.term,
                relationship=relationship,
                strength=strength,
                evidence=shared[:2],
            ))

    relationships.sort(key=lambda r: r.strength, reverse=True)
    return relationships[:MAX_RELATIONSHIPS]


# ----------------------------------------------------------------------------
# Lightweight topic terms used by the chunkers
# ----------------------------------------------------------------------------

def extract_topic_terms(content: str, limit: int = 8) -> List[str]:
    """Capitalized phrases, quoted terms, hyphenated and suffixed words, in order of appearance."""
    topics = []

    for match in re.finditer(r'\b[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){0,2}\b', content):
        term = match.group(0)
        if 3 < len(term) < 40 and term not in COMMON_CAPITALIZED:
            topics.append(term)

    for match in re.finditer(r'"([^"]{3,30})"', content):
        topics.append(match.group(1))

    for pattern in _TOPIC_TERM_PATTERNS:
        for match in pattern.finditer(content):
            term = match.group(0)
            if 4 < len(term) < 30:
                topics.append(term)

    return _unique(topics)[:limit]


def extract_paragraph_topics(paragraph: str) -> Set[str]:
    """Lowercased topic signature of a paragraph, used for similarity checks."""
    topics: Set[str] = set()

    for match in re.finditer(r'\b[A-Z][a-z]{2,}(?:\s+[A-Z][a-z]{2,}){0,2}\b', paragraph):
        term = _normalize_space(match.group(0))
        if 3 < len(term) < 30:
            topics.add(term.lower())

    for match in re.finditer(r'\b\w+(?:tion|sion|ment|ness|ity|ism|ology|graphy|ics)\b', paragraph, re.IGNORECASE):
        if len(match.group(0)) > 4:
            topics.add(match.group(0).lower())

    for match in re.finditer(r'"([^"]+)"', paragraph):
        if 2 < len(match.group(1)) < 30:
            topics.add(match.group(1).lower())

    return topics


def topic_similarity(first: Set[str], second: Set[str]) -> float:
    """Jaccard similarity; two empty sets count as identical."""
    if not first and not second:
        return 1.0
    if not first or not second:
        return 0.0
    return len(first & second) / len(first | second)

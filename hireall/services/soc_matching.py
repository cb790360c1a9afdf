"""
SOC Code Matching Service

Maps a scraped job title onto a UK Standard Occupational Classification
(SOC) code so the extension can show whether the role is visa eligible.

HOW IT WORKS:
1. Normalize the title (common variations -> standard title) and detect
   the seniority level
2. Extract keywords (stop words and words of 2 chars or less dropped)
3. Score every SOC document (max 500) against the title:
   - title similarity > 0.7            -> + 0.5 * similarity
   - first related title with sim > 0.6 -> + 0.4 * similarity
   - description word overlap > 0.2     -> + 0.2 * overlap
   - each keyword found in the code     -> + 0.05
   - department / seniority hints       -> + 0.05 each
4. The best score above 0.3 wins; confidence is capped at 1.0

SOC documents are stored as:
    {"code": "2136", "job_type": "Programmers and software development
     professionals", "related_titles": [...], "search_terms": [...],
     "eligibility": "Higher Skilled", "is_eligible": true}
"""

import logging
import re
from typing import Dict, List, Optional, Set

from hireall.db.mongodb import get_collection
from hireall.schemas.schemas import SocMatchRequest, SocSearchQuery
from hireall.services.mongo_service import serialize_doc
from hireall.utils.text import levenshtein_distance

logger = logging.getLogger(__name__)

MAX_SOC_DOCS = 500
MATCH_THRESHOLD = 0.3

STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "as", "from", "is", "was", "are", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "might", "must", "can", "i", "you", "he", "she", "it", "we", "they",
    "me", "him", "her", "us", "them", "my", "your", "his", "its", "our", "their",
    "this", "that", "these", "those", "who", "which", "what", "when", "where", "why",
}

_NON_WORD = re.compile(r"[^\w\s]")


# ============================================================
# FUZZY MATCHING
# ============================================================

def title_similarity(a: str, b: str) -> float:
    """(len(longer) - distance) / len(longer); two empty strings are identical."""
    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    if not longer:
        return 1.0
    return (len(longer) - levenshtein_distance(longer, shorter)) / len(longer)


def extract_words(text: str) -> List[str]:
    words = _NON_WORD.sub(" ", text.lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS]


def word_overlap(a: str, b: str) -> float:
    """Jaccard similarity of the meaningful words in ``a`` and ``b``."""
    words_a = set(extract_words(a))
    words_b = set(extract_words(b))
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


# ============================================================
# TITLE NORMALIZATION
# ============================================================

TITLE_VARIATIONS: Dict[str, List[str]] = {
    "software engineer": ["software developer", "software eng", "sde", "developer", "programmer"],
    "senior software engineer": ["senior software developer", "senior sde", "lead developer", "principal engineer"],
    "product manager": ["pm", "product owner", "product lead"],
    "data scientist": ["data analyst", "data engineer", "research scientist"],
    "ux designer": ["ui designer", "user experience designer", "product designer"],
    "project manager": ["pm", "program manager", "project lead"],
    "business analyst": ["ba", "systems analyst", "process analyst"],
    "devops engineer": ["devops", "site reliability engineer", "sre", "platform engineer"],
    "frontend developer": ["front-end developer", "ui developer", "react developer"],
    "backend developer": ["back-end developer", "server developer", "api developer"],
    "full stack developer": ["fullstack developer", "full-stack developer", "full stack engineer"],
    "machine learning engineer": ["ml engineer", "ai engineer", "deep learning engineer"],
}

# Checked in order; the first level with a hit wins
SENIORITY_LEVELS: Dict[str, List[str]] = {
    "junior": ["jr", "entry level", "graduate", "trainee", "associate"],
    "mid-level": ["mid", "intermediate", "experienced"],
    "senior": ["sr", "lead", "principal", "head", "staff"],
    "manager": ["manager", "lead", "head of"],
    "director": ["director", "vp", "vice president", "head of department"],
    "executive": ["ceo", "cto", "cfo", "chief", "executive", "president"],
}

DEFAULT_SENIORITY = "mid-level"


def detect_seniority(lower_title: str) -> str:
    for level, variations in SENIORITY_LEVELS.items():
        if any(v in lower_title for v in variations):
            return level
    return DEFAULT_SENIORITY


def normalize_title(title: str) -> dict:
    """
    Returns ``{"normalized", "seniority", "keywords"}``.

    Each standard title replaces the first of its variations found in the
    original lowercased title. A later standard that also matches overwrites
    the earlier replacement.

    >>> normalize_title("Software Developer")["normalized"]
    'software engineer'
    """
    lower_title = title.lower()
    seniority = detect_seniority(lower_title)

    normalized = lower_title
    for standard, variations in TITLE_VARIATIONS.items():
        for variation in variations:
            if variation in lower_title:
                normalized = lower_title.replace(variation, standard, 1)
                break

    return {
        "normalized": normalized.strip(),
        "seniority": seniority,
        "keywords": extract_words(normalized),
    }


# ============================================================
# MATCHING
# ============================================================

def score_soc_code(
    soc: dict,
    request: SocMatchRequest,
    normalized_title: str,
    seniority: str,
    keywords: Set[str],
):
    """Return ``(score, matched_keywords)`` for one SOC document."""
    job_type = soc.get("job_type") or ""
    job_type_lower = job_type.lower()
    related_titles = soc.get("related_titles") or []
    search_terms = soc.get("search_terms") or []

    score = 0.0
    matched: List[str] = []

    similarity = title_similarity(normalized_title, job_type_lower)
    if similarity > 0.7:
        score += similarity * 0.5
        matched.append(job_type)

    for related in related_titles:
        related_similarity = title_similarity(normalized_title, related.lower())
        if related_similarity > 0.6:
            score += related_similarity * 0.4
            matched.append(related)
            break

    if request.description:
        overlap = word_overlap(f"{request.title} {request.description}", job_type)
        if overlap > 0.2:
            score += overlap * 0.2

    for keyword in keywords:
        if (
            keyword in job_type_lower
            or any(keyword in t.lower() for t in related_titles)
            or keyword in search_terms
        ):
            score += 0.05
            matched.append(keyword)

    if request.department and request.department.lower() in job_type_lower:
        score += 0.05

    if (request.seniority or seniority) in job_type_lower:
        score += 0.05

    return score, matched


def match_to_soc_code(request: SocMatchRequest) -> Optional[dict]:
    """Best SOC match for ``request`` or None when nothing scores above 0.3."""
    title = normalize_title(request.title)
    keywords = set(title["keywords"])
    keywords.update(k.lower() for k in request.keywords or [])

    best = None
    best_score = 0.0
    for soc in get_collection("soc_codes").find({}).limit(MAX_SOC_DOCS):
        score, matched = score_soc_code(soc, request, title["normalized"], title["seniority"], keywords)
        if score > best_score and score > MATCH_THRESHOLD:
            best_score = score
            best = {
                "code": soc.get("code"),
                "title": soc.get("job_type"),
                "confidence": min(score, 1.0),
                "matched_keywords": list(dict.fromkeys(matched)),
                "related_titles": soc.get("related_titles") or [],
                "eligibility": soc.get("eligibility") or "Unknown",
            }

    if best is None:
        logger.debug("No SOC match for title %r", request.title)
    return best


def search_soc_codes(query: SocSearchQuery) -> dict:
    """Filter SOC codes by eligibility text, exact code and title substring."""
    q = (query.q or "").strip().lower()
    code = (query.code or "").strip()
    eligibility = (query.eligibility or "").strip().lower()

    filters = {"code": code} if code else {}
    results = []
    for soc in get_collection("soc_codes").find(filters).sort("code", 1):
        if eligibility and eligibility not in (soc.get("eligibility") or "").lower():
            continue
        if q:
            in_type = q in (soc.get("job_type") or "").lower()
            in_related = any(q in t.lower() for t in soc.get("related_titles") or [])
            if not (in_type or in_related):
                continue
        results.append(serialize_doc(soc))
        if len(results) >= query.limit:
            break

    return {
        "query": q or None,
        "code": code or None,
        "eligibility": eligibility or None,
        "total_results": len(results),
        "results": results,
    }

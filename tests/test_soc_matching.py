import pytest

from hireall.schemas.schemas import SocMatchRequest, SocSearchQuery
from hireall.services.soc_matching import (
    detect_seniority,
    match_to_soc_code,
    normalize_title,
    search_soc_codes,
    title_similarity,
    word_overlap,
)

SOC_CODES = [
    {
        "code": "2136",
        "job_type": "Programmers and software development professionals",
        "related_titles": ["Software engineer", "Software developer", "Web developer"],
        "search_terms": ["software", "developer"],
        "eligibility": "Higher Skilled",
    },
    {
        "code": "2121",
        "job_type": "Civil engineers",
        "related_titles": ["Civil engineers"],
        "search_terms": ["civil"],
        "eligibility": "Higher Skilled",
    },
    {
        "code": "6145",
        "job_type": "Care workers and home carers",
        "related_titles": ["Care worker", "Home carer"],
        "search_terms": ["care"],
        "eligibility": "Medium Skilled",
    },
]


@pytest.fixture
def soc_codes(db):
    db.soc_codes.insert_many([dict(doc) for doc in SOC_CODES])


def test_title_similarity():
    assert title_similarity("", "") == 1.0
    assert title_similarity("engineer", "engineer") == 1.0
    assert title_similarity("abc", "") == 0.0
    assert title_similarity("kitten", "sitting") == pytest.approx(4 / 7)


def test_word_overlap_ignores_stop_words():
    assert word_overlap("the software developer", "software developer of the year") == pytest.approx(2 / 3)
    assert word_overlap("", "") == 0.0


@pytest.mark.parametrize("title, level", [
    ("Graduate Software Developer", "junior"),
    ("Sr Data Analyst", "senior"),
    ("Engineering Director", "director"),
    ("Chief Technology Officer", "executive"),
    ("Software Developer", "mid-level"),
])
def test_detect_seniority(title, level):
    assert detect_seniority(title.lower()) == level


def test_normalize_title():
    result = normalize_title("Software Developer")
    assert result == {
        "normalized": "software engineer",
        "seniority": "mid-level",
        "keywords": ["software", "engineer"],
    }
    assert normalize_title("Sr Data Analyst")["normalized"] == "sr data scientist"


def test_match_picks_best_code(soc_codes):
    match = match_to_soc_code(SocMatchRequest(title="Software Developer"))

    assert match["code"] == "2136"
    assert match["eligibility"] == "Higher Skilled"
    assert match["confidence"] == pytest.approx(0.5)
    assert "Software engineer" in match["matched_keywords"]
    assert {"software", "engineer"} <= set(match["matched_keywords"])


def test_extra_keywords_raise_confidence(soc_codes):
    plain = match_to_soc_code(SocMatchRequest(title="Care Worker"))
    boosted = match_to_soc_code(SocMatchRequest(title="Care Worker", keywords=["home"]))
    assert plain["code"] == boosted["code"] == "6145"
    assert boosted["confidence"] > plain["confidence"]


def test_no_match_below_threshold(soc_codes):
    assert match_to_soc_code(SocMatchRequest(title="Astronaut")) is None


def test_no_codes_no_match():
    assert match_to_soc_code(SocMatchRequest(title="Software Developer")) is None


def test_search_by_title_code_and_eligibility(soc_codes):
    by_title = search_soc_codes(SocSearchQuery(q="engineer"))
    assert [r["code"] for r in by_title["results"]] == ["2121", "2136"]
    assert by_title["total_results"] == 2

    by_code = search_soc_codes(SocSearchQuery(code="6145"))
    assert by_code["results"][0]["job_type"] == "Care workers and home carers"

    medium = search_soc_codes(SocSearchQuery(eligibility="medium"))
    assert [r["code"] for r in medium["results"]] == ["6145"]

    limited = search_soc_codes(SocSearchQuery(limit=1))
    assert limited["total_results"] == 1

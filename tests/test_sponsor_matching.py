import pytest

from hireall.services.sponsor_service import SponsorService, score_location, sponsor_flags
from hireall.utils.text import normalize_company_name


def add_sponsor(db, name, city="London", route="Skilled Worker", rating="Worker (A rating)", **extra):
    doc = {
        "name": name,
        "search_name": normalize_company_name(name),
        "city": city,
        "route": route,
        "type_rating": rating,
        "is_active": True,
        "created_at": 1,
        **extra,
    }
    doc["_id"] = db.sponsors.insert_one(doc).inserted_id
    return doc


def test_exact_name_and_city(db):
    add_sponsor(db, "Acme Widgets Ltd")
    result = SponsorService().check_company("Acme Widgets", "London")

    assert result["found"] is True
    assert result["is_sponsored"] is True
    assert result["match_details"] == {"name_match": "exact", "location_match": "exact", "confidence": 1.0}
    assert result["sponsor"]["name"] == "Acme Widgets Ltd"
    assert result["sponsor"]["route"] == "Skilled Worker"


def test_location_not_provided_scores_half(db):
    add_sponsor(db, "Acme Widgets Ltd")
    result = SponsorService().check_company("ACME WIDGETS LIMITED")

    assert result["found"]
    assert result["match_details"]["location_match"] == "not_provided"
    assert result["match_details"]["confidence"] == pytest.approx(0.85)


def test_wrong_city_still_matches_on_exact_name(db):
    add_sponsor(db, "Acme Widgets Ltd", city="Leeds")
    result = SponsorService().check_company("Acme Widgets", "Manchester")

    assert result["found"]
    assert result["match_details"]["location_match"] == "none"
    assert result["match_details"]["confidence"] == pytest.approx(0.7)


def test_partial_name_match(db):
    add_sponsor(db, "Acme Widgets")
    result = SponsorService().check_company("Acme", "Greater London")

    assert result["found"]
    assert result["match_details"]["name_match"] == "partial"
    assert result["match_details"]["location_match"] == "partial"
    assert result["match_details"]["confidence"] == pytest.approx(0.9 * 0.7 + 0.7 * 0.3)


def test_best_candidate_wins(db):
    add_sponsor(db, "Acme Widgets", city="Leeds")
    add_sponsor(db, "Acme", city="London")
    result = SponsorService().check_company("Acme", "London")
    assert result["sponsor"]["name"] == "Acme"


def test_no_candidates(db):
    add_sponsor(db, "Acme Widgets")
    result = SponsorService().check_company("Globex")

    assert result["found"] is False
    assert result["is_sponsored"] is False
    assert result["match_details"] == {"name_match": "none", "location_match": "not_provided", "confidence": 0}
    assert "sponsor" not in result


def test_found_but_not_sponsored(db):
    add_sponsor(db, "Temp Staff Co", route="Temporary Worker", rating="Worker (B rating)")
    result = SponsorService().check_company("Temp Staff Co")
    assert result["found"] is True
    assert result["is_sponsored"] is False


def test_score_location():
    assert score_location("", "london") == ("not_provided", 0.5)
    assert score_location("london", "london") == ("exact", 1.0)
    assert score_location("london", "city of london") == ("partial", 0.7)
    assert score_location("london", "leeds") == ("none", 0.0)


def test_sponsor_without_city_is_partial_location_match(db):
    assert score_location("london", "") == ("partial", 0.7)

    add_sponsor(db, "Acme Widgets Ltd", city=None)
    result = SponsorService().check_company("Acme Widgets", "London")
    assert result["match_details"]["location_match"] == "partial"
    assert result["match_details"]["confidence"] == pytest.approx(0.7 + 0.7 * 0.3)


def test_sponsor_flags_fall_back_to_sponsorship_type():
    flags = sponsor_flags({"sponsorship_type": "Skilled Worker", "license_rating": "Licensed"})
    assert flags == {"is_licensed_sponsor": True, "is_skilled_worker": True}


def test_batch_direct_alias_and_no_match(db):
    add_sponsor(db, "Acme Widgets Ltd")
    add_sponsor(db, "Initech Holdings", aliases=["Initech"])
    add_sponsor(db, "Dormant Corp", is_active=False)

    results = SponsorService().check_batch(["Acme Widgets Ltd", "acme widgets", "INITECH UK", "Dormant Corp"])

    assert [r["source"] for r in results] == ["direct_match", "alias_match", "alias_match", "no_match"]
    assert results[1]["matched_name"] == "Acme Widgets Ltd"
    assert results[2]["matched_name"] == "Initech Holdings"
    assert results[3]["is_sponsored"] is False

"""
Sponsor Service - UK visa sponsor register lookups.

Sponsors come from the Home Office register of licensed sponsors. Each
document stores the display ``name`` plus ``search_name`` (the normalized
name, see ``normalize_company_name``) which backs the prefix query.

Matching a company scraped from a job board:
1. normalize the name and prefix-query ``search_name`` (max 50 candidates)
2. name similarity: exact / partial (>= 0.85) / fuzzy (>= 0.7), else skip
3. location: exact 1.0, partial 0.7, none 0.0, not provided 0.5
4. score = 0.7 * name + 0.3 * location; best score >= 0.7 is a match
"""

import logging
import re
import time
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from hireall.core.errors import NotFoundError
from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import SponsorCreate, SponsorListQuery, SponsorUpdate
from hireall.services.mongo_service import serialize_doc, to_object_id
from hireall.utils.text import calculate_similarity, normalize_company_name, sanitize_string

logger = logging.getLogger(__name__)

CANDIDATE_LIMIT = 50
MATCH_THRESHOLD = 0.7
NAME_WEIGHT = 0.7
LOCATION_WEIGHT = 0.3

NO_MATCH_DETAILS = {"name_match": "none", "location_match": "not_provided", "confidence": 0}


def _sponsor_route(data: dict) -> str:
    route = data.get("route")
    if isinstance(route, str):
        return route
    return data.get("sponsorship_type") or ""


def _sponsor_rating(data: dict) -> str:
    for key in ("type_rating", "license_rating", "rating"):
        if isinstance(data.get(key), str):
            return data[key]
    return ""


def sponsor_flags(data: dict) -> Dict[str, bool]:
    """Licensed (A rating) and skilled-worker flags derived from rating/route."""
    rating = _sponsor_rating(data).lower()
    route = _sponsor_route(data).lower()
    return {
        "is_licensed_sponsor": "a rating" in rating or "licensed" in rating,
        "is_skilled_worker": "skilled worker" in route,
    }


def map_sponsor(doc: dict) -> dict:
    """Public view of a sponsor document."""
    flags = sponsor_flags(doc)
    name = (doc.get("name") or doc.get("company") or "").strip()
    route = _sponsor_route(doc)
    is_active = doc.get("is_active") is not False
    eligible = doc.get("eligible_for_sponsorship")
    if not isinstance(eligible, bool):
        eligible = is_active and (flags["is_licensed_sponsor"] or flags["is_skilled_worker"])

    return {
        "id": str(doc["_id"]),
        "name": name,
        "city": doc.get("city"),
        "route": doc.get("route") if isinstance(doc.get("route"), str) else None,
        "type_rating": _sponsor_rating(doc) or None,
        "sponsorship_type": route or None,
        "industry": doc.get("industry"),
        "website": doc.get("website"),
        "description": doc.get("description"),
        "notes": doc.get("notes"),
        "source": doc.get("source") or "official-register",
        "is_active": is_active,
        "eligible_for_sponsorship": eligible,
        "created_at": doc.get("created_at"),
        "last_updated": doc.get("updated_at") or doc.get("last_updated"),
        **flags,
    }


def score_location(search_location: str, sponsor_city: str):
    """Return ``(match_type, score)`` for a sponsor city against the search."""
    if not search_location:
        return "not_provided", 0.5
    if sponsor_city == search_location:
        return "exact", 1.0
    # An empty city is contained in any search location, so it counts as partial
    if search_location in sponsor_city or sponsor_city in search_location:
        return "partial", 0.7
    return "none", 0.0


def classify_name_match(normalized_search: str, normalized_sponsor: str, similarity: float) -> Optional[str]:
    if normalized_search == normalized_sponsor:
        return "exact"
    if similarity >= 0.85:
        return "partial"
    if similarity >= 0.7:
        return "fuzzy"
    return None


class SponsorService:
    def __init__(self):
        self.collection: Collection = get_collection("sponsors")

    # ------------------------------------------------------------
    # Single company check
    # ------------------------------------------------------------

    def find_candidates(self, normalized_name: str) -> List[dict]:
        if not normalized_name:
            return []
        query = {"search_name": {"$regex": "^" + re.escape(normalized_name)}}
        return list(self.collection.find(query).limit(CANDIDATE_LIMIT))

    def check_company(self, company: str, location: Optional[str] = None) -> dict:
        started = time.monotonic()
        normalized_search = normalize_company_name(company)
        search_location = (location or "").strip().lower()

        best = None
        for doc in self.find_candidates(normalized_search):
            sponsor_name = (doc.get("name") or doc.get("company") or "").strip()
            normalized_sponsor = normalize_company_name(sponsor_name)
            similarity = calculate_similarity(normalized_search, normalized_sponsor)

            name_match = classify_name_match(normalized_search, normalized_sponsor, similarity)
            if name_match is None:
                continue

            sponsor_city = (doc.get("city") or "").strip().lower()
            location_match, location_score = score_location(search_location, sponsor_city)

            score = similarity * NAME_WEIGHT + location_score * LOCATION_WEIGHT
            if best is None or score > best["score"]:
                best = {"doc": doc, "score": score, "name_match": name_match, "location_match": location_match}

            if name_match == "exact" and location_match == "exact":
                break

        processing_time = int((time.monotonic() - started) * 1000)

        if best is None or best["score"] < MATCH_THRESHOLD:
            logger.debug("No sponsor match for %r", company)
            return {
                "found": False,
                "is_sponsored": False,
                "match_details": dict(NO_MATCH_DETAILS),
                "processing_time": processing_time,
            }

        sponsor = map_sponsor(best["doc"])
        sponsor_view = {
            key: sponsor[key]
            for key in ("id", "name", "city", "type_rating", "is_skilled_worker", "is_licensed_sponsor")
        }
        sponsor_view["route"] = sponsor["sponsorship_type"]
        return {
            "found": True,
            "is_sponsored": sponsor["is_licensed_sponsor"] or sponsor["is_skilled_worker"],
            "sponsor": sponsor_view,
            "match_details": {
                "name_match": best["name_match"],
                "location_match": best["location_match"],
                "confidence": best["score"],
            },
            "processing_time": processing_time,
        }

    # ------------------------------------------------------------
    # Batch check (extension board badges)
    # ------------------------------------------------------------

    def check_batch(self, companies: List[str]) -> List[dict]:
        """Direct active-name match first, then alias/name containment."""
        active = None
        results = []
        for company in companies:
            direct = self.collection.find_one({"name": company, "is_active": {"$ne": False}})
            if direct:
                results.append({
                    "company": company,
                    "is_sponsored": True,
                    "sponsorship_type": _sponsor_route(direct) or None,
                    "source": "direct_match",
                })
                continue

            # Loaded lazily, once per batch
            if active is None:
                active = list(self.collection.find(
                    {"is_active": {"$ne": False}},
                    {"name": 1, "aliases": 1, "route": 1, "sponsorship_type": 1},
                ))

            needle = company.strip().lower()
            match = None
            for doc in active if needle else []:
                names = [(doc.get("name") or "").lower()] + [a.lower() for a in doc.get("aliases") or []]
                if any(n and (n in needle or needle in n) for n in names):
                    match = doc
                    break

            if match:
                results.append({
                    "company": company,
                    "is_sponsored": True,
                    "sponsorship_type": _sponsor_route(match) or None,
                    "source": "alias_match",
                    "matched_name": match.get("name"),
                })
            else:
                results.append({
                    "company": company,
                    "is_sponsored": False,
                    "sponsorship_type": None,
                    "source": "no_match",
                })
        return results

    # ------------------------------------------------------------
    # Listing / admin CRUD
    # ------------------------------------------------------------

    def list(self, query: SponsorListQuery, is_admin: bool) -> dict:
        filters: Dict[str, Any] = {}
        if query.industry and query.industry != "all":
            filters["industry"] = query.industry
        if query.sponsorship_type and query.sponsorship_type != "all":
            filters["sponsorship_type"] = query.sponsorship_type
        if query.status == "active":
            filters["is_active"] = {"$ne": False}
        elif query.status == "inactive":
            filters["is_active"] = False

        total = self.collection.count_documents(filters)
        docs = list(
            self.collection.find(filters)
            .sort("created_at", DESCENDING)
            .skip((query.page - 1) * query.limit)
            .limit(query.limit)
        )

        quick = (query.q or "").strip()
        search = (query.search or "").strip() or quick

        records = []
        for doc in docs:
            record = map_sponsor(doc)
            if search:
                needle = search.lower()
                fields = (record["name"], record["city"], record["route"], record["type_rating"])
                if not any(f and needle in f.lower() for f in fields):
                    continue
            if not is_admin and not record["is_active"]:
                continue
            records.append(record)

        has_more = query.page * query.limit < total
        if quick:
            return {
                "query": quick,
                "results": records,
                "total": len(records),
                "page": query.page,
                "limit": query.limit,
                "has_more": has_more,
            }

        if is_admin:
            # Admins also see stored fields the public view leaves out
            raw = {str(doc["_id"]): serialize_doc(doc) for doc in docs}
            companies = [{**raw[r["id"]], **r} for r in records]
        else:
            companies = records

        return {
            "companies": companies,
            "total": total,
            "page": query.page,
            "limit": query.limit,
            "has_more": has_more,
        }

    def create(self, data: SponsorCreate, created_by: str) -> dict:
        doc = data.model_dump(exclude_none=True)
        doc["name"] = sanitize_string(doc["name"], 300)
        doc["search_name"] = normalize_company_name(doc["name"])
        doc["aliases"] = [sanitize_string(a, 300) for a in doc.get("aliases", []) if a.strip()]
        now = now_ms()
        doc.update({"created_at": now, "updated_at": now, "created_by": created_by, "source": "admin"})

        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Sponsor %s created by %s", result.inserted_id, created_by)
        return map_sponsor(doc)

    def update(self, sponsor_id: str, data: SponsorUpdate, updated_by: str) -> dict:
        oid = to_object_id(sponsor_id, "Sponsor")
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name"):
            changes["name"] = sanitize_string(changes["name"], 300)
            changes["search_name"] = normalize_company_name(changes["name"])
        changes.update({"updated_at": now_ms(), "updated_by": updated_by})

        doc = self.collection.find_one_and_update(
            {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
        if not doc:
            raise NotFoundError("Sponsor not found")
        return map_sponsor(doc)

    def delete(self, sponsor_id: str) -> dict:
        result = self.collection.delete_one({"_id": to_object_id(sponsor_id, "Sponsor")})
        if not result.deleted_count:
            raise NotFoundError("Sponsor not found")
        return {"id": sponsor_id}

    def count_active(self, since_ms: Optional[int] = None, until_ms: Optional[int] = None) -> int:
        query: Dict[str, Any] = {"is_active": {"$ne": False}}
        if since_ms is not None or until_ms is not None:
            query["created_at"] = {}
            if since_ms is not None:
                query["created_at"]["$gte"] = since_ms
            if until_ms is not None:
                query["created_at"]["$lt"] = until_ms
        return self.collection.count_documents(query)

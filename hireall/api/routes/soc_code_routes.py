"""
SOC Code Routes

GET  /soc-codes        - Search SOC codes (q, code, eligibility, limit)
POST /soc-codes/match  - Match a job title to the best SOC code
GET  /soc-codes/match  - Describe the match endpoint
"""

from fastapi import APIRouter

from hireall.api.with_api import ApiContext, with_authenticated_api, with_public_api
from hireall.schemas.schemas import SocMatchRequest, SocSearchQuery
from hireall.services.soc_matching import match_to_soc_code, search_soc_codes

router = APIRouter(prefix="/soc-codes", tags=["SOC Codes"])


@router.get("")
@with_authenticated_api(rate_limit="general", query_schema=SocSearchQuery)
def search(ctx: ApiContext):
    return search_soc_codes(ctx.query)


@router.post("/match")
@with_authenticated_api(rate_limit="general", body_schema=SocMatchRequest)
def match(ctx: ApiContext):
    body = ctx.body
    return {
        "match": match_to_soc_code(body),
        "query": {
            "title": body.title,
            "has_description": bool(body.description),
            "keyword_count": len(body.keywords or []),
        },
    }


@router.get("/match")
@with_public_api()
def describe_match(ctx: ApiContext):
    return {
        "endpoint": "/api/soc-codes/match",
        "method": "POST",
        "description": "Match a job title to UK SOC codes using fuzzy matching",
        "body": {
            "title": "string (required) - Job title to match",
            "description": "string (optional) - Job description for improved matching",
            "keywords": "string[] (optional) - Additional keywords to consider",
            "department": "string (optional) - Department hint (e.g. \"engineering\")",
            "seniority": "string (optional) - Seniority level hint",
        },
        "response": {
            "match": {
                "code": "string - UK SOC code (e.g. \"2136\")",
                "title": "string - Official occupation title",
                "confidence": "number - Match confidence (0-1)",
                "matched_keywords": "string[] - Keywords that contributed to match",
                "related_titles": "string[] - Related job titles for this SOC code",
                "eligibility": "string - Visa eligibility status",
            },
        },
    }

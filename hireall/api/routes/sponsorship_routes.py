"""
Sponsorship Routes - UK visa sponsor register

POST   /app/sponsorship/check                      - Match one company (+ optional city)
POST   /app/sponsorship/check-batch                - Up to 50 names for job board badges
GET    /app/sponsorship/companies                  - Browse / search the register
POST   /app/sponsorship/companies                  - Add a sponsor (admin)
PUT    /app/sponsorship/companies/{sponsor_id}     - Update a sponsor (admin)
DELETE /app/sponsorship/companies/{sponsor_id}     - Remove a sponsor (admin)
"""

from fastapi import APIRouter

from hireall.api.with_api import ApiContext, ApiResult, with_admin_api, with_authenticated_api
from hireall.schemas.schemas import (
    SponsorBatchRequest,
    SponsorCheckRequest,
    SponsorCreate,
    SponsorIdParams,
    SponsorListQuery,
    SponsorUpdate,
)
from hireall.services.sponsor_service import SponsorService

router = APIRouter(prefix="/app/sponsorship", tags=["Sponsorship"])


@router.post("/check")
@with_authenticated_api(rate_limit="sponsor-lookup", body_schema=SponsorCheckRequest)
def check_sponsor(ctx: ApiContext):
    """``city`` wins over ``location`` when both are sent."""
    body = ctx.body
    return SponsorService().check_company(body.company, body.city or body.location)


@router.post("/check-batch")
@with_authenticated_api(rate_limit="sponsor-batch", body_schema=SponsorBatchRequest)
def check_sponsor_batch(ctx: ApiContext):
    results = SponsorService().check_batch(ctx.body.companies)
    return {
        "results": results,
        "total": len(results),
        "sponsored": sum(1 for r in results if r["is_sponsored"]),
    }


@router.get("/companies")
@with_authenticated_api(rate_limit="sponsorship", query_schema=SponsorListQuery)
def list_sponsors(ctx: ApiContext):
    return SponsorService().list(ctx.query, is_admin=ctx.is_admin)


@router.post("/companies")
@with_admin_api(rate_limit="admin", body_schema=SponsorCreate)
def create_sponsor(ctx: ApiContext):
    sponsor = SponsorService().create(ctx.body, created_by=ctx.uid)
    return ApiResult(data=sponsor, message="Sponsor created", status_code=201)


@router.put("/companies/{sponsor_id}")
@with_admin_api(rate_limit="admin", params_schema=SponsorIdParams, body_schema=SponsorUpdate)
def update_sponsor(ctx: ApiContext):
    sponsor = SponsorService().update(ctx.params.sponsor_id, ctx.body, updated_by=ctx.uid)
    return ApiResult(data=sponsor, message="Sponsor updated")


@router.delete("/companies/{sponsor_id}")
@with_admin_api(rate_limit="admin", params_schema=SponsorIdParams)
def delete_sponsor(ctx: ApiContext):
    return ApiResult(data=SponsorService().delete(ctx.params.sponsor_id), message="Sponsor deleted")

"""
Gig catalogue endpoints.

    GET    /gigs            - public search (active gigs only)
    GET    /gigs/{id}       - public
    POST   /gigs            - freelancer
    PUT    /gigs/{id}       - owning freelancer or admin
    DELETE /gigs/{id}       - owning freelancer or admin (soft delete)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import Pagination, pagination_params, require_freelancer
from domain.responses import paginated_response, success_response
from middleware.auth import get_current_user
from models import GigCreateRequest, GigOut, GigUpdateRequest
from services import gig_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gigs", tags=["gigs"])


def _out(gig) -> dict:
    return GigOut.model_validate(gig).model_dump(mode="json")


@router.get("")
async def search_gigs(
    q: Optional[str] = Query(default=None, max_length=100),
    category: Optional[str] = None,
    min_price: Optional[int] = Query(default=None, ge=0),
    max_price: Optional[int] = Query(default=None, ge=0),
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    items, total = await gig_service.search_gigs(
        db,
        q=q,
        category=category,
        min_price=min_price,
        max_price=max_price,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        [_out(g) for g in items], page=page["page"], limit=page["limit"], total=total
    )


@router.get("/{gig_id}")
async def get_gig(gig_id: str, db: AsyncSession = Depends(get_db)):
    return success_response(data=_out(await gig_service.get_gig(db, gig_id)))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_gig(
    body: GigCreateRequest,
    user: User = Depends(require_freelancer),
    db: AsyncSession = Depends(get_db),
):
    gig = await gig_service.create_gig(db, user, **body.model_dump())
    return success_response(data=_out(gig), message="Gig created successfully")


@router.put("/{gig_id}")
async def update_gig(
    gig_id: str,
    body: GigUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    gig = await gig_service.update_gig(db, gig_id, user, body.model_dump(exclude_unset=True))
    return success_response(data=_out(gig), message="Gig updated successfully")


@router.delete("/{gig_id}")
async def delete_gig(
    gig_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    gig = await gig_service.deactivate_gig(db, gig_id, user)
    return success_response(data=_out(gig), message="Gig deactivated successfully")

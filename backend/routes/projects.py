"""
Client project postings (MongoDB-backed).

    POST /projects        - client
    GET  /projects        - filter by clientId, status, search (title)
    GET  /projects/{id}
    PUT  /projects/{id}   - owning client or admin
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from context import get_mongo_db
from db_models import User
from deps import require_client
from domain.responses import success_response
from middleware.auth import get_current_user
from models import ProjectCreateRequest, ProjectUpdateRequest
from services import project_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreateRequest,
    user: User = Depends(require_client),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    project = await project_service.create_project(mongo, user, body.model_dump())
    return success_response(data=project, message="Project created successfully")


@router.get("")
async def list_projects(
    client_id: Optional[str] = Query(default=None, alias="clientId"),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None, max_length=100),
    _user: User = Depends(get_current_user),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    projects = await project_service.list_projects(
        mongo, client_id=client_id, status=status_filter, search=search
    )
    return success_response(data=projects)


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    _user: User = Depends(get_current_user),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    return success_response(data=await project_service.get_project(mongo, project_id))


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    body: ProjectUpdateRequest,
    user: User = Depends(require_client),
    mongo: AsyncIOMotorDatabase = Depends(get_mongo_db),
):
    project = await project_service.update_project(
        mongo, project_id, user, body.model_dump(exclude_unset=True)
    )
    return success_response(data=project, message="Project updated successfully")

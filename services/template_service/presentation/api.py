from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from services.common.docs import SWAGGER_UI_ROUTE

from ..application.schemas import ServiceInfo, TemplateCreate, TemplateRead
from ..application.services import TemplateService


router = APIRouter(prefix="/api/v1")


def get_template_service(request: Request) -> TemplateService:
    return request.app.state.template_service


@router.get("/info", response_model=ServiceInfo, tags=["info"])
async def service_info(request: Request) -> ServiceInfo:
    return ServiceInfo(
        name=request.app.title,
        version=request.app.version,
        documentation_url=SWAGGER_UI_ROUTE,
    )


@router.get("/templates", response_model=list[TemplateRead], tags=["templates"])
async def list_templates(
    service: TemplateService = Depends(get_template_service),
) -> list[TemplateRead]:
    return await service.list_templates()


@router.get("/templates/{template_id}", response_model=TemplateRead, tags=["templates"])
async def get_template(
    template_id: int,
    service: TemplateService = Depends(get_template_service),
) -> TemplateRead:
    template = await service.get_template(template_id)
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return template


@router.post(
    "/templates",
    response_model=TemplateRead,
    status_code=status.HTTP_201_CREATED,
    tags=["templates"],
)
async def create_template(
    payload: TemplateCreate,
    service: TemplateService = Depends(get_template_service),
) -> TemplateRead:
    return await service.create_template(payload)

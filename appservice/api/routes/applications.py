"""
Routes: /applications — lifecycle, listing and internal cascades.

Handlers are plain `def`: the store and the remote clients are blocking,
so FastAPI runs each request in its threadpool.
"""

import uuid

from fastapi import APIRouter, Body, Depends, Query, Response

from appservice.api.dependencies import (
    get_manage_use_case,
    get_paginate_use_case,
    get_request_context,
)
from appservice.api.schemas.requests import CreateApplicationRequest, StatusChangeRequest
from appservice.api.schemas.responses import (
    ApplicationInfoResponse,
    ApplicationPageResponse,
    ApplicationResponse,
    HistoryResponse,
)
from appservice.core.context import RequestContext
from appservice.core.entities.application import CascadeReport
from appservice.core.errors import CascadeDeleteError, UnauthorizedError
from appservice.core.use_cases.manage_applications import ManageApplicationsUseCase
from appservice.core.use_cases.paginate_applications import PaginateApplicationsUseCase

router = APIRouter(prefix="/applications")


def _raise_if_incomplete(report: CascadeReport) -> None:
    if report.complete:
        return
    raise CascadeDeleteError(
        f"Failed to delete {len(report.failed)} applications for {report.owner_kind} {report.owner_id}",
        context={"failed_ids": [str(i) for i in report.failed]},
    )


# ── Create / list ──

@router.post("", response_model=ApplicationResponse, status_code=201)
def create_application(
    req: CreateApplicationRequest,
    ctx: RequestContext = Depends(get_request_context),
    use_case: ManageApplicationsUseCase = Depends(get_manage_use_case),
):
    """
    Create an application in SUBMITTED.

    Applicant and product are checked against their services. Tags, if
    given, go through the tag service; if it is down the application is
    still saved and 503 is returned.
    """
    if not ctx.is_authenticated:
        raise UnauthorizedError("Authentication required")
    app = use_case.create(
        ctx,
        applicant_id=req.applicant_id,
        product_id=req.product_id,
        documents=[d.to_domain() for d in req.documents],
        tag_names=req.tags,
    )
    return ApplicationResponse.from_domain(app)


@router.get("", response_model=list[ApplicationResponse])
def list_applications(
    page: str | None = None,
    size: str | None = None,
    use_case: PaginateApplicationsUseCase = Depends(get_paginate_use_case),
):
    return [ApplicationResponse.from_domain(a) for a in use_case.list_applications(page, size)]


@router.get("/stream", response_model=ApplicationPageResponse)
def stream_applications(
    cursor: str | None = None,
    limit: str | None = None,
    use_case: PaginateApplicationsUseCase = Depends(get_paginate_use_case),
):
    """Keyset scroll, newest first. Pass next_cursor back to continue."""
    return ApplicationPageResponse.from_domain(use_case.page(cursor, limit))


@router.get("/by-tag", response_model=list[ApplicationInfoResponse])
def find_by_tag(
    tag: str = Query(default=""),
    use_case: ManageApplicationsUseCase = Depends(get_manage_use_case),
):
    return [ApplicationInfoResponse.from_domain(i) for i in use_case.find_by_tag(tag)]


@router.get("/count", response_model=int)
def count_applications(use_case: ManageApplicationsUseCase = Depends(get_manage_use_case)):
    return use_case.count()


# ── Internal cascades (called by user and product services) ──

@router.delete("/internal/by-user", status_code=204)
def delete_by_user(
    user_id: uuid.UUID = Query(alias="userId"),
    use_case: ManageApplicationsUseCase = Depends(get_manage_use_case),
):
    _raise_if_incomplete(use_case.delete_all_by_applicant(user_id))
    return Response(status_code=204)


@router.delete("/internal/by-product", status_code=204)
def delete_by_product(
    product_id: uuid.UUID = Query(alias="productId"),
    use_case: ManageApplicationsUseCase = Depends(get_manage_use_case),
):
    _raise_if_incomplete(use_case.delete_all_by_product(product_id))
    return Response(status_code=204)


# ── Single application ──

@router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(
    application_id: uuid.UUID,
    use_case: ManageApplicationsUseCase = Depends(get_manage_use_case),
):
    return ApplicationResponse.from_domain(use_case.find_by_id(application_id))


@router.put("/{application_id}/tags", status_code=204)
def add_tags(
    application_id: uuid.UUID,
    tags: list[str] = Body(...),
    ctx: RequestContext = Depends(get_request_context),
    use_case: ManageApplicationsUseCase = Depends(get_manage_use_case),
):
    use_case.attach_tags(ctx, application_id, tags)
    return Response(status_code=204)


@router.delete("/{application_id}/tags", status_code=204)
def remove_tags(
    application_id: uuid.UUID,
    tags: list[str] = Body(...),
    ctx: RequestContext = Depends(get_request_context),
    use_case: ManageApplicationsUseCase = Depends(get_manage_use_case),
):
    use_case.remove_tags(ctx, application_id, tags)
    return Response(status_code=204)


@router.put("/{application_id}/status", response_model=ApplicationResponse)
def change_status(
    application_id: uuid.UUID,
    req: StatusChangeRequest,
    ctx: RequestContext = Depends(get_request_context),
    use_case: ManageApplicationsUseCase = Depends(get_manage_use_case),
):
    """ADMIN, or MANAGER on someone else's application. Same status is a no-op."""
    return ApplicationResponse.from_domain(use_case.change_status(ctx, application_id, req.status))


@router.delete("/{application_id}", status_code=204)
def delete_application(
    application_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    use_case: ManageApplicationsUseCase = Depends(get_manage_use_case),
):
    use_case.delete(ctx, application_id)
    return Response(status_code=204)


@router.get("/{application_id}/history", response_model=list[HistoryResponse])
def get_history(
    application_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    use_case: ManageApplicationsUseCase = Depends(get_manage_use_case),
):
    return [HistoryResponse.from_domain(h) for h in use_case.list_history(ctx, application_id)]

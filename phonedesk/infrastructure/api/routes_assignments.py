"""Assignment endpoints — creation, listing and lifecycle transitions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from phonedesk.adapters.persistence.repositories import SqlAssignmentRepository
from phonedesk.application.use_cases.assignment_lifecycle import (
    AssignmentLifecycleUseCase,
    LifecycleResult,
)
from phonedesk.application.use_cases.create_assignment import (
    CreateAssignmentRequest,
    CreateAssignmentUseCase,
)
from phonedesk.domain.errors import HTTP_STATUS_BY_KIND
from phonedesk.domain.value_objects.enums import AssignmentStatus
from phonedesk.infrastructure.api.auth import require_admin, require_module
from phonedesk.infrastructure.api.dependencies import (
    get_assignment_repo,
    get_create_assignment_uc,
    get_lifecycle_uc,
)
from phonedesk.infrastructure.api.schemas import (
    AssignmentCreate,
    CloseRequest,
    ReturnRegistration,
    ShippingUpdate,
)
from phonedesk.infrastructure.api.serializers import serialize_assignment

router = APIRouter(prefix="/assignments", tags=["assignments"])

_can_view = require_module("/stock")


def _respond(result: LifecycleResult, success_status: int = 200) -> JSONResponse:
    """Render a use-case result as ``{success, message[, data]}`` or ``{success: false, error}``."""
    if not result.success:
        return JSONResponse(
            status_code=HTTP_STATUS_BY_KIND[result.error_kind],
            content={"success": False, "error": result.error},
        )
    body: dict = {"success": True, "message": result.message}
    if result.data is not None:
        body["data"] = result.data
    return JSONResponse(status_code=success_status, content=body)


@router.get("", dependencies=[Depends(_can_view)])
async def list_assignments(
    device_id: str | None = None,
    status: AssignmentStatus | None = None,
    repo: SqlAssignmentRepository = Depends(get_assignment_repo),
):
    """List assignments, newest first, optionally filtered by device or status."""
    assignments = await repo.get_all(device_id=device_id, status=status)
    return {
        "success": True,
        "total": len(assignments),
        "assignments": [serialize_assignment(a) for a in assignments],
    }


@router.get("/{assignment_id}", dependencies=[Depends(_can_view)])
async def get_assignment(
    assignment_id: str,
    repo: SqlAssignmentRepository = Depends(get_assignment_repo),
):
    assignment = await repo.get_by_id(assignment_id)
    if assignment is None:
        raise HTTPException(status_code=404, detail=f"Assignment {assignment_id} not found")
    return {"success": True, "data": serialize_assignment(assignment)}


@router.post("", dependencies=[Depends(require_admin)])
async def create_assignment(
    body: AssignmentCreate,
    uc: CreateAssignmentUseCase = Depends(get_create_assignment_uc),
):
    """Assign a stock device; marks it ASSIGNED in the same transaction."""
    result = await uc.execute(CreateAssignmentRequest(**body.model_dump()))
    return _respond(result, success_status=201)


@router.post("/{assignment_id}/shipping/start", dependencies=[Depends(require_admin)])
async def start_shipping(
    assignment_id: str,
    uc: AssignmentLifecycleUseCase = Depends(get_lifecycle_uc),
):
    return _respond(await uc.start_shipping(assignment_id))


@router.patch("/{assignment_id}/shipping", dependencies=[Depends(require_admin)])
async def update_shipping(
    assignment_id: str,
    body: ShippingUpdate,
    uc: AssignmentLifecycleUseCase = Depends(get_lifecycle_uc),
):
    return _respond(
        await uc.update_shipping(assignment_id, body.shipping_status, body.shipping_notes)
    )


@router.post("/{assignment_id}/shipping/deliver", dependencies=[Depends(require_admin)])
async def mark_delivered(
    assignment_id: str,
    uc: AssignmentLifecycleUseCase = Depends(get_lifecycle_uc),
):
    return _respond(await uc.mark_delivered(assignment_id))


@router.patch("/{assignment_id}/return", dependencies=[Depends(require_admin)])
async def register_return(
    assignment_id: str,
    body: ReturnRegistration,
    uc: AssignmentLifecycleUseCase = Depends(get_lifecycle_uc),
):
    return _respond(
        await uc.register_return(assignment_id, body.return_received, body.return_notes)
    )


@router.post("/{assignment_id}/close", dependencies=[Depends(require_admin)])
async def close_assignment(
    assignment_id: str,
    body: CloseRequest | None = None,
    uc: AssignmentLifecycleUseCase = Depends(get_lifecycle_uc),
):
    """Finish the assignment and release its device (USED unless stated otherwise)."""
    body = body or CloseRequest()
    return _respond(
        await uc.close(assignment_id, body.reason, body.resulting_device_status)
    )

"""IAM endpoint — the caller's roles and landing page."""

from fastapi import APIRouter, Depends

from phonedesk.infrastructure.api.auth import Principal, get_principal

router = APIRouter(prefix="/iam", tags=["iam"])


@router.get("/me/roles")
async def my_roles(principal: Principal = Depends(get_principal)):
    return {
        "success": True,
        "data": {
            "userId": principal.user_id,
            "isAdmin": principal.is_admin,
            "roleNames": principal.role_names,
            "firstAllowedPath": principal.first_allowed_path,
        },
    }

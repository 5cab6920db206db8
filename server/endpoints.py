"""
RBAC API routes: permission listing, checks, combination validation,
matrix export and the audit log viewer.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from auth import get_facade
from rbac import AccessDecision, Affiliation, CombinationReport, PermissionQueryFacade, Role

router = APIRouter(prefix="/api/rbac", tags=["RBAC"])


class CheckRequest(BaseModel):
    permission_id: Optional[str] = None
    resource: Optional[str] = None
    action: Optional[str] = None


class CheckAnyRequest(BaseModel):
    permission_ids: list[str]


def _require(facade: PermissionQueryFacade, permission_id: str) -> None:
    decision = facade.has_permission(permission_id)
    if not decision.granted:
        raise HTTPException(status_code=403, detail=decision.reason)


def _target(facade: PermissionQueryFacade, role, affiliation):
    """Missing role means the caller; an explicit affiliation is kept either way."""
    if role is None:
        role = facade.actor.role
        if affiliation is None:
            affiliation = facade.actor.affiliation
    return role, affiliation


# ============ PERMISSIONS ============

@router.get("/permissions")
async def list_permissions(facade: PermissionQueryFacade = Depends(get_facade)):
    """Every permission in the catalog, in registration order."""
    permissions = facade.get_all_permissions()
    return {"total": len(permissions), "permissions": [p.model_dump() for p in permissions]}


@router.get("/me/permissions")
async def my_permissions(facade: PermissionQueryFacade = Depends(get_facade)):
    actor = facade.actor
    permissions = facade.get_user_permissions()
    return {
        "role": actor.role.value,
        "affiliation": actor.affiliation.value if actor.affiliation else None,
        "permission_ids": [p.id for p in permissions],
        "permissions": [p.model_dump() for p in permissions],
    }


@router.post("/check", response_model=AccessDecision)
async def check(body: CheckRequest, facade: PermissionQueryFacade = Depends(get_facade)):
    if body.permission_id:
        return facade.has_permission(body.permission_id)
    if body.resource and body.action:
        return facade.can_access_resource(body.resource, body.action)
    raise HTTPException(status_code=422, detail="Provide permission_id, or resource and action")


@router.post("/check-any", response_model=AccessDecision)
async def check_any(body: CheckAnyRequest, facade: PermissionQueryFacade = Depends(get_facade)):
    return facade.has_any_permission(body.permission_ids)


# ============ OPERATOR TOOLS ============

@router.get("/validate", response_model=CombinationReport)
async def validate(
    role: Optional[Role] = None,
    affiliation: Optional[Affiliation] = None,
    facade: PermissionQueryFacade = Depends(get_facade),
):
    """Advisory check of a role/affiliation pairing (defaults to the caller)."""
    return facade.validate_combination(*_target(facade, role, affiliation))


@router.get("/export")
async def export_matrix(
    role: Optional[Role] = None,
    affiliation: Optional[Affiliation] = None,
    facade: PermissionQueryFacade = Depends(get_facade),
):
    """Download the permission matrix for a role/affiliation as JSON."""
    _require(facade, "system.permissions.export")
    export = facade.export_matrix(*_target(facade, role, affiliation))
    return Response(
        content=export.to_json(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


# ============ AUDIT LOG ============

@router.get("/audit-log")
async def audit_log(
    hours: int = Query(24, ge=0),
    limit: int = Query(50, ge=0),
    role: Optional[Role] = None,
    resource: Optional[str] = None,
    granted: Optional[bool] = None,
    facade: PermissionQueryFacade = Depends(get_facade),
):
    """Recent decisions, newest first."""
    _require(facade, "system.audit.view")
    criteria = {"resource": resource, "granted": granted}
    if role is not None:
        criteria["role"] = role.value
    entries = facade.recent_audit_logs(hours=hours, limit=limit, **criteria)
    return {"total_entries": len(entries), "entries": [e.model_dump(mode="json") for e in entries]}

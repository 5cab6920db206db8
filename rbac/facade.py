# SchoolGate - Query facade (read-only surface for callers)
import json
from datetime import timedelta
from typing import Iterable, Optional

from pydantic import BaseModel

from .engine import DecisionEngine, _coerce_context, _label
from .models import AccessDecision, Actor, AuditFilter, AuditLogEntry, CombinationReport, Permission, RequestContext
from .validator import is_valid_combination


class MatrixExport(BaseModel):
    filename: str
    document: dict[str, list[str]]

    def to_json(self) -> str:
        return json.dumps(self.document, indent=2)


class PermissionQueryFacade:
    """
    Binds the engine to the current actor and request.

    Only shapes arguments and fills in the audit context (user id, ip,
    user agent) when a caller leaves it out; every decision is the engine's.
    """

    def __init__(
        self,
        engine: DecisionEngine,
        actor: Optional[Actor] = None,
        request_context: Optional[RequestContext] = None,
    ):
        self.engine = engine
        self.actor = actor
        self.request_context = request_context or RequestContext()

    def _who(self, role, affiliation):
        if role is None and self.actor is not None:
            return self.actor.role, self.actor.affiliation
        return role, affiliation

    def _context(self, context) -> RequestContext:
        supplied = _coerce_context(context)
        defaults = self.request_context
        return RequestContext(
            user_id=supplied.user_id or defaults.user_id or (self.actor.user_id if self.actor else None),
            ip=supplied.ip or defaults.ip,
            user_agent=supplied.user_agent or defaults.user_agent,
        )

    # --- permission listings ---

    def get_all_permissions(self) -> tuple[Permission, ...]:
        return self.engine.catalog.get_all_permissions()

    def get_user_permissions(self, role=None, affiliation=None) -> tuple[Permission, ...]:
        role, affiliation = self._who(role, affiliation)
        return self.engine.matrix.permissions_for_role_affiliation(role, affiliation)

    def get_user_permission_ids(self, role=None, affiliation=None) -> list[str]:
        return [p.id for p in self.get_user_permissions(role, affiliation)]

    # --- decisions for the bound actor ---

    def has_permission(self, permission_id: str, context=None) -> AccessDecision:
        role, affiliation = self._who(None, None)
        return self.engine.has_permission(role, affiliation, permission_id, self._context(context))

    def has_any_permission(self, permission_ids: Iterable[str], context=None) -> AccessDecision:
        role, affiliation = self._who(None, None)
        return self.engine.has_any_permission(role, affiliation, permission_ids, self._context(context))

    def can_access_resource(self, resource: str, action: str, context=None) -> AccessDecision:
        return self.has_permission(f"{resource}.{action}", context)

    # --- operator tools ---

    def validate_combination(self, role=None, affiliation=None) -> CombinationReport:
        role, affiliation = self._who(role, affiliation)
        valid = is_valid_combination(role, affiliation)
        return CombinationReport(
            role=_label(role) or "",
            affiliation=_label(affiliation),
            valid=valid,
            message="Role combination is valid" if valid else "Role combination is invalid",
        )

    def export_matrix(self, role=None, affiliation=None) -> MatrixExport:
        role, affiliation = self._who(role, affiliation)
        document = self.engine.matrix.export_document(role, affiliation)
        filename = f"permission-matrix-{_label(role)}-{_label(affiliation) or 'none'}.json"
        return MatrixExport(filename=filename, document=document)

    def get_audit_logs(self, flt=None, **criteria) -> list[AuditLogEntry]:
        return self.engine.get_audit_logs(flt, **criteria)

    def recent_audit_logs(self, hours: int = 24, limit: int = 50, **criteria) -> list[AuditLogEntry]:
        """What the audit viewer shows: the last `hours`, newest first, capped at `limit`."""
        start = self.engine.clock() - timedelta(hours=hours)
        return self.engine.get_audit_logs(AuditFilter(start_date=start, **criteria))[:limit]

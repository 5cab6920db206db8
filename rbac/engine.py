# SchoolGate - Decision engine (allow / deny / why, every answer audited)
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Optional

from .audit import AuditLogStore
from .matrix import RolePermissionMatrix
from .models import AccessDecision, AuditFilter, AuditLogEntry, Permission, RequestContext, _utcnow

log = logging.getLogger(__name__)


def _label(value) -> Optional[str]:
    if value is None:
        return None
    return value.value if isinstance(value, Enum) else str(value)


def _split(permission_id) -> tuple[str, str]:
    if not isinstance(permission_id, str):
        return "", ""
    resource, _, action = permission_id.rpartition(".")
    return resource, action


def _coerce_context(context) -> RequestContext:
    if context is None:
        return RequestContext()
    if isinstance(context, RequestContext):
        return context
    return RequestContext.model_validate(context)


def _holder(role, affiliation) -> str:
    text = f"role '{_label(role)}'"
    if affiliation is not None:
        text += f" with affiliation '{_label(affiliation)}'"
    return text


class DecisionEngine:
    """
    Answers grant queries against the static matrices.

    Authorization checks are total: an unknown permission, role or id list
    resolves to a denial with a reason, never to an exception. Every answer
    appends exactly one entry to the audit store.
    """

    def __init__(
        self,
        matrix: RolePermissionMatrix,
        store: Optional[AuditLogStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.matrix = matrix
        self.catalog = matrix.catalog
        self.store = store if store is not None else AuditLogStore()
        self.clock = clock or _utcnow

    def _explain(self, permission: Permission, role, affiliation, source: Optional[str]) -> str:
        if source == "role":
            return f"Permission '{permission.name}' granted via role '{_label(role)}'"
        if source == "affiliation":
            return f"Permission '{permission.name}' granted via affiliation '{_label(affiliation)}'"
        return f"Insufficient permissions: '{permission.name}' is not available to {_holder(role, affiliation)}"

    def _record(self, role, affiliation, resource, action, granted, reason, permission_ids, context) -> None:
        entry = AuditLogEntry(
            timestamp=self.clock(),
            user_id=context.user_id,
            role=_label(role) or "",
            affiliation=_label(affiliation),
            resource=resource,
            action=action,
            granted=granted,
            reason=reason,
            permission_ids=tuple(str(pid) for pid in permission_ids),
            ip=context.ip,
            user_agent=context.user_agent,
        )
        self.store.append(entry)
        log.info(
            "Permission check: user=%s role=%s affiliation=%s resource=%s action=%s granted=%s",
            entry.user_id, entry.role, entry.affiliation, resource, action, granted,
        )

    def has_permission(self, role, affiliation, permission_id, context=None) -> AccessDecision:
        context = _coerce_context(context)
        permission = self.catalog.get_permission(permission_id)
        if permission is None:
            granted = False
            reason = f"Permission '{permission_id}' not found"
            resource, action = _split(permission_id)
        else:
            source = self.matrix.source_of(role, affiliation, permission.id)
            granted = source is not None
            reason = self._explain(permission, role, affiliation, source)
            resource, action = permission.resource, permission.action

        self._record(role, affiliation, resource, action, granted, reason, [permission_id], context)
        return AccessDecision(
            granted=granted,
            reason=reason,
            required_permission=permission_id if isinstance(permission_id, str) else None,
        )

    def has_any_permission(self, role, affiliation, permission_ids: Iterable, context=None) -> AccessDecision:
        """OR over the ids; one aggregate audit entry regardless of how many were tried."""
        context = _coerce_context(context)
        if isinstance(permission_ids, str):
            permission_ids = [permission_ids]
        ids = list(permission_ids or [])
        listing = ", ".join(str(pid) for pid in ids)

        match: Optional[Permission] = None
        source = None
        for pid in ids:
            permission = self.catalog.get_permission(pid)
            if permission is None:
                continue
            source = self.matrix.source_of(role, affiliation, permission.id)
            if source is not None:
                match = permission
                break

        if match is not None:
            granted = True
            reason = f"At least one of [{listing}] granted: '{match.name}' via {source}"
            resource, action = match.resource, match.action
        else:
            granted = False
            if ids:
                reason = f"None of [{listing}] granted for {_holder(role, affiliation)}"
            else:
                reason = "No permissions requested; none granted"
            known = next((self.catalog.get_permission(pid) for pid in ids if pid in self.catalog), None)
            resource, action = (known.resource, known.action) if known else _split(ids[0] if ids else None)

        self._record(role, affiliation, resource, action, granted, reason, ids, context)
        return AccessDecision(
            granted=granted,
            reason=reason,
            required_permission=match.id if match is not None else None,
        )

    def get_audit_logs(self, flt=None, **criteria) -> list[AuditLogEntry]:
        """
        Audit entries, most recent first.

        Accepts an AuditFilter, a dict of its fields, or the fields as keyword
        arguments. An inverted date range yields an empty list.
        """
        if flt is None:
            flt = AuditFilter(**criteria)
        elif not isinstance(flt, AuditFilter):
            flt = AuditFilter.model_validate(flt)
        return self.store.query(flt)

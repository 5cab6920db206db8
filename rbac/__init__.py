# SchoolGate - RBAC policy engine
from .models import (
    Role,
    Affiliation,
    Permission,
    Actor,
    RequestContext,
    AccessDecision,
    AuditLogEntry,
    AuditFilter,
    CombinationReport,
)
from .catalog import PERMISSIONS, PermissionCatalog, MatrixValidationError
from .matrix import ROLE_PERMISSIONS, ROLE_AFFILIATION_PERMISSIONS, RolePermissionMatrix
from .validator import VALID_COMBINATIONS, is_valid_combination
from .audit import AuditLogStore, AuditSink, read_audit_file
from .engine import DecisionEngine
from .facade import PermissionQueryFacade, MatrixExport

__all__ = [
    "Role",
    "Affiliation",
    "Permission",
    "Actor",
    "RequestContext",
    "AccessDecision",
    "AuditLogEntry",
    "AuditFilter",
    "CombinationReport",
    "PERMISSIONS",
    "PermissionCatalog",
    "MatrixValidationError",
    "ROLE_PERMISSIONS",
    "ROLE_AFFILIATION_PERMISSIONS",
    "RolePermissionMatrix",
    "VALID_COMBINATIONS",
    "is_valid_combination",
    "AuditLogStore",
    "AuditSink",
    "read_audit_file",
    "DecisionEngine",
    "PermissionQueryFacade",
    "MatrixExport",
]

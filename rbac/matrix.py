# SchoolGate - Role-permission and role-affiliation matrices
from typing import Any, Mapping

from .catalog import MatrixValidationError, PermissionCatalog
from .models import Affiliation, Permission, Role
from .validator import is_valid_combination

# Baseline permissions held unconditionally by each primary role
ROLE_PERMISSIONS: dict[Role, tuple[str, ...]] = {
    Role.ADMIN: (
        "system.admin",
        "system.settings.update",
        "system.audit.view",
        "system.permissions.export",
        "admin.users.view",
        "admin.users.create",
        "admin.users.update",
        "admin.users.delete",
        "academic.grades.view",
        "academic.grades.edit",
        "academic.attendance.view",
        "academic.attendance.edit",
        "academic.schedule.view",
        "academic.schedule.manage",
        "academic.classes.manage",
        "academic.reports.view",
        "content.create",
        "content.read",
        "content.update",
        "content.delete",
        "library.access",
        "materials.download",
        "announcements.view",
        "announcements.publish",
        "messages.send",
        "inventory.manage",
        "admissions.manage",
    ),
    Role.TEACHER: (
        "academic.grades.view",
        "academic.grades.edit",
        "academic.attendance.view",
        "academic.attendance.edit",
        "academic.schedule.view",
        "academic.classes.manage",
        "academic.reports.view",
        "content.create",
        "content.read",
        "content.update",
        "library.access",
        "materials.download",
        "announcements.view",
        "messages.send",
    ),
    Role.STUDENT: (
        "academic.schedule.view",
        "content.read",
        "library.access",
        "materials.download",
        "announcements.view",
        "messages.send",
    ),
    Role.PARENT: (
        "parent.children.monitor",
        "parent.teachers.contact",
        "academic.schedule.view",
        "announcements.view",
    ),
}

# Incremental grants, only for sanctioned (role, affiliation) pairings
ROLE_AFFILIATION_PERMISSIONS: dict[tuple[Role, Affiliation], tuple[str, ...]] = {
    (Role.TEACHER, Affiliation.STAFF): (
        "inventory.manage",
        "admissions.manage",
    ),
    (Role.TEACHER, Affiliation.VICE_PRINCIPAL): (
        "academic.schedule.manage",
        "announcements.publish",
        "admin.users.view",
    ),
    (Role.TEACHER, Affiliation.PRINCIPAL): (
        "academic.schedule.manage",
        "announcements.publish",
        "admin.users.view",
        "admin.users.update",
        "content.delete",
        "system.audit.view",
        "system.permissions.export",
    ),
    (Role.STUDENT, Affiliation.STUDENT_COUNCIL): (
        "council.events.manage",
        "announcements.publish",
    ),
}


def _coerce_role(role) -> Role | None:
    try:
        return Role(role)
    except ValueError:
        return None


def _coerce_affiliation(affiliation) -> Affiliation | None:
    if affiliation is None:
        return None
    try:
        return Affiliation(affiliation)
    except ValueError:
        return None


def pair_key(role: Role, affiliation: Affiliation) -> str:
    return f"{role.value}-{affiliation.value}"


class RolePermissionMatrix:
    """
    Static role -> permission tables, checked against the catalog once at load.

    Affiliation grants are additive: the effective set for a pairing is always
    the role baseline plus the pairing's extra ids.
    """

    def __init__(
        self,
        catalog: PermissionCatalog,
        role_permissions: Mapping = ROLE_PERMISSIONS,
        affiliation_permissions: Mapping = ROLE_AFFILIATION_PERMISSIONS,
    ):
        self.catalog = catalog
        self._roles: dict[Role, frozenset[str]] = {role: frozenset() for role in Role}
        self._pairs: dict[tuple[Role, Affiliation], frozenset[str]] = {}

        for role, ids in role_permissions.items():
            self._roles[self._load_role(role)] = frozenset(ids)
        for (role, affiliation), ids in affiliation_permissions.items():
            key = (self._load_role(role), self._load_affiliation(affiliation))
            self._pairs[key] = frozenset(ids)
        self._validate()

    @staticmethod
    def _load_role(role) -> Role:
        coerced = _coerce_role(role)
        if coerced is None:
            raise MatrixValidationError(f"Unknown role '{role}' in permission matrix")
        return coerced

    @staticmethod
    def _load_affiliation(affiliation) -> Affiliation:
        coerced = _coerce_affiliation(affiliation)
        if coerced is None:
            raise MatrixValidationError(f"Unknown affiliation '{affiliation}' in permission matrix")
        return coerced

    def _validate(self) -> None:
        for role, ids in self._roles.items():
            self._check_ids(role.value, ids)
        for (role, affiliation), ids in self._pairs.items():
            if not is_valid_combination(role, affiliation):
                raise MatrixValidationError(
                    f"Affiliation grants defined for invalid combination {pair_key(role, affiliation)}"
                )
            self._check_ids(pair_key(role, affiliation), ids)

    def _check_ids(self, owner: str, ids: frozenset[str]) -> None:
        missing = sorted(pid for pid in ids if pid not in self.catalog)
        if missing:
            raise MatrixValidationError(f"{owner} references unknown permissions: {', '.join(missing)}")

    # --- lookups ---

    def role_permission_ids(self, role) -> frozenset[str]:
        coerced = _coerce_role(role)
        return self._roles[coerced] if coerced is not None else frozenset()

    def affiliation_permission_ids(self, role, affiliation) -> frozenset[str]:
        """Only the pairing's extra grants, without the role baseline."""
        r, a = _coerce_role(role), _coerce_affiliation(affiliation)
        if r is None or a is None:
            return frozenset()
        return self._pairs.get((r, a), frozenset())

    def effective_permission_ids(self, role, affiliation=None) -> frozenset[str]:
        return self.role_permission_ids(role) | self.affiliation_permission_ids(role, affiliation)

    def _resolve(self, ids: frozenset[str]) -> tuple[Permission, ...]:
        return tuple(p for p in self.catalog.get_all_permissions() if p.id in ids)

    def permissions_for_role(self, role) -> tuple[Permission, ...]:
        return self._resolve(self.role_permission_ids(role))

    def permissions_for_role_affiliation(self, role, affiliation=None) -> tuple[Permission, ...]:
        return self._resolve(self.effective_permission_ids(role, affiliation))

    def source_of(self, role, affiliation, permission_id: str) -> str | None:
        """Where a grant comes from: "role", "affiliation" or None."""
        if permission_id in self.role_permission_ids(role):
            return "role"
        if permission_id in self.affiliation_permission_ids(role, affiliation):
            return "affiliation"
        return None

    def pairings(self) -> tuple[tuple[Role, Affiliation], ...]:
        return tuple(self._pairs)

    # --- export / import ---

    def _ordered_ids(self, ids: frozenset[str]) -> list[str]:
        return [p.id for p in self._resolve(ids)]

    def export_document(self, role, affiliation=None) -> dict[str, list[str]]:
        role = self._load_role(role)
        document = {role.value: self._ordered_ids(self.role_permission_ids(role))}
        if affiliation is not None:
            affiliation = self._load_affiliation(affiliation)
            document[pair_key(role, affiliation)] = self._ordered_ids(
                self.effective_permission_ids(role, affiliation)
            )
        return document

    def export_full_document(self) -> dict[str, list[str]]:
        document = {role.value: self._ordered_ids(ids) for role, ids in self._roles.items()}
        for role, affiliation in self._pairs:
            document[pair_key(role, affiliation)] = self._ordered_ids(
                self.effective_permission_ids(role, affiliation)
            )
        return document

    @classmethod
    def from_document(cls, document: Mapping[str, Any], catalog: PermissionCatalog) -> "RolePermissionMatrix":
        """Rebuild a matrix from an exported document; same load-time checks apply."""
        if not isinstance(document, Mapping):
            raise MatrixValidationError("Permission matrix document must be a JSON object")
        roles: dict[Role, frozenset[str]] = {}
        effective: dict[tuple[Role, Affiliation], frozenset[str]] = {}
        for key, ids in document.items():
            if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
                raise MatrixValidationError(f"Entry '{key}' must be a list of permission ids")
            role_part, sep, affiliation_part = str(key).partition("-")
            role = cls._load_role(role_part)
            if sep:
                effective[(role, cls._load_affiliation(affiliation_part))] = frozenset(ids)
            else:
                roles[role] = frozenset(ids)
        pairs = {}
        for (role, affiliation), ids in effective.items():
            extra = ids - roles.get(role, frozenset())
            # A pair with no extra grants is just the baseline, valid pairing or not
            if extra:
                pairs[(role, affiliation)] = extra
        return cls(catalog, roles, pairs)

# SchoolGate - Permission catalog (static, registration-ordered)
from typing import Iterable

from .models import Permission


class MatrixValidationError(ValueError):
    """A static permission table is inconsistent; raised only at load time."""


def _perm(permission_id: str, name: str, description: str = "") -> Permission:
    resource, _, action = permission_id.rpartition(".")
    return Permission(id=permission_id, name=name, resource=resource, action=action, description=description)


# Registration order is the order callers see in listings and exports.
PERMISSIONS: tuple[Permission, ...] = (
    # System
    _perm("system.admin", "System Administration", "Full control over system settings"),
    _perm("system.settings.update", "Update Settings", "Change school-wide configuration"),
    _perm("system.audit.view", "View Audit Log", "Review recorded authorization decisions"),
    _perm("system.permissions.export", "Export Permission Matrix", "Download role permission tables"),
    # User administration
    _perm("admin.users.view", "View Users"),
    _perm("admin.users.create", "Create Users"),
    _perm("admin.users.update", "Update Users"),
    _perm("admin.users.delete", "Delete Users"),
    # Academics
    _perm("academic.grades.view", "View Grades"),
    _perm("academic.grades.edit", "Edit Grades", "Enter and correct student grades"),
    _perm("academic.attendance.view", "View Attendance"),
    _perm("academic.attendance.edit", "Record Attendance"),
    _perm("academic.schedule.view", "View Schedule"),
    _perm("academic.schedule.manage", "Manage Schedule", "Build and publish timetables"),
    _perm("academic.classes.manage", "Manage Classes"),
    _perm("academic.reports.view", "View Academic Reports", "Consolidated class and school reports"),
    # Learning content
    _perm("content.create", "Create Content"),
    _perm("content.read", "Read Content"),
    _perm("content.update", "Update Content"),
    _perm("content.delete", "Delete Content"),
    _perm("library.access", "Access Library", "Borrow and read library materials"),
    _perm("materials.download", "Download Materials"),
    # Communication
    _perm("announcements.view", "View Announcements"),
    _perm("announcements.publish", "Publish Announcements"),
    _perm("messages.send", "Send Messages"),
    # Student council
    _perm("council.events.manage", "Manage Council Events", "Plan and run student council events"),
    # Staff operations
    _perm("inventory.manage", "Manage Inventory"),
    _perm("admissions.manage", "Manage Admissions", "Process new student registrations"),
    # Parents
    _perm("parent.children.monitor", "Monitor Children", "Follow a child's grades and attendance"),
    _perm("parent.teachers.contact", "Contact Teachers"),
)


class PermissionCatalog:
    """Immutable registry of every known permission, keyed by id."""

    def __init__(self, permissions: Iterable[Permission] = PERMISSIONS):
        self._by_id: dict[str, Permission] = {}
        for permission in permissions:
            if permission.id in self._by_id:
                raise MatrixValidationError(f"Duplicate permission id '{permission.id}'")
            self._by_id[permission.id] = permission

    def get_all_permissions(self) -> tuple[Permission, ...]:
        return tuple(self._by_id.values())

    def get_permission(self, permission_id) -> Permission | None:
        if not isinstance(permission_id, str):
            return None
        return self._by_id.get(permission_id)

    def ids(self) -> tuple[str, ...]:
        return tuple(self._by_id)

    def __contains__(self, permission_id) -> bool:
        return isinstance(permission_id, str) and permission_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

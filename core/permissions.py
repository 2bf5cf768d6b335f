"""
Custom permission classes for role based access control.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .models import User

STAFF_ROLES = {User.ROLE_ADMIN, User.ROLE_PROFESSIONAL, User.ROLE_SECRETARY}


class IsClinicStaff(BasePermission):
    """Allow access to any authenticated user holding a clinic role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in STAFF_ROLES)


class IsProfessional(BasePermission):
    """Allow access only to users with the professional role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == User.ROLE_PROFESSIONAL)


class IsProfessionalOrReadOnly(BasePermission):
    """Reads for everyone who got this far, writes for professionals."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if request.method in SAFE_METHODS:
            return True
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == User.ROLE_PROFESSIONAL)


class IsClinicAdmin(BasePermission):
    """Allow access only to clinic administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == User.ROLE_ADMIN)

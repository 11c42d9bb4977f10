"""Role-based DRF permission classes"""
from rest_framework.permissions import BasePermission

from .models import User


class HasRole(BasePermission):
    """Grants access when the authenticated user's role is in ``allowed_roles``"""
    allowed_roles = ()
    message = 'Your role is not allowed to perform this action.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role in self.allowed_roles)


def role_required(*roles):
    """Build a ``HasRole`` subclass for the given roles"""
    label = ' or '.join(role.replace('_', ' ').title() for role in roles)
    return type(
        f"Requires{''.join(role.title().replace('_', '') for role in roles)}",
        (HasRole,),
        {'allowed_roles': tuple(roles), 'message': f'Unauthorized - {label} role required'},
    )


IsAdmin = role_required(User.ADMIN)
IsAdminOrStoreManager = role_required(User.ADMIN, User.STORE_MANAGER)


class AdminOnlyDelete(BasePermission):
    """DELETE is reserved for admins; other methods pass through"""
    message = 'Unauthorized - Admin role required'

    def has_permission(self, request, view):
        if request.method != 'DELETE':
            return True
        user = request.user
        return bool(user and user.is_authenticated and user.role == User.ADMIN)

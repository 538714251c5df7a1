from rest_framework import permissions


def user_id(request):
    """Firebase uid of the caller, or the username for session logins."""
    user = request.user
    return getattr(user, "uid", None) or user.get_username()


class IsAuthorOrReadOnly(permissions.BasePermission):
    """Allow writes only to the recipe's author; reads to any caller."""

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return obj.get("authorId") == user_id(request)

"""
Permission classes for the analytics API.
"""
from django.conf import settings
from rest_framework.permissions import BasePermission
from rest_framework.throttling import UserRateThrottle


class IsAnalyticsViewer(BasePermission):
    """Staff users, or members of the analytics viewer group."""
    message = 'Analytics reports are restricted to hospital staff.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        if user.is_staff:
            return True
        return user.groups.filter(name=settings.ANALYTICS_VIEWER_GROUP).exists()


class FeedbackRateThrottle(UserRateThrottle):
    scope = 'feedback'

# security/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from security.views import SecurityAlertViewSet, SecurityEventCreateView, SecurityEventViewSet

app_name = "security"

router = DefaultRouter()
router.register(r"alerts", SecurityAlertViewSet, basename="alerts")
router.register(r"event-log", SecurityEventViewSet, basename="event-log")

urlpatterns = [
    path("events/", SecurityEventCreateView.as_view(), name="events"),
    path("", include(router.urls)),
]

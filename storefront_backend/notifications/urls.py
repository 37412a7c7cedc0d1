# notifications/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from notifications.views import NotificationViewSet, SendEmailView

app_name = "notifications"

router = DefaultRouter()
router.register(r"feed", NotificationViewSet, basename="feed")

urlpatterns = [
    path("email/", SendEmailView.as_view(), name="send-email"),
    path("", include(router.urls)),
]

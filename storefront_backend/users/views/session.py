# users/views/session.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from users.services.session import expiry_from_exp_claim, plan_token_refresh


class SessionStatusView(APIView):
    """
    Refresh plan for the current access token.

    The client schedules its single refresh timer from refresh_in_seconds and
    logs out after inactivity_timeout_seconds without user activity.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: dict})
    def get(self, request):
        token = request.auth
        exp = token.get("exp") if token is not None else None
        if exp is None:
            return Response({"detail": "Token has no expiry"}, status=status.HTTP_400_BAD_REQUEST)

        plan = plan_token_refresh(expiry_from_exp_claim(exp))
        return Response({"user_id": str(request.user.pk), **plan.as_dict()})

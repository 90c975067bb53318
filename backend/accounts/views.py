from django.http import Http404
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from accounts.authz import require, resolve_actor
from accounts.commands import create_user, set_user_role
from accounts.models import User
from accounts.throttles import LoginThrottle
from accounting.responses import error_response

from .serializers import (
    EmailTokenObtainPairSerializer,
    ProfileSerializer,
    UserCreateSerializer,
    UserRoleUpdateSerializer,
    UserSerializer,
)


class LoginView(generics.GenericAPIView):
    serializer_class = EmailTokenObtainPairSerializer
    permission_classes = [permissions.AllowAny]
    throttle_classes = [LoginThrottle]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class RefreshView(TokenRefreshView):
    permission_classes = [permissions.AllowAny]


class LogoutView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            return Response({"detail": "Refresh token required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            token = RefreshToken(refresh_token)
            token.blacklist()
        except TokenError:
            return Response({"detail": "Invalid token"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, *args, **kwargs):
        actor = resolve_actor(request)
        profile = ProfileSerializer.from_actor(actor)
        return Response(profile.data)


class UserListCreateView(APIView):
    """
    GET /api/users/ -> list users with roles
    POST /api/users/ -> create a user (admin)
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "users.manage")

        users = User.objects.order_by("email")
        return Response(UserSerializer(users, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_user(actor, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(UserSerializer(result.data["user"]).data, status=status.HTTP_201_CREATED)


class UserRoleView(APIView):
    """
    PATCH /api/users/<pk>/role/ -> change role or deactivate (admin)
    """
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        actor = resolve_actor(request)

        serializer = UserRoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = set_user_role(actor, pk, **serializer.validated_data)
        if not result.success:
            return error_response(result)

        user = User.objects.filter(pk=pk).first()
        if user is None:
            raise Http404
        return Response(UserSerializer(user).data)

from django.contrib.auth import authenticate
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.models import User, UserRole
from accounts.permission_defaults import permissions_for_role


class UserSerializer(serializers.ModelSerializer):
    role = serializers.SerializerMethodField()
    role_active = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ("id", "email", "name", "role", "role_active")

    def _assignment(self, obj):
        return UserRole.objects.filter(user=obj).first()

    def get_role(self, obj):
        assignment = self._assignment(obj)
        return assignment.role if assignment else None

    def get_role_active(self, obj):
        assignment = self._assignment(obj)
        return bool(assignment and assignment.is_active)


class UserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    name = serializers.CharField(max_length=150)
    password = serializers.CharField(min_length=8, write_only=True)
    role = serializers.ChoiceField(choices=UserRole.Role.choices, default=UserRole.Role.USER)


class UserRoleUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=UserRole.Role.choices)
    is_active = serializers.BooleanField(required=False, default=True)


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    username_field = User.EMAIL_FIELD

    def validate(self, attrs):
        authenticate_kwargs = {
            self.username_field: attrs.get("email"),
            "password": attrs.get("password"),
        }
        user = authenticate(request=self.context.get("request"), **authenticate_kwargs)
        if not user:
            raise AuthenticationFailed("Invalid credentials")
        refresh = RefreshToken.for_user(user)
        return {"access": str(refresh.access_token), "refresh": str(refresh)}


class ProfileSerializer(serializers.Serializer):
    user = UserSerializer()
    permissions = serializers.ListField(child=serializers.CharField())

    @classmethod
    def from_actor(cls, actor):
        return cls(instance={
            "user": actor.user,
            "permissions": sorted(permissions_for_role(actor.role)),
        })

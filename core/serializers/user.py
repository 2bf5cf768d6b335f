import bleach
from rest_framework import serializers

from core.models import User

# camelCase API name -> model field
FIELD_NAMES = {
    'username': 'username',
    'email': 'email',
    'firstName': 'first_name',
    'lastName': 'last_name',
    'role': 'role',
    'password': 'password',
}


class UserSerializer(serializers.Serializer):
    username = serializers.RegexField(r'^[\w.@+-]+$', max_length=150)
    email = serializers.EmailField(required=False, allow_blank=True)
    firstName = serializers.CharField(max_length=150, required=False, allow_blank=True)
    lastName = serializers.CharField(max_length=150, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=[r for r, _ in User.ROLE_CHOICES])
    password = serializers.CharField(write_only=True, min_length=6, max_length=128)

    def validate_firstName(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def validate_lastName(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def to_model_data(self) -> dict:
        return {FIELD_NAMES[k]: v for k, v in self.validated_data.items()}


class ChangePasswordSerializer(serializers.Serializer):
    oldPassword = serializers.CharField()
    newPassword = serializers.CharField(min_length=6, max_length=128)


def user_payload(u: User) -> dict:
    return {
        'id': u.id,
        'username': u.username,
        'email': u.email,
        'firstName': u.first_name,
        'lastName': u.last_name,
        'role': u.role,
    }

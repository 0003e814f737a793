from rest_framework import serializers

from records.models import User


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_email(self, v):
        return (v or '').strip().lower()


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False, allow_blank=True)


class UserSerializer(serializers.ModelSerializer):
    organization_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'username', 'first_name', 'last_name', 'role', 'organization_id',
            'job_title', 'department', 'specialization', 'phone', 'permissions',
            'is_active', 'last_login', 'date_joined', 'updated_at',
        ]
        read_only_fields = fields


class UserListQuerySerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, required=False)
    organization_id = serializers.IntegerField(min_value=1, required=False)


class UserUpdateSerializer(serializers.ModelSerializer):
    """Profile fields a user may change; role, email and access flags are not among them."""

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'phone', 'job_title', 'department', 'specialization']

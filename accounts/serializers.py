# accounts/serializers.py

from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User


def validate_phone(value):
    """Digits only once spaces, dashes and the leading plus are removed"""
    if value:
        cleaned = value.replace(' ', '').replace('-', '').replace('+', '')
        if not cleaned.isdigit():
            raise serializers.ValidationError("Phone number must contain only digits.")
        if len(cleaned) < 10:
            raise serializers.ValidationError("Phone number must be at least 10 digits.")
    return value


class UserRegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for user registration.
    Administrators are provisioned by staff, so self-registration
    is limited to tender creators and vendors.
    """
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'},
        min_length=8,
        error_messages={
            'min_length': 'Password must be at least 8 characters long.',
            'required': 'Password is required.',
        }
    )
    password2 = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'},
        error_messages={'required': 'Please confirm your password.'}
    )
    email = serializers.EmailField(
        required=True,
        error_messages={
            'required': 'Email is required.',
            'invalid': 'Please enter a valid email address.',
        }
    )
    role = serializers.ChoiceField(
        choices=[User.Role.TENDER_CREATOR, User.Role.VENDOR],
        error_messages={'invalid_choice': 'Role must be tender_creator or vendor.'}
    )
    phone_number = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=15,
        validators=[validate_phone],
    )

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'password', 'password2',
                  'role', 'phone_number', 'company_name', 'first_name', 'last_name']
        extra_kwargs = {
            'first_name': {'required': True},
            'last_name': {'required': True},
            'username': {
                'error_messages': {
                    'required': 'Username is required.',
                    'unique': 'This username is already taken.',
                }
            },
        }

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("This email is already registered.")
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password2']:
            raise serializers.ValidationError({
                "password2": "Passwords do not match."
            })
        if attrs['role'] == User.Role.VENDOR and not attrs.get('company_name'):
            raise serializers.ValidationError({
                "company_name": "Vendors must provide a company name."
            })
        return attrs

    def create(self, validated_data):
        validated_data.pop('password2')
        return User.objects.create_user(**validated_data)


class UserSerializer(serializers.ModelSerializer):
    """Read-only view of a user"""
    profile_picture = serializers.ImageField(read_only=True)
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'display_name',
                  'role', 'phone_number', 'company_name', 'profile_picture', 'created_at']
        read_only_fields = fields


class UserUpdateSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(required=False)
    phone_number = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=15,
        validators=[validate_phone],
    )
    profile_picture = serializers.ImageField(required=False, allow_null=True)

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'email', 'phone_number', 'company_name', 'profile_picture']
        extra_kwargs = {
            'first_name': {'required': False},
            'last_name': {'required': False},
            'company_name': {'required': False, 'allow_blank': True},
        }

    def validate_email(self, value):
        user = self.context['request'].user
        if User.objects.filter(email__iexact=value).exclude(id=user.id).exists():
            raise serializers.ValidationError("This email is already registered.")
        return value

    def validate_profile_picture(self, value):
        if value:
            if value.size > 5 * 1024 * 1024:
                raise serializers.ValidationError("Image file size cannot exceed 5MB.")
            allowed_types = ['image/jpeg', 'image/png', 'image/jpg', 'image/webp']
            if getattr(value, 'content_type', None) not in allowed_types:
                raise serializers.ValidationError("Only JPG, PNG, and WebP images are allowed.")
        return value


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField(
        required=True,
        error_messages={'required': 'Username is required.'}
    )
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'},
        error_messages={'required': 'Password is required.'}
    )

# accounts/views.py

import logging

from rest_framework import status, generics
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from django.contrib.auth import authenticate
from django.db.models import Q
from .permissions import IsTenderManager
from .models import User
from .serializers import (
    UserRegistrationSerializer,
    UserSerializer,
    UserUpdateSerializer,
    LoginSerializer
)

logger = logging.getLogger(__name__)


def _token_payload(user, request):
    refresh = RefreshToken.for_user(user)
    return {
        'user': UserSerializer(user, context={'request': request}).data,
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


class RegisterView(generics.CreateAPIView):
    """
    POST /api/auth/register/
    Creates a tender creator or vendor account and returns a token pair.
    """
    queryset = User.objects.all()
    permission_classes = [AllowAny]
    serializer_class = UserRegistrationSerializer
    authentication_classes = []

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            logger.warning("Registration rejected: %s", serializer.errors)
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = serializer.save()
        logger.info("User registered: %s (%s)", user.username, user.role)

        response_data = _token_payload(user, request)
        response_data['message'] = 'User registered successfully!'
        return Response(response_data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """POST /api/auth/login/"""
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        username = serializer.validated_data['username']
        user = authenticate(
            username=username,
            password=serializer.validated_data['password'],
        )
        if user is None:
            logger.warning("Authentication failed for: %s", username)
            return Response(
                {'error': 'Invalid username or password.'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        response_data = _token_payload(user, request)
        response_data['message'] = 'Login successful!'
        return Response(response_data, status=status.HTTP_200_OK)


class UserProfileView(generics.RetrieveAPIView):
    """GET /api/auth/profile/"""
    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer

    def get_object(self):
        return self.request.user


class UserProfileUpdateView(generics.UpdateAPIView):
    """
    PATCH/PUT /api/auth/profile/update/
    Accepts multipart/form-data so a profile picture can ride along.
    """
    permission_classes = [IsAuthenticated]
    serializer_class = UserUpdateSerializer
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get_object(self):
        return self.request.user

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)

        logger.info("Profile updated for: %s", instance.username)
        return Response({
            'user': UserSerializer(instance, context={'request': request}).data,
            'message': 'Profile updated successfully!'
        }, status=status.HTTP_200_OK)


class LogoutView(APIView):
    """POST /api/auth/logout/ blacklists the given refresh token"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        refresh_token = request.data.get("refresh_token")
        if not refresh_token:
            return Response({
                'error': 'Refresh token is required'
            }, status=status.HTTP_400_BAD_REQUEST)

        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError as e:
            logger.warning("Logout with unusable token: %s", e)
            return Response({
                'error': 'Invalid token or token already blacklisted'
            }, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': 'Logout successful!'
        }, status=status.HTTP_205_RESET_CONTENT)


class VendorListView(generics.ListAPIView):
    """
    GET /api/auth/vendors/?search=paving
    Active vendors, for picking whom to invite to a tender.
    """
    permission_classes = [IsTenderManager]
    serializer_class = UserSerializer

    def get_queryset(self):
        vendors = User.objects.filter(role=User.Role.VENDOR, is_active=True)

        search = self.request.query_params.get('search')
        if search:
            vendors = vendors.filter(
                Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(company_name__icontains=search)
                | Q(email__icontains=search)
            )

        return vendors.order_by('company_name', 'first_name')[:50]

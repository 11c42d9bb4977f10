import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.db.models import Q

from .models import User, AuditLog
from .pagination import paginated_response
from .permissions import IsAdmin, IsAdminOrStoreManager
from .serializers import (
    UserSerializer, UserCreateSerializer, UserRoleSerializer,
    UserStatusSerializer, AuditLogSerializer
)
from .utils import create_audit_log

logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user profile"""
    return Response(UserSerializer(request.user).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def user_list_create(request):
    """List staff users or create a new one"""
    if request.method == 'GET':
        users = User.objects.all()
        search = request.query_params.get('search')
        if search:
            users = users.filter(
                Q(email__icontains=search) | Q(first_name__icontains=search) | Q(last_name__icontains=search)
            )
        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)
        return paginated_response(request, users.order_by('email'), UserSerializer)

    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        logger.info(f"User {user.email} created with role {user.role} by {request.user.email}")
        create_audit_log(request=request, action='create', model_name='User',
                         object_id=user.id, object_name=user.email, changes={'role': user.role})
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdmin])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)
    elif request.method == 'PATCH':
        serializer = UserSerializer(user, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'detail': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='User',
                         object_id=user.id, object_name=user.email)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def user_role(request, pk):
    """Change a user's role"""
    user = get_object_or_404(User, pk=pk)
    serializer = UserRoleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old_role = user.role
    user.role = serializer.validated_data['role']
    user.save(update_fields=['role', 'updated_at'])
    logger.info(f"Role of {user.email} changed {old_role} -> {user.role}")
    create_audit_log(request=request, action='status_change', model_name='User', object_id=user.id,
                     object_name=user.email, changes={'role': {'old': old_role, 'new': user.role}})
    return Response(UserSerializer(user).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def user_status(request, pk):
    """Activate or deactivate a user"""
    user = get_object_or_404(User, pk=pk)
    serializer = UserStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user.is_active = serializer.validated_data['is_active']
    user.save(update_fields=['is_active', 'updated_at'])
    create_audit_log(request=request, action='status_change', model_name='User', object_id=user.id,
                     object_name=user.email, changes={'is_active': user.is_active})
    return Response(UserSerializer(user).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdmin])
def audit_log_list(request):
    """List audit log entries, optionally filtered by model, object or action"""
    logs = AuditLog.objects.select_related('user')
    for param, lookup in (('model_name', 'model_name'), ('object_id', 'object_id'),
                          ('action', 'action'), ('user', 'user_id')):
        value = request.query_params.get(param)
        if value:
            logs = logs.filter(**{lookup: value})
    return paginated_response(request, logs, AuditLogSerializer)

"""
Staff account endpoints.

``profile`` and ``profile/change-password`` serve the signed-in user; the
registry itself is reserved to administrators.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsClinicAdmin
from ..serializers.user import ChangePasswordSerializer, UserSerializer, user_payload
from ..services import users as user_service


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsClinicAdmin])
def users(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': [user_payload(u) for u in user_service.list_users()]})
    s = UserSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = user_service.create_user(s.to_model_data(), actor_id=request.user.id)
    return Response({'ok': True, 'data': user_payload(user)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsClinicAdmin])
def user_detail(request, pk: int):
    if request.method == 'GET':
        return Response({'ok': True, 'data': user_payload(user_service.get_user(pk))})
    if request.method == 'DELETE':
        user_service.remove_user(pk, actor_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)
    s = UserSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = user_service.update_user(pk, s.to_model_data(), actor_id=request.user.id)
    return Response({'ok': True, 'data': user_payload(user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def profile(request):
    return Response({'ok': True, 'data': user_payload(request.user)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def change_password(request):
    s = ChangePasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user_service.change_password(request.user.id, s.validated_data['oldPassword'], s.validated_data['newPassword'])
    return Response({'ok': True, 'data': {'message': 'password changed'}})

"""
Staff registry: the accounts that sign in to the clinic.

Passwords only ever pass through ``set_password``/``check_password``.
"""
import logging
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import ProtectedError

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.models import User
from core.services.audit import log_action

logger = logging.getLogger(__name__)


def _ensure_unique(username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None) -> None:
    others = User.objects.all()
    if exclude_id is not None:
        others = others.exclude(id=exclude_id)
    if username and others.filter(username=username).exists():
        raise ConflictError('username already registered')
    if email and others.filter(email__iexact=email).exists():
        raise ConflictError('email already registered')


def get_user(user_id: int) -> User:
    user = User.objects.filter(id=user_id).first()
    if not user:
        raise NotFoundError(f'user {user_id} not found')
    return user


def list_users():
    return list(User.objects.order_by('username'))


def create_user(data: Dict[str, Any], actor_id: Optional[int] = None) -> User:
    data = dict(data)
    password = data.pop('password')
    _ensure_unique(data.get('username'), data.get('email'))
    user = User(**data)
    user.set_password(password)
    try:
        with transaction.atomic():
            user.save()
    except IntegrityError as exc:
        raise ConflictError('username already registered') from exc
    log_action(user_id=actor_id, action='user_create', object_type='user', object_id=user.id,
               detail={'role': user.role})
    logger.info('user %s registered with role %s', user.id, user.role)
    return user


def update_user(user_id: int, changes: Dict[str, Any], actor_id: Optional[int] = None) -> User:
    user = get_user(user_id)
    changes = dict(changes)
    password = changes.pop('password', None)
    _ensure_unique(changes.get('username'), changes.get('email'), exclude_id=user.id)

    for field, value in changes.items():
        setattr(user, field, value)
    if password:
        user.set_password(password)
    try:
        with transaction.atomic():
            user.save()
    except IntegrityError as exc:
        raise ConflictError('username already registered') from exc
    log_action(user_id=actor_id, action='user_update', object_type='user', object_id=user.id,
               detail={'fields': sorted(changes) + (['password'] if password else [])})
    return user


def remove_user(user_id: int, actor_id: Optional[int] = None) -> None:
    if actor_id is not None and actor_id == user_id:
        raise ValidationError('an account cannot remove itself')
    user = get_user(user_id)
    try:
        with transaction.atomic():
            user.delete()
    except ProtectedError as exc:
        raise ConflictError(f'user {user_id} still owns appointments or consultations') from exc
    log_action(user_id=actor_id, action='user_delete', object_type='user', object_id=user_id)
    logger.info('user %s removed', user_id)


def change_password(user_id: int, old_password: str, new_password: str) -> None:
    user = get_user(user_id)
    if not user.check_password(old_password):
        raise ValidationError('current password is incorrect')
    user.set_password(new_password)
    user.save(update_fields=['password'])
    log_action(user_id=user.id, action='password_change', object_type='user', object_id=user.id)

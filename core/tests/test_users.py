import pytest

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.models import AuditEvent, User
from core.services import scheduling, users

pytestmark = pytest.mark.django_db


def register(**extra):
    data = {'username': 'recepcao', 'email': 'recepcao@clinica.test', 'password': 'segredo1',
            'role': User.ROLE_SECRETARY}
    data.update(extra)
    return users.create_user(data)


def test_create_user_hashes_password():
    user = register()
    assert user.password != 'segredo1'
    assert user.check_password('segredo1')
    assert user.role == User.ROLE_SECRETARY
    assert AuditEvent.objects.filter(action='user_create', object_id=user.id).exists()


def test_duplicate_username_or_email_is_a_conflict():
    register()
    with pytest.raises(ConflictError):
        register(email='outra@clinica.test')
    with pytest.raises(ConflictError):
        register(username='outra', email='RECEPCAO@clinica.test')


def test_update_user_changes_fields_and_password():
    user = register()
    updated = users.update_user(user.id, {'first_name': 'Ana', 'password': 'novasenha'})
    assert updated.first_name == 'Ana'
    assert User.objects.get(id=user.id).check_password('novasenha')


def test_update_into_taken_email_is_a_conflict(secretary):
    user = register()
    secretary.email = 'sec@clinica.test'
    secretary.save()
    with pytest.raises(ConflictError):
        users.update_user(user.id, {'email': 'sec@clinica.test'})
    assert users.update_user(user.id, {'email': 'recepcao@clinica.test'}).email == 'recepcao@clinica.test'


def test_get_and_list(secretary, professional):
    assert users.get_user(professional.id).username == 'dra.helena'
    assert [u.username for u in users.list_users()] == ['dra.helena', 'secretaria']
    with pytest.raises(NotFoundError):
        users.get_user(9999)


def test_remove_user(admin_user):
    user = register()
    users.remove_user(user.id, actor_id=admin_user.id)
    assert not User.objects.filter(id=user.id).exists()
    with pytest.raises(NotFoundError):
        users.remove_user(user.id)
    with pytest.raises(ValidationError):
        users.remove_user(admin_user.id, actor_id=admin_user.id)


def test_user_with_appointments_cannot_be_removed(patient, secretary, tomorrow):
    scheduling.create_appointment(
        patient_id=patient.id, appointment_date=tomorrow, appointment_time='09:00', creator_id=secretary.id
    )
    with pytest.raises(ConflictError):
        users.remove_user(secretary.id)
    assert User.objects.filter(id=secretary.id).exists()


def test_change_password(secretary):
    with pytest.raises(ValidationError):
        users.change_password(secretary.id, 'wrong', 'novasenha')
    users.change_password(secretary.id, 'P@ssw0rd1', 'novasenha')
    secretary.refresh_from_db()
    assert secretary.check_password('novasenha')

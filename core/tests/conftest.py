from datetime import timedelta

import pytest
from django.utils import timezone

from core.models import User
from core.services.crypto import FieldCipher
from core.services.principal import Principal
from core.tests.factories import make_patient


@pytest.fixture
def secretary(db):
    return User.objects.create_user(username='secretaria', password='P@ssw0rd1', role=User.ROLE_SECRETARY)


@pytest.fixture
def professional(db):
    return User.objects.create_user(username='dra.helena', password='P@ssw0rd1', role=User.ROLE_PROFESSIONAL)


@pytest.fixture
def other_professional(db):
    return User.objects.create_user(username='dr.paulo', password='P@ssw0rd1', role=User.ROLE_PROFESSIONAL)


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username='admin', password='P@ssw0rd1', role=User.ROLE_ADMIN)


@pytest.fixture
def author(professional):
    return Principal.from_user(professional)


@pytest.fixture
def patient(db):
    return make_patient()


@pytest.fixture
def tomorrow():
    return timezone.localdate() + timedelta(days=1)


@pytest.fixture
def cipher():
    return FieldCipher('test-field-secret')

"""
Management command to populate the database with demo clinic data.

Everything past the users goes through the service layer, so the seeded
agenda obeys the same opening hours, conflict and status rules as the API.
Running it twice is harmless.
"""
from datetime import date, timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone

from core.exceptions import ClinicError, ConflictError
from core.models import Patient, User
from core.services import consultations, patients, scheduling
from core.services.principal import Principal

USERS = [
    ('admin', User.ROLE_ADMIN, 'Ana', 'Admin'),
    ('secretaria', User.ROLE_SECRETARY, 'Sofia', 'Ramos'),
    ('dra.helena', User.ROLE_PROFESSIONAL, 'Helena', 'Costa'),
    ('dr.paulo', User.ROLE_PROFESSIONAL, 'Paulo', 'Mendes'),
]

PATIENTS = [
    {
        'cpf': '111.444.777-35', 'first_name': 'Maria', 'last_name': 'Silva', 'birth_date': date(1985, 4, 12),
        'home_zip_code': '01310-100', 'home_street': 'Avenida Paulista', 'home_number': '1000',
        'home_neighborhood': 'Bela Vista', 'home_state': 'SP', 'home_city': 'São Paulo',
        'use_same_address': True, 'phone': '11987654321', 'whatsapp': '11987654321',
        'email': 'maria.silva@example.com',
    },
    {
        'cpf': '529.982.247-25', 'first_name': 'João', 'last_name': 'Pereira', 'birth_date': date(1972, 11, 3),
        'home_zip_code': '20040-020', 'home_street': 'Rua da Assembleia', 'home_number': '10',
        'home_neighborhood': 'Centro', 'home_state': 'RJ', 'home_city': 'Rio de Janeiro',
        'use_same_address': False,
        'billing_zip_code': '20031-170', 'billing_street': 'Avenida Rio Branco', 'billing_number': '156',
        'billing_neighborhood': 'Centro', 'billing_state': 'RJ', 'billing_city': 'Rio de Janeiro',
        'phone': '21998765432', 'whatsapp': '', 'email': '',
    },
]

# (days from today, HH:MM, patient index)
AGENDA = [
    (1, '08:00', 0),
    (1, '09:30', 1),
    (2, '14:00', 0),
    (3, '17:00', 1),
]


class Command(BaseCommand):
    help = 'Populate the database with demo users, patients and appointments'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='clinic123', help='password for every demo user')

    def handle(self, *args, **options):
        users = self.create_users(options['password'])
        seeded = self.create_patients()
        booked = self.create_appointments(users['secretaria'], seeded)
        if booked:
            self.open_consultation(users['dra.helena'], booked[0])
        self.stdout.write(self.style.SUCCESS('Demo data ready.'))

    def create_users(self, password):
        users = {}
        for username, role, first_name, last_name in USERS:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    'role': role,
                    'password': make_password(password),
                    'first_name': first_name,
                    'last_name': last_name,
                    'is_staff': role == User.ROLE_ADMIN,
                },
            )
            users[username] = user
            self.stdout.write(f"{'created' if created else 'exists '} user: {username} ({role})")
        return users

    def create_patients(self):
        seeded = []
        for data in PATIENTS:
            patient = Patient.objects.filter(cpf=data['cpf']).first()
            if patient is None:
                patient = patients.create_patient(data)
                self.stdout.write(f'created patient: {patient.first_name} {patient.last_name}')
            seeded.append(patient)
        return seeded

    def create_appointments(self, creator, seeded):
        booked = []
        today = timezone.localdate()
        for offset, slot, index in AGENDA:
            day = today + timedelta(days=offset)
            try:
                appointment = scheduling.create_appointment(
                    patient_id=seeded[index].id,
                    appointment_date=day,
                    appointment_time=slot,
                    observations='demo appointment',
                    creator_id=creator.id,
                )
            except ConflictError:
                self.stdout.write(f'slot taken, skipped: {day} {slot}')
                continue
            booked.append(appointment)
            self.stdout.write(f'booked: {day} {slot} for patient {seeded[index].id}')
        return booked

    def open_consultation(self, professional, appointment):
        try:
            record = consultations.create_consultation(
                Principal.from_user(professional),
                appointment_id=appointment.id,
                notes='Initial evaluation.',
                attention_points='Penicillin allergy.',
            )
        except ClinicError as exc:
            self.stdout.write(self.style.WARNING(f'consultation skipped: {exc.message}'))
            return
        self.stdout.write(f'opened consultation {record.id} for appointment {appointment.id}')

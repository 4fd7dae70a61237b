"""
Management command to populate the database with demo data for the
analytics dashboard.
"""
from datetime import timedelta
from decimal import Decimal
import random

from django.conf import settings
from django.contrib.auth.models import Group, User
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from analytics.models import (
    Bed, Bill, BillItem, Consultation, Department, Doctor, Employee, Feedback,
    InventoryMovement, Medicine, Patient, Prescription, PrescriptionEntry, Room,
)
from analytics.services.ratings import running_mean
from analytics.services.snapshots import take_occupancy_snapshot


DEPARTMENTS = ['Cardiology', 'Neurology', 'Pediatrics', 'Orthopedics', 'General Medicine']
MEDICINES = [
    ('Paracetamol', 'tablet'),
    ('Amoxicillin', 'capsule'),
    ('Ibuprofen', 'tablet'),
    ('Cetirizine', 'syrup'),
    ('Omeprazole', 'capsule'),
]
COMMENTS = {
    1: ['Very long wait and no explanation.'],
    2: ['Rushed appointment.', 'Hard to get answers.'],
    3: ['Okay visit.', 'Average experience.'],
    4: ['Helpful doctor.', 'Clear instructions.'],
    5: ['Excellent care!', 'Very attentive and kind.'],
}


class Command(BaseCommand):
    help = 'Populate database with demo data'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=90, help='How many days of history to generate')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible data')

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        days = max(1, options['days'])
        today = timezone.localdate()

        self.stdout.write('Creating demo data...')

        departments = self.create_departments()
        doctors = self.create_doctors(departments, rng)
        patients = self.create_patients(rng)
        beds = self.create_rooms(rng)
        medicines = self.create_medicines()

        self.create_inventory(medicines, days, rng)
        consultations = self.create_consultations(doctors, patients, days, rng)
        self.create_feedback(consultations, rng)
        self.create_bills(consultations, medicines, rng)
        self.create_snapshots(beds, patients, today, days, rng)
        self.create_viewer()

        self.stdout.write(self.style.SUCCESS('Demo data created.'))

    def create_departments(self):
        departments = []
        for name in DEPARTMENTS:
            dept, _ = Department.objects.get_or_create(name=name)
            departments.append(dept)
        self.stdout.write(f'  {len(departments)} departments')
        return departments

    def create_doctors(self, departments, rng):
        doctors = []
        for i in range(12):
            employee = Employee.objects.create(name=f'Dr. Demo {i + 1}', role='doctor')
            # a few doctors are left without a department
            department = rng.choice(departments) if i % 6 else None
            doctors.append(Doctor.objects.create(
                employee=employee,
                department=department,
                specialization=department.name if department else '',
            ))
        self.stdout.write(f'  {len(doctors)} doctors')
        return doctors

    def create_patients(self, rng):
        patients = [
            Patient.objects.create(name=f'Patient {i + 1}', phone=f'555{rng.randint(1000000, 9999999)}')
            for i in range(40)
        ]
        self.stdout.write(f'  {len(patients)} patients')
        return patients

    def create_rooms(self, rng):
        beds = []
        for i in range(8):
            room, _ = Room.objects.get_or_create(
                room_number=f'R{101 + i}',
                defaults={'room_type': rng.choice(['general', 'private', 'icu'])},
            )
            for j in range(4):
                bed, _ = Bed.objects.get_or_create(room=room, bed_number=f'{room.room_number}-{j + 1}')
                beds.append(bed)
        self.stdout.write(f'  {len(beds)} beds')
        return beds

    def create_medicines(self):
        medicines = []
        for name, form in MEDICINES:
            med, _ = Medicine.objects.get_or_create(med_name=name, defaults={'dosage_form': form})
            medicines.append(med)
        return medicines

    def create_inventory(self, medicines, days, rng):
        statuses = [InventoryMovement.STATUS_RECEIVED] * 4 + [
            InventoryMovement.STATUS_ORDERED, InventoryMovement.STATUS_CANCELLED,
        ]
        count = 0
        for med in medicines:
            for _ in range(max(1, days // 7)):
                qty = rng.randint(10, 200)
                InventoryMovement.objects.create(
                    medicine=med,
                    quantity=qty,
                    total_cost=Decimal(qty) * Decimal('1.25'),
                    order_date=timezone.now() - timedelta(days=rng.randint(0, days - 1)),
                    supplier='Demo Pharma',
                    status=rng.choice(statuses),
                )
                count += 1
        self.stdout.write(f'  {count} inventory movements')

    def create_consultations(self, doctors, patients, days, rng):
        consultations = []
        for _ in range(days * 2):
            consultations.append(Consultation.objects.create(
                patient=rng.choice(patients),
                doctor=rng.choice(doctors),
                booked_date_time=timezone.now() - timedelta(days=rng.randint(0, days - 1), hours=rng.randint(0, 8)),
                status=Consultation.STATUS_COMPLETED,
            ))
        self.stdout.write(f'  {len(consultations)} consultations')
        return consultations

    def create_feedback(self, consultations, rng):
        ratings = {}
        for consultation in rng.sample(consultations, k=len(consultations) // 2):
            rating = rng.choices([1, 2, 3, 4, 5], weights=[1, 2, 4, 6, 5])[0]
            Feedback.objects.create(
                consultation=consultation,
                rating=rating,
                comments=rng.choice(COMMENTS[rating]),
            )
            mean, weight = ratings.get(consultation.doctor_id, (0.0, 0))
            ratings[consultation.doctor_id] = running_mean(mean, weight, rating)
        for doctor_id, (mean, weight) in ratings.items():
            Doctor.objects.filter(id=doctor_id).update(rating=mean, num_ratings=weight)
        self.stdout.write(f'  {sum(w for _, w in ratings.values())} feedback entries')

    def create_bills(self, consultations, medicines, rng):
        count = 0
        for consultation in consultations:
            if rng.random() < 0.4:
                continue
            prescription = Prescription.objects.create(consultation=consultation)
            for med in rng.sample(medicines, k=rng.randint(1, 3)):
                qty = rng.randint(1, 20)
                PrescriptionEntry.objects.create(
                    prescription=prescription,
                    medicine=med,
                    dosage='1 unit',
                    frequency='twice daily',
                    duration=f'{rng.randint(3, 10)} days',
                    quantity=qty,
                    dispensed_qty=rng.randint(0, qty),
                )
            bill = Bill.objects.create(
                patient=consultation.patient,
                consultation=consultation,
                generation_date=consultation.booked_date_time + timedelta(hours=1),
                total_amount=Decimal('50.00'),
            )
            BillItem.objects.create(
                bill=bill, position=0, item_type=BillItem.TYPE_CONSULTATION,
                description='Consultation fee', amount=Decimal('30.00'),
            )
            BillItem.objects.create(
                bill=bill, position=1, item_type=BillItem.TYPE_MEDICATION,
                description='Medication', amount=Decimal('20.00'), prescription=prescription,
            )
            count += 1
        self.stdout.write(f'  {count} bills')

    def create_snapshots(self, beds, patients, today, days, rng):
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            for bed in beds:
                if rng.random() < 0.6:
                    bed.status = Bed.STATUS_OCCUPIED
                    bed.patient = rng.choice(patients)
                    bed.occupied_since = None
                else:
                    bed.status = Bed.STATUS_VACANT
                    bed.patient = None
                    bed.occupied_since = None
                bed.save(update_fields=['status', 'patient', 'occupied_since'])
            take_occupancy_snapshot(day)
        self.stdout.write(f'  {days} occupancy snapshots')

    def create_viewer(self):
        group, _ = Group.objects.get_or_create(name=settings.ANALYTICS_VIEWER_GROUP)
        user, created = User.objects.get_or_create(username='analyst', defaults={'email': 'analyst@example.com'})
        if created:
            user.set_password('analyst123')
            user.save()
        user.groups.add(group)
        self.stdout.write('  viewer account: analyst / analyst123')

"""
Database models read by the analytics service.

Staff, patient, facility, pharmacy, billing and consultation records
are created and mutated by the hospital's record-management flows; the
analytics service only reads them.  The two exceptions are
:class:`OccupancySnapshot`, refreshed once a day, and the running
rating kept on :class:`Doctor`, updated whenever feedback arrives.
"""
from __future__ import annotations

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Department(models.Model):
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class Employee(models.Model):
    """Directory entry for a member of staff."""
    ROLE_CHOICES = [
        ('doctor', 'Doctor'),
        ('nurse', 'Nurse'),
        ('pharmacist', 'Pharmacist'),
        ('admin', 'Administrator'),
        ('other', 'Other'),
    ]
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='doctor')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.role})"


class Doctor(models.Model):
    """A doctor together with the running mean of the ratings they received.

    ``rating`` and ``num_ratings`` are always written together by
    :func:`analytics.services.ratings.record_feedback`.
    """
    employee = models.OneToOneField(Employee, on_delete=models.CASCADE, related_name='doctor')
    # Doctors survive the removal of their department; department reports skip them.
    department = models.ForeignKey(
        Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='doctors', db_index=True
    )
    specialization = models.CharField(max_length=255, blank=True)
    rating = models.FloatField(
        default=0.0, validators=[MinValueValidator(0.0), MaxValueValidator(5.0)]
    )
    num_ratings = models.PositiveIntegerField(default=0)

    @property
    def name(self) -> str:
        return self.employee.name

    def __str__(self) -> str:
        return f"Dr. {self.employee.name} ({self.rating:.2f}/{self.num_ratings})"


class Patient(models.Model):
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class Room(models.Model):
    ROOM_TYPE_CHOICES = [
        ('general', 'General'),
        ('private', 'Private'),
        ('icu', 'ICU'),
    ]
    room_number = models.CharField(max_length=20, unique=True)
    room_type = models.CharField(max_length=20, choices=ROOM_TYPE_CHOICES, default='general')

    def __str__(self) -> str:
        return f"Room {self.room_number}"


class Bed(models.Model):
    STATUS_VACANT = 'vacant'
    STATUS_OCCUPIED = 'occupied'
    STATUS_CHOICES = ((STATUS_VACANT, 'vacant'), (STATUS_OCCUPIED, 'occupied'))

    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name='beds')
    bed_number = models.CharField(max_length=20)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_VACANT, db_index=True)
    patient = models.ForeignKey(Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='beds')
    occupied_since = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = [('room', 'bed_number')]

    def __str__(self) -> str:
        return f"{self.room.room_number}/{self.bed_number} ({self.status})"


class OccupancySnapshot(models.Model):
    """Occupied beds on one calendar day; at most one row per day."""
    date = models.DateField(unique=True)
    occupied_beds = models.JSONField(default=list, blank=True, help_text="Identifiers of the occupied beds")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date']

    @property
    def occupied_bed_count(self) -> int:
        return len(self.occupied_beds or [])

    def __str__(self) -> str:
        return f"Occupancy {self.date:%F}: {self.occupied_bed_count}"


class Medicine(models.Model):
    id = models.AutoField(primary_key=True)
    med_name = models.CharField(max_length=255)
    effectiveness = models.CharField(max_length=20, blank=True)
    dosage_form = models.CharField(max_length=50, blank=True)
    manufacturer = models.CharField(max_length=255, blank=True)
    available = models.BooleanField(default=True)

    def __str__(self) -> str:
        return f"{self.med_name} (#{self.id})"


class InventoryMovement(models.Model):
    """A purchase order line for a medicine.  Only received orders count as stock in."""
    STATUS_ORDERED = 'ordered'
    STATUS_RECEIVED = 'received'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = (
        (STATUS_ORDERED, 'ordered'),
        (STATUS_RECEIVED, 'received'),
        (STATUS_CANCELLED, 'cancelled'),
    )
    medicine = models.ForeignKey(Medicine, on_delete=models.CASCADE, related_name='movements')
    quantity = models.PositiveIntegerField(default=0)
    total_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    order_date = models.DateTimeField()
    supplier = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ORDERED)

    class Meta:
        indexes = [
            models.Index(fields=['medicine', 'status', 'order_date'], name='movement_med_status_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.medicine_id} x{self.quantity} [{self.status}]"


class Consultation(models.Model):
    STATUS_SCHEDULED = 'scheduled'
    STATUS_ONGOING = 'ongoing'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = (
        (STATUS_SCHEDULED, 'scheduled'),
        (STATUS_ONGOING, 'ongoing'),
        (STATUS_COMPLETED, 'completed'),
        (STATUS_CANCELLED, 'cancelled'),
    )

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='consultations')
    # Staff records may be removed while their consultations are kept
    doctor = models.ForeignKey(
        Doctor, null=True, blank=True, on_delete=models.SET_NULL, related_name='consultations'
    )
    booked_date_time = models.DateTimeField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'booked_date_time'], name='consult_doctor_booked_idx'),
            models.Index(fields=['patient', 'booked_date_time'], name='consult_patient_booked_idx'),
        ]

    def __str__(self) -> str:
        return f"consult d={self.doctor_id} p={self.patient_id} @ {self.booked_date_time:%F %T}"


class Feedback(models.Model):
    """Patient feedback attached to a single consultation."""
    consultation = models.OneToOneField(Consultation, on_delete=models.CASCADE, related_name='feedback')
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)], db_index=True
    )
    comments = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Feedback {self.rating} on {self.consultation_id}"


class Prescription(models.Model):
    consultation = models.ForeignKey(
        Consultation, null=True, blank=True, on_delete=models.SET_NULL, related_name='prescriptions'
    )
    issued_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Prescription #{self.id}"


class PrescriptionEntry(models.Model):
    """One medicine on a prescription.

    ``dispensed_qty`` is what the pharmacy actually handed out and is
    what consumption reports count; ``quantity`` is what was prescribed.
    """
    prescription = models.ForeignKey(Prescription, on_delete=models.CASCADE, related_name='entries')
    medicine = models.ForeignKey(Medicine, on_delete=models.CASCADE, related_name='prescription_entries')
    dosage = models.CharField(max_length=100, blank=True)
    frequency = models.CharField(max_length=100, blank=True)
    duration = models.CharField(max_length=100, blank=True)
    quantity = models.PositiveIntegerField(default=0)
    dispensed_qty = models.PositiveIntegerField(default=0)

    def __str__(self) -> str:
        return f"{self.medicine_id} x{self.dispensed_qty}/{self.quantity} on {self.prescription_id}"


class Bill(models.Model):
    patient = models.ForeignKey(Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='bills')
    consultation = models.ForeignKey(
        Consultation, null=True, blank=True, on_delete=models.SET_NULL, related_name='bills'
    )
    generation_date = models.DateTimeField(db_index=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    def __str__(self) -> str:
        return f"Bill #{self.id} @ {self.generation_date:%F}"


class BillItem(models.Model):
    TYPE_CONSULTATION = 'consultation'
    TYPE_TEST = 'test'
    TYPE_MEDICATION = 'medication'
    TYPE_ROOM = 'room_charge'
    TYPE_PROCEDURE = 'procedure'
    TYPE_OTHER = 'other'
    TYPE_CHOICES = (
        (TYPE_CONSULTATION, 'consultation'),
        (TYPE_TEST, 'test'),
        (TYPE_MEDICATION, 'medication'),
        (TYPE_ROOM, 'room_charge'),
        (TYPE_PROCEDURE, 'procedure'),
        (TYPE_OTHER, 'other'),
    )
    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name='items')
    position = models.PositiveIntegerField(default=0)
    item_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    description = models.CharField(max_length=255, blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    prescription = models.ForeignKey(
        Prescription, null=True, blank=True, on_delete=models.SET_NULL, related_name='bill_items'
    )

    class Meta:
        ordering = ['bill', 'position', 'id']

    def __str__(self) -> str:
        return f"{self.item_type} on bill {self.bill_id}"

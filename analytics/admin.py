"""
Django admin registrations for the analytics models.

Superusers can inspect the records the reports are built from via the
``/admin/`` URL.
"""

from django.contrib import admin

from .models import (
    Bed,
    Bill,
    BillItem,
    Consultation,
    Department,
    Doctor,
    Employee,
    Feedback,
    InventoryMovement,
    Medicine,
    OccupancySnapshot,
    Patient,
    Prescription,
    PrescriptionEntry,
    Room,
)


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'created_at')
    search_fields = ('name',)


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'role', 'email')
    list_filter = ('role',)
    search_fields = ('name', 'email')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('id', 'employee', 'department', 'rating', 'num_ratings')
    list_filter = ('department',)
    search_fields = ('employee__name', 'specialization')
    readonly_fields = ('rating', 'num_ratings')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'email', 'phone')
    search_fields = ('name', 'email', 'phone')


class BedInline(admin.TabularInline):
    model = Bed
    extra = 0


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('room_number', 'room_type')
    inlines = [BedInline]


@admin.register(Bed)
class BedAdmin(admin.ModelAdmin):
    list_display = ('id', 'room', 'bed_number', 'status', 'patient', 'occupied_since')
    list_filter = ('status',)


@admin.register(OccupancySnapshot)
class OccupancySnapshotAdmin(admin.ModelAdmin):
    list_display = ('date', 'occupied_bed_count', 'updated_at')
    date_hierarchy = 'date'


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ('id', 'med_name', 'dosage_form', 'manufacturer', 'available')
    search_fields = ('med_name', 'manufacturer')


@admin.register(InventoryMovement)
class InventoryMovementAdmin(admin.ModelAdmin):
    list_display = ('id', 'medicine', 'quantity', 'status', 'order_date', 'supplier')
    list_filter = ('status',)
    date_hierarchy = 'order_date'


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'booked_date_time', 'status')
    list_filter = ('status',)


@admin.register(Feedback)
class FeedbackAdmin(admin.ModelAdmin):
    list_display = ('consultation', 'rating', 'created_at')
    list_filter = ('rating',)


class PrescriptionEntryInline(admin.TabularInline):
    model = PrescriptionEntry
    extra = 0


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('id', 'consultation', 'issued_at')
    inlines = [PrescriptionEntryInline]


class BillItemInline(admin.TabularInline):
    model = BillItem
    extra = 0


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'generation_date', 'total_amount')
    date_hierarchy = 'generation_date'
    inlines = [BillItemInline]

"""
URL mappings for the hospital analytics API.

Trailing slashes are omitted to match the paths the dashboard calls.
"""
from django.urls import path, include

from .views import feedback
from .views import health
from .views import medicines
from .views import occupancy
from .views import ratings

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Occupancy
    path('api/analytics/occupancy/<str:period>', occupancy.bed_occupancy_trends),
    path('api/analytics/facility', occupancy.facility_statistics),
    # Medicines
    path('api/analytics/medicines/inventory-trend', medicines.medicine_inventory_trends),
    path('api/analytics/medicines/prescription-trend', medicines.medicine_prescription_trends),
    # Ratings
    path('api/analytics/doctors/rating-distribution', ratings.doctor_rating_distribution),
    path('api/analytics/doctors/quadrants', ratings.doctor_quadrants),
    path('api/analytics/departments/quadrants', ratings.department_quadrants),
    path('api/analytics/departments/<int:department_id>/rating', ratings.department_rating),
    path('api/analytics/ratings/overall', ratings.overall_rating),
    path('api/analytics/feedback/<str:rating>', ratings.feedback_comments),
    # Patient feedback
    path(
        'api/patients/<int:patient_id>/consultations/<int:consultation_id>/feedback',
        feedback.submit_feedback,
    ),
]

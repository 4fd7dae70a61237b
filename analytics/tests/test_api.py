"""
Integration tests for the analytics API.

These tests exercise the report endpoints end to end: request
validation, access control, the joins behind the rating reports and
the feedback submission that keeps doctor ratings up to date.  The
tests use Django REST Framework's APIClient within the APITestCase
base class.

To run the tests:

```
pytest -q analytics/tests
```
"""
from datetime import datetime, timezone as dt_timezone
from unittest.mock import patch

from django.conf import settings
from django.contrib.auth.models import Group, User
from django.core.cache import cache
from django.db import DatabaseError
from django.test import override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from analytics.models import (
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


def utc(*args):
    return datetime(*args, tzinfo=dt_timezone.utc)


@override_settings(TIME_ZONE='UTC')
class AnalyticsAPITestBase(APITestCase):
    def setUp(self) -> None:
        cache.clear()
        self.staff = User.objects.create_user(username='staff1', password='staffpass', is_staff=True)
        self.client.force_authenticate(user=self.staff)

    def make_doctor(self, name, rating=0.0, num_ratings=0, department=None):
        employee = Employee.objects.create(name=name)
        return Doctor.objects.create(
            employee=employee, department=department, rating=rating, num_ratings=num_ratings
        )

    def consult(self, doctor, patient=None, n=1):
        patient = patient or Patient.objects.create(name='Walk-in')
        return [
            Consultation.objects.create(patient=patient, doctor=doctor, booked_date_time=timezone.now())
            for _ in range(n)
        ]


class OccupancyAPITests(AnalyticsAPITestBase):
    def setUp(self) -> None:
        super().setUp()
        OccupancySnapshot.objects.create(date='2025-04-13', occupied_beds=[1, 2])
        OccupancySnapshot.objects.create(date='2025-04-14', occupied_beds=[1, 2, 3])
        OccupancySnapshot.objects.create(date='2025-04-15', occupied_beds=[1])
        OccupancySnapshot.objects.create(date='2025-04-30', occupied_beds=[4])

    def test_weekly_trend(self) -> None:
        resp = self.client.get(
            '/api/analytics/occupancy/weekly', {'startDate': '2025-04-13', 'endDate': '2025-04-15'}
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['period'], 'weekly')
        self.assertEqual(len(resp.data['occupancyEntries']), 3)
        self.assertEqual(resp.data['occupancyEntries'][1]['occupiedBedCount'], 3)
        self.assertEqual(resp.data['trends'], [
            {'weekStart': '2025-04-07', 'occupiedBedCount': 2, 'days': 1, 'averageOccupiedBedCount': 2.0},
            {'weekStart': '2025-04-14', 'occupiedBedCount': 4, 'days': 2, 'averageOccupiedBedCount': 2.0},
        ])

    def test_monthly_trend(self) -> None:
        resp = self.client.get(
            '/api/analytics/occupancy/monthly', {'startDate': '2025-04-01', 'endDate': '2025-04-30'}
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['trends'], [
            {'monthStart': '2025-04-01', 'occupiedBedCount': 7, 'days': 4, 'averageOccupiedBedCount': 1.75},
        ])

    def test_invalid_period(self) -> None:
        resp = self.client.get(
            '/api/analytics/occupancy/hourly', {'startDate': '2025-04-13', 'endDate': '2025-04-15'}
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Invalid period', resp.data['message'])

    def test_inverted_range(self) -> None:
        resp = self.client.get(
            '/api/analytics/occupancy/daily', {'startDate': '2025-04-15', 'endDate': '2025-04-13'}
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('message', resp.data)

    def test_missing_dates(self) -> None:
        resp = self.client.get('/api/analytics/occupancy/daily')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('startDate', resp.data['errors'])

    def test_facility_statistics(self) -> None:
        room = Room.objects.create(room_number='101')
        Bed.objects.create(room=room, bed_number='1', status=Bed.STATUS_OCCUPIED)
        Bed.objects.create(room=room, bed_number='2')
        resp = self.client.get('/api/analytics/facility')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, {'totalRooms': 1, 'totalBeds': 2, 'occupiedBeds': 1})


class MedicineTrendAPITests(AnalyticsAPITestBase):
    def setUp(self) -> None:
        super().setUp()
        self.med = Medicine.objects.create(med_name='Paracetamol')
        self.other = Medicine.objects.create(med_name='Ibuprofen')

    def test_inventory_trend_counts_received_orders_only(self) -> None:
        received = InventoryMovement.STATUS_RECEIVED
        InventoryMovement.objects.create(medicine=self.med, quantity=10, order_date=utc(2025, 4, 2, 12), status=received)
        InventoryMovement.objects.create(medicine=self.med, quantity=5, order_date=utc(2025, 4, 10, 12), status=received)
        InventoryMovement.objects.create(
            medicine=self.med, quantity=100, order_date=utc(2025, 4, 3, 12),
            status=InventoryMovement.STATUS_CANCELLED,
        )
        InventoryMovement.objects.create(
            medicine=self.med, quantity=50, order_date=utc(2025, 4, 4, 12),
            status=InventoryMovement.STATUS_ORDERED,
        )
        InventoryMovement.objects.create(medicine=self.med, quantity=7, order_date=utc(2025, 5, 1, 12), status=received)
        InventoryMovement.objects.create(medicine=self.other, quantity=9, order_date=utc(2025, 4, 2, 12), status=received)

        resp = self.client.post(
            '/api/analytics/medicines/inventory-trend',
            {'medicineId': self.med.id, 'startDate': '2025-04-01', 'endDate': '2025-05-31'},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['medicine'], {'id': str(self.med.id), 'name': 'Paracetamol'})
        self.assertEqual(resp.data['monthlyData'], {
            'labels': ['Apr 2025', 'May 2025'], 'values': [15, 7], 'counts': [2, 1],
        })
        self.assertEqual(resp.data['weeklyDataByMonth']['Apr 2025'], {
            'labels': ['Week 1', 'Week 2'], 'values': [10, 5],
        })
        self.assertEqual(resp.data['totalOrders'], 22)

    def test_inventory_trend_accepts_query_params(self) -> None:
        InventoryMovement.objects.create(
            medicine=self.med, quantity=3, order_date=utc(2025, 4, 30, 23, 59),
            status=InventoryMovement.STATUS_RECEIVED,
        )
        resp = self.client.get(
            '/api/analytics/medicines/inventory-trend',
            {'medicineId': self.med.id, 'startDate': '2025-04-30', 'endDate': '2025-04-30'},
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['totalOrders'], 3)

    def test_empty_range(self) -> None:
        resp = self.client.post(
            '/api/analytics/medicines/inventory-trend',
            {'medicineId': self.med.id, 'startDate': '2024-01-01', 'endDate': '2024-01-31'},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['monthlyData'], {'labels': [], 'values': [], 'counts': []})
        self.assertEqual(resp.data['weeklyDataByMonth'], {})
        self.assertEqual(resp.data['totalOrders'], 0)

    def test_unknown_medicine(self) -> None:
        resp = self.client.post(
            '/api/analytics/medicines/inventory-trend',
            {'medicineId': 99999, 'startDate': '2025-04-01', 'endDate': '2025-04-30'},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data['message'], 'Medicine not found')

    def test_invalid_medicine_id(self) -> None:
        resp = self.client.post(
            '/api/analytics/medicines/prescription-trend',
            {'medicineId': 'abc', 'startDate': '2025-04-01', 'endDate': '2025-04-30'},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('medicineId', resp.data['errors'])

    def test_prescription_trend(self) -> None:
        p1 = Prescription.objects.create()
        PrescriptionEntry.objects.create(prescription=p1, medicine=self.med, quantity=5, dispensed_qty=4)
        PrescriptionEntry.objects.create(prescription=p1, medicine=self.other, quantity=5, dispensed_qty=5)
        p2 = Prescription.objects.create()
        PrescriptionEntry.objects.create(prescription=p2, medicine=self.med, quantity=2, dispensed_qty=0)
        p3 = Prescription.objects.create()
        PrescriptionEntry.objects.create(prescription=p3, medicine=self.other, quantity=1, dispensed_qty=1)

        b1 = Bill.objects.create(generation_date=utc(2025, 4, 5, 10))
        BillItem.objects.create(bill=b1, position=0, item_type=BillItem.TYPE_CONSULTATION)
        BillItem.objects.create(bill=b1, position=1, item_type=BillItem.TYPE_MEDICATION, prescription=p1)
        b2 = Bill.objects.create(generation_date=utc(2025, 4, 20, 10))
        BillItem.objects.create(bill=b2, position=0, item_type=BillItem.TYPE_MEDICATION, prescription=p2)
        BillItem.objects.create(bill=b2, position=1, item_type=BillItem.TYPE_MEDICATION, prescription=p3)
        # outside the range
        b3 = Bill.objects.create(generation_date=utc(2025, 6, 1, 10))
        BillItem.objects.create(bill=b3, position=0, item_type=BillItem.TYPE_MEDICATION, prescription=p1)

        resp = self.client.post(
            '/api/analytics/medicines/prescription-trend',
            {'medicineId': self.med.id, 'startDate': '2025-04-01', 'endDate': '2025-04-30'},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['monthlyData'], {'labels': ['Apr 2025'], 'values': [4], 'counts': [2]})
        self.assertEqual(resp.data['weeklyDataByMonth']['Apr 2025'], {
            'labels': ['Week 1', 'Week 3'], 'values': [4, 0],
        })
        self.assertEqual(resp.data['totalPrescriptionsQuantity'], 4)
        self.assertEqual(resp.data['totalPrescriptions'], 2)


class RatingAPITests(AnalyticsAPITestBase):
    def setUp(self) -> None:
        super().setUp()
        self.cardio = Department.objects.create(name='Cardiology')
        self.neuro = Department.objects.create(name='Neurology')
        self.d1 = self.make_doctor('Dr. A', rating=4.5, num_ratings=4, department=self.cardio)
        self.d2 = self.make_doctor('Dr. B', rating=3.0, num_ratings=1)
        self.d3 = self.make_doctor('Dr. C', rating=3.5, num_ratings=2, department=self.cardio)
        self.d4 = self.make_doctor('Dr. D', rating=2.0, num_ratings=1, department=self.neuro)
        self.consult(self.d1, n=3)
        self.consult(self.d2, n=1)
        self.consult(self.d3, n=1)
        self.consult(self.d4, n=5)
        self.consult(None, n=2)

    def test_rating_distribution(self) -> None:
        self.make_doctor('Dr. E', rating=5.0)
        self.make_doctor('Dr. F', rating=1.0)
        resp = self.client.get('/api/analytics/doctors/rating-distribution')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, {
            '1.5-2.2': 1, '2.2-2.9': 0, '2.9-3.6': 2, '3.6-4.3': 0, '4.3-5.0': 2,
        })

    def test_doctor_quadrants(self) -> None:
        resp = self.client.get(
            '/api/analytics/doctors/quadrants', {'ratingThreshold': 4, 'consultationThreshold': 3}
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['highConsHighRating'], [
            {'DOCTOR': 'Dr. A', 'DEPARTMENT': 'Cardiology', 'RATING': '4.50', 'CONSULTATIONS': 3},
        ])
        self.assertEqual(resp.data['highConsLowRating'][0]['DOCTOR'], 'Dr. D')
        low_low = {item['DOCTOR']: item for item in resp.data['lowConsLowRating']}
        self.assertEqual(low_low['Dr. B']['DEPARTMENT'], 'Unknown')
        self.assertIn('Dr. C', low_low)
        self.assertEqual(resp.data['counts'], {
            'highConsHighRating': 1, 'highConsLowRating': 1, 'lowConsHighRating': 0, 'lowConsLowRating': 2,
        })
        self.assertEqual(len(resp.data['graphData']), 4)

    def test_quadrant_thresholds_are_required(self) -> None:
        resp = self.client.post('/api/analytics/doctors/quadrants', {'ratingThreshold': 9}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('consultationThreshold', resp.data['errors'])

    def test_department_quadrants(self) -> None:
        resp = self.client.post(
            '/api/analytics/departments/quadrants',
            {'ratingThreshold': 4, 'consultationThreshold': 4},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['highConsHighRating'], [
            {'DEPARTMENT': 'Cardiology', 'AVG_RATING': '4.00', 'CONSULTATIONS': 4, 'DOCTOR_COUNT': 2},
        ])
        self.assertEqual(resp.data['highConsLowRating'][0]['DEPARTMENT'], 'Neurology')
        self.assertEqual(sum(resp.data['counts'].values()), 2)

    def test_department_average_ignores_consultation_volume(self) -> None:
        self.consult(self.d1, n=20)
        resp = self.client.get(
            '/api/analytics/departments/quadrants', {'ratingThreshold': 4, 'consultationThreshold': 4}
        )
        cardio = next(r for r in resp.data['graphData'] if r['departmentName'] == 'Cardiology')
        self.assertEqual(cardio['avgRating'], 4.0)
        self.assertEqual(cardio['consultations'], 24)

    def test_department_rating(self) -> None:
        consultation = self.consult(self.d3)[0]
        Feedback.objects.create(consultation=consultation, rating=4)
        resp = self.client.get(f'/api/analytics/departments/{self.cardio.id}/rating')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['departmentName'], 'Cardiology')
        self.assertEqual(resp.data['departmentRating'], 4.0)
        self.assertEqual(resp.data['doctorCount'], 2)
        self.assertEqual(resp.data['feedbackCount'], 1)

    def test_unrated_doctor_does_not_lower_department_rating(self) -> None:
        self.make_doctor('Dr. New', department=self.cardio)
        resp = self.client.get(f'/api/analytics/departments/{self.cardio.id}/rating')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['departmentRating'], 4.0)
        self.assertEqual(resp.data['doctorCount'], 3)

    def test_unrated_doctor_does_not_lower_department_quadrant_average(self) -> None:
        newcomer = self.make_doctor('Dr. New', department=self.cardio)
        self.consult(newcomer, n=2)
        resp = self.client.get(
            '/api/analytics/departments/quadrants', {'ratingThreshold': 4, 'consultationThreshold': 4}
        )
        cardio = next(r for r in resp.data['graphData'] if r['departmentName'] == 'Cardiology')
        self.assertEqual(cardio['avgRating'], 4.0)
        self.assertEqual(cardio['doctorCount'], 3)
        self.assertEqual(cardio['consultations'], 6)

    def test_department_rating_unknown_department(self) -> None:
        resp = self.client.get('/api/analytics/departments/9999/rating')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data['message'], 'Department not found')

    def test_overall_rating(self) -> None:
        resp = self.client.get('/api/analytics/ratings/overall')
        self.assertEqual(resp.data, {'overallRating': 0, 'totalFeedbacks': 0})

        c1, c2 = self.consult(self.d1, n=2)
        Feedback.objects.create(consultation=c1, rating=4)
        Feedback.objects.create(consultation=c2, rating=5)
        resp = self.client.get('/api/analytics/ratings/overall')
        self.assertEqual(resp.data, {'overallRating': 4.5, 'totalFeedbacks': 2})

    def test_feedback_comments(self) -> None:
        c1, c2, c3 = self.consult(self.d1, n=3)
        Feedback.objects.create(consultation=c1, rating=5, comments='Excellent')
        Feedback.objects.create(consultation=c2, rating=5, comments='Very kind')
        Feedback.objects.create(consultation=c3, rating=2, comments='Rushed')
        resp = self.client.get('/api/analytics/feedback/5')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, {'rating': 5, 'totalComments': 2, 'comments': ['Excellent', 'Very kind']})

    def test_feedback_comments_invalid_rating(self) -> None:
        for rating in ('abc', '0', '6'):
            resp = self.client.get(f'/api/analytics/feedback/{rating}')
            self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn('Invalid rating', resp.data['message'])


class StoreFailureTests(AnalyticsAPITestBase):
    def test_database_error_becomes_500_with_message(self) -> None:
        with patch.object(Doctor.objects, 'values_list', side_effect=DatabaseError('down')):
            with self.assertLogs('analytics.exceptions', level='ERROR') as logs:
                resp = self.client.get('/api/analytics/doctors/rating-distribution')
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(resp.data, {'message': 'Record store unavailable (doctor_ratings).'})
        self.assertEqual(len(logs.records), 1)
        self.assertIsNotNone(logs.records[0].exc_info)


class FeedbackSubmissionTests(AnalyticsAPITestBase):
    def setUp(self) -> None:
        super().setUp()
        self.doctor = self.make_doctor('Dr. House', rating=4.0, num_ratings=2)
        self.patient = Patient.objects.create(name='Jane Roe')
        self.consultation = self.consult(self.doctor, patient=self.patient)[0]
        self.url = f'/api/patients/{self.patient.id}/consultations/{self.consultation.id}/feedback'

    def test_submit_feedback_updates_doctor_rating(self) -> None:
        resp = self.client.post(self.url, {'rating': 5, 'comments': 'Great'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['feedback']['rating'], 5)
        self.assertEqual(resp.data['feedback']['comments'], 'Great')
        self.assertAlmostEqual(resp.data['doctor']['rating'], 4.3333, places=3)
        self.assertEqual(resp.data['doctor']['numRatings'], 3)

    def test_second_submission_is_rejected(self) -> None:
        self.client.post(self.url, {'rating': 5}, format='json')
        resp = self.client.post(self.url, {'rating': 1}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.num_ratings, 3)

    def test_invalid_rating(self) -> None:
        resp = self.client.post(self.url, {'rating': 6}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Feedback.objects.exists())

    def test_any_authenticated_user_may_submit_for_the_patient(self) -> None:
        clerk = User.objects.create_user(username='clerk1', password='clerkpass')
        client = APIClient()
        client.force_authenticate(user=clerk)
        resp = client.post(self.url, {'rating': 4}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['feedback']['rating'], 4)

    def test_wrong_patient(self) -> None:
        other = Patient.objects.create(name='Someone Else')
        url = f'/api/patients/{other.id}/consultations/{self.consultation.id}/feedback'
        resp = self.client.post(url, {'rating': 5}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_consultation(self) -> None:
        url = f'/api/patients/{self.patient.id}/consultations/99999/feedback'
        resp = self.client.post(url, {'rating': 5}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data['message'], 'Consultation not found')


class AccessControlTests(AnalyticsAPITestBase):
    def test_anonymous_user_is_rejected(self) -> None:
        client = APIClient()
        resp = client.get('/api/analytics/ratings/overall')
        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertIn('message', resp.data)

    def test_non_staff_user_is_forbidden(self) -> None:
        user = User.objects.create_user(username='patient1', password='patientpass')
        client = APIClient()
        client.force_authenticate(user=user)
        resp = client.get('/api/analytics/facility')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_viewer_group_member_is_allowed(self) -> None:
        user = User.objects.create_user(username='analyst1', password='analystpass')
        user.groups.add(Group.objects.create(name=settings.ANALYTICS_VIEWER_GROUP))
        client = APIClient()
        client.force_authenticate(user=user)
        resp = client.get('/api/analytics/facility')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_healthz(self) -> None:
        resp = APIClient().get('/healthz')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {'ok': True, 'db': True})

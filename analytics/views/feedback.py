from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from analytics.permissions import FeedbackRateThrottle
from analytics.serializers.feedback import FeedbackCreateSerializer
from analytics.services.ratings import record_feedback


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([FeedbackRateThrottle])
def submit_feedback(request, patient_id: int, consultation_id: int):
    """Attach a patient's rating to a consultation and refresh the doctor's running rating.

    The patient is identified by ``patient_id`` in the URL only; any
    authenticated user may submit on a patient's behalf as long as the
    consultation belongs to that patient.
    """
    s = FeedbackCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    feedback, doctor = record_feedback(
        patient_id=patient_id,
        consultation_id=consultation_id,
        rating=s.validated_data['rating'],
        comments=s.validated_data.get('comments', ''),
    )
    return Response({
        'message': 'Feedback submitted successfully',
        'feedback': {
            'consultationId': feedback.consultation_id,
            'rating': feedback.rating,
            'comments': feedback.comments,
            'createdAt': feedback.created_at.isoformat(),
        },
        'doctor': {
            'id': doctor.id,
            'name': doctor.name,
            'rating': doctor.rating,
            'numRatings': doctor.num_ratings,
        } if doctor else None,
    })

from rest_framework import serializers


class FeedbackCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(
        min_value=1,
        max_value=5,
        error_messages={
            'min_value': 'Rating must be between 1 and 5.',
            'max_value': 'Rating must be between 1 and 5.',
        },
    )
    comments = serializers.CharField(max_length=2000, required=False, allow_blank=True, default='')

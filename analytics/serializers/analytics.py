from rest_framework import serializers

from analytics.services.bucketing import PERIODS


class DateRangeSerializer(serializers.Serializer):
    startDate = serializers.DateField()
    endDate = serializers.DateField()

    def validate(self, attrs):
        if attrs['startDate'] > attrs['endDate']:
            raise serializers.ValidationError('startDate cannot be later than endDate.')
        return attrs


class OccupancyTrendQuerySerializer(DateRangeSerializer):
    period = serializers.ChoiceField(
        choices=PERIODS,
        error_messages={'invalid_choice': 'Invalid period. Please provide one of daily, weekly, monthly, or yearly.'},
    )


class MedicineTrendSerializer(DateRangeSerializer):
    medicineId = serializers.IntegerField(min_value=1, error_messages={'invalid': 'Invalid medicineId'})


class QuadrantThresholdSerializer(serializers.Serializer):
    ratingThreshold = serializers.FloatField(min_value=0, max_value=5)
    consultationThreshold = serializers.IntegerField(min_value=0)


class RatingFilterSerializer(serializers.Serializer):
    rating = serializers.IntegerField(
        min_value=1,
        max_value=5,
        error_messages={
            'invalid': 'Invalid rating. Rating must be a number between 1 and 5.',
            'min_value': 'Invalid rating. Rating must be a number between 1 and 5.',
            'max_value': 'Invalid rating. Rating must be a number between 1 and 5.',
        },
    )

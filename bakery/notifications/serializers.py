from rest_framework import serializers
from .models import Notification
from .templates import NOTIFICATION_TEMPLATES


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            'id', 'type', 'recipient', 'subject', 'message', 'template', 'status',
            'sent_at', 'error_message', 'created_at', 'updated_at'
        ]
        read_only_fields = ['template', 'status', 'sent_at', 'error_message', 'created_at', 'updated_at']


class NotificationCreateSerializer(serializers.Serializer):
    """Raw message, or ``template`` plus ``variables`` rendered server-side"""
    type = serializers.ChoiceField(choices=Notification.TYPE_CHOICES, required=False)
    recipient = serializers.CharField(max_length=255)
    subject = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    message = serializers.CharField(required=False, allow_blank=True, default='')
    template = serializers.ChoiceField(choices=sorted(NOTIFICATION_TEMPLATES), required=False)
    variables = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)

    def validate(self, attrs):
        if not attrs.get('template'):
            if not attrs.get('type'):
                raise serializers.ValidationError({'type': 'This field is required without a template.'})
            if not attrs.get('message'):
                raise serializers.ValidationError({'message': 'This field is required without a template.'})
        return attrs


class NotificationBulkSerializer(serializers.Serializer):
    notifications = serializers.ListField(child=serializers.DictField(), allow_empty=False, max_length=500)


class NotificationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Notification.STATUS_CHOICES)
    error_message = serializers.CharField(required=False, allow_blank=True, default='')

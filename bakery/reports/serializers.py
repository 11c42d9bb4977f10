from rest_framework import serializers
from .services import DEFAULT_PERIOD, PERIODS, REPORT_BUILDERS


class ReportQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=list(REPORT_BUILDERS), default='overview')
    period = serializers.ChoiceField(choices=list(PERIODS), default=DEFAULT_PERIOD)


class ReportExportSerializer(ReportQuerySerializer):
    """Export payload; ``report_type`` is accepted as an alias of ``type``"""
    report_type = serializers.ChoiceField(choices=list(REPORT_BUILDERS), required=False)
    format = serializers.ChoiceField(choices=[('json', 'json')], default='json')

    def validate(self, attrs):
        if attrs.get('report_type'):
            attrs['type'] = attrs.pop('report_type')
        return attrs

from rest_framework import serializers
from .models import InventoryRecord, InventoryMovement
from .services import ADJUSTMENT_TYPES


class InventoryRecordSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True)
    available_qty = serializers.IntegerField(read_only=True)

    class Meta:
        model = InventoryRecord
        fields = [
            'id', 'product', 'product_name', 'product_sku', 'warehouse', 'warehouse_name',
            'quantity', 'reserved_qty', 'available_qty', 'location', 'batch_number', 'expiry_date',
            'created_at', 'last_updated'
        ]
        read_only_fields = ['created_at', 'last_updated']
        # one record per (product, warehouse, batch) is enforced by the service with a 409
        validators = []

    def validate(self, attrs):
        quantity = attrs.get('quantity', 0)
        reserved = attrs.get('reserved_qty', 0)
        if reserved > quantity:
            raise serializers.ValidationError({'reserved_qty': 'Reserved quantity cannot exceed quantity'})
        return attrs


class InventoryRecordUpdateSerializer(InventoryRecordSerializer):
    """Metadata edits only; quantities change through adjust/transfer/reserve"""
    class Meta(InventoryRecordSerializer.Meta):
        read_only_fields = ['product', 'warehouse', 'quantity', 'reserved_qty', 'created_at', 'last_updated']

    def validate(self, attrs):
        batch_number = attrs.get('batch_number')
        if batch_number is not None and batch_number != self.instance.batch_number:
            clash = (InventoryRecord.objects
                     .filter(product=self.instance.product, warehouse=self.instance.warehouse, batch_number=batch_number)
                     .exclude(pk=self.instance.pk))
            if clash.exists():
                raise serializers.ValidationError({'batch_number': 'This batch already has a record in the warehouse'})
        return attrs


class InventoryMovementSerializer(serializers.ModelSerializer):
    user_email = serializers.CharField(source='user.email', read_only=True, default=None)

    class Meta:
        model = InventoryMovement
        fields = [
            'id', 'inventory', 'movement_type', 'quantity', 'previous_quantity', 'new_quantity',
            'reason', 'reference', 'notes', 'user', 'user_email', 'timestamp'
        ]


class InventoryAdjustSerializer(serializers.Serializer):
    adjustment_type = serializers.ChoiceField(choices=ADJUSTMENT_TYPES)
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.ChoiceField(choices=InventoryMovement.REASON_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class InventoryTransferSerializer(serializers.Serializer):
    to_warehouse_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class InventoryReservationSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    reference = serializers.CharField(required=False, allow_blank=True, default='', max_length=100)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

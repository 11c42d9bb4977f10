from rest_framework import serializers
from bakery.catalog.models import Product
from .models import PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    remaining_qty = serializers.IntegerField(read_only=True)

    class Meta:
        model = PurchaseOrderItem
        fields = [
            'id', 'product', 'product_name', 'product_sku', 'quantity', 'unit_price',
            'total_price', 'received_qty', 'remaining_qty'
        ]
        read_only_fields = ['total_price', 'received_qty']


class PurchaseOrderItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class PurchaseOrderItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, required=False)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)


class ReceiveItemSerializer(serializers.Serializer):
    """``quantity`` defaults to everything still outstanding on the line"""
    quantity = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)


class PurchaseOrderSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True, default=None)
    items = PurchaseOrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            'id', 'po_number', 'supplier', 'supplier_name', 'warehouse', 'warehouse_name', 'status',
            'order_date', 'expected_date', 'received_date', 'total_amount', 'notes', 'items',
            'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['po_number', 'status', 'received_date', 'total_amount', 'created_by',
                            'created_at', 'updated_at']


class PurchaseOrderCreateSerializer(PurchaseOrderSerializer):
    """Header fields plus the initial lines; ``total_amount`` is always computed"""
    items = PurchaseOrderItemInputSerializer(many=True, required=False)

    class Meta(PurchaseOrderSerializer.Meta):
        fields = ['supplier', 'warehouse', 'order_date', 'expected_date', 'notes', 'items']
        read_only_fields = []


class PurchaseOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PurchaseOrder.STATUS_CHOICES)

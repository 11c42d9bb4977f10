from rest_framework import serializers
from bakery.catalog.models import Product
from bakery.parties.models import Customer
from .models import Order, OrderItem, Delivery


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'product_sku', 'quantity', 'unit_price', 'total_price', 'notes']
        read_only_fields = ['total_price']


class OrderItemInputSerializer(serializers.Serializer):
    """Line submitted with an order; ``unit_price`` defaults to the product's selling price"""
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class OrderItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, required=False)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class OrderSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.full_name', read_only=True)
    customer_type = serializers.CharField(source='customer.customer_type', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    created_by_email = serializers.CharField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer', 'customer_name', 'customer_type',
            'status', 'payment_status', 'order_date', 'delivery_date',
            'tax_rate', 'subtotal', 'tax_amount', 'total_amount', 'notes',
            'items', 'created_by', 'created_by_email', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class OrderWriteSerializer(serializers.Serializer):
    """
    Create/update payload. Totals sent by the client are accepted by the
    parser but never used.
    """
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    items = OrderItemInputSerializer(many=True)
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES, required=False)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False)
    delivery_date = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('Order must contain at least one item')
        return value


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Provide status or payment_status')
        return attrs


class DeliverySerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    customer_name = serializers.CharField(source='customer.full_name', read_only=True)

    class Meta:
        model = Delivery
        fields = [
            'id', 'delivery_number', 'order', 'order_number', 'customer', 'customer_name',
            'status', 'scheduled_date', 'actual_date',
            'delivery_address', 'city', 'state', 'zip_code', 'phone',
            'driver_name', 'vehicle_number', 'tracking_number', 'notes',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['delivery_number', 'actual_date', 'created_at', 'updated_at']
        extra_kwargs = {
            'customer': {'required': False},
            'delivery_address': {'required': False},
        }


class DeliveryUpdateSerializer(DeliverySerializer):
    """Edits keep the delivery attached to its order; status moves through its own endpoint"""
    class Meta(DeliverySerializer.Meta):
        read_only_fields = ['delivery_number', 'order', 'customer', 'status', 'actual_date', 'created_at', 'updated_at']


class DeliveryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Delivery.STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True)


class DriverAssignmentSerializer(serializers.Serializer):
    driver_name = serializers.CharField(max_length=200)
    vehicle_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')

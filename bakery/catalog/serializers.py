from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            'id', 'sku', 'name', 'description', 'barcode', 'category',
            'base_price', 'selling_price', 'cost_price', 'tax_rate', 'tax_type', 'unit_type',
            'min_stock_level', 'max_stock_level', 'weight', 'shelf_life', 'image_url',
            'status', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_barcode(self, value):
        return value or None

    def validate(self, attrs):
        min_level = attrs.get('min_stock_level', getattr(self.instance, 'min_stock_level', 0))
        max_level = attrs.get('max_stock_level', getattr(self.instance, 'max_stock_level', None))
        if max_level is not None and max_level < min_level:
            raise serializers.ValidationError({'max_stock_level': 'Must be greater than or equal to min_stock_level'})
        return attrs


class PublicProductSerializer(serializers.ModelSerializer):
    """Storefront view of a product: no cost or stock thresholds"""
    class Meta:
        model = Product
        fields = ['id', 'sku', 'name', 'description', 'category', 'selling_price',
                  'tax_rate', 'unit_type', 'weight', 'image_url']


class ProductStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Product.STATUS_CHOICES)

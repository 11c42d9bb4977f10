from rest_framework import serializers
from bakery.catalog.models import Product
from .models import Recipe, RecipeItem, Production, ProductionItem


class RecipeItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = RecipeItem
        fields = ['id', 'product', 'product_name', 'quantity', 'unit', 'notes']


class RecipeSerializer(serializers.ModelSerializer):
    """Recipe with its ingredient lines; items are written by the service layer"""
    items = RecipeItemSerializer(many=True, required=False)

    class Meta:
        model = Recipe
        fields = [
            'id', 'name', 'description', 'servings', 'prep_time', 'cook_time',
            'instructions', 'is_active', 'items', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def create(self, validated_data):
        validated_data.pop('items', None)
        return super().create(validated_data)

    def update(self, instance, validated_data):
        validated_data.pop('items', None)
        return super().update(instance, validated_data)


class ProductionItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)

    class Meta:
        model = ProductionItem
        fields = ['id', 'product', 'product_name', 'product_sku', 'planned_qty', 'actual_qty']


class ProductionSerializer(serializers.ModelSerializer):
    recipe_name = serializers.CharField(source='recipe.name', read_only=True)
    items = ProductionItemSerializer(many=True, read_only=True)
    efficiency = serializers.IntegerField(read_only=True)

    class Meta:
        model = Production
        fields = [
            'id', 'batch_number', 'recipe', 'recipe_name', 'planned_qty', 'actual_qty', 'efficiency',
            'status', 'planned_date', 'start_date', 'end_date', 'notes', 'items',
            'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ProductionItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    planned_qty = serializers.IntegerField(min_value=1)


class ProductionCreateSerializer(serializers.Serializer):
    recipe = serializers.PrimaryKeyRelatedField(queryset=Recipe.objects.all())
    planned_qty = serializers.IntegerField(min_value=1)
    planned_date = serializers.DateTimeField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    items = ProductionItemInputSerializer(many=True, required=False)


class ProductionUpdateSerializer(serializers.ModelSerializer):
    """Editable planning fields; status moves through the status endpoint"""
    class Meta:
        model = Production
        fields = ['planned_qty', 'actual_qty', 'planned_date', 'notes']


class ProductionStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Production.STATUS_CHOICES)
    actual_qty = serializers.IntegerField(min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

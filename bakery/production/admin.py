from django.contrib import admin
from .models import Recipe, RecipeItem, Production, ProductionItem


class RecipeItemInline(admin.TabularInline):
    model = RecipeItem
    extra = 1


class ProductionItemInline(admin.TabularInline):
    model = ProductionItem
    extra = 0


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    list_display = ['name', 'servings', 'prep_time', 'cook_time', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'description']
    inlines = [RecipeItemInline]


@admin.register(Production)
class ProductionAdmin(admin.ModelAdmin):
    list_display = ['batch_number', 'recipe', 'planned_qty', 'actual_qty', 'status', 'planned_date']
    list_filter = ['status', 'planned_date']
    search_fields = ['batch_number', 'recipe__name']
    readonly_fields = ['batch_number', 'start_date', 'end_date', 'created_at', 'updated_at']
    inlines = [ProductionItemInline]

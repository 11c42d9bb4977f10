from django.urls import path
from .views import (
    recipe_list_create, recipe_detail,
    production_list_create, production_detail, production_status,
    production_schedule, production_alerts, production_efficiency,
)

urlpatterns = [
    path('recipes/', recipe_list_create, name='recipe-list-create'),
    path('recipes/<int:pk>/', recipe_detail, name='recipe-detail'),

    path('productions/', production_list_create, name='production-list-create'),
    path('productions/schedule/', production_schedule, name='production-schedule'),
    path('productions/alerts/', production_alerts, name='production-alerts'),
    path('productions/efficiency/', production_efficiency, name='production-efficiency'),
    path('productions/<int:pk>/', production_detail, name='production-detail'),
    path('productions/<int:pk>/status/', production_status, name='production-status'),
]

"""
URL configuration for the bakery backend.

Every app contributes its own ``urlpatterns`` under the ``api/`` prefix.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Bakery Operations Admin Panel"
admin.site.site_title = "Bakery Operations Admin Portal"
admin.site.index_title = "Welcome to the Bakery Operations Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('bakery.core.urls')),
    path('api/', include('bakery.catalog.urls')),
    path('api/', include('bakery.locations.urls')),
    path('api/', include('bakery.parties.urls')),
    path('api/', include('bakery.inventory.urls')),
    path('api/', include('bakery.orders.urls')),
    path('api/', include('bakery.production.urls')),
    path('api/', include('bakery.purchasing.urls')),
    path('api/', include('bakery.notifications.urls')),
    path('api/', include('bakery.pos.urls')),
    path('api/', include('bakery.reports.urls')),
]

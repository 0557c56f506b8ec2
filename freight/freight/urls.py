"""
URL configuration for the freight project.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/transit/', include('transit.urls')),
]

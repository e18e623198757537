from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/teams/<int:team_id>/', include('apps.products.api.urls')),
]

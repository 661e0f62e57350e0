# appraisal_backend/urls.py

from django.contrib import admin
from django.urls import path, include
from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

# Swagger schema configuration
schema_view = get_schema_view(
   openapi.Info(
      title="Performance Appraisal API",
      default_version='v1',
   ),
   public=True,
   permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    # Admin interface
    path('admin/', admin.site.urls),

    # API endpoints
    path('api/', include('api.urls')),

    # API Documentation
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
    path('api/docs/', schema_view.with_ui('swagger', cache_timeout=0), name='api-docs'),
]

# API Endpoint Summary (for documentation):
"""
Target Setting APIs:
- /api/targets/ - List (scoped by role) / create draft
- /api/targets/{id}/ - Retrieve / update draft
- /api/targets/{id}/submit/ - Submit to manager
- /api/targets/{id}/approve/ - Manager approve or request revision
- /api/targets/{id}/activity_log/ - Audit trail of a target setting
- /api/targets/pending/ - Manager approval queue
- /api/targets/export_excel/ - HR admin export

Directory APIs:
- /api/me/ - Current user information
- /api/employees/verify/ - Look up an employee by HC number

Authentication & Documentation:
- /api/auth/token/ - Obtain JWT pair
- /api/auth/refresh/ - Refresh JWT
- /swagger/ - API documentation (Swagger UI)
- /redoc/ - API documentation (ReDoc)
- /admin/ - Django admin interface
"""

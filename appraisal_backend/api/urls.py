# api/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from . import views

from .target_views import TargetSettingViewSet

router = DefaultRouter()

# Target setting workflow: /api/targets/, /api/targets/{id}/submit/, ...
router.register(r'targets', TargetSettingViewSet, basename='target')

urlpatterns = [
    path('auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    path('me/', views.user_info, name='user_info'),
    path('employees/verify/', views.verify_employee, name='employee_verify'),

    path('', include(router.urls)),
]

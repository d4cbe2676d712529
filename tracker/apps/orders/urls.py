from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import OrderViewSet

app_name = "orders"

# The API root view would shadow POST on the empty prefix.
router = DefaultRouter()
router.include_root_view = False
router.register(r"", OrderViewSet, basename="order")

urlpatterns = [
    path("", include(router.urls)),
]

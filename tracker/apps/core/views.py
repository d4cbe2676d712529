from django.db import DatabaseError, connection
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from infrastructure.cache import get_cache_service


class HealthCheckView(APIView):
    """Basic health check endpoint"""

    permission_classes = []

    def get(self, request):
        return Response(
            {"status": "healthy", "service": "order-tracking"},
            status=status.HTTP_200_OK,
        )


class ReadinessCheckView(APIView):
    """Readiness check - the database is required, the cache is advisory"""

    permission_classes = []

    def get(self, request):
        checks = {
            "database": self._check_database(),
            "cache": get_cache_service().ping(),
        }

        ready = checks["database"]

        return Response(
            {"status": "ready" if ready else "not_ready", "checks": checks},
            status=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    def _check_database(self):
        try:
            connection.ensure_connection()
            return True
        except DatabaseError:
            return False

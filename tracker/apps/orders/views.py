import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.exceptions import (
    AppError,
    IdentityUnavailable,
    InvalidTransition,
    NotFoundError,
    StoreUnavailable,
    ValidationError,
)

from .constants import DEFAULT_RECOMMENDATION_LIMIT, MAX_RECOMMENDATION_LIMIT
from .serializers import (
    LocationUpdateSerializer,
    OrderSerializer,
    PlaceOrderSerializer,
    StatusUpdateSerializer,
)
from .services import get_order_service

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InvalidTransition: status.HTTP_400_BAD_REQUEST,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    IdentityUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(error: AppError):
    http_status = ERROR_STATUS.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if http_status >= 500:
        logger.error(f"Order request failed: {error.code}: {error.message}")
    return Response({"code": error.code, "detail": error.message}, status=http_status)


class OrderViewSet(viewsets.ViewSet):
    lookup_value_regex = r"\d+"

    def create(self, request):
        serializer = PlaceOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        try:
            order = get_order_service().place_order(
                user_id=data["user_id"],
                item=data["item"],
                destination_lat=data.get("destination_latitude"),
                destination_lng=data.get("destination_longitude"),
                customer_name=data.get("customer_name"),
            )
        except AppError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        try:
            return Response(get_order_service().get_order(int(pk)))
        except AppError as e:
            return error_response(e)

    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request, pk=None):
        serializer = StatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            order = get_order_service().update_status(
                int(pk),
                serializer.validated_data["status"],
                actor_id=serializer.validated_data.get("actor_id"),
            )
        except AppError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="location")
    def update_location(self, request, pk=None):
        serializer = LocationUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            order = get_order_service().update_location(
                int(pk),
                serializer.validated_data["latitude"],
                serializer.validated_data["longitude"],
                actor_id=serializer.validated_data.get("actor_id"),
            )
        except AppError as e:
            return error_response(e)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"])
    def timeline(self, request, pk=None):
        try:
            return Response(get_order_service().get_timeline(int(pk)))
        except AppError as e:
            return error_response(e)

    @action(detail=False, methods=["get"], url_path=r"users/(?P<user_id>\d+)")
    def user_orders(self, request, user_id=None):
        try:
            orders = get_order_service().get_user_orders(
                int(user_id), status=request.query_params.get("status")
            )
        except AppError as e:
            return error_response(e)
        return Response(orders)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"users/(?P<user_id>\d+)/recommendations",
    )
    def recommendations(self, request, user_id=None):
        raw_limit = request.query_params.get("limit", DEFAULT_RECOMMENDATION_LIMIT)
        try:
            limit = int(raw_limit)
        except (TypeError, ValueError):
            return Response({"limit": ["Must be an integer"]}, status=status.HTTP_400_BAD_REQUEST)
        if not 1 <= limit <= MAX_RECOMMENDATION_LIMIT:
            return Response(
                {"limit": [f"Must be between 1 and {MAX_RECOMMENDATION_LIMIT}"]},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            return Response(get_order_service().get_recommendations(int(user_id), limit))
        except AppError as e:
            return error_response(e)

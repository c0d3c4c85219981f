import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from ai.exceptions import ProviderConfigurationError
from blobstore.exceptions import StorageError, WriteConflict
from blobstore.store import get_blob_store
from config.responses import error_response

from .exceptions import InvalidOrderField, ItemNotFound, OrderNotFound
from .ingestion import ingest_batch
from .serializers import OrderDeleteSerializer, OrderUpdateSerializer
from .services import delete_order, list_orders, update_order

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "orderImages"


class OrderListView(APIView):

    def get(self, request):
        try:
            orders = list_orders(get_blob_store())
        except StorageError as e:
            logger.exception("Failed to load orders")
            return error_response("Failed to load orders", str(e))
        return Response(orders, status=status.HTTP_200_OK)


class OrderUploadView(APIView):

    def post(self, request):
        files = request.FILES.getlist(UPLOAD_FIELD)
        if not files:
            return error_response("No image files received", status_code=status.HTTP_400_BAD_REQUEST)

        try:
            results = ingest_batch(get_blob_store(), files)
        except ProviderConfigurationError as e:
            logger.warning("Order upload rejected: %s", e)
            return error_response("Failed to process orders", str(e))
        except StorageError as e:
            logger.exception("Order upload failed")
            return error_response("Failed to process orders", str(e))

        return Response(results, status=status.HTTP_200_OK)


class OrderUpdateView(APIView):

    def post(self, request):
        serializer = OrderUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("order_id and field are required", serializer.errors,
                                  status_code=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            update_order(
                get_blob_store(),
                data["order_id"],
                data["field"],
                data.get("value"),
                item_index=data.get("item_index"),
                item_field=data.get("item_field"),
            )
        except OrderNotFound as e:
            return error_response("Order not found", str(e), status_code=status.HTTP_404_NOT_FOUND)
        except ItemNotFound as e:
            return error_response("Item not found", str(e), status_code=status.HTTP_404_NOT_FOUND)
        except InvalidOrderField as e:
            return error_response(str(e), status_code=status.HTTP_400_BAD_REQUEST)
        except WriteConflict as e:
            return error_response("Orders changed concurrently, try again", str(e),
                                  status_code=status.HTTP_409_CONFLICT)
        except StorageError as e:
            logger.exception("Failed to update order %s", data["order_id"])
            return error_response("Failed to update order", str(e))

        return Response({"message": "Order updated"}, status=status.HTTP_200_OK)


class OrderDeleteView(APIView):

    def post(self, request):
        serializer = OrderDeleteSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("order_id is required", serializer.errors,
                                  status_code=status.HTTP_400_BAD_REQUEST)
        order_id = serializer.validated_data["order_id"]

        try:
            delete_order(get_blob_store(), order_id)
        except OrderNotFound as e:
            return error_response("Order not found", str(e), status_code=status.HTTP_404_NOT_FOUND)
        except WriteConflict as e:
            return error_response("Orders changed concurrently, try again", str(e),
                                  status_code=status.HTTP_409_CONFLICT)
        except StorageError as e:
            logger.exception("Failed to delete order %s", order_id)
            return error_response("Failed to delete order", str(e))

        return Response({"message": "Order deleted"}, status=status.HTTP_200_OK)

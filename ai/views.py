import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from blobstore.exceptions import StorageError, WriteConflict
from blobstore.store import get_blob_store
from config.responses import error_response

from .config_store import read_public_config, update_config
from .serializers import ConfigUpdateSerializer

logger = logging.getLogger(__name__)


class ConfigView(APIView):

    def get(self, request):
        try:
            config = read_public_config(get_blob_store())
        except StorageError as e:
            logger.exception("Failed to load AI config")
            return error_response("Failed to load configuration", str(e))
        return Response(config, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = ConfigUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid configuration", serializer.errors,
                                  status_code=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            config = update_config(
                get_blob_store(),
                data["active_provider"],
                dict(data.get("config_data") or {}),
            )
        except WriteConflict as e:
            return error_response("Configuration changed concurrently, try again", str(e),
                                  status_code=status.HTTP_409_CONFLICT)
        except StorageError as e:
            logger.exception("Failed to save AI config")
            return error_response("Failed to update configuration", str(e))

        return Response({"message": "Configuration updated", "config": config}, status=status.HTTP_200_OK)

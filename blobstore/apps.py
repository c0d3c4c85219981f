from django.apps import AppConfig


class BlobstoreConfig(AppConfig):
    name = 'blobstore'

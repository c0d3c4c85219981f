from rest_framework import serializers

from .providers import PROVIDERS, canonical_provider_name


class ProviderFieldsSerializer(serializers.Serializer):
    api_url = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    model_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    api_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ConfigUpdateSerializer(serializers.Serializer):
    active_provider = serializers.CharField(allow_blank=False)
    config_data = ProviderFieldsSerializer(required=False)

    def validate_active_provider(self, v: str) -> str:
        name = canonical_provider_name(v)
        if name not in PROVIDERS:
            raise serializers.ValidationError(
                "Unknown provider. Choose one of: {}".format(", ".join(sorted(PROVIDERS)))
            )
        return name

from rest_framework import serializers


class OrderUpdateSerializer(serializers.Serializer):
    order_id = serializers.CharField(allow_blank=False)
    field = serializers.CharField(allow_blank=False)
    value = serializers.JSONField(required=False, allow_null=True, default=None)
    item_index = serializers.IntegerField(required=False, allow_null=True, default=None)
    item_field = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)

    def validate_order_id(self, v: str) -> str:
        v = v.strip()
        if not v:
            raise serializers.ValidationError("order_id cannot be empty.")
        return v


class OrderDeleteSerializer(serializers.Serializer):
    order_id = serializers.CharField(allow_blank=False)

    def validate_order_id(self, v: str) -> str:
        v = v.strip()
        if not v:
            raise serializers.ValidationError("order_id cannot be empty.")
        return v

from rest_framework import serializers

MAX_PAGE_SIZE = 200
# Keeps the computed OFFSET inside a signed 64-bit integer.
MAX_PAGE = (2 ** 63 - 1) // MAX_PAGE_SIZE
RESERVED_PARAMS = frozenset({'page', 'limit', 'search'})


class ListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, max_value=MAX_PAGE, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=MAX_PAGE_SIZE, required=False, default=10)
    search = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)


class BulkUpdateItemSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1)
    data = serializers.DictField()


class CancelAppointmentSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=1000)

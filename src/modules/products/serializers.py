"""Product DRF serializers (output rendering).

Input is validated by the pydantic DTOs in ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    stock_status = serializers.CharField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "price",
            "stock",
            "stock_status",
            "category_id",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

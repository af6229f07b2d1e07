"""Product DRF serializers for API output.

Input validation lives in the pydantic DTOs (``dtos.py``).
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductImageSerializer(serializers.Serializer):
    url = serializers.CharField()
    public_id = serializers.CharField()


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource."""

    images = ProductImageSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "team_name",
            "category",
            "type",
            "size",
            "color",
            "season",
            "description",
            "price",
            "quantity",
            "images",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

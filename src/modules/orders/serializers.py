"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).  JSON keys
are camelCase; ``source=`` maps them onto the snake_case names the
Pydantic DTOs and models use, so ``validated_data`` can be handed to
``PlaceOrderDTO`` unchanged.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import DEFAULT_COUNTRY, OrderStatus, PaymentMethod

MISSING_ADDRESS = "Shipping address and email are required"
EMPTY_ORDER = "Order must contain at least one item"


def money(**kwargs) -> serializers.DecimalField:
    return serializers.DecimalField(
        max_digits=10, decimal_places=2, coerce_to_string=False, **kwargs
    )


# ---------------------------------------------------------------------------
# Shared (read + write)
# ---------------------------------------------------------------------------


class ShippingAddressSerializer(serializers.Serializer):
    fullName = serializers.CharField(source="full_name", max_length=255)
    phone = serializers.CharField(max_length=32)
    email = serializers.EmailField()
    addressLine1 = serializers.CharField(source="address_line_1", max_length=255)
    addressLine2 = serializers.CharField(
        source="address_line_2",
        max_length=255,
        required=False,
        allow_blank=True,
        default="",
    )
    city = serializers.CharField(max_length=128)
    state = serializers.CharField(max_length=128)
    postalCode = serializers.CharField(source="postal_code", max_length=32)
    country = serializers.CharField(
        max_length=128, required=False, default=DEFAULT_COUNTRY
    )


class DeliveryMethodSerializer(serializers.Serializer):
    """Renders a ``DeliveryMethod`` row or a ``DeliveryMethodDTO``."""

    id = serializers.CharField(read_only=True)
    code = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    price = money(read_only=True)
    minDays = serializers.IntegerField(source="min_days", read_only=True)
    maxDays = serializers.IntegerField(source="max_days", read_only=True)
    estimatedDays = serializers.CharField(source="estimated_days", read_only=True)


# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class PlaceOrderItemSerializer(serializers.Serializer):
    """Validates one cart line in an order commit request."""

    productId = serializers.UUIDField(source="product_id")
    name = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    quantity = serializers.IntegerField(min_value=1)
    unitPrice = money(source="unit_price", min_value=0)
    image = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    options = serializers.DictField(
        child=serializers.CharField(), required=False, default=dict
    )


class PlaceOrderSerializer(serializers.Serializer):
    """Validates the order commit request payload."""

    items = PlaceOrderItemSerializer(
        many=True,
        allow_empty=False,
        error_messages={"required": EMPTY_ORDER, "empty": EMPTY_ORDER},
    )
    shippingAddress = ShippingAddressSerializer(
        source="shipping_address", error_messages={"required": MISSING_ADDRESS}
    )
    customerEmail = serializers.EmailField(
        source="customer_email", error_messages={"required": MISSING_ADDRESS}
    )
    deliveryMethodId = serializers.CharField(source="delivery_method_id", max_length=64)
    paymentMethod = serializers.ChoiceField(
        source="payment_method", choices=PaymentMethod.choices
    )
    subtotal = money(min_value=0)
    shippingCost = money(source="shipping_cost", min_value=0)
    taxAmount = money(source="tax_amount", min_value=0)
    codFee = money(source="cod_fee", min_value=0, required=False, default=0)
    total = money(min_value=0)
    orderNotes = serializers.CharField(
        source="notes", required=False, allow_blank=True, allow_null=True, default=""
    )

    def validate_orderNotes(self, value):
        return value or ""


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.Serializer):
    """Order line with the cached product name and current image."""

    id = serializers.UUIDField(read_only=True)
    productId = serializers.UUIDField(source="product_id", read_only=True)
    name = serializers.SerializerMethodField()
    quantity = serializers.IntegerField(read_only=True)
    unitPrice = money(source="unit_price", read_only=True)
    lineTotal = money(source="line_total", read_only=True)
    image = serializers.SerializerMethodField()
    options = serializers.DictField(read_only=True)

    def get_name(self, item) -> str:
        return item.product_name or item.product.name

    def get_image(self, item) -> str | None:
        return item.product.image_url or None


class StatusHistorySerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    oldStatus = serializers.CharField(source="old_status", read_only=True)
    newStatus = serializers.CharField(source="new_status", read_only=True)
    notes = serializers.CharField(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)


class OrderSerializer(serializers.Serializer):
    """Full order detail: address, lines, delivery method, history."""

    orderId = serializers.UUIDField(source="id", read_only=True)
    orderNumber = serializers.CharField(source="order_number", read_only=True)
    status = serializers.CharField(read_only=True)
    nextStatus = serializers.CharField(source="next_status", read_only=True)
    subtotal = money(read_only=True)
    shippingCost = money(source="shipping_cost", read_only=True)
    taxAmount = money(source="tax_amount", read_only=True)
    codFee = money(source="cod_fee", read_only=True)
    total = money(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    shippingAddress = ShippingAddressSerializer(source="shipping_address", read_only=True)
    deliveryMethod = DeliveryMethodSerializer(source="delivery_method", read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    paymentStatus = serializers.CharField(source="payment.status", read_only=True)
    customerEmail = serializers.EmailField(source="customer_email", read_only=True)
    orderNotes = serializers.CharField(source="notes", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    estimatedDelivery = serializers.DateTimeField(
        source="estimated_delivery", read_only=True
    )
    statusHistory = StatusHistorySerializer(
        source="status_history", many=True, read_only=True
    )


class OrderListSerializer(serializers.Serializer):
    """Lightweight row for the staff order list (no nested relations)."""

    orderId = serializers.UUIDField(source="id", read_only=True)
    orderNumber = serializers.CharField(source="order_number", read_only=True)
    customerEmail = serializers.EmailField(source="customer_email", read_only=True)
    status = serializers.CharField(read_only=True)
    nextStatus = serializers.CharField(source="next_status", read_only=True)
    total = money(read_only=True)
    itemCount = serializers.SerializerMethodField()
    deliveryMethod = serializers.CharField(source="delivery_method.name", read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    def get_itemCount(self, order) -> int:
        return sum(item.quantity for item in order.items.all())

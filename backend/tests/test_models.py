"""
Tests for domain models and money handling.
"""
import pytest
from decimal import Decimal
from bson import Decimal128
from pydantic import ValidationError

from storefront.models.cart import CartEntry, CartLine, CartView
from storefront.models.order import OrderItem, ShippingAddress
from storefront.models.product import Product
from storefront.utils.helpers import to_money


class TestToMoney:
    """Test coercion of stored amounts."""

    @pytest.mark.parametrize("value, expected", [
        (249, Decimal("249.00")),
        (45.1, Decimal("45.10")),
        ("19.999", Decimal("20.00")),
        (Decimal128("12.5"), Decimal("12.50")),
        (0.1 + 0.2, Decimal("0.30")),
    ])
    def test_quantizes_to_cents(self, value, expected):
        assert to_money(value) == expected


class TestProduct:
    """Test product validation."""

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            Product(id="p", name="Broken", price=-1)

    def test_object_id_stringified(self):
        product = Product(_id=123, name="Numbered", price="9.99")
        assert product.id == "123"
        assert product.price == Decimal("9.99")


class TestCartView:
    """Test derived totals."""

    def _entry(self, product_id, price, quantity, is_active=True):
        return CartEntry(
            line=CartLine(user_id="user123", product_id=product_id, quantity=quantity),
            product=Product(id=product_id, name=product_id, price=price, is_active=is_active)
        )

    def test_build(self):
        view = CartView.build("user123", [
            self._entry("a", "249.00", 2),
            self._entry("b", "45.00", 1),
            self._entry("c", "10.00", 4, is_active=False),
        ])
        assert view.total == Decimal("543.00")
        assert view.item_count == 7
        assert [e.product_id for e in view.available_entries] == ["a", "b"]
        assert view.find("c").is_available is False
        assert view.find("zzz") is None

    def test_empty(self):
        view = CartView.empty()
        assert view.is_empty
        assert view.total == Decimal("0.00")

    def test_line_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            CartLine(user_id="user123", product_id="a", quantity=0)


class TestOrderModels:
    """Test order snapshot and address validation."""

    def test_snapshot_is_frozen(self):
        item = OrderItem(product_id="a", title="Keyboard", unit_price="249.00", quantity=1)
        with pytest.raises(ValidationError):
            item.quantity = 5

    def test_address_requires_fields(self):
        with pytest.raises(ValidationError):
            ShippingAddress(full_name="Ada", line1="", city="London", postal_code="N1", country="GB")

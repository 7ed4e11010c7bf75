"""Tests for the data model and catalog helpers."""

from decimal import Decimal

import pytest

from hostel_store.models.models import CartItem, OrderStatus, PaymentMethod, Product, UserProfile, items_total
from hostel_store.store.catalog import filter_products, list_categories, paginate, stock_label


class TestModels:
    def test_cart_item_dict_carries_product_fields(self, noodles):
        data = CartItem(noodles, 2).to_dict()

        assert data['id'] == 'p-noodles'
        assert data['quantity'] == 2
        assert CartItem.from_dict(data) == CartItem(noodles, 2)

    def test_product_from_dict_converts_price(self):
        product = Product.from_dict({'id': 7, 'name': 'Tea', 'price': 0.1, 'stock': None})

        assert product.id == '7'
        assert product.price == Decimal('0.1')
        assert product.stock == 0

    def test_items_total(self, noodles, soda):
        assert items_total([CartItem(noodles, 2), CartItem(soda, 3)]) == Decimal('8.00')
        assert items_total([]) == Decimal('0')

    def test_profile_blank_fields_become_none(self):
        profile = UserProfile(id='u1', email='a@b.c', name='  ', phone_number='', address=' Room 4 ')

        assert profile.name is None
        assert profile.phone_number is None
        assert profile.address == 'Room 4'

    @pytest.mark.parametrize("status,progress", [
        (OrderStatus.PENDING, 33),
        (OrderStatus.PROCESSING, 66),
        (OrderStatus.DELIVERED, 100),
    ])
    def test_status_progress(self, status, progress):
        assert status.progress == progress

    def test_payment_wire_values(self):
        assert PaymentMethod('cod') is PaymentMethod.CASH_ON_DELIVERY
        assert PaymentMethod('upi').label == 'UPI / PhonePe'


class TestCatalog:
    def test_search_matches_name_or_description(self, products):
        assert [p.name for p in filter_products(products, search='RAMEN')] == ['Instant Noodles']
        assert [p.name for p in filter_products(products, search='chip')] == ['Potato Chips']

    def test_category_filter(self, products):
        assert {p.id for p in filter_products(products, category='snacks')} == {'p-noodles', 'p-chips'}

    def test_search_and_category_combine(self, products):
        assert filter_products(products, search='cola', category='snacks') == []

    def test_no_filters_returns_everything(self, products):
        assert filter_products(products) == products

    def test_categories_keep_first_seen_order(self, products):
        assert list_categories(products) == ['all', 'snacks', 'drinks']

    def test_stock_label(self, noodles, chips):
        assert stock_label(noodles) == '10 in stock'
        assert stock_label(chips) == 'Out of stock'

    def test_paginate_splits_and_clamps(self, products):
        many = products * 7

        page_items, page, page_count = paginate(many, 2, 8)
        assert (len(page_items), page, page_count) == (5, 2, 3)

        assert paginate(many, 9, 8)[1] == 2
        assert paginate(many, -1, 8)[1] == 0

    def test_paginate_empty(self):
        assert paginate([], 0, 8) == ([], 0, 1)

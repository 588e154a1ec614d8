"""
Tests for the Product model: defaults, required fields and id assignment.

Run:
    cd <project-root>
    python -m pytest tests/test_product_model.py -v
"""

import os
import sys
import uuid

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'backend'))

from storefront.errors import ValidationError  # noqa: E402
from storefront.models.product import DEFAULT_IMAGE_URL, Product  # noqa: E402


class TestProductCreate:

    def test_fills_default_image_and_description(self):
        product = Product.create({'title': 'A', 'productUrl': 'http://x'})
        assert product.image_url == DEFAULT_IMAGE_URL
        assert product.description == ''

    def test_custom_default_image(self):
        product = Product.create({'title': 'A', 'productUrl': 'http://x'},
                                 default_image_url='https://img.test/none.png')
        assert product.to_dict()['imageUrl'] == 'https://img.test/none.png'

    def test_keeps_supplied_fields(self):
        product = Product.create({
            'title': 'Wireless Mouse',
            'productUrl': 'https://shop.test/mouse',
            'imageUrl': 'https://img.test/mouse.jpg',
            'description': 'Quiet clicks',
        })
        assert product.to_dict() == {
            'id': product.id,
            'title': 'Wireless Mouse',
            'imageUrl': 'https://img.test/mouse.jpg',
            'description': 'Quiet clicks',
            'productUrl': 'https://shop.test/mouse',
        }

    def test_assigns_fresh_uuid_ignoring_client_id(self):
        product = Product.create({'id': 'mine', 'title': 'A', 'productUrl': 'http://x'})
        assert product.id != 'mine'
        uuid.UUID(product.id)

    def test_ids_are_unique(self):
        ids = {Product.create({'title': 'A', 'productUrl': 'http://x'}).id for _ in range(50)}
        assert len(ids) == 50

    @pytest.mark.parametrize('payload', [
        {'productUrl': 'http://x'},
        {'title': 'A'},
        {'title': '   ', 'productUrl': 'http://x'},
        {'title': 'A', 'productUrl': None},
        {},
    ])
    def test_missing_required_fields(self, payload):
        with pytest.raises(ValidationError):
            Product.create(payload)

    def test_validation_error_lists_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            Product.create({'title': 'A'})
        assert exc_info.value.details['fields'] == ['productUrl']
        assert exc_info.value.http_status == 400


class TestProductFromDict:

    def test_round_trips_stored_record(self):
        record = {
            'id': '42',
            'title': 'Kindle',
            'imageUrl': 'https://img.test/k.jpg',
            'description': 'Reader',
            'productUrl': 'https://shop.test/k',
        }
        assert Product.from_dict(record).to_dict() == record

    def test_missing_id_gets_stable_id(self):
        record = {'title': 'Kindle', 'productUrl': 'https://shop.test/k'}
        first = Product.from_dict(record)
        second = Product.from_dict(dict(record))
        assert first.id == second.id

    def test_rejects_record_without_title(self):
        with pytest.raises(ValidationError):
            Product.from_dict({'id': '1', 'productUrl': 'https://shop.test/k'})

    def test_id_is_read_only(self):
        product = Product.from_dict({'id': '1', 'title': 'T', 'productUrl': 'u'})
        with pytest.raises(AttributeError):
            product.id = '2'

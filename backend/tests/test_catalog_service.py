"""
Storefront Backend — Catalog Service Unit Tests
=================================================

What:  Tests for CatalogService helpers and error paths.
How:   Uses the mock DB session; no database or files are touched.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.exceptions import NotFoundError, ValidationError
from app.services.catalog_service import CatalogService, compute_total_price, parse_identifier


class TestTotalPrice:

    @pytest.mark.parametrize(
        "price, discount, expected",
        [
            (100, 20, 80),
            (100, 0, 100),
            (100, None, 100),
            (59.99, 100, 0),
            (250, 12.5, 218.75),
        ],
    )
    def test_compute_total_price(self, price, discount, expected):
        assert compute_total_price(price, discount) == pytest.approx(expected)


class TestIdentifiers:

    def test_parse_valid(self):
        value = uuid4()
        assert parse_identifier(str(value), "product") == value

    @pytest.mark.parametrize("raw", ["abc", "123", "", "6650f1c2e4b0a1b2c3d4e5f6"])
    def test_parse_malformed(self, raw):
        with pytest.raises(ValidationError, match="Invalid product ID"):
            parse_identifier(raw, "product")

    def test_message_names_resource(self):
        with pytest.raises(ValidationError, match="Invalid category ID"):
            parse_identifier("nope", "category")


class TestCatalogServiceErrors:

    def setup_method(self):
        self.files = MagicMock()
        self.files.validate_and_store_many = AsyncMock()
        self.service = CatalogService(self.files)

    @pytest.mark.asyncio
    async def test_get_missing_product(self, mock_db_session):
        mock_db_session.get.return_value = None
        with pytest.raises(NotFoundError, match="Product not found"):
            await self.service.get_product(mock_db_session, str(uuid4()))

    @pytest.mark.asyncio
    async def test_malformed_id_never_queries(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.delete_product(mock_db_session, "not-an-id")
        mock_db_session.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upload_without_files(self):
        with pytest.raises(ValidationError, match="No files uploaded"):
            await self.service.upload_images([])
        self.files.validate_and_store_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_category_is_not_an_error(self, mock_db_session):
        result = MagicMock()
        result.scalars.return_value.first.return_value = None
        mock_db_session.execute.return_value = result

        product = MagicMock(id=uuid4(), category="Nowhere")
        await self.service._add_to_category(mock_db_session, product)

        mock_db_session.flush.assert_not_awaited()

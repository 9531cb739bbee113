"""
tests/test_naming.py
Unit tests for goscaffold.naming: case conversion, pluralisation, Go
identifiers and NameSet derivation.
"""

from __future__ import annotations

import pytest

from goscaffold.errors import InvalidNameError
from goscaffold.naming import (
    build_name_set,
    extract_words,
    normalize_entity_name,
    pluralize,
    pluralize_name,
    to_camel_case,
    to_go_identifier,
    to_kebab_case,
    to_pascal_case,
    to_snake_case,
)


class TestCaseConversion:
    """Conversions between casing styles."""

    @pytest.mark.parametrize(
        "raw, words",
        [
            ("OrderItem", ("Order", "Item")),
            ("order_item", ("order", "item")),
            ("order-item", ("order", "item")),
            ("HTTPLog", ("HTTP", "Log")),
            ("version2Name", ("version2", "Name")),
        ],
    )
    def test_extract_words(self, raw: str, words: tuple) -> None:
        assert extract_words(raw) == words

    def test_pascal(self) -> None:
        assert to_pascal_case("order_item") == "OrderItem"
        assert to_pascal_case("orderItem") == "OrderItem"

    def test_camel(self) -> None:
        assert to_camel_case("OrderItem") == "orderItem"
        assert to_camel_case("") == ""

    def test_snake(self) -> None:
        assert to_snake_case("OrderItem") == "order_item"
        assert to_snake_case("createdAt") == "created_at"

    def test_kebab(self) -> None:
        assert to_kebab_case("OrderItem") == "order-item"

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("customer_id", "CustomerID"),
            ("avatarUrl", "AvatarURL"),
            ("sku", "SKU"),
            ("name", "Name"),
        ],
    )
    def test_go_identifier_initialisms(self, raw: str, expected: str) -> None:
        assert to_go_identifier(raw) == expected


class TestPluralize:
    """English pluralisation rules."""

    @pytest.mark.parametrize(
        "singular, plural",
        [
            ("product", "products"),
            ("category", "categories"),
            ("key", "keys"),
            ("box", "boxes"),
            ("address", "addresses"),
            ("match", "matches"),
            ("knife", "knives"),
            ("leaf", "leaves"),
            ("hero", "heroes"),
            ("photo", "photos"),
            ("person", "people"),
            ("Person", "People"),
            ("series", "series"),
        ],
    )
    def test_words(self, singular: str, plural: str) -> None:
        assert pluralize(singular) == plural

    def test_compound_name_pluralises_last_word(self) -> None:
        assert pluralize_name("OrderItem") == "OrderItems"
        assert pluralize_name("ProductCategory") == "ProductCategories"


class TestNormalizeEntityName:
    """Entity names are normalised to exported PascalCase identifiers."""

    @pytest.mark.parametrize(
        "raw, expected",
        [("product", "Product"), ("order_item", "OrderItem"), (" blogPost ", "BlogPost")],
    )
    def test_normalises(self, raw: str, expected: str) -> None:
        assert normalize_entity_name(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "123abc", "---"])
    def test_rejects(self, raw: str) -> None:
        with pytest.raises(InvalidNameError) as exc_info:
            normalize_entity_name(raw)
        assert exc_info.value.code == "invalid_name"


class TestBuildNameSet:
    """NameSet derivation is complete and memoised."""

    def test_order_item(self) -> None:
        names = build_name_set("OrderItem")
        assert names.type_name == "OrderItem"
        assert names.plural_type_name == "OrderItems"
        assert names.variable_name == "orderItem"
        assert names.plural_variable_name == "orderItems"
        assert names.receiver == "o"
        assert names.file_stem == "order_item"
        assert names.table_name == "order_items"
        assert names.route_segment == "order-items"
        assert names.route_path == "/order-items"
        assert names.human_name == "order item"
        assert names.human_plural == "order items"

    def test_irregular_plural_table(self) -> None:
        names = build_name_set("Person")
        assert names.table_name == "people"
        assert names.plural_type_name == "People"

    def test_keyword_variable_is_escaped(self) -> None:
        assert build_name_set("Type").variable_name == "type_"

    def test_memoised(self) -> None:
        assert build_name_set("Product") is build_name_set("Product")

    def test_invalid_name(self) -> None:
        with pytest.raises(InvalidNameError):
            build_name_set("9lives")

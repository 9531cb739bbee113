"""
tests/test_parser.py
Unit tests for goscaffold.parser.

Tests cover:
- Valid field specs (order, types, modifiers, whitespace)
- Every ParseErrorKind with its token, field position and offset
- format_field_spec as the inverse of parse_field_spec
"""

from __future__ import annotations

from typing import List

import pytest

from goscaffold.errors import GenerationError, ParseError, ParseErrorKind
from goscaffold.models import FieldDescriptor, FieldModifier, SemanticType
from goscaffold.parser import RESERVED_FIELD_NAMES, format_field_spec, parse_field_spec


# ===========================================================================
# Valid specs
# ===========================================================================


class TestParseValidSpecs:
    """Specs that must parse."""

    def test_two_fields_in_order(self) -> None:
        fields = parse_field_spec("name:string,age:int")
        assert [f.name for f in fields] == ["name", "age"]
        assert [f.semantic_type for f in fields] == [SemanticType.STRING, SemanticType.INTEGER]

    def test_every_type_token(self) -> None:
        fields = parse_field_spec(
            "a:string,b:int,c:float,d:bool,e:time,f:reference"
        )
        assert [f.semantic_type for f in fields] == list(SemanticType)

    def test_raw_type_is_kept(self) -> None:
        (field,) = parse_field_spec("price:float")
        assert field.raw_type == "float"

    def test_single_modifier(self) -> None:
        (field,) = parse_field_spec("email:string:unique")
        assert field.modifiers == frozenset({FieldModifier.UNIQUE})
        assert field.is_unique
        assert not field.is_required

    def test_multiple_modifiers(self) -> None:
        (field,) = parse_field_spec("code:string:required|unique|indexed")
        assert field.is_required and field.is_unique and field.is_indexed

    def test_whitespace_is_trimmed(self) -> None:
        fields = parse_field_spec("  name : string : required | unique ,  age:int ")
        assert fields[0].name == "name"
        assert fields[0].modifiers == frozenset({FieldModifier.REQUIRED, FieldModifier.UNIQUE})
        assert fields[1].name == "age"

    def test_derived_names(self) -> None:
        (field,) = parse_field_spec("customerId:reference")
        assert field.go_name == "CustomerID"
        assert field.column_name == "customer_id"
        assert field.json_name == "customer_id"

    def test_descriptors_are_frozen(self) -> None:
        (field,) = parse_field_spec("name:string")
        with pytest.raises(Exception):
            field.name = "other"  # type: ignore[misc]


# ===========================================================================
# Errors
# ===========================================================================


class TestParseErrors:
    """Every malformed input raises ParseError naming the offending token."""

    def _error(self, spec: str) -> ParseError:
        with pytest.raises(ParseError) as exc_info:
            parse_field_spec(spec)
        return exc_info.value

    def test_empty_spec(self) -> None:
        err = self._error("")
        assert err.kind is ParseErrorKind.EMPTY_SEGMENT
        assert err.position == 0

    def test_empty_segment_between_commas(self) -> None:
        err = self._error("name:string,,age:int")
        assert err.kind is ParseErrorKind.EMPTY_SEGMENT
        assert err.position == 1
        assert err.offset == 12

    def test_trailing_comma(self) -> None:
        err = self._error("name:string,")
        assert err.kind is ParseErrorKind.EMPTY_SEGMENT
        assert err.position == 1

    def test_missing_type(self) -> None:
        err = self._error("name")
        assert err.kind is ParseErrorKind.MALFORMED_FIELD
        assert err.token == "name"

    def test_empty_type(self) -> None:
        err = self._error("name:")
        assert err.kind is ParseErrorKind.EMPTY_SEGMENT

    def test_too_many_separators(self) -> None:
        err = self._error("name:string:required:extra")
        assert err.kind is ParseErrorKind.MALFORMED_FIELD

    def test_unknown_type_reports_offset(self) -> None:
        err = self._error("name:string,price:money")
        assert err.kind is ParseErrorKind.UNKNOWN_TYPE
        assert err.token == "money"
        assert err.position == 1
        assert err.offset == 18

    def test_type_tokens_are_case_sensitive(self) -> None:
        err = self._error("name:String")
        assert err.kind is ParseErrorKind.UNKNOWN_TYPE
        assert err.token == "String"

    def test_unknown_modifier_reports_offset(self) -> None:
        err = self._error("name:string:required|primary")
        assert err.kind is ParseErrorKind.UNKNOWN_MODIFIER
        assert err.token == "primary"
        assert err.offset == 21

    def test_empty_modifier(self) -> None:
        err = self._error("name:string:")
        assert err.kind is ParseErrorKind.EMPTY_SEGMENT

    @pytest.mark.parametrize("name", ["1abc", "first-name", "na me"])
    def test_invalid_names(self, name: str) -> None:
        err = self._error(f"{name}:string")
        assert err.kind is ParseErrorKind.INVALID_NAME
        assert err.token == name

    def test_duplicate_is_case_insensitive(self) -> None:
        err = self._error("name:string,Name:int")
        assert err.kind is ParseErrorKind.DUPLICATE_FIELD
        assert err.token == "Name"
        assert err.position == 1

    @pytest.mark.parametrize("spec", [
        "userName:string,user_name:string",
        "user_name:string,UserName:int",
        "avatarUrl:string,avatar_url:string",
    ])
    def test_duplicate_go_field_or_column(self, spec: str) -> None:
        err = self._error(spec)
        assert err.kind is ParseErrorKind.DUPLICATE_FIELD
        assert err.position == 1

    def test_underscore_only_name(self) -> None:
        err = self._error("_:string")
        assert err.kind is ParseErrorKind.INVALID_NAME

    @pytest.mark.parametrize("name", ["id", "ID", "ID_", "_id", "type", "string", "func"])
    def test_reserved_names(self, name: str) -> None:
        err = self._error(f"{name}:string")
        assert err.kind is ParseErrorKind.RESERVED_NAME

    def test_reserved_set_contains_identity(self) -> None:
        assert "id" in RESERVED_FIELD_NAMES

    def test_error_is_generation_error(self) -> None:
        err = self._error("price:money")
        assert isinstance(err, GenerationError)
        assert err.code == "parse_error"
        assert err.to_dict()["context"] == {
            "kind": "unknown_type",
            "token": "money",
            "position": 0,
            "offset": 6,
        }
        assert "money" in err.message


# ===========================================================================
# format_field_spec
# ===========================================================================


class TestFormatFieldSpec:
    """format_field_spec renders descriptors back into the grammar."""

    def test_canonical_modifier_order(self) -> None:
        fields = parse_field_spec("code:string:indexed|required")
        assert format_field_spec(fields) == "code:string:required|indexed"

    def test_no_modifiers(self) -> None:
        assert format_field_spec(parse_field_spec(" a : int , b:bool ")) == "a:int,b:bool"

    @pytest.mark.parametrize(
        "spec",
        [
            "name:string",
            "name:string:required|unique,price:float,created:time:indexed",
            " owner_id : reference : indexed , flag:bool",
        ],
    )
    def test_reparse_is_identical(self, spec: str) -> None:
        first: List[FieldDescriptor] = parse_field_spec(spec)
        assert parse_field_spec(format_field_spec(first)) == first

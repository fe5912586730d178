"""Tests for the type registry and field normalization."""

import datetime
from decimal import Decimal

import pytest

from schemalite import FieldDefinitionError, FieldSpec, normalize, validate_value
from schemalite import types


class TestTypeRegistry:
    """Test type tag resolution and predicates."""

    def test_aliases(self):
        """Test that aliases resolve to their canonical tag."""
        assert types.resolve("boolean").tag == "bool"
        assert types.resolve("integer").tag == "int"
        assert types.resolve("datetime").tag == "date"

    def test_unknown_type_falls_back_to_string(self):
        """Test unknown and missing type names."""
        assert types.resolve("invalid type").tag == "string"
        assert types.resolve(None).tag == "string"
        assert types.resolve("invalid type").predicate is types.is_string

    def test_predicates(self):
        """Test the builtin predicates."""
        assert types.is_int(5)
        assert types.is_int(5.0)
        assert not types.is_int(5.5)
        assert not types.is_int(True)
        assert types.is_number(5.5)
        assert types.is_number(Decimal("1.5"))
        assert not types.is_number("5")
        assert types.is_object({"a": 1})
        assert not types.is_object([1])
        assert types.is_array([1, 2])
        assert types.is_array((1, 2))
        assert types.is_date(datetime.date(2020, 1, 1))
        assert types.is_date(datetime.datetime.now())
        assert types.is_bool(False)
        assert not types.is_bool(0)

    def test_is_empty(self):
        """Test empty values."""
        assert types.is_empty(None)
        assert types.is_empty("")
        assert not types.is_empty(0)
        assert not types.is_empty([])

    def test_register_type(self):
        """Test registering a custom type tag with an alias."""
        types.register_type("email", lambda v: isinstance(v, str) and "@" in v, ["mail"])
        try:
            info = types.resolve("mail")
            assert info.tag == "email"
            assert info.predicate("foo@bar.com")
            assert not info.predicate("foo")
        finally:
            types._predicates.pop("email", None)
            types._aliases.pop("mail", None)

    def test_register_type_rejects_bad_predicate(self):
        """Test that the predicate must be callable."""
        with pytest.raises(TypeError):
            types.register_type("broken", "not callable")


class TestNormalize:
    """Test field spec normalization."""

    def test_type_name_string(self):
        """Test normalizing a bare type name."""
        spec = normalize("integer")
        assert spec == FieldSpec(type="int")
        assert spec.validate == ()
        assert spec.required is False
        assert spec.immutable is False
        assert spec.default is None

    def test_options_mapping(self):
        """Test normalizing an options mapping."""

        def is_short(value):
            return len(value) < 10

        spec = normalize(
            {"type": "boolean", "required": 1, "immutable": "yes", "validate": is_short}
        )
        assert spec.type == "bool"
        assert spec.required is True
        assert spec.immutable is True
        assert spec.validate == (is_short,)

    def test_validator_list_order(self):
        """Test that a validator list keeps its order."""
        first = lambda v: True  # noqa: E731
        second = lambda v: True  # noqa: E731
        spec = normalize({"validate": [first, second]})
        assert spec.validate == (first, second)

    def test_missing_and_invalid_type(self):
        """Test that a missing or invalid type becomes string."""
        assert normalize({}).type == "string"
        assert normalize({"type": "nonsense"}).type == "string"
        assert normalize("nonsense").type == "string"

    def test_default_stored_as_is(self):
        """Test that defaults are stored without evaluation."""
        factory = list
        assert normalize({"default": factory}).default is factory
        roles = ["user"]
        assert normalize({"default": roles}).default is roles

    def test_idempotent(self):
        """Test that normalizing the raw options of a spec is stable."""
        raw_specs = [
            "int",
            "nonsense",
            {"type": "datetime", "immutable": True},
            {"required": True, "validate": [lambda v: True, lambda v: "nope"]},
            {"type": "array", "default": ["user"], "get": lambda m: 1},
        ]
        for raw in raw_specs:
            spec = normalize(raw)
            assert normalize(spec.as_options()) == spec
            assert normalize(spec) is spec

    def test_invalid_spec(self):
        """Test that a spec of the wrong kind is a definition error."""
        with pytest.raises(FieldDefinitionError, match="username"):
            normalize(42, "username")


class TestValidateValue:
    """Test validation of single values."""

    def test_type_mismatch(self):
        """Test type mismatch messages."""
        assert validate_value(normalize("array"), "not an array") == [
            "invalid array value"
        ]
        assert validate_value(normalize("nonsense"), 42) == ["invalid string value"]

    def test_empty_values_skip_type_check(self):
        """Test that empty values never fail the type check."""
        assert validate_value(normalize("int"), None) == []
        assert validate_value(normalize("int"), "") == []
        assert validate_value(normalize({"type": "int", "required": True}), None) == [
            "is required"
        ]

    def test_validators_accumulate_in_order(self):
        """Test literal and generic validator messages."""

        def is_foobar(value):
            return True if value == "foobar" else "invalid username"

        def is_long_enough(value):
            return len(value) > 4

        spec = normalize({"validate": [is_foobar, is_long_enough]})
        assert validate_value(spec, "bar") == ["invalid username", "invalid is_long_enough"]
        assert validate_value(spec, "foobar") == []

    def test_nameless_validator(self):
        """Test that lambdas fail with an empty validator name."""
        spec = normalize({"validate": lambda v: False})
        assert validate_value(spec, "x") == ["invalid "]

    def test_raising_validator(self):
        """Test that ValueError messages become field errors."""

        def positive(value):
            if value <= 0:
                raise ValueError("must be positive")
            return True

        spec = normalize({"type": "int", "validate": positive})
        assert validate_value(spec, -1) == ["must be positive"]

    def test_serialize_runs_before_validation(self):
        """Test that validation sees the serialized value."""
        spec = normalize({"type": "int", "serialize": int})
        assert validate_value(spec, "42") == []

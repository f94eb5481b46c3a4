"""Tests for validation rules, build_rules, and the Validator collaborators."""

from decimal import Decimal
from typing import Any

import pytest
from pydantic import BaseModel

from simple_service import Attribute, ErrorType, Invalid, ServiceBase, ServiceObject
from simple_service.domain.validations import (
    AbsenceRule,
    FormatRule,
    LengthRule,
    MethodRule,
    NumericalityRule,
    PresenceRule,
    PydanticValidator,
    Rule,
    RuleValidator,
    TypeRule,
    Validator,
    build_rules,
    is_blank,
)


def full_messages(record_cls: type[ServiceBase], **attributes: Any) -> list[str]:
    """Validate a fresh instance and return its full error messages."""
    record = record_cls(**attributes)
    record.is_valid()
    return record.errors.full_messages


class TestIsBlank:
    @pytest.mark.parametrize("value", [None, False, "", "   ", [], {}, (), set()])
    def test_blank(self, value: Any) -> None:
        assert is_blank(value) is True

    @pytest.mark.parametrize("value", [0, 0.0, True, "x", [None], {"a": 1}, Decimal("0")])
    def test_present(self, value: Any) -> None:
        assert is_blank(value) is False


class TestBuildRules:
    def test_maps_options_to_rules(self) -> None:
        rules = build_rules(["name"], presence=True, length={"maximum": 3})
        assert [type(rule) for rule in rules] == [PresenceRule, LengthRule]
        assert all(rule.attributes == ("name",) for rule in rules)

    def test_shared_options_apply_to_every_rule(self) -> None:
        rules = build_rules(["name"], presence=True, format=r"^\w+$", message="bad")
        assert [rule.message for rule in rules] == ["bad", "bad"]

    def test_disabled_rules_are_skipped(self) -> None:
        assert build_rules(["name"], presence=False, absence=None) == []

    def test_unknown_option(self) -> None:
        with pytest.raises(ValueError, match="Unknown validator"):
            build_rules(["name"], uniqueness=True)

    def test_length_needs_a_bound(self) -> None:
        with pytest.raises(ValueError):
            build_rules(["name"], length={})

    def test_format_needs_exactly_one_pattern(self) -> None:
        with pytest.raises(ValueError):
            FormatRule("name")
        with pytest.raises(ValueError):
            FormatRule("name", with_="a", without="b")

    def test_unknown_numericality_bound(self) -> None:
        with pytest.raises(ValueError, match="greater_than_ish"):
            build_rules(["n"], numericality={"greater_than_ish": 1})

    def test_malformed_configuration(self) -> None:
        with pytest.raises(ValueError, match="Invalid configuration"):
            build_rules(["name"], presence="yes")


class Profile(ServiceBase):
    name = Attribute(presence=True, length={"minimum": 2, "maximum": 5})
    nickname = Attribute(absence=True)
    role = Attribute(inclusion=["admin", "member"], allow_none=True)
    handle = Attribute(exclusion={"in": ["root"]}, format=r"^[a-z]+$", allow_blank=True)
    code = Attribute(length={"is": 3}, allow_none=True)


class TestAttributeRules:
    def test_valid(self) -> None:
        assert full_messages(Profile, name="ada", role="admin", handle="ada") == []

    def test_presence(self) -> None:
        assert full_messages(Profile, name=" ") == [
            "Name can't be blank",
            "Name is too short (minimum is 2 characters)",
        ]

    def test_length_maximum(self) -> None:
        assert full_messages(Profile, name="abcdefg") == [
            "Name is too long (maximum is 5 characters)"
        ]

    def test_length_exact(self) -> None:
        assert full_messages(Profile, name="ada", code="ab") == [
            "Code is the wrong length (should be 3 characters)"
        ]

    def test_absence(self) -> None:
        assert full_messages(Profile, name="ada", nickname="a") == ["Nickname must be blank"]

    def test_inclusion(self) -> None:
        assert full_messages(Profile, name="ada", role="owner") == [
            "Role is not included in the list"
        ]

    def test_exclusion(self) -> None:
        assert full_messages(Profile, name="ada", handle="root") == ["Handle is reserved"]

    def test_format(self) -> None:
        assert full_messages(Profile, name="ada", handle="Ada!") == ["Handle is invalid"]

    def test_allow_blank_skips_rules(self) -> None:
        assert full_messages(Profile, name="ada", handle="") == []


class Order(ServiceBase):
    quantity = Attribute(numericality={"only_integer": True, "greater_than": 0})
    price = Attribute(numericality={"less_than_or_equal_to": 100}, allow_none=True)


class TestNumericality:
    @pytest.mark.parametrize("quantity", [1, "12", " 7 ", Decimal("3")])
    def test_accepts_numbers(self, quantity: Any) -> None:
        assert full_messages(Order, quantity=quantity) == []

    @pytest.mark.parametrize("quantity", [None, "abc", True, "nan", object()])
    def test_not_a_number(self, quantity: Any) -> None:
        assert full_messages(Order, quantity=quantity) == ["Quantity is not a number"]

    @pytest.mark.parametrize("quantity", [1.5, "2.5"])
    def test_not_an_integer(self, quantity: Any) -> None:
        assert full_messages(Order, quantity=quantity) == ["Quantity must be an integer"]

    def test_bounds(self) -> None:
        assert full_messages(Order, quantity=0, price=150.5) == [
            "Quantity must be greater than 0",
            "Price must be less than or equal to 100",
        ]


class Measurement(ServiceBase):
    count = Attribute(type=int)
    label = Attribute(type={"expected": str, "strict": False}, allow_none=True)


class TestTypeRule:
    def test_valid(self) -> None:
        assert full_messages(Measurement, count=3, label="x") == []

    def test_strict_by_default(self) -> None:
        assert full_messages(Measurement, count="3") == ["Count must be a valid int"]

    def test_detail_option(self) -> None:
        record = Measurement(count="3")
        record.is_valid()
        assert record.errors.entries[0].options["expected"] == "int"
        assert "integer" in record.errors.entries[0].options["detail"]

    def test_repr(self) -> None:
        assert repr(TypeRule("count", expected=int)) == "TypeRule(count)"


class TestMessageOverride:
    def test_custom_message(self) -> None:
        class Signup(ServiceBase):
            email = Attribute(presence={"message": "is required"})

        assert full_messages(Signup) == ["Email is required"]

    def test_shared_message_option(self) -> None:
        class Named(ServiceBase):
            name = Attribute()

        Named.validates("name", presence=True, message="bad")

        record = Named()
        assert record.is_valid() is False
        assert record.errors.full_messages == ["Name bad"]

    def test_per_rule_message_keeps_other_rules_default(self) -> None:
        class Named(ServiceBase):
            name = Attribute(presence={"message": "bad"}, length={"minimum": 2})

        assert full_messages(Named, name="") == [
            "Name bad",
            "Name is too short (minimum is 2 characters)",
        ]

    def test_entry_keeps_symbolic_type(self) -> None:
        class Named(ServiceBase):
            name = Attribute(presence={"message": "bad"})

        record = Named()
        record.is_valid()
        entry = record.errors.entries[0]
        assert entry.message is ErrorType.BLANK
        assert entry.options == {"message": "bad"}

    def test_symbolic_override(self) -> None:
        class Named(ServiceBase):
            name = Attribute(presence={"message": ErrorType.INVALID})

        record = Named()
        record.is_valid()
        assert record.errors.full_messages == ["Name is invalid"]
        assert record.errors.entries[0].type is ErrorType.INVALID

    def test_non_raising_call_reports_instead_of_raising(self) -> None:
        class Greet(ServiceObject):
            name = Attribute(presence={"message": "bad"})

            def perform(self) -> str:
                return f"hello {self.name}"

        greet = Greet.call()
        assert greet.failed() is True
        assert greet.errors.full_messages == ["Name bad"]
        with pytest.raises(Invalid, match="Name bad"):
            Greet.call_or_raise()


class Pair(ServiceBase):
    left = Attribute()
    right = Attribute()

    def check_order(self) -> None:
        if self.left is not None and self.right is not None and self.left > self.right:
            self.errors.add("base", "Left must not exceed right")


Pair.validate("check_order")


class TestCustomValidations:
    def test_method_name(self) -> None:
        assert full_messages(Pair, left=2, right=1) == ["Left must not exceed right"]
        assert full_messages(Pair, left=1, right=2) == []

    def test_callable(self) -> None:
        class Gate(ServiceBase):
            pass

        Gate.validate(lambda record: record.errors.add("base", "closed"))
        assert full_messages(Gate) == ["closed"]

    def test_rules_on_undeclared_names(self) -> None:
        class Loose(ServiceBase):
            pass

        Loose.validates("random", presence=True)
        assert full_messages(Loose) == ["Random can't be blank"]

    def test_method_rule_repr(self) -> None:
        assert repr(MethodRule("check_order")) == "MethodRule(check_order)"

    def test_validation_rules_listing(self) -> None:
        assert [type(rule) for rule in Pair.validation_rules()] == [MethodRule]


class SignupInput(BaseModel):
    email: str
    age: int


class Signup(ServiceBase):
    email = Attribute()
    age = Attribute(numericality={"greater_than_or_equal_to": 18}, allow_none=True)

    validator = PydanticValidator(SignupInput)


class TestPydanticValidator:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(PydanticValidator(SignupInput), Validator)
        assert isinstance(RuleValidator(), Validator)

    def test_valid(self) -> None:
        record = Signup(email="ada@example.com", age=36)
        assert record.is_valid() is True

    def test_missing_becomes_blank(self) -> None:
        assert full_messages(Signup, age=36) == ["Email can't be blank"]

    def test_pydantic_error_message_and_code(self) -> None:
        record = Signup(email="ada@example.com", age="old")
        assert record.is_valid() is False
        entry = record.errors.entries[-1]
        assert entry.attribute == "age"
        assert entry.options["code"] == "int_parsing"
        assert str(entry.message).startswith("input should be a valid integer")

    def test_declared_rules_still_run(self) -> None:
        assert full_messages(Signup, email="ada@example.com", age=12) == [
            "Age must be greater than or equal to 18"
        ]


class TestRuleUnits:
    def test_validate_each_is_abstract(self) -> None:
        class Bare(ServiceBase):
            pass

        with pytest.raises(NotImplementedError):
            Rule("x").validate(Bare())

    def test_absence_rule_direct(self) -> None:
        class Holder(ServiceBase):
            token = Attribute()

        Holder.validate(AbsenceRule("token").validate)
        assert full_messages(Holder, token="abc") == ["Token must be blank"]

    def test_numericality_rule_direct(self) -> None:
        rule = NumericalityRule("n", other_than=3)
        assert rule.bounds == {"other_than": 3}

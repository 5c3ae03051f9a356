"""
Tests for the field validation functions.

Checks return a ValidationError (or None) instead of raising, so several
problems can be collected before deciding what to report.
"""

import pytest

from athenaeum.domain.errors import ValidationError
from athenaeum.domain.validation import (
    check_catalog_key,
    check_email,
    check_isbn10,
    check_isbn13,
    check_max_length,
    check_non_negative,
    check_phone,
    check_required,
    collect_errors,
    raise_first,
)


class TestRequiredAndLength:

    def test_present_value_within_limit_passes(self):
        assert check_required("name", "Frank Herbert", 200) is None

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_value_is_reported_with_field_name(self, value):
        error = check_required("name", value, 200)

        assert isinstance(error, ValidationError)
        assert error.field == "name"
        assert "required" in str(error)

    def test_too_long_value_is_reported(self):
        error = check_max_length("title", "x" * 501, 500)

        assert error is not None
        assert "500" in str(error)

    def test_value_at_limit_passes(self):
        assert check_max_length("title", "x" * 500, 500) is None

    def test_no_limit_means_any_length(self):
        assert check_max_length("notes", "x" * 10000, None) is None


class TestContactDetails:

    @pytest.mark.parametrize("email", ["alice@example.com", "a.b+c@mail.example.org"])
    def test_valid_emails(self, email):
        assert check_email("email", email) is None

    @pytest.mark.parametrize("email", ["alice", "alice@", "@example.com", "alice@example", "a b@x.org"])
    def test_invalid_emails(self, email):
        assert check_email("email", email) is not None

    def test_email_is_optional(self):
        assert check_email("email", None) is None

    @pytest.mark.parametrize("phone", ["+1 (555) 123-4567", "555.1234", "0612345678"])
    def test_valid_phones(self, phone):
        assert check_phone("phone", phone) is None

    @pytest.mark.parametrize("phone", ["call me", "12", "+44 abc 123"])
    def test_invalid_phones(self, phone):
        assert check_phone("phone", phone) is not None

    def test_phone_length_limit(self):
        assert check_phone("phone", "1" * 51) is not None


class TestIdentifiers:

    def test_isbn_checks_are_length_specific(self):
        assert check_isbn10("isbn10", "0-441-17271-7") is None
        assert check_isbn10("isbn10", "9780441172719") is not None
        assert check_isbn13("isbn13", "978-0-441-17271-9") is None
        assert check_isbn13("isbn13", "0441172717") is not None

    def test_isbn_is_optional(self):
        assert check_isbn10("isbn10", None) is None

    def test_catalog_key_may_be_absent_but_not_blank(self):
        assert check_catalog_key("catalog_key", None) is None
        assert check_catalog_key("catalog_key", "OL23919A") is None
        assert check_catalog_key("catalog_key", "  ") is not None

    def test_non_negative(self):
        assert check_non_negative("total_copies", 0) is None
        assert check_non_negative("total_copies", -1) is not None


class TestCombiningChecks:

    def test_collect_errors_keeps_failures_in_order(self):
        errors = collect_errors([
            check_required("name", ""),
            check_email("email", "alice@example.com"),
            check_phone("phone", "nope"),
        ])

        assert [e.field for e in errors] == ["name", "phone"]

    def test_raise_first_raises_the_first_failure(self):
        with pytest.raises(ValidationError) as exc_info:
            raise_first([None, check_required("title", None), check_required("name", None)])

        assert exc_info.value.field == "title"

    def test_raise_first_is_silent_when_all_pass(self):
        raise_first([None, None])

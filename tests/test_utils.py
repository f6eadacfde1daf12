"""Tests for shared utility functions."""

from merchant_onboarding.utils import digits_only, normalize_email, normalize_mobile


class TestDigitsOnly:
    def test_strips_spaces(self):
        assert digits_only("98765 43210") == "9876543210"

    def test_strips_punctuation(self):
        assert digits_only("+91 (987) 654-3210") == "919876543210"

    def test_no_digits(self):
        assert digits_only("n/a") == ""


class TestNormalizeMobile:
    def test_clean_number_unchanged(self):
        assert normalize_mobile("9876543210") == "9876543210"

    def test_country_code_dropped(self):
        assert normalize_mobile("+91 98765 43210") == "9876543210"

    def test_leading_zero_dropped(self):
        assert normalize_mobile("0-98765-43210") == "9876543210"

    def test_short_number_kept_whole(self):
        assert normalize_mobile("12345") == "12345"


class TestNormalizeEmail:
    def test_lowercases(self):
        assert normalize_email("Asha@RaoTraders.IN") == "asha@raotraders.in"

    def test_strips_whitespace(self):
        assert normalize_email("  asha@raotraders.in \n") == "asha@raotraders.in"

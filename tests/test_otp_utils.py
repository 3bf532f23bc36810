import random

import pytest

from identity_api.utils.otp import generate_otp, mask


@pytest.mark.parametrize("length", [1, 4, 6, 12])
def test_generate_otp_has_requested_number_of_digits(length):
    code = generate_otp(length)
    assert len(code) == length
    assert code.isdigit()


def test_generate_otp_defaults_to_six_digits():
    assert len(generate_otp()) == 6


@pytest.mark.parametrize("length", [0, -1])
def test_generate_otp_rejects_non_positive_length(length):
    with pytest.raises(ValueError):
        generate_otp(length)


def test_generate_otp_is_deterministic_with_seeded_rng():
    assert generate_otp(6, random.Random(42)) == generate_otp(6, random.Random(42))


def test_generate_otp_keeps_leading_zeros():
    class ZeroRandom:
        def choice(self, seq):
            return seq[0]

    assert generate_otp(6, ZeroRandom()) == "000000"


def test_mask_mobile_number():
    assert mask("9876543210") == "98*****210"


def test_mask_email():
    assert mask("john.doe@example.com") == "jo*****e@example.com"


def test_mask_truncates_at_end_of_value():
    assert mask("abcd") == "ab**"


def test_mask_leaves_short_values_alone():
    assert mask("ab") == "ab"
    assert mask("") == ""

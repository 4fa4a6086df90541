import pytest

from services.demo_service.app.errors import InvalidInputError
from services.demo_service.app.identity import (
    DIGITS,
    LOWER,
    PASSWORD_ALPHABET,
    SYMBOLS,
    UPPER,
    derive_demo_email,
    generate_random_password,
)


class TestDeriveDemoEmail:
    def test_strips_and_lowercases_local_part(self):
        assert derive_demo_email("jane.doe@example.com", "demo.example") == "janedoe@demo.example"

    def test_is_deterministic(self):
        first = derive_demo_email("Jane.Doe+Sales@Example.com", "demo.example")
        second = derive_demo_email("Jane.Doe+Sales@Example.com", "demo.example")
        assert first == second == "janedoesales@demo.example"

    def test_keeps_digits(self):
        assert derive_demo_email("j_smith-42@corp.io", "demo.example") == "jsmith42@demo.example"

    @pytest.mark.parametrize("value", ["", "no-at-sign", None])
    def test_rejects_malformed_requester(self, value):
        with pytest.raises(InvalidInputError):
            derive_demo_email(value, "demo.example")

    def test_rejects_local_part_without_usable_characters(self):
        with pytest.raises(InvalidInputError):
            derive_demo_email("...@example.com", "demo.example")


class TestGenerateRandomPassword:
    def test_default_length_and_character_classes(self):
        for _ in range(50):
            password = generate_random_password()
            assert len(password) == 14
            assert any(c in UPPER for c in password)
            assert any(c in LOWER for c in password)
            assert any(c in DIGITS for c in password)
            assert any(c in SYMBOLS for c in password)
            assert all(c in PASSWORD_ALPHABET for c in password)

    def test_custom_length(self):
        assert len(generate_random_password(32)) == 32

    def test_minimum_length_still_has_every_class(self):
        password = generate_random_password(4)
        for charset in (UPPER, LOWER, DIGITS, SYMBOLS):
            assert sum(c in charset for c in password) == 1

    def test_rejects_too_short(self):
        with pytest.raises(ValueError):
            generate_random_password(3)

    def test_passwords_differ(self):
        assert len({generate_random_password() for _ in range(20)}) == 20

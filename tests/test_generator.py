"""Tests for the password generator."""
import pytest

from zerovault.generator import (
    NUMBERS,
    SIMILAR,
    SYMBOLS,
    generate_password,
    password_strength,
)
from zerovault.vault.exceptions import InvalidInput


class TestGeneratePassword:

    def test_default_length(self):
        assert len(generate_password()) == 16

    @pytest.mark.parametrize("length", [6, 20, 32])
    def test_custom_length(self, length):
        assert len(generate_password(length=length)) == length

    @pytest.mark.parametrize("length", [5, 33])
    def test_length_out_of_range(self, length):
        with pytest.raises(InvalidInput):
            generate_password(length=length)

    def test_numbers_only(self):
        password = generate_password(
            length=32, uppercase=False, lowercase=False, symbols=False,
        )
        assert set(password) <= set(NUMBERS)

    def test_no_similar_characters(self):
        for _ in range(20):
            assert not set(generate_password(length=32)) & set(SIMILAR)

    def test_no_character_class(self):
        with pytest.raises(InvalidInput):
            generate_password(uppercase=False, lowercase=False, numbers=False, symbols=False)

    def test_passwords_differ(self):
        assert generate_password(length=32) != generate_password(length=32)

    def test_symbols_only(self):
        password = generate_password(uppercase=False, lowercase=False, numbers=False)
        assert set(password) <= set(SYMBOLS)


class TestPasswordStrength:

    @pytest.mark.parametrize("length,classes,expected", [
        (16, (True, True, True, True), "very-strong"),
        (12, (True, True, True, True), "very-strong"),
        (8, (True, True, True, True), "strong"),
        (8, (True, True, True, False), "medium"),
        (6, (True, True, False, False), "weak"),
        (16, (False, True, False, False), "medium"),
    ])
    def test_scores(self, length, classes, expected):
        upper, lower, numbers, symbols = classes
        assert password_strength(length, upper, lower, numbers, symbols) == expected

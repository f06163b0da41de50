"""Tests for agent_auth.sessions.tokens — generate_token / validate_token_format."""
from __future__ import annotations

import pytest

from agent_auth.sessions.tokens import generate_token, validate_token_format


class TestGenerateToken:
    def test_unique_across_ten_thousand_calls(self) -> None:
        tokens = {generate_token() for _ in range(10_000)}
        assert len(tokens) == 10_000

    def test_has_timestamp_suffix(self) -> None:
        prefix, _, suffix = generate_token().rpartition("_")
        assert prefix
        assert suffix.isdigit()

    def test_generated_tokens_pass_format_check(self) -> None:
        assert validate_token_format(generate_token()) is True


class TestValidateTokenFormat:
    @pytest.mark.parametrize(
        "token",
        [
            "",
            "tooshort",
            "a" * 257,
            "has space in it",
            "../../../../etc/passwd",
            "valid-looking-token\n",
            None,
            12345678901234,
            b"bytes-token-value",
        ],
    )
    def test_rejects(self, token: object) -> None:
        assert validate_token_format(token) is False

    @pytest.mark.parametrize(
        "token",
        ["abcdefghijk", "0f8fad5b-d9cb-469f-a165-70867728950e_1700000000000", "A_b-C" * 10],
    )
    def test_accepts(self, token: str) -> None:
        assert validate_token_format(token) is True

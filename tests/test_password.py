"""
Tests for blobcopy.crypto.password — environment lookup and prompting.
"""

from __future__ import annotations

from unittest import mock

import click
import pytest

from blobcopy.crypto.cipher import ENV_VAR, derive_key
from blobcopy.crypto.password import get_encryption_key, get_password
from blobcopy.errors import PasswordError, PasswordMismatchError


class TestGetPassword:
    """Password resolution order: environment first, then prompt."""

    def test_from_env_mapping(self):
        assert get_password({ENV_VAR: "from-env"}) == "from-env"

    def test_from_process_env(self, monkeypatch):
        monkeypatch.setenv(ENV_VAR, "process-env")
        assert get_password() == "process-env"

    def test_empty_env_value_is_used(self):
        """An explicitly empty variable is still a password, no prompt."""
        with mock.patch("blobcopy.crypto.password.click.prompt") as prompt:
            assert get_password({ENV_VAR: ""}) == ""
        prompt.assert_not_called()

    def test_env_skips_prompt(self):
        with mock.patch("blobcopy.crypto.password.click.prompt") as prompt:
            get_password({ENV_VAR: "pw"})
        prompt.assert_not_called()

    def test_prompt_twice_matching(self):
        with mock.patch(
            "blobcopy.crypto.password.click.prompt", side_effect=["typed", "typed"]
        ) as prompt:
            assert get_password({}) == "typed"
        assert prompt.call_count == 2
        for call in prompt.call_args_list:
            assert call.kwargs["hide_input"] is True

    def test_prompt_mismatch(self):
        with mock.patch(
            "blobcopy.crypto.password.click.prompt", side_effect=["one", "two"]
        ):
            with pytest.raises(PasswordMismatchError, match="do not match"):
                get_password({})

    def test_mismatch_is_password_error(self):
        assert issubclass(PasswordMismatchError, PasswordError)

    def test_prompt_aborted(self):
        with mock.patch(
            "blobcopy.crypto.password.click.prompt", side_effect=click.Abort()
        ):
            with pytest.raises(PasswordError, match="aborted"):
                get_password({})


class TestGetEncryptionKey:
    def test_derives_from_password(self):
        assert get_encryption_key({ENV_VAR: "pw"}) == derive_key("pw")

"""
Password — Obtain the encryption password for a run.

Non-interactive path: BLOBCOPY_ENCRYPTION_PASSWORD from the environment
(or the .env file, loaded at startup). Otherwise the operator is prompted
twice with masked input and both entries must match exactly.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import click

from ..errors import PasswordError, PasswordMismatchError
from .cipher import ENV_VAR, derive_key

logger = logging.getLogger(__name__)


def get_password(env: Optional[dict] = None) -> str:
    """
    Return the password from the environment, or prompt for it.

    Raises:
        PasswordMismatchError: If the two prompted entries differ.
        PasswordError: If the prompt cannot be completed (e.g. no TTY/EOF).
    """
    source = os.environ if env is None else env
    password = source.get(ENV_VAR)
    if password is not None:
        logger.debug(f"Using password from {ENV_VAR}")
        return password

    try:
        first = click.prompt("Enter encryption password", hide_input=True, err=True)
        second = click.prompt("Enter encryption password (verify)", hide_input=True, err=True)
    except click.Abort as e:
        raise PasswordError("password prompt aborted") from e

    if first != second:
        click.echo("Passwords do not match", err=True)
        raise PasswordMismatchError()
    return first


def get_encryption_key(env: Optional[dict] = None) -> bytes:
    """Obtain the password and derive the AES key from it."""
    return derive_key(get_password(env))

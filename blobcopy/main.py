"""
blobcopy — CLI Entry Point

Usage:
    blobcopy SOURCE_URL DESTINATION_URL [--tmp-bkt URL] [--skip N]
             [--encrypt | --decrypt] [--safety [--gen-safety]] [--json]

Examples:
    blobcopy file:///data/photos s3://backup/photos
    blobcopy --encrypt --safety file:///data/photos s3://backup/photos-enc
    blobcopy --decrypt s3://backup/photos-enc file:///restore/photos
"""

from __future__ import annotations

# Load .env FIRST, before anything reads the environment
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

import json
import logging
from contextlib import ExitStack
from typing import Optional

import click
from pydantic import ValidationError

from . import __version__
from .crypto.cipher import ENV_VAR, CipherCodec
from .crypto.password import get_encryption_key
from .errors import PasswordError, SafetyCheckError, StoreOpenError
from .logging_config import setup_logging
from .mirror.config import MirrorOptions
from .mirror.engine import MirrorEngine
from .mirror.run import MirrorRun, utc_now
from .mirror.safety import SafetyGuard
from .reliability.error_collector import ErrorCollector
from .storage.base import BlobStore
from .storage.registry import open_store

logger = logging.getLogger("blobcopy")


def _validation_message(err: ValidationError) -> str:
    first = err.errors()[0]
    msg = first.get("msg", str(err))
    # pydantic prefixes messages raised from validators
    return msg.removeprefix("Value error, ")


def _open(url: str, role: str) -> BlobStore:
    try:
        return open_store(url)
    except StoreOpenError as e:
        logger.error(f"Cannot open {role} store: {e}")
        raise SystemExit(1)


def _safety_gate(destination: BlobStore, key: bytes, gen_safety: bool) -> None:
    """
    Verify the destination's marker, writing one if --gen-safety was given.

    Raises:
        SafetyCheckError: If the marker is missing or belongs to another key
            and no new marker was requested.
    """
    guard = SafetyGuard(log=logger)
    if guard.check(destination, key):
        logger.info("Safety check passed")
        return

    if not gen_safety:
        raise SafetyCheckError(
            "safety check failed. Use --gen-safety to generate a safety check with this password."
        )

    logger.warning("Safety check failed, generating a new safety marker.")
    guard.enable(destination, key)


def _emit(run: MirrorRun, as_json: bool) -> None:
    if as_json:
        data = run.model_dump(mode="json")
        data["duration_seconds"] = run.duration.total_seconds()
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(run.summary())


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("source")
@click.argument("destination")
@click.option("--tmp-bkt", "tmp_bkt", envvar="BLOBCOPY_TMP_BKT", default=None,
              help="Staging store URL, useful for calculating MD5s (mem:// when encrypting/decrypting).")
@click.option("--skip", type=click.IntRange(min=0), default=0, envvar="BLOBCOPY_SKIP",
              show_default=True, help="Skip the first N listed objects.")
@click.option("--encrypt", is_flag=True, help="Encrypt content and keys with the password.")
@click.option("--decrypt", is_flag=True, help="Decrypt content and keys with the password.")
@click.option("--safety", is_flag=True, help="Refuse to run if the destination was encrypted with another password.")
@click.option("--gen-safety", is_flag=True, help="Write a new safety marker if the safety check fails.")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR (default: LOG_LEVEL or INFO).")
@click.option("--log-format", type=click.Choice(["text", "json"]), default=None,
              help="Log output format (default: LOG_FORMAT or text).")
@click.option("--json", "as_json", is_flag=True, help="Print the run summary as JSON.")
@click.version_option(__version__, prog_name="blobcopy")
def cli(
    source: str,
    destination: str,
    tmp_bkt: Optional[str],
    skip: int,
    encrypt: bool,
    decrypt: bool,
    safety: bool,
    gen_safety: bool,
    log_level: Optional[str],
    log_format: Optional[str],
    as_json: bool,
) -> None:
    """Mirror every object from SOURCE to DESTINATION.

    Objects whose destination copy already has the same content hash are
    left alone. The password for --encrypt/--decrypt is read from
    BLOBCOPY_ENCRYPTION_PASSWORD, or prompted for twice.
    """
    setup_logging(log_level, log_format)

    try:
        options = MirrorOptions(
            source_url=source,
            destination_url=destination,
            tmp_url=tmp_bkt,
            skip=skip,
            encrypt=encrypt,
            decrypt=decrypt,
            safety=safety,
            gen_safety=gen_safety,
        )
    except ValidationError as e:
        raise click.UsageError(_validation_message(e))

    if options.gen_safety and not options.safety:
        logger.warning("--gen-safety has no effect without --safety")

    key = b""
    if options.needs_password:
        try:
            key = get_encryption_key()
        except PasswordError as e:
            logger.error(f"Unable to get the encryption password ({ENV_VAR}): {e}")
            raise SystemExit(1)

    codec = CipherCodec(
        encrypt_key=key if options.encrypt else b"",
        decrypt_key=key if options.decrypt else b"",
    )

    # the reported duration covers opening stores and the safety check
    started_at = utc_now()
    with ExitStack() as stack:
        source_store = stack.enter_context(_open(options.source_url, "source"))
        destination_store = stack.enter_context(_open(options.destination_url, "destination"))

        if options.safety:
            try:
                _safety_gate(destination_store, key, options.gen_safety)
            except SafetyCheckError as e:
                logger.error(str(e))
                raise SystemExit(1)
            except Exception as e:
                logger.error(f"Safety check on {destination_store.url} failed: {e}")
                raise SystemExit(1)

        staging_store = None
        if options.staging_url:
            staging_store = stack.enter_context(_open(options.staging_url, "staging"))

        with ErrorCollector(log=logging.getLogger("blobcopy.errors")) as errors:
            engine = MirrorEngine(
                source_store,
                destination_store,
                staging=staging_store,
                codec=codec,
                errors=errors,
                log=logging.getLogger("blobcopy.mirror"),
            )
            run = engine.mirror(skip=options.skip, started_at=started_at)

    _emit(run, as_json)


if __name__ == "__main__":
    cli()

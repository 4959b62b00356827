"""Encoding pipeline for extracted document strings.

This module transcodes byte strings between the document's declared
encoding, the working (legacy EBCDIC) encoding, and an optional
explicit store encoding. Identifiers and stored values go through the
same conversions.

Unicode-sourced values are converted as terminated records, so the
converted terminator is stripped from the result.
"""

from __future__ import annotations

import codecs

from core.constants import (
    LEGACY_CODEC,
    LEGACY_CODEC_ALIASES,
    RECORD_TERMINATOR,
    UNICODE_CODEC,
    WORKING_CODEC,
)
from core.errors import JtabConfigError, JtabEncodingError
from core.types import DocumentEncoding

_LEGACY_TERMINATOR = RECORD_TERMINATOR.encode(LEGACY_CODEC)
_UNICODE_TERMINATOR = RECORD_TERMINATOR.encode(UNICODE_CODEC)


def normalize_target_encoding(name: str | None) -> str | None:
    """Normalize a caller-requested store encoding.

    Args:
        name: Codec name or alias, or None.

    Returns:
        Canonical codec name, or None when the default legacy encoding
        applies (no value, or any spelling of the legacy codepage).

    Raises:
        JtabConfigError: If the codec is unknown or not a text codec.
    """
    if name is None or not name.strip():
        return None
    alias = name.strip().lower()
    if alias in LEGACY_CODEC_ALIASES:
        return None
    try:
        codec_info = codecs.lookup(alias)
    except LookupError as error:
        raise JtabConfigError(
            f"Unknown target encoding '{name}'. "
            "Use a Python codec name such as utf-8, latin-1, or cp500.",
            operation="normalize-encoding",
            code="UNKNOWN_CODEC",
        ) from error
    try:
        "".encode(codec_info.name)
    except LookupError as error:
        raise JtabConfigError(
            f"Target encoding '{name}' is not a text encoding. "
            "Use a character codec such as utf-8, latin-1, or cp500.",
            operation="normalize-encoding",
            code="NOT_TEXT_CODEC",
        ) from error
    if codec_info.name == codecs.lookup(LEGACY_CODEC).name:
        return None
    return codec_info.name


def legacy_to_unicode(value: bytes) -> bytes:
    """Convert legacy bytes to UTF-8 and strip the line-feed artifact."""
    if not value:
        return b""
    converted = _transcode_record(value, LEGACY_CODEC, UNICODE_CODEC)
    return _strip_suffix(converted, _UNICODE_TERMINATOR)


def unicode_to_legacy(value: bytes) -> bytes:
    """Convert UTF-8 bytes to legacy and strip the trailing control byte."""
    if not value:
        return b""
    converted = _transcode_record(value, UNICODE_CODEC, LEGACY_CODEC)
    return _strip_suffix(converted, _LEGACY_TERMINATOR)


def convert(value: bytes, source: str, target: str) -> bytes:
    """Convert bytes from one codec to another without record framing.

    Args:
        value: Encoded input.
        source: Codec of ``value``.
        target: Codec of the result.

    Returns:
        Re-encoded bytes; empty input yields empty output.

    Raises:
        JtabEncodingError: If decoding or encoding fails.
    """
    if not value:
        return b""
    try:
        return value.decode(source).encode(target)
    except (UnicodeError, LookupError) as error:
        raise _encoding_error(source, target, error) from error


class EncodingPipeline:
    """Per-run transcoder bound to a document and store encoding."""

    def __init__(self, document_encoding: DocumentEncoding, target_encoding: str | None) -> None:
        self._document_encoding = document_encoding
        self._target_encoding = target_encoding

    @property
    def store_codec(self) -> str:
        """Codec of values produced by ``to_store``."""
        return self._target_encoding or LEGACY_CODEC

    def to_store(self, value: bytes) -> bytes:
        """Transcode a document value into the store encoding."""
        if not value:
            return b""
        is_unicode = self._document_encoding is DocumentEncoding.UNICODE
        if self._target_encoding is not None:
            if is_unicode:
                converted = _transcode_record(value, UNICODE_CODEC, self._target_encoding)
                terminator = _encoded_terminator(self._target_encoding)
                return _strip_suffix(converted, terminator)
            return convert(value, LEGACY_CODEC, self._target_encoding)
        if is_unicode:
            return unicode_to_legacy(value)
        return value

    def to_working(self, value: bytes) -> bytes:
        """Transcode a document value into the working encoding."""
        if self._document_encoding is DocumentEncoding.UNICODE:
            return unicode_to_legacy(value)
        return value

    def from_working(self, value: bytes) -> bytes:
        """Transcode a working-encoding value into the document encoding."""
        if self._document_encoding is DocumentEncoding.UNICODE:
            return legacy_to_unicode(value)
        return value

    def working_name(self, name: str) -> bytes:
        """Encode a Python name literal in the working encoding."""
        return _encode(name, WORKING_CODEC)

    def document_name(self, name: str) -> bytes:
        """Encode a Python name literal for lookups in the document."""
        return self.from_working(self.working_name(name))

    def working_text(self, value: bytes) -> str:
        """Decode a working-encoding value into text."""
        return _decode(value, WORKING_CODEC)

    def store_text(self, value: bytes) -> str:
        """Decode a store-encoding value into text."""
        return _decode(value, self.store_codec)


def _transcode_record(value: bytes, source: str, target: str) -> bytes:
    """Convert ``value`` as one terminated record."""
    try:
        return (value.decode(source) + RECORD_TERMINATOR).encode(target)
    except (UnicodeError, LookupError) as error:
        raise _encoding_error(source, target, error) from error


def _encoded_terminator(codec: str) -> bytes:
    """Encode the record terminator alone, without any byte-order mark."""
    try:
        lead = RECORD_TERMINATOR.encode(codec)
        return (RECORD_TERMINATOR * 2).encode(codec)[len(lead):]
    except (UnicodeError, LookupError) as error:
        raise _encoding_error(UNICODE_CODEC, codec, error) from error


def _strip_suffix(value: bytes, suffix: bytes) -> bytes:
    if value.endswith(suffix):
        return value[: -len(suffix)]
    return value


def _encode(text: str, codec: str) -> bytes:
    try:
        return text.encode(codec)
    except (UnicodeError, LookupError) as error:
        raise _encoding_error("text", codec, error) from error


def _decode(value: bytes, codec: str) -> str:
    try:
        return value.decode(codec)
    except (UnicodeError, LookupError) as error:
        raise _encoding_error(codec, "text", error) from error


def _encoding_error(source: str, target: str, error: Exception) -> JtabEncodingError:
    return JtabEncodingError(
        f"Failed to transcode value from {source} to {target}: {error}.",
        operation="transcode",
        code=type(error).__name__,
    )

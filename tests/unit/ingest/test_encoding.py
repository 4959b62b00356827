"""Unit tests for the encoding pipeline."""

from __future__ import annotations

import pytest

from core.errors import JtabConfigError, JtabEncodingError
from core.types import DocumentEncoding
from ingest.encoding import (
    EncodingPipeline,
    convert,
    legacy_to_unicode,
    normalize_target_encoding,
    unicode_to_legacy,
)

_PRINTABLE = "".join(chr(code) for code in range(0x20, 0x7F))


def test_legacy_unicode_round_trip_keeps_printable_text() -> None:
    """Legacy to Unicode and back should return the original bytes."""
    original = _PRINTABLE.encode("cp037")

    assert unicode_to_legacy(legacy_to_unicode(original)) == original


def test_legacy_to_unicode_strips_line_feed_artifact() -> None:
    """Converting legacy bytes should not leave a trailing line feed."""
    assert legacy_to_unicode("VAL".encode("cp037")) == b"VAL"


def test_unicode_to_legacy_strips_control_artifact() -> None:
    """Converting UTF-8 bytes should not leave a trailing control byte."""
    assert unicode_to_legacy(b"VAL") == "VAL".encode("cp037")


def test_empty_values_convert_to_empty_bytes() -> None:
    """Empty input should short-circuit every conversion."""
    results = (legacy_to_unicode(b""), unicode_to_legacy(b""), convert(b"", "utf-8", "cp500"))

    assert results == (b"", b"", b"")


def test_unicode_to_legacy_raises_for_unrepresentable_text() -> None:
    """Characters outside the legacy codepage should raise an encoding error."""
    with pytest.raises(JtabEncodingError) as error_info:
        unicode_to_legacy("snow ☃".encode("utf-8"))

    assert error_info.value.operation == "transcode"


def test_normalize_target_encoding_maps_legacy_aliases_to_default() -> None:
    """Any spelling of the legacy codepage should select the default path."""
    names = [normalize_target_encoding(name) for name in (None, " ", "IBM037", "cp037", "default")]

    assert names == [None, None, None, None, None]


def test_normalize_target_encoding_canonicalizes_codec_names() -> None:
    """Known codecs should come back under their canonical name."""
    assert normalize_target_encoding("UTF8") == "utf-8"


def test_normalize_target_encoding_rejects_unknown_codec() -> None:
    """Unknown codec names should raise a config error."""
    with pytest.raises(JtabConfigError) as error_info:
        normalize_target_encoding("not-a-codec")

    assert error_info.value.code == "UNKNOWN_CODEC"


def test_to_store_converts_unicode_document_to_legacy_by_default() -> None:
    """Unicode values should land in the legacy codepage without a target."""
    pipeline = EncodingPipeline(DocumentEncoding.UNICODE, None)

    assert pipeline.to_store(b"x") == "x".encode("cp037")


def test_to_store_passes_legacy_values_through_by_default() -> None:
    """Legacy values need no conversion without a target."""
    pipeline = EncodingPipeline(DocumentEncoding.LEGACY, None)
    value = "x".encode("cp037")

    assert pipeline.to_store(value) == value


def test_to_store_converts_unicode_to_explicit_target() -> None:
    """Unicode values should convert to the explicit target and drop the terminator."""
    pipeline = EncodingPipeline(DocumentEncoding.UNICODE, "utf-16-le")

    assert pipeline.to_store("ab".encode("utf-8")) == "ab".encode("utf-16-le")


def test_to_store_drops_byte_order_mark_from_terminator() -> None:
    """Codecs that emit a byte-order mark should still lose the terminator."""
    pipeline = EncodingPipeline(DocumentEncoding.UNICODE, "utf-16")
    stored = pipeline.to_store(b"ab")

    assert stored.decode("utf-16") == "ab"


def test_to_store_converts_legacy_directly_to_explicit_target() -> None:
    """Legacy values should convert to an explicit target unframed."""
    pipeline = EncodingPipeline(DocumentEncoding.LEGACY, "latin-1")

    assert pipeline.to_store("x y".encode("cp037")) == b"x y"


def test_document_name_matches_document_encoding() -> None:
    """Lookup names should be encoded like the document."""
    unicode_name = EncodingPipeline(DocumentEncoding.UNICODE, None).document_name("table")
    legacy_name = EncodingPipeline(DocumentEncoding.LEGACY, None).document_name("table")

    assert (unicode_name, legacy_name) == (b"table", "table".encode("cp037"))


def test_working_text_decodes_legacy_bytes() -> None:
    """Working-encoding bytes should decode back to text."""
    pipeline = EncodingPipeline(DocumentEncoding.UNICODE, None)

    assert pipeline.working_text(pipeline.to_working(b"NAME")) == "NAME"


def test_store_text_uses_store_codec() -> None:
    """Store values should decode with the explicit target codec."""
    pipeline = EncodingPipeline(DocumentEncoding.UNICODE, "utf-8")

    assert pipeline.store_text(pipeline.to_store("café".encode("utf-8"))) == "café"


@pytest.mark.parametrize("codec_name", ["base64", "hex", "zlib"])
def test_normalize_target_encoding_rejects_non_text_codecs(codec_name: str) -> None:
    """Bytes-to-bytes codecs cannot be store encodings."""
    with pytest.raises(JtabConfigError) as error_info:
        normalize_target_encoding(codec_name)

    assert error_info.value.code == "NOT_TEXT_CODEC"

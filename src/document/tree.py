"""Document parsing into a handle-addressed node arena.

This module detects the declared encoding of raw document bytes,
decodes them, and flattens the JSON tree into an immutable arena
where handle ``0`` is always the root object.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from core.errors import JtabParseError
from core.types import DocumentEncoding, NodeType

_UTF8_BOM = b"\xef\xbb\xbf"
_UNICODE_WHITESPACE = frozenset(b" \t\r\n")
_LEGACY_WHITESPACE = frozenset(b"\x40\x05\x0d\x15\x25")
_UNICODE_OPEN_BRACE = 0x7B
_LEGACY_OPEN_BRACE = 0xC0
# cp037 decodes the EBCDIC new-line byte to NEL.
_LEGACY_NEL = "\x85"


class _NumberText(str):
    """Numeric token kept as its source text."""


class _Members(list):
    """Ordered object members as ``(name, value)`` pairs."""


@dataclass(frozen=True)
class Node:
    """One arena node.

    Attributes:
        node_type: Discovered node type.
        value: Text for strings and numbers, ``bool`` for booleans, ``None``
            for null, child handles for arrays, ``(name, handle)`` pairs for
            objects.
    """

    node_type: NodeType
    value: Any


@dataclass(frozen=True)
class Document:
    """Immutable parsed document.

    Attributes:
        encoding: Declared encoding detected from the raw bytes.
        nodes: Node arena indexed by handle.
    """

    encoding: DocumentEncoding
    nodes: tuple[Node, ...]

    def node(self, handle: int) -> Node | None:
        """Return the node for a handle, or None when the handle is invalid."""
        if 0 <= handle < len(self.nodes):
            return self.nodes[handle]
        return None


def detect_encoding(raw: bytes) -> DocumentEncoding:
    """Detect the declared encoding from the first significant byte.

    Args:
        raw: Raw document bytes.

    Returns:
        Detected document encoding.

    Raises:
        JtabParseError: If the document is empty or starts with neither
            a Unicode nor a legacy open brace.
    """
    if raw.startswith(_UTF8_BOM):
        return DocumentEncoding.UNICODE
    for byte in raw:
        if byte == _UNICODE_OPEN_BRACE:
            return DocumentEncoding.UNICODE
        if byte == _LEGACY_OPEN_BRACE:
            return DocumentEncoding.LEGACY
        if byte in _UNICODE_WHITESPACE or byte in _LEGACY_WHITESPACE:
            continue
        raise JtabParseError(
            f"Unrecognized document encoding: first significant byte is 0x{byte:02X}. "
            "Provide a UTF-8 or EBCDIC (cp037) JSON object.",
            operation="parse",
            code="UNKNOWN_ENCODING",
        )
    raise JtabParseError(
        "Input document is empty. Provide a JSON object.",
        operation="parse",
        code="EMPTY_DOCUMENT",
    )


def parse_document(raw: bytes) -> Document:
    """Parse raw bytes into a handle-addressed document.

    Args:
        raw: Raw document bytes in UTF-8 or cp037.

    Returns:
        Parsed document whose root object has handle 0.

    Raises:
        JtabParseError: If the bytes are malformed, wrongly encoded,
            or do not hold a JSON object at the top level.
    """
    encoding = detect_encoding(raw)
    text = _decode_document(raw, encoding)
    try:
        payload = json.loads(
            text,
            object_pairs_hook=_Members,
            parse_int=_NumberText,
            parse_float=_NumberText,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as error:
        raise JtabParseError(
            f"Failed to parse document at line {error.lineno} column {error.colno}: "
            f"{error.msg}. Fix the JSON syntax and retry the import.",
            operation="parse",
            code="MALFORMED_DOCUMENT",
        ) from error
    if not isinstance(payload, _Members):
        raise JtabParseError(
            "Document root must be a JSON object.",
            operation="parse",
            code="ROOT_NOT_OBJECT",
        )
    nodes: list[Node] = []
    _flatten(payload, nodes)
    return Document(encoding=encoding, nodes=tuple(nodes))


def _decode_document(raw: bytes, encoding: DocumentEncoding) -> str:
    """Decode raw bytes with the detected encoding."""
    if raw.startswith(_UTF8_BOM):
        raw = raw[len(_UTF8_BOM):]
    try:
        text = raw.decode(encoding.codec)
    except UnicodeDecodeError as error:
        raise JtabParseError(
            f"Document is not valid {encoding.codec} at byte {error.start}: {error.reason}.",
            operation="parse",
            code="BAD_ENCODING",
        ) from error
    if encoding is DocumentEncoding.LEGACY:
        text = _normalize_legacy_newlines(text)
    return text


def _normalize_legacy_newlines(text: str) -> str:
    """Turn EBCDIC NL between tokens into line feeds; string contents keep NL."""
    if _LEGACY_NEL not in text:
        return text
    pieces: list[str] = []
    in_string = False
    escaped = False
    for character in text:
        if in_string:
            if escaped:
                escaped = False
            elif character == "\\":
                escaped = True
            elif character == '"':
                in_string = False
        elif character == '"':
            in_string = True
        elif character == _LEGACY_NEL:
            character = "\n"
        pieces.append(character)
    return "".join(pieces)


def _reject_constant(token: str) -> Any:
    raise JtabParseError(
        f"Unsupported numeric constant '{token}' in document.",
        operation="parse",
        code="MALFORMED_DOCUMENT",
    )


def _flatten(value: Any, nodes: list[Node]) -> int:
    """Append ``value`` and its descendants to the arena.

    Parents are allocated before children so the root keeps handle 0.

    Returns:
        Handle of the appended node.
    """
    handle = len(nodes)
    if isinstance(value, _Members):
        nodes.append(Node(NodeType.OBJECT, ()))
        members = tuple((str(name), _flatten(member, nodes)) for name, member in value)
        nodes[handle] = Node(NodeType.OBJECT, members)
    elif isinstance(value, list):
        nodes.append(Node(NodeType.ARRAY, ()))
        children = tuple(_flatten(item, nodes) for item in value)
        nodes[handle] = Node(NodeType.ARRAY, children)
    elif isinstance(value, _NumberText):
        nodes.append(Node(NodeType.NUMBER, str(value)))
    elif isinstance(value, bool):
        nodes.append(Node(NodeType.BOOLEAN, value))
    elif value is None:
        nodes.append(Node(NodeType.NULL, None))
    else:
        nodes.append(Node(NodeType.STRING, str(value)))
    return handle

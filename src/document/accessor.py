"""Document accessor facade.

This module resolves member lookups and array traversal over a parsed
document's handles. Lookups distinguish "member absent", reported with
the ``NOT_FOUND`` sentinel, from real errors, which raise
``JtabLookupError`` with the operation name and a diagnostic code.

Member names and string values cross this facade as bytes in the
document's declared encoding.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from core.errors import JtabEncodingError, JtabLookupError
from core.types import NodeType
from document.tree import Document, Node


class DiagnosticCode(str, Enum):
    """Accessor failure codes."""

    INVALID_HANDLE = "INVALID_HANDLE"
    NOT_AN_OBJECT = "NOT_AN_OBJECT"
    NOT_AN_ARRAY = "NOT_AN_ARRAY"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    BAD_NAME = "BAD_NAME"


class _Sentinel:
    """Named singleton marker."""

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False


NOT_FOUND: Any = _Sentinel("NOT_FOUND")
NULL_VALUE: Any = _Sentinel("NULL_VALUE")

_TEXT_TYPES = (NodeType.STRING, NodeType.NUMBER)


class DocumentAccessor:
    """Handle-based read access to one parsed document."""

    def __init__(self, document: Document) -> None:
        self._document = document
        self._codec = document.encoding.codec

    @property
    def document(self) -> Document:
        return self._document

    def node_type(self, handle: int) -> NodeType:
        """Return the discovered type of a node."""
        return self._node(handle, "get-type").node_type

    def find_by_name(self, object_handle: int, name: bytes, expected_type: NodeType) -> Any:
        """Find a direct member of an object by name.

        Args:
            object_handle: Handle of the object to search; 0 is the root.
            name: Member name encoded in the document encoding.
            expected_type: Type the member must have.

        Returns:
            A new handle for array/object members, bytes for string and
            number members (either satisfies the other), ``bool`` for
            booleans, ``NULL_VALUE`` for a null member looked up as any
            scalar, or ``NOT_FOUND`` when the object has no such member.

        Raises:
            JtabLookupError: If the handle is not an object or the member
                has a different type.
        """
        node = self._node(object_handle, "find-by-name")
        if node.node_type is not NodeType.OBJECT:
            raise _lookup_error(
                "find-by-name",
                DiagnosticCode.NOT_AN_OBJECT,
                f"handle {object_handle} is a {node.node_type.value}, not an object",
            )
        member_name = self._decode_name(name)
        for candidate_name, member_handle in node.value:
            if candidate_name != member_name:
                continue
            member_type = self._document.nodes[member_handle].node_type
            if member_type is NodeType.NULL and not expected_type.is_composite:
                return NULL_VALUE
            if member_type is not expected_type and not _shares_text_path(
                member_type, expected_type
            ):
                raise _lookup_error(
                    "find-by-name",
                    DiagnosticCode.TYPE_MISMATCH,
                    f"member '{member_name}' is a {member_type.value}, "
                    f"expected {expected_type.value}",
                )
            if expected_type.is_composite:
                return member_handle
            return self.value_of(member_handle, expected_type)
        return NOT_FOUND

    def array_length(self, array_handle: int) -> int:
        """Return the number of entries in an array."""
        return len(self._array_node(array_handle, "get-array-length").value)

    def array_entry(self, array_handle: int, index: int) -> int:
        """Return the handle of a 0-based array entry."""
        children = self._array_node(array_handle, "get-array-entry").value
        if not 0 <= index < len(children):
            raise _lookup_error(
                "get-array-entry",
                DiagnosticCode.INDEX_OUT_OF_RANGE,
                f"index {index} outside array of length {len(children)}",
            )
        return children[index]

    def value_of(self, handle: int, expected_type: NodeType) -> Any:
        """Extract a scalar value from a node.

        Strings and numbers share one path and come back as bytes in the
        document encoding. Null nodes yield ``NULL_VALUE`` regardless of
        the expected type.
        """
        node = self._node(handle, "get-value")
        if node.node_type is NodeType.NULL:
            return NULL_VALUE
        if expected_type in _TEXT_TYPES and node.node_type in _TEXT_TYPES:
            return self._encode_text(node.value)
        if expected_type is NodeType.BOOLEAN and node.node_type is NodeType.BOOLEAN:
            return node.value
        raise _lookup_error(
            "get-value",
            DiagnosticCode.TYPE_MISMATCH,
            f"handle {handle} is a {node.node_type.value}, expected {expected_type.value}",
        )

    def _node(self, handle: int, operation: str) -> Node:
        node = self._document.node(handle)
        if node is None:
            raise _lookup_error(operation, DiagnosticCode.INVALID_HANDLE, f"handle {handle}")
        return node

    def _array_node(self, handle: int, operation: str) -> Node:
        node = self._node(handle, operation)
        if node.node_type is not NodeType.ARRAY:
            raise _lookup_error(
                operation,
                DiagnosticCode.NOT_AN_ARRAY,
                f"handle {handle} is a {node.node_type.value}, not an array",
            )
        return node

    def _decode_name(self, name: bytes) -> str:
        try:
            return name.decode(self._codec)
        except UnicodeDecodeError as error:
            raise _lookup_error(
                "find-by-name",
                DiagnosticCode.BAD_NAME,
                f"member name is not valid {self._codec}: {error.reason}",
            ) from error

    def _encode_text(self, text: str) -> bytes:
        try:
            return text.encode(self._codec)
        except UnicodeEncodeError as error:
            raise JtabEncodingError(
                f"Document value cannot be represented in {self._codec}: {error.reason}.",
                operation="get-value",
                code="UNREPRESENTABLE",
            ) from error


def _shares_text_path(member_type: NodeType, expected_type: NodeType) -> bool:
    return member_type in _TEXT_TYPES and expected_type in _TEXT_TYPES


def _lookup_error(operation: str, code: DiagnosticCode, detail: str) -> JtabLookupError:
    return JtabLookupError(
        f"Document {operation} failed ({code.value}): {detail}.",
        operation=operation,
        code=code.value,
    )

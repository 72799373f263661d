"""Decoder for typedstream archives, the format of a message's attributedBody."""

from __future__ import annotations

import logging
import struct
from typing import Optional, Sequence, Union

from .archivable import (
    Archivable,
    ArchivableClass,
    ArchivableData,
    ArchivableObject,
    ArchivablePlaceholder,
    ArchivableTypes,
    Class,
    OutputValue,
    Type,
    TypeVariant,
    byte_to_type,
)
from .utilities import dump as hex_dump

logger = logging.getLogger(__name__)

# Marks a type descriptor that describes a fixed-size array
ARRAY = 0x5B
# A 16-bit integer follows
I_16 = 0x81
# A 32-bit integer follows
I_32 = 0x82
# A float or double follows; the type decides the size
DECIMAL = 0x83
# Start of a new object
START = 0x84
# No more data, for example the end of a class chain
EMPTY = 0x85
# Last byte of an object
END = 0x86
# Bytes at or above this value index a table of already-seen entries
REFERENCE_TAG = 0x92

_ClassResult = Union[int, list]


class TypedStreamError(ValueError):
    """Raised when a typedstream cannot be decoded."""


class TypedStreamDecoder:
    """Reads the archived components of one typedstream."""

    def __init__(self, encoded: bytes, debug: bool = False) -> None:
        self.debug = debug
        self._data = bytes(encoded)
        self._index = 0
        self._length = len(self._data)
        self._objects: list[Archivable] = []
        self._seen_embedded_types: set[int] = set()
        self._types_table: list[list[Type]] = []
        self._placeholder: Optional[int] = None

    def dump(self) -> str:
        """Return a hex dump of the encoded bytes."""
        return "".join(line + "\n" for line in hex_dump(self._data))

    def _log(self, indent: int, message: str, *args: object) -> None:
        if self.debug:
            logger.debug("\t" * indent + message, *args)

    def decode_components(self) -> list[Archivable]:
        """Decode every top-level component of the stream."""
        try:
            self._validate_header()
        except TypedStreamError as exc:
            self._log(0, "ignoring invalid header: %s", exc)
        components: list[Archivable] = []
        while self._index < self._length:
            self._log(0, "starting decode loop at %x", self._index)
            if self._current_byte() == END:
                self._index += 1
                continue
            found_types = self._get_types(embedded=False)
            if found_types is None:
                continue
            result = self._read_types(found_types)
            if result is not None:
                components.append(result)
        return components

    def _validate_header(self) -> None:
        version = self._read_unsigned_int()
        signature = self._read_string()
        system_version = self._read_signed_int()
        if version != 4 or signature != "streamtyped" or system_version != 1000:
            raise TypedStreamError(
                f"invalid header: [version: {version}, signature: {signature}, "
                f"systemVersion: {system_version}]"
            )

    def _read_types(self, found_types: Sequence[Type]) -> Optional[Archivable]:
        out: list[OutputValue] = []
        is_obj = False
        for found in found_types:
            variant = found.variant
            self._log(1, "processing type %d", int(variant))
            if variant is TypeVariant.UTF8_STRING:
                out.append((variant, self._read_string()))
            elif variant is TypeVariant.EMBEDDED_DATA:
                return self._read_embedded_data()
            elif variant is TypeVariant.OBJECT:
                is_obj = True
                self._placeholder = len(self._objects)
                self._objects.append(ArchivablePlaceholder())
                obj = self._read_object()
                if isinstance(obj, ArchivableObject):
                    if obj.output_data:
                        self._placeholder = None
                        self._objects.pop()
                        return obj
                elif isinstance(obj, ArchivableClass):
                    out.append((TypeVariant.OBJECT, obj.archived_class))
                elif isinstance(obj, ArchivableData):
                    out.extend(obj.output_data)
            elif variant is TypeVariant.SIGNED_INT:
                out.append((variant, self._read_signed_int()))
            elif variant is TypeVariant.UNSIGNED_INT:
                out.append((variant, self._read_unsigned_int()))
            elif variant is TypeVariant.FLOAT:
                out.append((variant, self._read_float()))
            elif variant is TypeVariant.DOUBLE:
                out.append((variant, self._read_double()))
            elif variant is TypeVariant.UNKNOWN:
                out.append((variant, found.unknown_value))
            elif variant is TypeVariant.STRING:
                out.append((variant, found.string_value))
            elif variant is TypeVariant.ARRAY:
                out.append((variant, self._read_n_bytes(found.array_size)))

        if self._placeholder is not None and out:
            return self._fill_placeholder(out)
        if out and not is_obj:
            return ArchivableData(out)
        return None

    def _fill_placeholder(self, out: list[OutputValue]) -> Archivable:
        spot = self._placeholder
        assert spot is not None
        if spot >= len(self._objects):
            raise TypedStreamError(
                f"placeholder {spot} out of range of object table ({len(self._objects)})"
            )
        following = spot + 1
        if following < len(self._objects):
            after = self._objects[following]
            if isinstance(after, ArchivableClass):
                # The slot after the placeholder holds the top of the class chain
                obj = ArchivableObject(after.archived_class, out)
                self._objects[spot] = obj
                self._placeholder = None
                return obj
        seen = self._objects[spot]
        if isinstance(seen, ArchivableObject):
            self._placeholder = None
            return seen
        # Data that belongs to no class: a field of the parent object
        data = ArchivableData(out)
        self._objects[spot] = data
        return data

    def _object_at(self, index: int) -> Archivable:
        if not 0 <= index < len(self._objects):
            raise TypedStreamError(
                f"object index {index} out of range of object table ({len(self._objects)})"
            )
        return self._objects[index]

    def _read_object(self) -> Optional[Archivable]:
        current = self._current_byte()
        self._log(4, "processing start byte for object: %x", current)
        if current == START:
            result = self._read_class()
            if isinstance(result, int):
                return self._object_at(result)
            self._objects.extend(result)
            return None
        if current == EMPTY:
            self._index += 1
            return None
        return self._object_at(self._read_pointer())

    def _read_class(self) -> _ClassResult:
        out: list[Archivable] = []
        current = self._current_byte()
        self._log(5, "processing byte %x at %x for class", current, self._index)
        if current == START:
            while self._current_byte() == START:
                self._index += 1
            length = self._read_unsigned_int()
            if length >= REFERENCE_TAG:
                return length - REFERENCE_TAG
            class_name = self._read_n_bytes_as_string(length)
            version = self._read_unsigned_int()
            self._types_table.append([Type(TypeVariant.STRING, string_value=class_name)])
            out.append(ArchivableClass(Class(class_name, version)))
            parent = self._read_class()
            if isinstance(parent, list):
                out.extend(parent)
        elif current == EMPTY:
            self._index += 1
        else:
            return self._read_pointer()
        return out

    def _read_embedded_data(self) -> Optional[Archivable]:
        self._index += 1
        types = self._get_types(embedded=True)
        if types:
            return self._read_types(types)
        return None

    def _get_types(self, embedded: bool) -> Optional[list[Type]]:
        first = self._current_byte()
        self._log(1, "checking first byte %x for type at %x", first, self._index)
        if first == START:
            self._index += 1
            component_types = self._read_type()
            if embedded:
                # Embedded data is kept as a C string in the object table
                self._objects.append(ArchivableTypes(component_types))
                self._seen_embedded_types.add(max(0, len(self._objects) - 1))
            self._types_table.append(component_types)
            return component_types
        if first == END:
            return None
        while self._current_byte() == self._next_byte():
            self._index += 1
        ref_tag = self._read_pointer()
        types_from_table = None
        if ref_tag < len(self._types_table):
            types_from_table = self._types_table[ref_tag]
        if embedded and types_from_table is not None:
            # Only the first reference to an embed goes into the object table
            if ref_tag not in self._seen_embedded_types:
                self._objects.append(ArchivableTypes(types_from_table))
                self._seen_embedded_types.add(ref_tag)
        return types_from_table

    def _read_pointer(self) -> int:
        pointer = self._current_byte()
        if pointer < REFERENCE_TAG:
            raise TypedStreamError(
                f"pointer ({pointer:x}) was less than reference tag ({REFERENCE_TAG:x}) "
                f"at index {self._index:x}"
            )
        self._index += 1
        return pointer - REFERENCE_TAG

    def _read_type(self) -> list[Type]:
        length = self._read_unsigned_int()
        type_bytes = self._read_n_bytes(length)
        if not type_bytes:
            raise TypedStreamError("empty type descriptor")
        if type_bytes[0] == ARRAY:
            rest = type_bytes[1:]
            digits = []
            for byte in rest:
                if not 0x30 <= byte <= 0x39:
                    break
                digits.append(chr(byte))
            array_length = int("".join(digits)) if digits else 0
            if array_length == 0:
                raise TypedStreamError(
                    f"zero length array found reading bytes for type: "
                    f"{rest.decode('utf-8', errors='replace')}"
                )
            return [Type(TypeVariant.ARRAY, array_size=array_length)]
        return [byte_to_type(byte) for byte in type_bytes]

    def _read_string(self) -> str:
        return self._read_n_bytes_as_string(self._read_unsigned_int())

    def _read_n_bytes_as_string(self, n: int) -> str:
        return self._read_n_bytes(n).decode("utf-8", errors="replace")

    def _read_unsigned_int(self) -> int:
        first = self._current_byte()
        self._index += 1
        if first == I_16:
            return struct.unpack("<H", self._read_n_bytes(2))[0]
        if first == I_32:
            return struct.unpack("<I", self._read_n_bytes(4))[0]
        return first

    def _read_signed_int(self) -> int:
        first = self._current_byte()
        self._index += 1
        if first == I_16:
            return struct.unpack("<h", self._read_n_bytes(2))[0]
        if first == I_32:
            return struct.unpack("<i", self._read_n_bytes(4))[0]
        if first > REFERENCE_TAG and self._current_byte() != END:
            return self._read_signed_int()
        return first - 256 if first >= 0x80 else first

    def _read_float(self) -> float:
        type_byte = self._current_byte()
        if type_byte == DECIMAL:
            self._index += 1
            return struct.unpack("<f", self._read_n_bytes(4))[0]
        if type_byte not in (I_16, I_32):
            self._index += 1
        value = self._read_signed_int()
        return struct.unpack("<f", struct.pack("<f", float(value)))[0]

    def _read_double(self) -> float:
        type_byte = self._current_byte()
        if type_byte == DECIMAL:
            self._index += 1
            return struct.unpack("<d", self._read_n_bytes(8))[0]
        if type_byte not in (I_16, I_32):
            self._index += 1
        return float(self._read_signed_int())

    def _next_byte(self) -> int:
        next_index = self._index + 1
        if next_index < self._length:
            return self._data[next_index]
        raise TypedStreamError(
            f"next byte index {next_index} out of range of encoded bytes ({self._length})"
        )

    def _read_n_bytes(self, n: int) -> bytes:
        start = self._index
        end = start + n
        if end < self._length:
            self._index = end
            return self._data[start:end]
        raise TypedStreamError(f"end index {end} out of range of encoded bytes ({self._length})")

    def _current_byte(self) -> int:
        if self._index < self._length:
            return self._data[self._index]
        raise TypedStreamError(
            f"index {self._index} out of range of encoded bytes ({self._length})"
        )


def decode_typed_stream_components(encoded: bytes) -> list[Archivable]:
    """Decode the components of a typedstream, raising TypedStreamError on failure."""
    decoder = TypedStreamDecoder(encoded)
    try:
        return decoder.decode_components()
    except TypedStreamError as exc:
        raise TypedStreamError(f"decoding components: {exc}\n{decoder.dump()}") from exc
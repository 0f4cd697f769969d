# Based on androguard's code https://androguard.readthedocs.io/en/latest/intro/axml.html

import re
import binascii
from struct import pack, unpack
from typing import Callable, Iterator, List, NamedTuple, Tuple, Union

from loguru import logger
from lxml import etree

from axmldec import public
from axmldec.bytereader import ByteReader
from axmldec.errors import (
    DuplicateAttribute,
    MalformedChunk,
    ResParserError,
    StringIndexOutOfBounds,
    StructuralMismatch,
    UnsupportedEncoding,
)
from axmldec.internal_types import *

# Chunk types of binary XML files
# see http://aospxref.com/android-13.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#233
RES_NULL_TYPE = 0x0000
RES_STRING_POOL_TYPE = 0x0001
RES_TABLE_TYPE = 0x0002
RES_XML_TYPE = 0x0003

RES_XML_FIRST_CHUNK_TYPE = 0x0100
RES_XML_START_NAMESPACE_TYPE = 0x0100
RES_XML_END_NAMESPACE_TYPE = 0x0101
RES_XML_START_ELEMENT_TYPE = 0x0102
RES_XML_END_ELEMENT_TYPE = 0x0103
RES_XML_CDATA_TYPE = 0x0104
RES_XML_LAST_CHUNK_TYPE = 0x017F

RES_XML_RESOURCE_MAP_TYPE = 0x0180

# Flags in the STRING Section
SORTED_FLAG = 1 << 0
UTF8_FLAG = 1 << 8
KNOWN_STRING_FLAGS = SORTED_FLAG | UTF8_FLAG

# ResStringPool_header and ResXMLTree_node sizes
STRING_POOL_HEADER_SIZE = 0x1C
XML_NODE_HEADER_SIZE = 0x10

# ResXMLTree_attribute: ns, name, rawValue, Res_value(size, res0, dataType, data)
ATTRIBUTE_SIZE = 20

# End of a span list in the style table
STYLE_SPAN_END = 0xFFFFFFFF

RADIX_MULTS = [1.0 / (1 << 8), 1.0 / (1 << 15), 1.0 / (1 << 23), 1.0 / (1 << 31)]
DIMENSION_UNITS = ["px", "dp", "sp", "pt", "in", "mm"]
FRACTION_UNITS = ["%", "%p"]

CHUNK_NAMES = {
    RES_NULL_TYPE: "RES_NULL_TYPE",
    RES_STRING_POOL_TYPE: "RES_STRING_POOL_TYPE",
    RES_TABLE_TYPE: "RES_TABLE_TYPE",
    RES_XML_TYPE: "RES_XML_TYPE",
    RES_XML_START_NAMESPACE_TYPE: "RES_XML_START_NAMESPACE_TYPE",
    RES_XML_END_NAMESPACE_TYPE: "RES_XML_END_NAMESPACE_TYPE",
    RES_XML_START_ELEMENT_TYPE: "RES_XML_START_ELEMENT_TYPE",
    RES_XML_END_ELEMENT_TYPE: "RES_XML_END_ELEMENT_TYPE",
    RES_XML_CDATA_TYPE: "RES_XML_CDATA_TYPE",
    RES_XML_RESOURCE_MAP_TYPE: "RES_XML_RESOURCE_MAP_TYPE",
}


def _optional(index: int) -> Union[int, None]:
    return None if index == NO_ENTRY else index


class ARSCHeader:
    """
    Object which contains a Resource Chunk.
    This is an implementation of the `ResChunk_header`.

    The header is checked against the window of the reader it is read from:
    a chunk must fit completely into its parent, otherwise a
    [MalformedChunk][axmldec.errors.MalformedChunk] is raised.

    The parameter `expected_type` can be used to immediately check the header for the type.
    This is useful if you know what type of chunk must follow.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#196
    """

    # This is the minimal size such a header must have. There might be other header data too!
    SIZE = 2 + 2 + 4

    def __init__(
        self,
        reader: ByteReader,
        expected_type: Union[int, None] = None
    ) -> None:
        """
        :raises UnexpectedEof: if less than 8 bytes are left
        :raises MalformedChunk: if header malformed
        :param reader: the reader set to the position where the header starts.
        :param int expected_type: the type of the header which is expected.
        """
        self.start = reader.position()
        self._type = reader.read_u16()
        self._header_size = reader.read_u16()
        self._size = reader.read_u32()
        logger.debug("ARSCHeader init: {}", self)

        if expected_type is not None and self._type != expected_type:
            raise MalformedChunk(
                "Header type is not equal the expected type: Got 0x{:04x}, wanted 0x{:04x}".format(
                    self._type, expected_type
                ),
                self.start,
            )

        # Assert that the read data will fit into the chunk.
        # The total size must be equal or larger than the header size
        if self._header_size < self.SIZE:
            raise MalformedChunk(
                "declared header size ({}) is smaller than required size of {}!".format(
                    self._header_size, self.SIZE
                ),
                self.start,
            )
        if self._size < self._header_size:
            raise MalformedChunk(
                "declared chunk size ({}) is smaller than header size ({})!".format(
                    self._size, self._header_size
                ),
                self.start,
            )
        if self.get_end() > reader.end:
            raise MalformedChunk(
                "declared chunk size ({}) exceeds the available {} bytes!".format(
                    self._size, reader.end - self.start
                ),
                self.start,
            )

    def get_type(self) -> int:
        """
        Type identifier for this chunk
        """
        return self._type

    def get_header_size(self) -> int:
        """
        Size of the chunk header (in bytes).  Adding this value to
        the address of the chunk allows you to find its associated data
        (if any).
        """
        return self._header_size

    def get_size(self) -> int:
        """
        Total size of this chunk (in bytes).  This is the chunkSize plus
        the size of any data associated with the chunk.  Adding this value
        to the chunk allows you to completely skip its contents (including
        any child chunks).
        """
        return self._size

    def get_body_start(self) -> int:
        return self.start + self._header_size

    def get_end(self) -> int:
        """
        Get the absolute offset inside the file, where the chunk ends.
        This is equal to `ARSCHeader.start + ARSCHeader.get_size()`.
        """
        return self.start + self._size

    def __repr__(self):
        return "<ARSCHeader idx='0x{:08x}' type='{}' header_size='{}' size='{}'>".format(
            self.start,
            CHUNK_NAMES.get(self._type, "0x{:04x}".format(self._type)),
            self._header_size,
            self._size,
        )


class StringBlock:
    """
    StringBlock is a CHUNK inside an AXML File: `ResStringPool_header`
    It contains all strings, which are used by referencing to ID's

    All strings are decoded eagerly; the block is read-only afterwards.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#436
    """

    def __init__(self, reader: ByteReader, header: ARSCHeader) -> None:
        """
        :param reader: reader which holds the string block
        :param header: a instance of [ARSCHeader][axmldec.axml_parse.ARSCHeader]
        """
        self.header = header
        if header.get_header_size() < STRING_POOL_HEADER_SIZE:
            raise MalformedChunk(
                "String pool header size ({}) is smaller than {}".format(
                    header.get_header_size(), STRING_POOL_HEADER_SIZE
                ),
                header.start,
            )

        chunk = reader.sub_reader(header.start, header.get_end())
        chunk.seek(header.start + ARSCHeader.SIZE)

        self.stringCount = chunk.read_u32()
        self.styleCount = chunk.read_u32()
        self.flags = chunk.read_u32()
        self.m_isUTF8 = (self.flags & UTF8_FLAG) != 0
        # Offsets are counted from the beginning of the chunk
        self.stringsOffset = chunk.read_u32()
        self.stylesOffset = chunk.read_u32()

        logger.debug(
            "stringCount: {}, styleCount: {}, flags: 0x{:x}, stringsOffset: {}, stylesOffset: {}",
            self.stringCount,
            self.styleCount,
            self.flags,
            self.stringsOffset,
            self.stylesOffset,
        )

        if self.flags & ~KNOWN_STRING_FLAGS:
            raise UnsupportedEncoding(
                "Unknown string pool flags 0x{:08x}".format(self.flags),
                header.start + ARSCHeader.SIZE + 8,
            )
        if self.flags & SORTED_FLAG:
            logger.info("String pool is marked as sorted. This is not checked.")

        # Check if they supplied a stylesOffset even if the count is 0:
        if self.styleCount == 0 and self.stylesOffset > 0:
            logger.info(
                "Styles Offset given, but styleCount is zero. "
                "This is not a problem but could indicate packers."
            )

        # Next, there is a list of string following.
        # This is only a list of offsets (4 byte each)
        chunk.seek(header.get_body_start())
        self.m_stringOffsets = [chunk.read_u32() for _ in range(self.stringCount)]
        # And a list of styles
        # again, a list of offsets
        self.m_styleOffsets = [chunk.read_u32() for _ in range(self.styleCount)]

        self.strings = self._read_strings(chunk)
        self.styles = self._read_styles(chunk)

    def __repr__(self):
        return "<StringPool #strings={}, #styles={}, UTF8={}>".format(
            self.stringCount, self.styleCount, self.m_isUTF8
        )

    def __getitem__(self, idx: int) -> str:
        """
        Returns the string at the index in the string table

        :returns: the string
        """
        return self.get(idx)

    def __len__(self):
        """
        Get the number of strings stored in this table

        :return: the number of strings
        """
        return len(self.strings)

    def __iter__(self):
        return iter(self.strings)

    def get(self, idx: int, offset: Union[int, None] = None) -> str:
        """
        Return the string at the index in the string table

        :param idx: index in the string table
        :param offset: position of the chunk which asks for the string, used for errors
        :raises StringIndexOutOfBounds: if the index does not exist
        """
        if idx < 0 or idx >= len(self.strings):
            raise StringIndexOutOfBounds(
                "String index {} is outside of the string pool with {} entries".format(
                    idx, len(self.strings)
                ),
                offset,
            )
        return self.strings[idx]

    def _strings_region(self) -> Tuple[int, int]:
        """
        Get the absolute `[start, end)` of the string data.
        If there are styles as well, we do not want to read them too.
        """
        start = self.header.start + self.stringsOffset
        end = self.header.get_end()
        if self.stylesOffset != 0 and self.styleCount != 0:
            end = self.header.start + self.stylesOffset
        if self.stringCount and not (self.header.get_body_start() <= start <= end <= self.header.get_end()):
            raise MalformedChunk(
                "String data [0x{:x}, 0x{:x}) does not fit into the string pool chunk".format(
                    start, end
                ),
                self.header.start,
            )
        return start, end

    def _read_strings(self, chunk: ByteReader) -> List[str]:
        if not self.stringCount:
            return []

        start, end = self._strings_region()
        if (end - start) % 4 != 0:
            logger.warning("Size of strings is not aligned by four bytes.")

        data = chunk.sub_reader(start, end)
        strings = []
        for i, offset in enumerate(self.m_stringOffsets):
            if offset >= end - start:
                raise StringIndexOutOfBounds(
                    "Offset 0x{:x} of string {} points outside of the string data".format(
                        offset, i
                    ),
                    self.header.get_body_start() + 4 * i,
                )
            data.seek(start + offset)
            if self.m_isUTF8:
                strings.append(self._decode8(data))
            else:
                strings.append(self._decode16(data))
            logger.debug("string[{}]: {!r}", i, strings[-1])
        return strings

    def _read_styles(self, chunk: ByteReader) -> List[List[Tuple[int, int, int]]]:
        """
        Read the span lists of the style table. They are not used for the
        output, so a broken table is only logged.
        """
        if not self.styleCount or not self.stylesOffset:
            return []

        start = self.header.start + self.stylesOffset
        end = self.header.get_end()
        if not self.header.get_body_start() <= start <= end:
            logger.warning("Styles offset 0x{:x} is outside of the string pool", self.stylesOffset)
            return []
        if (end - start) % 4 != 0:
            logger.warning("Size of styles is not aligned by four bytes.")

        data = chunk.sub_reader(start, end)
        styles = []
        for i, offset in enumerate(self.m_styleOffsets):
            spans = []
            if offset >= end - start:
                logger.warning("Offset of style {} points outside of the style data", i)
                styles.append(spans)
                continue
            data.seek(start + offset)
            while True:
                if data.remaining() < 4:
                    logger.warning("Span list of style {} is not terminated", i)
                    break
                name = data.read_u32()
                if name == STYLE_SPAN_END:
                    break
                if data.remaining() < 8:
                    logger.warning("Span list of style {} is truncated", i)
                    break
                spans.append((name, data.read_u32(), data.read_u32()))
            styles.append(spans)
        return styles

    def _decode8(self, data: ByteReader) -> str:
        """
        Decode an UTF-8 String at the current position

        :param data: reader positioned at the length of the string
        :return: the decoded string
        """
        # UTF-8 Strings contain two lengths, as they might differ:
        # 1) the UTF-16 length
        str_len = self._decode_length(data, 1)
        # 2) the utf-8 string length
        encoded_bytes = self._decode_length(data, 1)

        position = data.position()
        raw = data.read_bytes(encoded_bytes)
        # platform/frameworks/base/libs/androidfw/ResourceTypes.cpp#789
        if data.remaining() < 1 or data.read_u8() != 0:
            logger.warning(
                "UTF-8 String is not null terminated! At offset=0x{:x}", position
            )

        return self._decode_bytes(raw, 'utf-8', str_len)

    def _decode16(self, data: ByteReader) -> str:
        """
        Decode an UTF-16 String at the current position

        :param data: reader positioned at the length of the string
        :return: the decoded string
        """
        # The len is the string len in utf-16 units
        str_len = self._decode_length(data, 2)

        position = data.position()
        raw = data.read_bytes(str_len * 2)
        if data.remaining() < 2 or data.read_u16() != 0:
            logger.warning(
                "UTF-16 String is not null terminated! At offset=0x{:x}", position
            )

        return self._decode_bytes(raw, 'utf-16-le', str_len)

    @staticmethod
    def _decode_bytes(data: bytes, encoding: str, str_len: int) -> str:
        """
        Generic decoding with length check.
        The string is decoded from bytes with the given encoding, then the length
        of the string (in UTF-16 units) is checked.
        The string is decoded using the "replace" method.

        :param data: bytes
        :param encoding: encoding name ("utf-8" or "utf-16-le")
        :param str_len: length of the decoded string in UTF-16 units
        :return: the decoded bytes
        """
        string = data.decode(encoding, 'replace')
        if len(string.encode('utf-16-le', 'surrogatepass')) // 2 != str_len:
            logger.warning("invalid decoded string length")
        return string

    @staticmethod
    def _decode_length(data: ByteReader, sizeof_char: int) -> int:
        """
        Generic Length Decoding at the position of the string

        The method works for both 8 and 16 bit Strings.
        If the high bit of the first unit is set, a second unit follows and
        both form the length: 15 bit + 8 bit for 8 bit strings (max 0x7FFF),
        15 bit + 16 bit for 16 bit strings (max 0x7FFFFFFF).

        :param data: reader positioned at the length
        :param sizeof_char: number of bytes per char (1 = 8bit, 2 = 16bit)
        :returns: the length
        """
        read = data.read_u8 if sizeof_char == 1 else data.read_u16
        highbit = 0x80 << (8 * (sizeof_char - 1))

        length = read()
        if length & highbit:
            length = ((length & (highbit - 1)) << (8 * sizeof_char)) | read()
        return length


class ResourceMap:
    """
    The `RES_XML_RESOURCE_MAP_TYPE` chunk.

    It contains a uint32_t array mapping strings in the string pool back to
    resource identifiers: the i-th ID belongs to the i-th string.
    """

    def __init__(self, reader: ByteReader, header: ARSCHeader) -> None:
        body_size = header.get_size() - header.get_header_size()
        if body_size % 4 != 0:
            raise MalformedChunk(
                "Invalid chunk size in chunk XML_RESOURCE_MAP, body of {} bytes is not aligned".format(
                    body_size
                ),
                header.start,
            )
        reader.seek(header.get_body_start())
        self.ids = tuple(reader.read_u32() for _ in range(body_size // 4))
        logger.debug("resource map with {} IDs", len(self.ids))

    def __repr__(self):
        return "<ResourceMap #ids={}>".format(len(self.ids))

    def __len__(self):
        return len(self.ids)

    def __getitem__(self, idx: int) -> int:
        return self.ids[idx]

    def __iter__(self):
        return iter(self.ids)

    def resource_id(self, idx: int) -> Union[int, None]:
        if 0 <= idx < len(self.ids):
            return self.ids[idx]
        return None


class NamespaceFrame(NamedTuple):
    prefix_index: Union[int, None]
    uri_index: int


class Attribute(NamedTuple):
    namespace_index: Union[int, None]
    name_index: int
    raw_value_index: Union[int, None]
    value_type: int
    data: int


class StartNamespace(NamedTuple):
    offset: int
    line_number: int
    comment_index: Union[int, None]
    prefix_index: Union[int, None]
    uri_index: int


class EndNamespace(NamedTuple):
    offset: int
    line_number: int
    comment_index: Union[int, None]
    prefix_index: Union[int, None]
    uri_index: int


class StartElement(NamedTuple):
    offset: int
    line_number: int
    comment_index: Union[int, None]
    namespace_index: Union[int, None]
    name_index: int
    attributes: Tuple[Attribute, ...]
    # 1-based indices of the id, class and style attributes, 0 if none
    id_index: int
    class_index: int
    style_index: int


class EndElement(NamedTuple):
    offset: int
    line_number: int
    comment_index: Union[int, None]
    namespace_index: Union[int, None]
    name_index: int


class CData(NamedTuple):
    offset: int
    line_number: int
    comment_index: Union[int, None]
    data_index: int
    value_type: int
    data: int


Node = Union[StartNamespace, EndNamespace, StartElement, EndElement, CData]


class AXMLParser:
    """
    `AXMLParser` reads through all chunks in the AXML file
    and yields the XML nodes, which can then be assembled by
    [AXMLPrinter][axmldec.axml_parse.AXMLPrinter].

    An AXML file is a file which contains multiple chunks of data, defined
    by the `ResChunk_header`.
    There is no real file magic but as the size of the first header is fixed
    and the `type` of the `ResChunk_header` is set to `RES_XML_TYPE`, a file
    will usually start with `0x03000800`.
    But there are several examples where the `type` is set to something
    else, probably in order to fool parsers.

    Iterating over the parser walks the chunks once and yields the node
    records in document order.
    The string pool and the resource map are not yielded, they are stored
    in `strings` and `resource_map` while walking.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#563
    """

    def __init__(self, raw_buff: bytes) -> None:
        logger.debug("AXMLParser")

        self.axml_tampered = False
        self.packerwarning = False
        self.reader = ByteReader(raw_buff)
        self.buff_size = self.reader.remaining()

        self.strings = None
        self.resource_map = None

        if bytes(raw_buff[:4]) == b"<?xm":
            # Can be a common error: the file is not an AXML but a plain XML
            # The header size will then be 28024 / '3C 3F 78 6D'
            logger.warning("Are you trying to parse a plain XML file?")

        self.axml_header = ARSCHeader(self.reader)
        logger.debug("FIRST HEADER {}", self.axml_header)

        if self.axml_header.get_end() < self.buff_size:
            # The file can still be parsed up to the point where the chunk should end.
            self.axml_tampered = True
            logger.warning(
                "Declared filesize ({}) is smaller than total file size ({}). "
                "Was something appended to the file? Trying to parse it anyways.",
                self.axml_header.get_size(),
                self.buff_size,
            )

        # Not that severe of an error, we have plenty files where this is not
        # set correctly
        if self.axml_header.get_type() != RES_XML_TYPE:
            self.axml_tampered = True
            logger.warning(
                "AXML file has an unusual resource type! "
                "But we try to parse it anyways. Resource Type: 0x{:04x}",
                self.axml_header.get_type(),
            )

    def __iter__(self) -> Iterator[Node]:
        return self._walk(self.axml_header)

    def _walk(self, parent: ARSCHeader) -> Iterator[Node]:
        """
        Walk over the children of `parent`. After every child the reader is set
        to the declared end of that child, no matter how much was consumed.

        Nested XML chunks are walked with an explicit stack of readers, one
        per open chunk, so the nesting depth is only bounded by the input.
        """
        stack = [self.reader.sub_reader(parent.get_body_start(), parent.get_end())]
        while stack:
            reader = stack[-1]
            if reader.remaining() == 0:
                stack.pop()
                continue

            h = ARSCHeader(reader)
            chunk_type = h.get_type()
            logger.debug("NEXT HEADER {}", h)

            if chunk_type == RES_XML_TYPE:
                logger.debug("Nested XML chunk at 0x{:08x}", h.start)
                stack.append(reader.sub_reader(h.get_body_start(), h.get_end()))

            elif chunk_type == RES_STRING_POOL_TYPE:
                if self.strings is not None:
                    raise MalformedChunk("AXML contains a second string pool", h.start)
                self.strings = StringBlock(reader, h)
                logger.debug("STRING_POOL {}", self.strings)

            elif chunk_type == RES_XML_RESOURCE_MAP_TYPE:
                # Special chunk: Resource Map. This chunk might be contained inside
                # the file, after the string pool.
                if self.resource_map is not None:
                    raise MalformedChunk("AXML contains a second resource map", h.start)
                self.resource_map = ResourceMap(reader, h)

            elif RES_XML_FIRST_CHUNK_TYPE <= chunk_type <= RES_XML_LAST_CHUNK_TYPE:
                node = self._read_node(reader.sub_reader(h.start, h.get_end()), h)
                if node is not None:
                    yield node

            else:
                # unknown chunk types might cause problems, but we can skip them!
                logger.warning(
                    "Not a XML resource chunk type: 0x{:04x}. Skipping {} bytes",
                    chunk_type,
                    h.get_size(),
                )

            reader.seek(h.get_end())

    def _read_node(self, chunk: ByteReader, h: ARSCHeader) -> Union[Node, None]:
        chunk_type = h.get_type()
        if chunk_type not in (
            RES_XML_START_NAMESPACE_TYPE,
            RES_XML_END_NAMESPACE_TYPE,
            RES_XML_START_ELEMENT_TYPE,
            RES_XML_END_ELEMENT_TYPE,
            RES_XML_CDATA_TYPE,
        ):
            # Still here? Looks like we read an unknown XML header, try to skip it...
            logger.warning(
                "Unknown XML Chunk: 0x{:04x}, skipping {} bytes.",
                chunk_type,
                h.get_size(),
            )
            return None

        # Check that we read a correct header
        if h.get_header_size() < XML_NODE_HEADER_SIZE:
            raise MalformedChunk(
                "XML Resource Type Chunk header size is smaller than 16! "
                "At chunk type 0x{:04x}, declared header size=0x{:04x}".format(
                    chunk_type, h.get_header_size()
                ),
                h.start,
            )
        if self.strings is None:
            raise StringIndexOutOfBounds(
                "XML node references strings before the string pool", h.start
            )

        chunk.seek(h.start + ARSCHeader.SIZE)
        # Line Number of the source file, only used as meta information
        line_number = chunk.read_u32()
        # Comment_Index (usually 0xFFFFFFFF)
        comment_index = _optional(chunk.read_u32())
        chunk.seek(h.get_body_start())

        if chunk_type in (RES_XML_START_NAMESPACE_TYPE, RES_XML_END_NAMESPACE_TYPE):
            if comment_index is not None:
                logger.info("Unhandled Comment at namespace chunk at 0x{:08x}", h.start)
            prefix = _optional(chunk.read_u32())
            uri = chunk.read_u32()
            cls = StartNamespace if chunk_type == RES_XML_START_NAMESPACE_TYPE else EndNamespace
            return cls(h.start, line_number, comment_index, prefix, uri)

        if chunk_type == RES_XML_START_ELEMENT_TYPE:
            return self._read_start_element(chunk, h, line_number, comment_index)

        if chunk_type == RES_XML_END_ELEMENT_TYPE:
            namespace_uri = _optional(chunk.read_u32())
            name = chunk.read_u32()
            return EndElement(h.start, line_number, comment_index, namespace_uri, name)

        # The CDATA field is like an attribute.
        # It contains an index into the String pool
        # as well as a typed value, usually set to UNDEFINED
        data_index = chunk.read_u32()
        chunk.skip(3)  # size, res0
        data_type = chunk.read_u8()
        data = chunk.read_u32()
        logger.debug(
            "found a CDATA Chunk: index={}, dataType={}, data={}",
            data_index, data_type, data
        )
        return CData(h.start, line_number, comment_index, data_index, data_type, data)

    def _read_start_element(
        self,
        chunk: ByteReader,
        h: ARSCHeader,
        line_number: int,
        comment_index: Union[int, None]
    ) -> StartElement:
        # The TAG consists of some fields:
        # * namespace_uri, name
        # * attribute_start, attribute_size, attribute_count
        # * id_index, class_index, style_index
        # After that, there is the list of attributes
        namespace_uri = _optional(chunk.read_u32())
        name = chunk.read_u32()
        at_start = chunk.read_u16()
        at_size = chunk.read_u16()
        at_count = chunk.read_u16()
        id_index = chunk.read_u16()
        class_index = chunk.read_u16()
        style_index = chunk.read_u16()
        logger.debug(
            "START_TAG name={} at_start={} at_size={} at_count={}",
            name, at_start, at_size, at_count
        )

        if at_count and at_size < ATTRIBUTE_SIZE:
            raise MalformedChunk(
                "Attribute size {} is smaller than {}".format(at_size, ATTRIBUTE_SIZE),
                h.start,
            )

        # Each Attribute contains:
        # * Namespace URI (String ID)
        # * Name (String ID)
        # * Raw Value (String ID)
        # * Res_value: size, res0, type, data
        attributes = []
        for i in range(at_count):
            chunk.seek(h.get_body_start() + at_start + i * at_size)
            attr_ns = _optional(chunk.read_u32())
            attr_name = chunk.read_u32()
            raw_value = _optional(chunk.read_u32())
            chunk.skip(3)  # size, res0
            value_type = chunk.read_u8()
            data = chunk.read_u32()
            attributes.append(Attribute(attr_ns, attr_name, raw_value, value_type, data))

        return StartElement(
            h.start,
            line_number,
            comment_index,
            namespace_uri,
            name,
            tuple(attributes),
            id_index,
            class_index,
            style_index,
        )

    def get_string(self, idx: int, offset: Union[int, None] = None) -> str:
        """
        Return the string for an index of the string pool

        :param idx: index in the string pool
        :param offset: offset of the chunk which refers to the string
        :raises StringIndexOutOfBounds: if there is no such string or no pool at all
        """
        if self.strings is None:
            raise StringIndexOutOfBounds("No string pool was read", offset)
        return self.strings.get(idx, offset)

    def get_attribute_name(self, attr: Attribute, offset: Union[int, None] = None) -> Tuple[str, Union[int, None]]:
        """
        Returns the String which represents the attribute name and the
        resource ID of the attribute, if the resource map has one.

        If the resource ID is a known framework attribute, the framework name
        wins over the string pool, as packers like to rename them.
        """
        res = self.get_string(attr.name_index, offset)
        attr_id = None
        if self.resource_map is not None:
            attr_id = self.resource_map.resource_id(attr.name_index)

        if attr_id is not None:
            system_name = public.SYSTEM_RESOURCES['attributes']['inverse'].get(attr_id)
            if system_name is not None:
                if system_name != res:
                    logger.warning(
                        "Attribute name '{}' does not match the framework name '{}' of 0x{:08x}",
                        res, system_name, attr_id
                    )
                    self.packerwarning = True
                res = system_name

        if not res or res == ":":
            # Attach the HEX Number, so for multiple missing attributes we do not run
            # into problems.
            if attr_id is not None:
                res = 'UNKNOWN_SYSTEM_ATTRIBUTE_{:08x}'.format(attr_id)
            else:
                res = 'UNKNOWN_ATTRIBUTE_{:08x}'.format(attr.name_index)
            self.packerwarning = True
        return res, attr_id


def _format_float32(value: float) -> str:
    """
    Shortest decimal representation which reads back as the same 32 bit float
    """
    if value != value:
        return "NaN"
    if value in (float("inf"), float("-inf")):
        return "Infinity" if value > 0 else "-Infinity"

    value = unpack("<f", pack("<f", value))[0]
    for precision in range(1, 10):
        shortest = float("%.*g" % (precision, value))
        if unpack("<f", pack("<f", shortest))[0] == value:
            break
    return repr(shortest)


def format_float(_data: int) -> str:
    return _format_float32(unpack("<f", pack("<I", _data))[0])


def complex_to_float(xcomplex: int) -> float:
    """
    Convert a complex (dimension or fraction) value to a float.
    The mantissa lives in the upper 24 bits, the radix in bits 4-5.
    """
    mantissa = xcomplex & (COMPLEX_MANTISSA_MASK << COMPLEX_MANTISSA_SHIFT)
    if mantissa & 0x80000000:
        mantissa -= 1 << 32
    return mantissa * RADIX_MULTS[(xcomplex >> COMPLEX_RADIX_SHIFT) & COMPLEX_RADIX_MASK]


def _format_raw(_data: int) -> str:
    return "0x{:08x}".format(_data)


def format_value(
    _type: int, _data: int, lookup_string: Callable[[int], str] = lambda ix: "<string>"
) -> str:
    """
    Format a value based on type and data.
    By default, no strings are looked up and `"<string>"` is returned.
    You need to define `lookup_string` in order to actually lookup strings from
    the string table.

    Unknown types never fail, they are printed as raw hex.

    :param _type: The numeric type of the value
    :param _data: The numeric data of the value
    :param lookup_string: A function how to resolve strings from integer IDs
    :returns: the formatted string
    """

    # Function to represent integers
    fmt_int = lambda x: (0x7FFFFFFF & x) - 0x80000000 if x > 0x7FFFFFFF else x

    if _type == TYPE_NULL:
        return ""

    elif _type == TYPE_STRING:
        return lookup_string(_data)

    elif _type == TYPE_ATTRIBUTE:
        return "?0x{:08x}".format(_data)

    elif _type == TYPE_REFERENCE:
        return "@0x{:08x}".format(_data)

    elif _type == TYPE_FLOAT:
        return format_float(_data)

    elif _type == TYPE_INT_DEC:
        return "%d" % fmt_int(_data)

    elif _type == TYPE_INT_HEX:
        return "0x%08x" % _data

    elif _type == TYPE_INT_BOOLEAN:
        if _data == 0:
            return "false"
        return "true"

    elif _type == TYPE_DIMENSION:
        unit = _data & COMPLEX_UNIT_MASK
        if unit >= len(DIMENSION_UNITS):
            return _format_raw(_data)
        return "{}{}".format(_format_float32(complex_to_float(_data)), DIMENSION_UNITS[unit])

    elif _type == TYPE_FRACTION:
        unit = _data & COMPLEX_UNIT_MASK
        if unit >= len(FRACTION_UNITS):
            return _format_raw(_data)
        return "{}{}".format(_format_float32(complex_to_float(_data) * 100), FRACTION_UNITS[unit])

    elif _type == TYPE_INT_COLOR_ARGB8:
        return "#%08x" % _data

    elif _type == TYPE_INT_COLOR_RGB8:
        return "#%06x" % (_data & 0xFFFFFF)

    elif _type == TYPE_INT_COLOR_ARGB4:
        return "#%x%x%x%x" % (
            (_data >> 28) & 0xF, (_data >> 20) & 0xF, (_data >> 12) & 0xF, (_data >> 4) & 0xF
        )

    elif _type == TYPE_INT_COLOR_RGB4:
        return "#%x%x%x" % ((_data >> 20) & 0xF, (_data >> 12) & 0xF, (_data >> 4) & 0xF)

    logger.debug("Unknown value type 0x{:02x}, data 0x{:08x}", _type, _data)
    return _format_raw(_data)


class AXMLPrinter:
    """
    Converter for AXML Files into a lxml ElementTree, which can easily be
    converted into XML.

    The printer keeps the namespace scope and the stack of open elements.
    Broken nesting (an end chunk that does not match) is not fatal: it is
    logged and collected in `warnings`, and the open frame is closed anyway.
    Every other problem raises a [ResParserError][axmldec.errors.ResParserError].

    A Reference Implementation can be found at http://androidxref.com/9.0.0_r3/xref/frameworks/base/tools/aapt/XMLNode.cpp
    """

    __charrange = None
    __replacement = None

    def __init__(self, raw_buff: bytes) -> None:
        logger.debug("AXMLPrinter")

        self.root = None
        self.packerwarning = False
        self.warnings = []

        # NamespaceFrames in scope, and the ones not yet declared on an element
        self._namespaces = []
        self._pending = []
        # string index -> cleaned namespace URI
        self._uris = dict()
        # (StartElement, etree element) of all open elements
        self._elements = []

        try:
            self.axml = AXMLParser(raw_buff)
            for node in self.axml:
                if isinstance(node, StartNamespace):
                    self._start_namespace(node)
                elif isinstance(node, EndNamespace):
                    self._end_namespace(node)
                elif isinstance(node, StartElement):
                    self._start_element(node)
                elif isinstance(node, EndElement):
                    self._end_element(node)
                elif isinstance(node, CData):
                    self._text(node)
        except ResParserError as e:
            logger.error("Failed to decode binary XML: {}", e)
            raise

        if self.root is None:
            raise MalformedChunk("Binary XML does not contain any element", self.axml.axml_header.start)
        if self._elements:
            logger.warning(
                "{} elements were not closed! Malformed AXML?", len(self._elements)
            )
        # Check if all namespace mappings are closed
        if self._namespaces:
            logger.warning("Not all namespace mappings were closed! Malformed AXML?")

    def _record(self, error: ResParserError) -> None:
        logger.warning("{}", error)
        self.warnings.append(error)

    def _mismatch(self, message: str, offset: int) -> None:
        self._record(StructuralMismatch(message, offset))

    def _start_namespace(self, node: StartNamespace) -> None:
        s_prefix = ''
        if node.prefix_index is not None:
            s_prefix = self.axml.get_string(node.prefix_index, node.offset)
        s_uri = self.axml.get_string(node.uri_index, node.offset)
        logger.debug(
            "Start of Namespace mapping: prefix {}: '{}' --> uri {}: '{}'",
            node.prefix_index, s_prefix, node.uri_index, s_uri
        )
        if s_uri == '':
            logger.warning(
                "Namespace prefix '{}' resolves to empty URI. This might be a packer.",
                s_prefix,
            )

        frame = NamespaceFrame(node.prefix_index, node.uri_index)
        self._namespaces.append(frame)
        self._pending.append(frame)

    def _end_namespace(self, node: EndNamespace) -> None:
        if not self._namespaces:
            self._mismatch(
                "Reached a NAMESPACE_END without an open namespace. "
                "Prefix ID: {}, URI ID: {}".format(node.prefix_index, node.uri_index),
                node.offset,
            )
            return

        frame = self._namespaces.pop()
        if frame != NamespaceFrame(node.prefix_index, node.uri_index):
            self._mismatch(
                "NAMESPACE_END (prefix ID {}, URI ID {}) does not match the open "
                "namespace (prefix ID {}, URI ID {})".format(
                    node.prefix_index, node.uri_index, frame.prefix_index, frame.uri_index
                ),
                node.offset,
            )
        if self._pending and self._pending[-1] is frame:
            self._pending.pop()

    def get_nsmap(self) -> dict:
        """
        Returns the current namespace mapping as a dictionary

        there are several problems with the map and we try to guess a few
        things here:

        1) a URI can be mapped by many prefixes, so it is to decide which one to take
        2) a prefix might map to an empty string (some packers)
        3) uri+prefix mappings might be included several times
        4) prefix might be empty

        :returns: the namespace mapping dictionary
        """
        nsmap = dict()
        for frame in self._namespaces:
            if frame.prefix_index is None:
                continue
            s_prefix = self.axml.get_string(frame.prefix_index)
            s_uri = self._get_uri(frame.uri_index)
            # Solve 2) & 4) by not including
            if s_uri != "" and s_prefix != "":
                # solve 1) by using the innermost one
                nsmap[s_prefix] = s_uri
        return nsmap

    def _declarations(self) -> dict:
        """
        Get the nsmap of the namespaces started since the last element
        and mark them as declared.
        """
        nsmap = dict()
        for frame in self._pending:
            s_uri = self._get_uri(frame.uri_index)
            if s_uri == '':
                continue
            prefix = None
            if frame.prefix_index is not None:
                prefix = self._fix_prefix(self.axml.get_string(frame.prefix_index))
            nsmap[prefix] = s_uri
        self._pending = []
        return nsmap

    def _fix_prefix(self, prefix: str) -> Union[str, None]:
        if prefix == '':
            return None
        fixed = re.sub(r"[^a-zA-Z0-9._-]", "_", prefix)
        if not (fixed[0].isalpha() or fixed[0] == "_") or fixed.lower().startswith("xml"):
            fixed = "_{}".format(fixed)
        if fixed != prefix:
            logger.warning("Invalid namespace prefix '{}', using '{}'", prefix, fixed)
            self.packerwarning = True
        return fixed

    def _get_uri(self, namespace_index: Union[int, None], offset: Union[int, None] = None) -> str:
        """
        Get the cleaned namespace URI for a string index, '' for no namespace.
        Declarations and qualified names both get their URI from here.
        """
        if namespace_index is None:
            return ''
        if namespace_index not in self._uris:
            self._uris[namespace_index] = self._fix_uri(
                self.axml.get_string(namespace_index, offset)
            )
        return self._uris[namespace_index]

    def _fix_uri(self, uri: str) -> str:
        """
        lxml only accepts namespace URIs made of the characters RFC 3986 allows.
        Surrounding whitespace is dropped, every other invalid character and
        every broken percent escape is replaced by '_'.

        :param uri: the URI as found in the string pool
        :return: the cleaned URI
        """
        stripped = uri.strip()
        fixed = re.sub(r"[^A-Za-z0-9\-._~:/?#@!$&'()*+,;=%]", "_", stripped)
        fixed = re.sub(r"%(?![0-9A-Fa-f]{2})", "_", fixed)
        if fixed != stripped:
            logger.warning("Invalid namespace URI '{}', using '{}'", uri, fixed)
            self.packerwarning = True
        return fixed

    def _start_element(self, node: StartElement) -> None:
        if self.root is not None and not self._elements:
            raise MalformedChunk("Found a second root element", node.offset)

        uri = self._print_namespace(self._get_uri(node.namespace_index, node.offset))
        uri, name = self._fix_name(uri, self.axml.get_string(node.name_index, node.offset))
        tag = "{}{}".format(uri, name)
        logger.debug("START_TAG: {} (line={})", tag, node.line_number)

        nsmap = self._declarations()

        attributes = dict()
        for attr in node.attributes:
            a_uri = self._print_namespace(self._get_uri(attr.namespace_index, node.offset))
            a_name, attr_id = self.axml.get_attribute_name(attr, node.offset)
            if a_uri == '' and attr_id is not None and public.is_system_resource(attr_id):
                logger.info(
                    "Attribute '{}' is a framework attribute without namespace. "
                    "Putting it into the android namespace.",
                    a_name,
                )
                a_uri = self._print_namespace(public.ANDROID_NAMESPACE)
                if public.ANDROID_NAMESPACE not in list(self.get_nsmap().values()) + list(nsmap.values()):
                    nsmap.setdefault("android", public.ANDROID_NAMESPACE)
            a_uri, a_name = self._fix_name(a_uri, a_name)
            value = self._fix_value(self._get_attribute_value(attr, node.offset))

            key = "{}{}".format(a_uri, a_name)
            logger.debug("found an attribute: {}='{}'", key, value)
            if key in attributes:
                self._record(DuplicateAttribute(
                    "Duplicate attribute '{}' on '{}'! Will overwrite!".format(key, tag),
                    node.offset,
                ))
            attributes[key] = value

        comment = None
        if node.comment_index is not None:
            comment = self._fix_comment(self.axml.get_string(node.comment_index, node.offset))

        try:
            if self.root is None:
                if comment:
                    logger.warning(
                        "Can not attach comment with content '{}' without root!", comment
                    )
                elem = etree.Element(tag, nsmap=nsmap)
                self.root = elem
            else:
                parent = self._elements[-1][1]
                if comment:
                    parent.append(etree.Comment(comment))
                elem = etree.SubElement(parent, tag, nsmap=nsmap)

            for key, value in attributes.items():
                elem.set(key, value)
        except ValueError as e:
            # lxml refused a name or namespace which the repairs let through
            raise MalformedChunk(
                "Can not build element '{}': {}".format(tag, e), node.offset
            ) from e

        self._elements.append((node, elem))

    def _end_element(self, node: EndElement) -> None:
        if not self._elements:
            self._mismatch(
                "Too many END_TAG! No more elements available to close!", node.offset
            )
            return

        # The innermost open element with the same name is closed, together
        # with everything opened after it. An end tag without a match is ignored.
        key = (node.namespace_index, node.name_index)
        for depth in range(len(self._elements) - 1, -1, -1):
            start = self._elements[depth][0]
            if (start.namespace_index, start.name_index) == key:
                break
        else:
            self._mismatch(
                "Closing tag (namespace ID {}, name ID {}) does not match any open element! "
                "At line number: {}. Ignoring it.".format(
                    node.namespace_index, node.name_index, node.line_number
                ),
                node.offset,
            )
            return

        if depth != len(self._elements) - 1:
            self._mismatch(
                "Closing tag of '{}' at line number {} also closes {}. Is the XML malformed?".format(
                    self._elements[depth][1].tag,
                    node.line_number,
                    ", ".join("'{}'".format(elem.tag) for _, elem in self._elements[depth + 1:]),
                ),
                node.offset,
            )
        del self._elements[depth:]

    def _text(self, node: CData) -> None:
        text = self._fix_value(self.axml.get_string(node.data_index, node.offset))
        if not self._elements:
            if text.strip():
                logger.warning("Dropping text '{}' outside of the root element", text)
            return

        elem = self._elements[-1][1]
        logger.debug("TEXT for {}", elem)
        if len(elem):
            last = elem[-1]
            last.tail = (last.tail or '') + text
        else:
            elem.text = (elem.text or '') + text

    def get_buff(self) -> bytes:
        """
        Returns the raw XML file without prettification applied.

        :returns: bytes, encoded as UTF-8
        """
        return self.get_xml(pretty=False)

    def get_xml(self, pretty: bool = True) -> bytes:
        """
        Get the XML as an UTF-8 string

        :returns: bytes encoded as UTF-8
        """
        return etree.tostring(self.root, encoding="utf-8", pretty_print=pretty)

    def get_xml_obj(self) -> etree._Element:
        """
        Get the XML as an ElementTree object

        :returns: `lxml.etree.Element` object
        """
        return self.root

    def is_packed(self) -> bool:
        """
        Returns True if the AXML is likely to be packed

        Packers do some weird stuff and we try to detect it.
        Sometimes the files are not packed but simply broken or compiled with
        some broken version of a tool.
        Some file corruption might also be appear to be a packed file.

        :returns: True if packer detected, False otherwise
        """
        return self.packerwarning or self.axml.packerwarning

    def _get_attribute_value(self, attr: Attribute, offset: int) -> str:
        """
        Wrapper function for format_value to resolve the actual value of an attribute in a tag.
        Strings are looked up by the raw value, if there is one.
        """
        def lookup(ix):
            if attr.raw_value_index is not None:
                ix = attr.raw_value_index
            return self.axml.get_string(ix, offset)

        return format_value(attr.value_type, attr.data, lookup)

    def _fix_name(self, prefix: str, name: str) -> Tuple[str, str]:
        """
        Apply some fixes to element named and attribute names.
        Try to get conform to:
        > Like element names, attribute names are case-sensitive and must start with a letter or underscore.
        > The rest of the name can contain letters, digits, hyphens, underscores, and periods.
        See: <https://msdn.microsoft.com/en-us/library/ms256152(v=vs.110).aspx>

        This function tries to fix some broken namespace mappings.
        In some cases, the namespace prefix is inside the name and not in the prefix field.
        Then, the tag name will usually look like 'android:foobar'.
        If and only if the namespace prefix is inside the namespace mapping and the actual prefix field is empty,
        we will strip the prefix from the attribute name and return the fixed prefix URI instead.
        Otherwise replacement rules will be applied.

        The replacement rules work in that way, that all unwanted characters are replaced by underscores.
        In other words, all characters except the ones listed above are replaced.

        :param name: Name of the attribute or tag
        :param prefix: The existing prefix uri as found in the AXML chunk
        :return: a fixed version of prefix and name
        """
        if not name:
            logger.warning("Empty name found, using '_'")
            self.packerwarning = True
            return prefix, "_"

        if not name[0].isalpha() and name[0] != "_":
            logger.warning(
                "Invalid start for name '{}'. XML name must start with a letter.", name
            )
            self.packerwarning = True
            name = "_{}".format(name)
        if ":" in name and prefix == '':
            self.packerwarning = True
            embedded_prefix, new_name = name.split(":", 1)
            nsmap = self.get_nsmap()
            if embedded_prefix in nsmap:
                logger.info(
                    "Prefix '{}' is in namespace mapping, assume that it is a prefix.",
                    embedded_prefix,
                )
                prefix = self._print_namespace(nsmap[embedded_prefix])
                name = new_name
            else:
                # Print out an extra warning
                logger.warning(
                    "Confused: name contains a unknown namespace prefix: '{}'. "
                    "This is either a broken AXML file or some attempt to break stuff.",
                    name,
                )
        if not re.match(r"^[a-zA-Z0-9._-]*$", name):
            logger.warning("Name '{}' contains invalid characters!", name)
            self.packerwarning = True
            name = re.sub(r"[^a-zA-Z0-9._-]", "_", name)
        if not name or not (name[0].isalpha() or name[0] == "_"):
            name = "_{}".format(name)
        if name == "xmlns":
            logger.warning("Name 'xmlns' is reserved for namespace declarations")
            self.packerwarning = True
            name = "_xmlns"

        return prefix, name

    def _fix_value(self, value: str) -> str:
        """
        Return a cleaned version of a value
        according to the XML 1.0 character range:
        > Char	   ::=   	#x9 | #xA | #xD | [#x20-#xD7FF] | [#xE000-#xFFFD] | [#x10000-#x10FFFF]

        See <https://www.w3.org/TR/xml/#charsets>

        :param value: a value to clean
        :return: the cleaned value
        """
        if not self.__charrange or not self.__replacement:
            self.__charrange = re.compile(
                '^[\u0020-\uD7FF\u0009\u000A\u000D\uE000-\uFFFD\U00010000-\U0010FFFF]*$'
            )
            self.__replacement = re.compile(
                '[^\u0020-\uD7FF\u0009\u000A\u000D\uE000-\uFFFD\U00010000-\U0010FFFF]'
            )

        # Reading string until \x00. This is the same as aapt does.
        if "\x00" in value:
            self.packerwarning = True
            logger.warning(
                "Null byte found in attribute value at position {}: Value(hex): '{}'",
                value.find("\x00"),
                binascii.hexlify(value.encode("utf-8", "replace")),
            )
            value = value[: value.find("\x00")]

        if not self.__charrange.match(value):
            logger.warning("Invalid character in value found. Replacing with '_'.")
            self.packerwarning = True
            value = self.__replacement.sub('_', value)
        return value

    def _fix_comment(self, comment: str) -> str:
        # XML comments must not contain '--' nor end with '-'
        comment = self._fix_value(comment).replace("--", "- -")
        if comment.endswith("-"):
            comment += " "
        return comment

    def _print_namespace(self, uri: str) -> str:
        if uri != "":
            uri = "{{{}}}".format(uri)
        return uri


def decode(raw_buff: bytes, pretty: bool = False) -> bytes:
    """
    Decode a binary XML buffer into UTF-8 encoded XML text.

    :raises ResParserError: if the buffer can not be decoded
    """
    return AXMLPrinter(raw_buff).get_xml(pretty=pretty)


def decode_file(path, pretty: bool = False) -> bytes:
    """
    Read a binary XML file completely and decode it, see [decode][axmldec.axml_parse.decode].
    """
    with open(path, "rb") as fp:
        raw_buff = fp.read()
    logger.debug("Read {} bytes from {}", len(raw_buff), path)
    return decode(raw_buff, pretty=pretty)

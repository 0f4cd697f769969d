from axmldec.axml_parse import AXMLParser, AXMLPrinter, decode, decode_file, format_value
from axmldec.errors import (
    DuplicateAttribute,
    MalformedChunk,
    ResParserError,
    StringIndexOutOfBounds,
    StructuralMismatch,
    UnexpectedEof,
    UnsupportedEncoding,
)

__version__ = "0.1.0"

from typing import Union


class ResParserError(Exception):
    """Exception for the parsers

    Every error knows the byte offset inside the input buffer where it
    happened, if there is one.
    """

    def __init__(self, message: str, offset: Union[int, None] = None) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset

    def __str__(self):
        if self.offset is None:
            return self.message
        return "{} (offset=0x{:08x})".format(self.message, self.offset)


class UnexpectedEof(ResParserError):
    """A read requested more bytes than remain"""


class MalformedChunk(ResParserError):
    """Declared chunk sizes do not fit the buffer, or the chunk stream is out of order"""


class StringIndexOutOfBounds(ResParserError):
    """An index or offset into the string pool is outside of it"""


class UnsupportedEncoding(ResParserError):
    """The string pool flags describe an encoding we can not decode"""


class StructuralMismatch(ResParserError):
    """
    An end chunk does not match the currently open frame.

    This one is never raised out of the decoder: it is logged and collected
    in [AXMLPrinter.warnings][axmldec.axml_parse.AXMLPrinter].
    """


class DuplicateAttribute(ResParserError):
    """
    An element carries the same attribute twice, the later value is kept.

    Like [StructuralMismatch][axmldec.errors.StructuralMismatch] it is only
    collected in [AXMLPrinter.warnings][axmldec.axml_parse.AXMLPrinter].
    """

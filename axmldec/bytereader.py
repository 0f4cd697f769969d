from struct import unpack_from
from typing import Union

from axmldec.errors import UnexpectedEof


class ByteReader:
    """
    Bounds checked little endian reader over a fixed buffer.

    The reader only ever sees the window `[start, end)` of the buffer.
    Positions are always absolute offsets into the whole buffer, so that
    errors point at the right byte of the input.
    A read either succeeds completely or raises
    [UnexpectedEof][axmldec.errors.UnexpectedEof] without moving the cursor.
    """

    def __init__(
        self,
        buff: bytes,
        start: int = 0,
        end: Union[int, None] = None
    ) -> None:
        self._buff = memoryview(buff)
        if end is None:
            end = len(self._buff)
        if not 0 <= start <= end <= len(self._buff):
            raise UnexpectedEof(
                "Window [{}, {}) is outside of the buffer of {} bytes".format(
                    start, end, len(self._buff)
                ),
                start,
            )
        self.start = start
        self.end = end
        self._pos = start

    def __repr__(self):
        return "<ByteReader pos=0x{:08x} window=[0x{:x}, 0x{:x})>".format(
            self._pos, self.start, self.end
        )

    def position(self) -> int:
        return self._pos

    def remaining(self) -> int:
        return self.end - self._pos

    def _require(self, size: int) -> None:
        if size < 0 or self._pos + size > self.end:
            raise UnexpectedEof(
                "Can not read {} bytes, only {} left".format(
                    size, self.remaining()
                ),
                self._pos,
            )

    def _unpack(self, fmt: str, size: int) -> int:
        self._require(size)
        (value,) = unpack_from(fmt, self._buff, self._pos)
        self._pos += size
        return value

    def read_u8(self) -> int:
        return self._unpack('<B', 1)

    def read_u16(self) -> int:
        return self._unpack('<H', 2)

    def read_u32(self) -> int:
        return self._unpack('<I', 4)

    def read_bytes(self, size: int) -> bytes:
        self._require(size)
        data = self._buff[self._pos : self._pos + size].tobytes()
        self._pos += size
        return data

    def skip(self, size: int) -> None:
        self._require(size)
        self._pos += size

    def seek(self, offset: int) -> None:
        """
        Jump to an absolute offset. The end of the window is a valid target,
        everything outside of it is not.
        """
        if offset < self.start or offset > self.end:
            raise UnexpectedEof(
                "Can not seek to 0x{:x}, outside of [0x{:x}, 0x{:x}]".format(
                    offset, self.start, self.end
                ),
                self._pos,
            )
        self._pos = offset

    def sub_reader(self, start: int, end: int) -> "ByteReader":
        """
        Get a new reader over `[start, end)`, which must lie inside this window.
        The position of this reader is not changed.
        """
        if start < self.start or end > self.end or start > end:
            raise UnexpectedEof(
                "Region [0x{:x}, 0x{:x}) does not fit into [0x{:x}, 0x{:x})".format(
                    start, end, self.start, self.end
                ),
                start,
            )
        return ByteReader(self._buff, start, end)

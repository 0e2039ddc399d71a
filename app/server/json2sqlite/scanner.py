"""
Incremental boundary scanner for a streamed JSON array of objects.

The scanner never parses JSON. It tracks only string state, escape state and
brace depth, which is enough to find where each top-level object literal
starts and ends regardless of how the input is split into chunks:

    scanner = ObjectBoundaryScanner()
    scanner.feed('[{"a": 1}, {"b"')   # -> ['{"a": 1}']
    scanner.feed(': "}"}]')           # -> ['{"b": "}"}']
    scanner.finish()

Text outside top-level objects (the enclosing brackets, commas, whitespace)
is never matched as a brace and is discarded.
"""

import logging
from typing import List, Optional

from .exceptions import IncompleteObjectError

logger = logging.getLogger(__name__)


class ObjectBoundaryScanner:
    """Finds complete top-level JSON object texts in a chunked text stream"""

    def __init__(self):
        self.reset()

    def reset(self):
        """Return to the empty state, ready for a new stream"""
        self._buffer = ""
        self._scan_pos = 0
        self._object_start: Optional[int] = None
        self.depth = 0
        self.in_string = False
        self.escape_next = False
        # Absolute offset of _buffer[0] within the whole stream
        self._offset = 0

    @property
    def pending(self) -> str:
        """Retained text of the currently open object, if any"""
        return self._buffer

    @property
    def open_object_offset(self) -> Optional[int]:
        """Absolute stream offset where the currently open object starts"""
        if self._object_start is None:
            return None
        return self._offset + self._object_start

    def feed(self, text: str) -> List[str]:
        """
        Consume the next chunk of text.

        Returns:
            Every top-level object text completed by this chunk, in order
        """
        if not text:
            return []

        self._buffer += text
        buffer = self._buffer
        objects = []

        for i in range(self._scan_pos, len(buffer)):
            char = buffer[i]

            if self.escape_next:
                self.escape_next = False
                continue
            if char == '\\':
                self.escape_next = True
                continue
            if char == '"':
                self.in_string = not self.in_string
                continue
            if self.in_string:
                continue

            if char == '{':
                if self.depth == 0:
                    self._object_start = i
                self.depth += 1
            elif char == '}':
                if self.depth == 0:
                    logger.debug("Ignoring unmatched '}' at offset %d", self._offset + i)
                    continue
                self.depth -= 1
                if self.depth == 0:
                    objects.append(buffer[self._object_start:i + 1])
                    self._object_start = None

        self._compact()
        return objects

    def _compact(self):
        # Drop everything that can no longer belong to an object
        if self._object_start is None:
            self._offset += len(self._buffer)
            self._buffer = ""
            self._scan_pos = 0
        else:
            self._offset += self._object_start
            self._buffer = self._buffer[self._object_start:]
            self._scan_pos = len(self._buffer)
            self._object_start = 0

    def finish(self):
        """
        Signal end of stream.

        Raises:
            IncompleteObjectError: If a top-level object is still open
        """
        if self.depth > 0:
            offset = self.open_object_offset
            retained = len(self._buffer)
            self.reset()
            raise IncompleteObjectError(
                f"Input ended inside an object starting at offset {offset} "
                f"({retained} characters discarded)"
            )
        self.reset()

#!/usr/bin/env python
"""
Line Reader Module - Reads control files one logical line at a time

This module wraps an open text stream and hands out one line per call,
reading the stream in fixed-size chunks so that arbitrarily long lines
can be handled.
"""

import logging


class LineReader:
    """Reads successive lines from an open text stream."""

    # Size of each chunk pulled from the stream
    DEFAULT_CHUNK_SIZE = 4096

    def __init__(self, stream, chunk_size=None):
        """
        Initialize the reader on an already opened stream.

        Args:
            stream: Readable text stream (file object, io.StringIO, ...).
            chunk_size (int, optional): Number of characters requested per read.
        """
        self.stream = stream
        self.chunk_size = chunk_size or self.DEFAULT_CHUNK_SIZE
        if self.chunk_size < 1:
            raise ValueError(f"Invalid chunk size: {self.chunk_size}")

        self.line_number = 0
        self.logger = logging.getLogger(__name__)

    def next_line(self):
        """
        Read the next line from the stream.

        Returns:
            str: The line without its trailing newline, or None at end of stream.
        """
        buffer = []

        # read chunks until a newline or end of stream
        while True:
            chunk = self.stream.readline(self.chunk_size)
            if not chunk:
                break

            buffer.append(chunk)
            if chunk.endswith('\n'):
                break

        if not buffer:
            return None

        self.line_number += 1
        if len(buffer) > 1:
            self.logger.debug(f"Line {self.line_number} assembled from {len(buffer)} chunks")

        line = ''.join(buffer)
        if line.endswith('\n'):
            line = line[:-1]

        return line

    def __iter__(self):
        while True:
            line = self.next_line()
            if line is None:
                return
            yield line

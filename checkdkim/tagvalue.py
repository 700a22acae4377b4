# -*- coding: utf-8 -*-
"""RFC 6376 tag-list parsing

The same ``tag=value`` grammar is used by DKIM-Signature header fields and by
DKIM public key records published in DNS::

   tag-list  =  tag-spec *( ";" tag-spec ) [ ";" ]
   tag-spec  =  [FWS] tag-name [FWS] "=" [FWS] tag-value [FWS]
   tag-name  =  ALPHA *ALNUMPUNC
   tag-value =  [ tval *( 1*(WSP / FWS) tval ) ]
   tval      =  1*VALCHAR
   VALCHAR   =  %x21-3A / %x3C-7E
   ALNUMPUNC =  ALPHA / DIGIT / "_"
   FWS       =  [*WSP CRLF] 1*WSP
"""

from __future__ import annotations

import string
from typing import Optional, TypedDict, Literal

from checkdkim._constants import SYNTAX_ERROR_MARKER

"""Copyright 2019-2023 Sean Whalen

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

   https://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License."""

EOF = None
WSP = " \t"
CRLF = "\r\n"
ALPHA = string.ascii_letters
ALNUMPUNC = string.ascii_letters + string.digits + "_"
VALCHAR = "".join(chr(c) for c in range(0x21, 0x7F) if chr(c) != ";")

Severity = Literal["danger", "warning", "info"]


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogatepass")


def _decode(data: bytes) -> str:
    return data.decode("utf-8", "surrogatepass")


class Item(TypedDict):
    """A single tag-spec, in the order it appeared"""

    tag: str
    value: str
    tag_pos: int
    value_pos: int


class Annotation(TypedDict):
    severity: Severity
    message: str


class Field(Item):
    """The last occurrence of a tag, with its ordinal position"""

    index: int
    duplicate: bool
    defined: bool
    annotations: list[Annotation]


class TagValueError(Exception):
    """Raised when a tag-list cannot be processed"""


class TagValueSyntaxError(TagValueError):
    """Raised when a tag-list does not follow the RFC 6376 grammar"""

    def __init__(self, msg: str, pos: int, record: Optional[str] = None):
        """
        Args:
            msg (str): The error message
            pos (int): The byte offset in the record where the error was found
            record (str): The record being parsed
        """
        self.message = msg
        self.pos = pos
        self.record = record
        Exception.__init__(self, msg)

    def marked_record(self, syntax_error_marker: str = SYNTAX_ERROR_MARKER) -> str:
        """
        Returns the record with a marker inserted where the error was found

        Args:
            syntax_error_marker (str): The marker for pointing out syntax errors

        Returns:
            str: The marked record
        """
        data = _encode(self.record or "")
        data = data[: self.pos] + _encode(syntax_error_marker) + data[self.pos :]
        return _decode(data)

    def __str__(self) -> str:
        if self.record is None:
            return f"{self.message} at position {self.pos}"
        return (
            f"{self.message} at position {self.pos} "
            f"(marked with {SYNTAX_ERROR_MARKER}) in: {self.marked_record()}"
        )


class Scanner(object):
    """
    A cursor over a tag-list that can step back one character at a time

    ``start`` and ``pos`` are byte offsets into the UTF-8 encoding of the
    input.
    """

    def __init__(self, record: str):
        self.input = record
        self.data = _encode(record)
        # start of the pending span
        self.start = 0
        self.pos = 0
        # index into ``input`` of the next character
        self._index = 0
        # byte width of the last character read; None once it has been backed up
        self._width: Optional[int] = None

    def next(self) -> Optional[str]:
        """Returns the next character, or ``EOF`` at the end of the input"""
        if self._index >= len(self.input):
            self._width = 0
            return EOF
        char = self.input[self._index]
        self._width = len(_encode(char))
        self._index += 1
        self.pos += self._width
        return char

    def peek(self) -> Optional[str]:
        """Returns but does not consume the next character"""
        char = self.next()
        self.backup()
        return char

    def backup(self):
        """Steps back one character. Can only be called once per ``next()``."""
        assert self._width is not None, "backup() called twice without next()"
        if self._width:
            self._index -= 1
        self.pos -= self._width
        self._width = None

    def ignore(self):
        """Skips over the pending input before this point"""
        self.start = self.pos

    def text(self, start: int, end: int) -> str:
        """Returns the input between two byte offsets"""
        return _decode(self.data[start:end])

    def span(self) -> str:
        """Returns the pending input"""
        return self.text(self.start, self.pos)

    def accept(self, valid: str) -> bool:
        """Consumes the next character if it is in the valid set"""
        char = self.next()
        if char is not EOF and char in valid:
            return True
        self.backup()
        return False

    def accept_run(self, valid: str):
        """Consumes a run of characters from the valid set"""
        while self.accept(valid):
            pass

    def accept_fws(self):
        """
        Consumes optional folding whitespace

        Raises:
            :exc:`checkdkim.tagvalue.TagValueSyntaxError`
        """
        self.accept_run(WSP)
        if self.input.startswith(CRLF, self._index):
            crlf_pos = self.pos
            self._index += len(CRLF)
            self.pos += len(CRLF)
            if not self.accept(WSP):
                raise TagValueSyntaxError(
                    "malformed folding whitespace", crlf_pos, self.input
                )
            self.accept_run(WSP)

    def skip_fws(self):
        """Consumes and discards optional folding whitespace"""
        self.accept_fws()
        self.ignore()


def parse_tag_list(record: str) -> list[Item]:
    """
    Parses an RFC 6376 tag-list

    Args:
        record (str): An unfolded DKIM key record or DKIM-Signature value

    Returns:
        list: A ``list`` of ``dicts``, one per tag-spec, in order, with the
        following keys:

         - ``tag`` - The tag name
         - ``value`` - The tag value, without surrounding whitespace
         - ``tag_pos`` - The byte offset of the tag name
         - ``value_pos`` - The byte offset of the tag value

    Raises:
        :exc:`checkdkim.tagvalue.TagValueSyntaxError`
    """
    scanner = Scanner(record)
    items: list[Item] = []

    while True:
        scanner.skip_fws()
        if scanner.peek() is EOF:
            return items

        if not scanner.accept(ALPHA):
            raise TagValueSyntaxError(
                "expecting alpha character in tag", scanner.pos, record
            )
        scanner.accept_run(ALNUMPUNC)
        tag = scanner.span()
        tag_pos = scanner.start

        scanner.skip_fws()
        if not scanner.accept("="):
            raise TagValueSyntaxError("expecting '='", scanner.pos, record)
        scanner.skip_fws()
        value_pos = scanner.start

        while True:
            if scanner.accept(VALCHAR):
                continue
            # Whitespace is only part of the value if more value follows it
            value_end = scanner.pos
            scanner.accept_fws()
            terminator = scanner.next()
            if terminator is EOF or terminator == ";":
                break

        items.append(
            {
                "tag": tag,
                "value": scanner.text(value_pos, value_end),
                "tag_pos": tag_pos,
                "value_pos": value_pos,
            }
        )
        if terminator is EOF:
            return items


def parse_tag_map(record: str) -> dict[str, Field]:
    """
    Parses an RFC 6376 tag-list into a ``dict`` keyed by tag name

    .. note::
        When a tag appears more than once, the last occurrence is kept and
        marked as a duplicate. ``index`` records its position among all
        parsed tag-specs.

    Args:
        record (str): An unfolded DKIM key record or DKIM-Signature value

    Returns:
        dict: A ``dict`` of tag names to fields with the keys of
        :func:`checkdkim.tagvalue.parse_tag_list` plus:

         - ``index`` - The 0-based position of the tag-spec
         - ``duplicate`` - ``bool``: The tag appeared more than once
         - ``defined`` - ``bool``: The tag appeared at all
         - ``annotations`` - A ``list`` of diagnostics, initially empty

    Raises:
        :exc:`checkdkim.tagvalue.TagValueSyntaxError`
    """
    fields: dict[str, Field] = {}
    for index, item in enumerate(parse_tag_list(record)):
        tag = item["tag"]
        fields[tag] = {
            "tag": tag,
            "value": item["value"],
            "tag_pos": item["tag_pos"],
            "value_pos": item["value_pos"],
            "index": index,
            "duplicate": tag in fields,
            "defined": True,
            "annotations": [],
        }

    return fields

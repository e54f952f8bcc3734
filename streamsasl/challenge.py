########################################################################
# File name: challenge.py
# This file is part of: streamsasl
#
# LICENSE
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program.  If not, see
# <http://www.gnu.org/licenses/>.
#
########################################################################
"""
Parser for the ``key=value,key="value"`` directive lists used in DIGEST-MD5
and SCRAM challenges.

The parser is deliberately lenient: it does not validate the syntax beyond
splitting on unquoted commas, so that slightly broken servers still work.
A comma is only a separator after the ``=`` of a directive; before it, the
comma becomes part of the key.
"""
import enum
import typing


class _ScanState(enum.Enum):
    KEY = "key"
    VALUE = "value"
    QUOTE = "quote"


class ChallengeParser:
    """
    Scanner which turns a decoded challenge into a :class:`dict` mapping
    directive names to their values.

    Feed characters with :meth:`feed` and obtain the result with
    :meth:`close`; or use :func:`parse_challenge` for the common case.

    Keys are stripped of surrounding whitespace (some servers, like jabberd2,
    put a space after the comma). Values are kept verbatim, without the
    quotes around quoted values.
    """

    def __init__(self):
        super().__init__()
        self._state = _ScanState.KEY
        self._key = []
        self._value = []
        self._result = {}

    def _commit(self):
        self._result["".join(self._key).strip()] = "".join(self._value)
        self._key.clear()
        self._value.clear()

    def feed(self, data: str) -> None:
        for ch in data:
            if self._state == _ScanState.KEY:
                if ch == "=":
                    self._state = _ScanState.VALUE
                else:
                    self._key.append(ch)
            elif self._state == _ScanState.VALUE:
                if ch == ",":
                    self._commit()
                    self._state = _ScanState.KEY
                elif ch == '"' and not self._value:
                    self._state = _ScanState.QUOTE
                else:
                    self._value.append(ch)
            else:
                if ch == '"':
                    self._state = _ScanState.VALUE
                else:
                    self._value.append(ch)

    def close(self) -> typing.Dict[str, str]:
        """
        Flush the pending directive (payloads need not end with a comma) and
        return the parsed mapping.
        """
        if "".join(self._key).strip():
            self._commit()
        self._state = _ScanState.KEY
        return self._result


def parse_challenge(
        text: typing.Union[str, bytes],
        ) -> typing.Dict[str, str]:
    """
    Parse the decoded challenge `text` into a directive mapping.

    :class:`bytes` are decoded as UTF-8 first.

    :raises UnicodeDecodeError: if `text` is :class:`bytes` and not valid
        UTF-8
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    parser = ChallengeParser()
    parser.feed(text)
    return parser.close()

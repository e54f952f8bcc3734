########################################################################
# File name: utils.py
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
import base64
import binascii
import hashlib
import operator
import random


_system_random = random.SystemRandom()


def xor_bytes(a, b):
    """
    Calculate the byte wise exclusive of of two :class:`bytes` objects
    of the same length.
    """
    assert len(a) == len(b)
    return bytes(map(operator.xor, a, b))


def generate_nonce():
    """
    Return a fresh client nonce as a string of 32 lowercase hex digits.

    The nonce is the MD5 digest of 128 bits drawn from the system random
    source.
    """
    seed = _system_random.getrandbits(128).to_bytes(16, "little")
    return hashlib.md5(seed).hexdigest()


def b64encode(data):
    """
    Encode `data` (:class:`bytes` or :class:`str`, the latter as UTF-8) as
    base64 without any line breaks and return it as :class:`str`.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("ascii")


def b64decode(text):
    """
    Decode the base64 `text`. Whitespace is ignored and :data:`None` or the
    empty string decode to ``b""``.

    :raises ValueError: if `text` is not valid base64
    """
    if not text:
        return b""
    try:
        return base64.b64decode("".join(text.split()))
    except binascii.Error as exc:
        raise ValueError("invalid base64: {!r}".format(text)) from exc

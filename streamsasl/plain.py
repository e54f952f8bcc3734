########################################################################
# File name: plain.py
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
import typing

from . import common, stanza, statemachine


def plain_payload(jid: typing.Any, password: str) -> bytes:
    """
    Build the PLAIN message for `jid` and `password`: the bare JID as
    authorization identity, the localpart as authentication identity and the
    password, separated by NUL bytes.

    :raises ValueError: if any of the parts contains a NUL byte
    """
    authzid = str(jid.bare()).encode("utf-8")
    authcid = (jid.localpart or "").encode("utf-8")
    encoded_password = password.encode("utf-8")

    if (b"\0" in authzid or b"\0" in authcid or
            b"\0" in encoded_password):
        raise ValueError("NUL byte in username or password is disallowed")

    return authzid + b"\0" + authcid + b"\0" + encoded_password


class PLAIN(statemachine.SASLSession):
    """
    The password-based ``PLAIN`` SASL mechanism (see :rfc:`4616`).

    .. warning::

       This is generally unsafe over unencrypted connections and should not be
       used there. Exclusion of the ``PLAIN`` mechanism over unsafe connections
       is out of scope for :mod:`streamsasl` and needs to be handled by the
       protocol implementation!

    The credentials are sent along with the ``<auth/>`` element; a single
    round-trip is made during :meth:`auth`.
    """

    mechanism = common.Mechanism.PLAIN

    async def _auth(self, password: str) -> None:
        payload = plain_payload(self.jid, password)

        reply = await self._exchange(
            stanza.make_auth(self.mechanism.value, payload),
            timeout=self.timeout,
        )

        if stanza.reply_state(reply) != common.SASLState.SUCCESS:
            raise self._rejected(reply)

########################################################################
# File name: anonymous.py
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
from . import common, stanza, statemachine


class ANONYMOUS(statemachine.SASLSession):
    """
    The ANONYMOUS SASL mechanism (see :rfc:`4505`).

    The localpart of the JID is sent as trace token; the password passed to
    :meth:`auth` is ignored.
    """

    mechanism = common.Mechanism.ANONYMOUS

    async def _auth(self, password: str) -> None:
        token = (self.jid.localpart or "").encode("utf-8")

        reply = await self._exchange(
            stanza.make_auth(self.mechanism.value, token),
            timeout=self.timeout,
        )

        if stanza.reply_state(reply) != common.SASLState.SUCCESS:
            raise self._rejected(reply)

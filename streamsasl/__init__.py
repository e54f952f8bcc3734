########################################################################
# File name: __init__.py
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
Using SASL on an XML stream
===========================

To authenticate over an existing XMPP stream, you first need to subclass and
implement :class:`SASLChannel`, which sends the SASL elements over the stream
and returns the reply of the server.

The mechanisms offered by the server are announced in the stream features.
Pick one with :func:`select_mechanism` and run the exchange::

    # channel = <instance of your subclass of SASLChannel>
    mechanism = streamsasl.select_mechanism(offered_mechanisms)
    if mechanism is None:
        # no common mechanism
    session = await streamsasl.new(channel, jid, mechanism)
    try:
        await session.auth(password)
    except streamsasl.AuthenticationFailed as exc:
        # the server rejected the credentials, see exc.reason
    except streamsasl.ServerAuthenticationFailed:
        # the server could not prove that it knows the credentials
    except streamsasl.SASLError:
        # protocol problem or timeout
    else:
        # authentication was successful!

Sessions hold the state of a single exchange and cannot be re-used.

The mechanisms which are currently supported by :mod:`streamsasl` are
summarised below:

.. autosummary::

   ANONYMOUS
   PLAIN
   DIGESTMD5
   SCRAMSHA1

Creating sessions
=================

.. autofunction:: new

.. autofunction:: create_session

.. autofunction:: select_mechanism

.. autoclass:: Mechanism

Interface for streams using SASL
================================

.. autoclass:: SASLChannel

Sessions
========

.. autoclass:: SASLSession

.. autoclass:: SessionState

.. autoclass:: PLAIN

.. autoclass:: ANONYMOUS

.. autoclass:: DIGESTMD5

.. autoclass:: SCRAMSHA1

Exception classes
=================

.. autoclass:: SASLError

.. autoclass:: UnsupportedMechanism

.. autoclass:: ProtocolError

.. autoclass:: AuthenticationFailed

.. autoclass:: ServerAuthenticationFailed

.. autoclass:: TransportTimeout

.. autoclass:: DigestHandshakeTimeout

Version information
===================

.. autodata:: __version__

.. autodata:: version_info
"""  # NOQA
import typing

from .common import (  # noqa:F401
    NS_SASL,
    AuthenticationFailed,
    DigestHandshakeTimeout,
    Mechanism,
    ProtocolError,
    SASLError,
    SASLState,
    ServerAuthenticationFailed,
    SessionState,
    TransportTimeout,
    UnsupportedMechanism,
)

from .statemachine import (  # noqa:F401
    SASLChannel,
    SASLSession,
)

from .challenge import (  # noqa:F401
    ChallengeParser,
    parse_challenge,
)

from .scram import (  # noqa:F401
    SCRAMSHA1,
)

from .digest_md5 import (  # noqa:F401
    DIGESTMD5,
)

from .plain import (  # noqa:F401
    PLAIN,
)

from .anonymous import (  # noqa:F401
    ANONYMOUS,
)

from .structs import (  # noqa:F401
    JID,
)

from .version import version, __version__, version_info  # noqa:F401

#: The imported :mod:`streamsasl` version as a tuple.
#:
#: The components of the tuple are, in order: `major version`, `minor version`,
#: `patch level`, and `pre-release identifier`.
version_info = version_info

#: The imported :mod:`streamsasl` version as a string.
#:
#: The version number is dot-separated; in pre-release or development versions,
#: the version number is followed by a hypen-separated pre-release identifier.
__version__ = __version__


_SESSION_CLASSES = {
    Mechanism.PLAIN: PLAIN,
    Mechanism.ANONYMOUS: ANONYMOUS,
    Mechanism.DIGEST_MD5: DIGESTMD5,
    Mechanism.SCRAM_SHA_1: SCRAMSHA1,
}

#: Order in which :func:`select_mechanism` prefers mechanisms, strongest
#: first.
DEFAULT_PREFERENCE = (
    Mechanism.SCRAM_SHA_1,
    Mechanism.DIGEST_MD5,
    Mechanism.PLAIN,
    Mechanism.ANONYMOUS,
)


def _lookup(mechanism):
    try:
        return Mechanism(mechanism)
    except ValueError:
        raise UnsupportedMechanism(
            mechanism,
            text="mechanisms supported: {}".format(
                ", ".join(m.value for m in Mechanism)
            ),
        ) from None


def create_session(
        channel: SASLChannel,
        jid: typing.Any,
        mechanism: typing.Union[str, Mechanism],
        **kwargs: typing.Any) -> SASLSession:
    """
    Create a session for `mechanism` (a mechanism name or a
    :class:`Mechanism`) which authenticates `jid` over `channel`.

    Additional keyword arguments are passed to the session class.

    Nothing is sent to the peer; use :func:`new` to also start the
    exchange.

    :raises UnsupportedMechanism: if `mechanism` is not implemented
    """
    return _SESSION_CLASSES[_lookup(mechanism)](channel, jid, **kwargs)


async def new(
        channel: SASLChannel,
        jid: typing.Any,
        mechanism: typing.Union[str, Mechanism],
        **kwargs: typing.Any) -> SASLSession:
    """
    Create a session with :func:`create_session` and await its
    :meth:`~.SASLSession.initiate`. For DIGEST-MD5 and SCRAM-SHA-1 this
    performs the first round-trip with the server.

    :raises UnsupportedMechanism: if `mechanism` is not implemented; the
        channel is not used in that case
    """
    session = create_session(channel, jid, mechanism, **kwargs)
    await session.initiate()
    return session


def select_mechanism(
        mechanisms: typing.Iterable[str],
        preference: typing.Sequence[Mechanism] = DEFAULT_PREFERENCE,
        ) -> typing.Optional[Mechanism]:
    """
    Pick the most preferred :class:`Mechanism` among the mechanism names in
    `mechanisms`, or return :data:`None` if none of them is supported.

    Unknown names in `mechanisms` are ignored.
    """
    offered = set(mechanisms)
    for mechanism in preference:
        if mechanism.value in offered:
            return mechanism
    return None

########################################################################
# File name: common.py
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
import enum
import typing


#: The XML namespace of the SASL negotiation elements (:rfc:`6120`).
NS_SASL = "urn:ietf:params:xml:ns:xmpp-sasl"


class SASLError(Exception):
    """
    Base class for a SASL related error. `opaque_error` may be anything which
    helps your application re-identify the error at the outer layers; for
    errors reported by the server, it is the reason token sent by the server.
    `kind` is a string which helps identifying the class of the error; this is
    set implicitly by the constructors of the subclasses, which you are
    encouraged to use.

    `text` may be a human-readable string describing the error condition in
    more detail.

    `opaque_error` is set to :data:`None` by the session implementations to
    indicate errors which originate from the local mechanism implementation.

    .. attribute:: opaque_error

       The value passed to the respective constructor argument.

    .. attribute:: text

       The value passed to the respective constructor argument.

    """

    def __init__(
            self,
            opaque_error: typing.Any,
            kind: str,
            text: typing.Optional[str] = None):
        msg = "{}: {}".format(opaque_error, kind)
        if text:
            msg += ": {}".format(text)
        super().__init__(msg)
        self.opaque_error = opaque_error
        self.text = text


class UnsupportedMechanism(SASLError):
    """
    The requested mechanism is not implemented. This is a configuration error
    and is raised before anything is sent to the peer. `opaque_error` is the
    requested mechanism name.
    """

    def __init__(
            self,
            mechanism: typing.Any,
            text: typing.Optional[str] = None):
        super().__init__(mechanism, "unsupported mechanism", text=text)


class ProtocolError(SASLError):
    """
    The server sent a malformed or inconsistent message. This is unrelated to
    the credentials passed and must not be retried with the same server.
    """

    def __init__(
            self,
            opaque_error: typing.Any,
            text: typing.Optional[str] = None):
        super().__init__(opaque_error, "protocol error", text=text)


class AuthenticationFailed(SASLError):
    """
    The server rejected the authentication attempt. `opaque_error` is the
    reason token reported by the server (the local name of the first child of
    the reply, e.g. ``"not-authorized"``), or :data:`None` if the server did
    not give one.

    .. attribute:: reason

       Alias of :attr:`opaque_error`.
    """

    def __init__(
            self,
            opaque_error: typing.Any,
            text: typing.Optional[str] = None):
        super().__init__(opaque_error, "authentication failed", text=text)

    @property
    def reason(self) -> typing.Optional[str]:
        return self.opaque_error


class ServerAuthenticationFailed(SASLError):
    """
    The server claimed success, but failed to prove knowledge of the
    credentials. The peer must be considered an impostor; the session is not
    authenticated.
    """

    def __init__(
            self,
            opaque_error: typing.Any,
            text: typing.Optional[str] = None):
        super().__init__(opaque_error, "server authentication failed",
                         text=text)


class TransportTimeout(SASLError):
    """
    The peer did not reply in time, even after retrying.
    """

    def __init__(
            self,
            opaque_error: typing.Any,
            text: typing.Optional[str] = None):
        super().__init__(opaque_error, "transport timeout", text=text)


class DigestHandshakeTimeout(TransportTimeout):
    """
    All attempts to deliver the DIGEST-MD5 response timed out.
    `opaque_error` is the number of attempts made.
    """


class Mechanism(enum.Enum):
    """
    The SASL mechanisms implemented by :mod:`streamsasl`. The value of each
    member is the mechanism name as used on the wire.

    .. attribute:: PLAIN

    .. attribute:: ANONYMOUS

    .. attribute:: DIGEST_MD5

    .. attribute:: SCRAM_SHA_1
    """

    PLAIN = "PLAIN"
    ANONYMOUS = "ANONYMOUS"
    DIGEST_MD5 = "DIGEST-MD5"
    SCRAM_SHA_1 = "SCRAM-SHA-1"


class SASLState(enum.Enum):
    """
    Classification of a reply received from the server.

    .. attribute:: CHALLENGE

       the server sent a SASL challenge

    .. attribute:: SUCCESS

       the authentication was successful

    .. attribute:: FAILURE

       the authentication failed; this covers every element which is neither
       a challenge nor a success in the SASL namespace
    """

    CHALLENGE = "challenge"
    SUCCESS = "success"
    FAILURE = "failure"

    @classmethod
    def from_reply(cls, name: str) -> "SASLState":
        """
        Map the local name of a reply element in the SASL namespace to a
        :class:`SASLState`. Unknown names map to :attr:`FAILURE`.
        """
        if name in ("challenge", "success"):
            return SASLState(name)
        return SASLState.FAILURE


class SessionState(enum.Enum):
    """
    The states of a :class:`~.SASLSession`.

    .. attribute:: INITIAL

       the session has been created, nothing has been sent yet

    .. attribute:: CHALLENGE_RECEIVED

       the initial challenge has been received and parsed

    .. attribute:: RESPONSE_SENT

       the response to the challenge is on its way

    .. attribute:: SUCCESS

       the authentication was successful

    .. attribute:: FAILURE

       the authentication failed; the session cannot be used anymore
    """

    INITIAL = "initial"
    CHALLENGE_RECEIVED = "challenge-received"
    RESPONSE_SENT = "response-sent"
    SUCCESS = "success"
    FAILURE = "failure"

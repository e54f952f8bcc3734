########################################################################
# File name: digest_md5.py
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
import asyncio
import hashlib
import logging
import typing

from . import challenge, common, stanza, statemachine, utils


logger = logging.getLogger(__name__)


# directives which are sent without quotes
_UNQUOTED = frozenset(["nc", "qop", "response", "charset"])

NONCE_COUNT = "00000001"


def H(data: bytes) -> bytes:
    return hashlib.md5(data).digest()


def HH(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def response_value(
        username: str,
        realm: str,
        digest_uri: str,
        password: str,
        nonce: str,
        cnonce: str,
        qop: str,
        authzid: typing.Optional[str] = None) -> str:
    """
    Calculate the value of the ``response`` directive as defined in
    :rfc:`2831`, section 2.1.2.1, for the first request (nonce count
    ``00000001``).

    The result is the lowercase hex MD5 digest.
    """
    a1 = b":".join([
        H("{}:{}:{}".format(username, realm, password).encode("utf-8")),
        nonce.encode("utf-8"),
        cnonce.encode("utf-8"),
    ])
    if authzid is not None:
        a1 += b":" + authzid.encode("utf-8")

    a2 = "AUTHENTICATE:" + digest_uri
    if qop in ("auth-int", "auth-conf"):
        a2 += ":" + "0" * 32

    return HH(":".join([
        HH(a1),
        nonce,
        NONCE_COUNT,
        cnonce,
        qop,
        HH(a2.encode("utf-8")),
    ]).encode("utf-8"))


def format_directives(directives: typing.Iterable[
        typing.Tuple[str, str]]) -> str:
    """
    Serialize the ``(key, value)`` pairs in `directives`, quoting the values
    of all keys except ``nc``, ``qop``, ``response`` and ``charset``.
    """
    return ",".join(
        "{}={}".format(key, value) if key in _UNQUOTED
        else '{}="{}"'.format(key, value)
        for key, value in directives
    )


class DIGESTMD5(statemachine.SASLSession):
    """
    The ``DIGEST-MD5`` SASL mechanism (see :rfc:`2831`).

    :param response_timeout: Timeout in seconds for each attempt to deliver
        the response to the initial challenge.
    :type response_timeout: :class:`float`
    :param response_attempts: Number of attempts to deliver the response to
        the initial challenge.
    :type response_attempts: :class:`int`

    :meth:`initiate` sends the ``<auth/>`` element and waits for the initial
    challenge. :meth:`auth` answers the challenge. Some servers lose the
    response, so its delivery is retried on timeout; if all attempts time
    out, :class:`~.DigestHandshakeTimeout` is raised.

    .. note::

       The ``rspauth`` sent by the server in its second challenge is not
       verified; the server is not authenticated by this implementation.

    .. attribute:: nonce

       The nonce of the initial challenge.

    .. attribute:: realm

       The realm of the initial challenge, or :data:`None` if the server did
       not send one.
    """

    mechanism = common.Mechanism.DIGEST_MD5

    def __init__(
            self,
            channel: statemachine.SASLChannel,
            jid: typing.Any,
            *,
            response_timeout: float = 1.0,
            response_attempts: int = 3,
            **kwargs: typing.Any):
        if response_attempts < 1:
            raise ValueError("response_attempts must be at least 1")
        super().__init__(channel, jid, **kwargs)
        self.response_timeout = response_timeout
        self.response_attempts = response_attempts
        self.nonce = None  # type: typing.Optional[str]
        self.realm = None  # type: typing.Optional[str]

    async def _initiate(self) -> None:
        reply = await self._exchange(
            stanza.make_auth(self.mechanism.value),
            timeout=self.timeout,
        )

        if stanza.reply_state(reply) != common.SASLState.CHALLENGE:
            raise self._rejected(reply)

        payload = self._decode_payload(reply)
        try:
            directives = challenge.parse_challenge(payload)
        except UnicodeDecodeError:
            raise self._fail(common.ProtocolError(
                None,
                text="challenge is not valid UTF-8",
            )) from None
        logger.debug("DIGEST-MD5 challenge: %r -> %r", payload, directives)

        try:
            self.nonce = directives["nonce"]
        except KeyError:
            raise self._fail(common.ProtocolError(
                None,
                text="challenge without nonce: {!r}".format(payload),
            )) from None
        self.realm = directives.get("realm")

        self._state = common.SessionState.CHALLENGE_RECEIVED

    def _response_directives(
            self,
            password: str,
            ) -> typing.List[typing.Tuple[str, str]]:
        username = self.jid.localpart or ""
        realm = self.realm if self.realm is not None else self.jid.domain
        cnonce = utils.generate_nonce()
        qop = "auth"
        digest_uri = "xmpp/{}".format(self.jid.domain)

        return [
            ("nonce", self.nonce),
            ("charset", "utf-8"),
            ("username", username),
            ("realm", realm),
            ("cnonce", cnonce),
            ("nc", NONCE_COUNT),
            ("qop", qop),
            ("digest-uri", digest_uri),
            ("response", response_value(username, realm, digest_uri,
                                        password, self.nonce, cnonce, qop)),
        ]

    async def _send_response(self, element):
        for attempt in range(1, self.response_attempts + 1):
            try:
                return await self.channel.send(
                    element,
                    timeout=self.response_timeout,
                )
            except asyncio.TimeoutError:
                logger.debug("DIGEST-MD5 response attempt %d/%d timed out",
                             attempt, self.response_attempts)
            except BaseException:
                self._state = common.SessionState.FAILURE
                raise

        raise self._fail(common.DigestHandshakeTimeout(
            self.response_attempts,
            text="failed to send DIGEST-MD5 response",
        ))

    async def _auth(self, password: str) -> None:
        response_text = format_directives(self._response_directives(password))
        logger.debug("DIGEST-MD5 response: %s", response_text)

        self._state = common.SessionState.RESPONSE_SENT
        reply = await self._send_response(
            stanza.make_response(response_text.encode("utf-8"))
        )

        state = stanza.reply_state(reply)
        if state == common.SASLState.SUCCESS:
            return
        if state != common.SASLState.CHALLENGE:
            raise self._rejected(reply)

        # the rspauth challenge; its contents are not verified
        logger.debug("DIGEST-MD5 ignoring server challenge %r", reply.text)

        reply = await self._exchange(
            stanza.make_response(),
            timeout=self.timeout,
        )
        if stanza.reply_state(reply) != common.SASLState.SUCCESS:
            raise self._rejected(reply)

########################################################################
# File name: scram.py
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
import hashlib
import hmac
import logging
import time
import typing

from . import challenge, common, stanza, statemachine, utils


logger = logging.getLogger(__name__)


GS2_HEADER = b"n,,"

#: Minimum iteration count for SCRAM-SHA-1, see
#: <https://www.iana.org/assignments/sasl-mechanisms/sasl-mechanisms.xhtml>
MINIMUM_ITERATION_COUNT = 4096


def _hmac(key: bytes, msg: bytes) -> bytes:
    return hmac.new(key, msg, hashlib.sha1).digest()


def escape_username(username: str) -> str:
    """
    Escape `username` for use in the ``n=`` attribute: ``=`` becomes ``=3D``
    and ``,`` becomes ``=2C``.
    """
    return username.replace("=", "=3D").replace(",", "=2C")


def hi(password: bytes, salt: bytes, iterations: int) -> bytes:
    """
    The ``Hi()`` function of :rfc:`5802` with HMAC-SHA-1, which is PBKDF2
    with an output length of one block (20 bytes).

    The result equals ``hashlib.pbkdf2_hmac("sha1", password, salt,
    iterations)``.
    """
    if iterations < 1:
        raise ValueError("iteration count must be positive")

    u = _hmac(password, salt + b"\x00\x00\x00\x01")
    result = u
    for _ in range(iterations - 1):
        u = _hmac(password, u)
        result = utils.xor_bytes(result, u)
    return result


def client_proof(salted_password: bytes, auth_message: bytes) -> bytes:
    """
    Calculate the ``ClientProof`` for `auth_message`.
    """
    client_key = _hmac(salted_password, b"Client Key")
    stored_key = hashlib.sha1(client_key).digest()
    client_signature = _hmac(stored_key, auth_message)
    return utils.xor_bytes(client_key, client_signature)


def server_signature(salted_password: bytes, auth_message: bytes) -> bytes:
    """
    Calculate the ``ServerSignature`` the server has to send for
    `auth_message`.
    """
    server_key = _hmac(salted_password, b"Server Key")
    return _hmac(server_key, auth_message)


class SCRAMSHA1(statemachine.SASLSession):
    """
    The password-based ``SCRAM-SHA-1`` SASL mechanism (see :rfc:`5802`),
    without channel binding.

    :param enforce_minimum_iteration_count: Reject iteration counts below
        the minimum of 4096 specified for SCRAM-SHA-1.
    :type enforce_minimum_iteration_count: :class:`bool`

    :meth:`initiate` sends the client-first-message and receives the
    server-first-message. :meth:`auth` sends the proof and verifies the
    signature of the server. If the signature is wrong,
    :class:`~.ServerAuthenticationFailed` is raised even though the server
    reported success.

    .. note::

       The username and password are not prepared with SASLprep.
    """

    mechanism = common.Mechanism.SCRAM_SHA_1

    def __init__(
            self,
            channel: statemachine.SASLChannel,
            jid: typing.Any,
            *,
            enforce_minimum_iteration_count: bool = False,
            **kwargs: typing.Any):
        super().__init__(channel, jid, **kwargs)
        self.enforce_minimum_iteration_count = enforce_minimum_iteration_count
        self.client_nonce = None  # type: typing.Optional[str]
        self.client_first_message_bare = None  # type: typing.Optional[bytes]
        self.server_first_message = None  # type: typing.Optional[bytes]
        self.nonce = None  # type: typing.Optional[str]
        self.salt = None  # type: typing.Optional[bytes]
        self.iteration_count = None  # type: typing.Optional[int]

    def _protocol_error(self, text):
        return self._fail(common.ProtocolError(None, text=text))

    async def _initiate(self) -> None:
        self.client_nonce = utils.generate_nonce()
        self.client_first_message_bare = "n={},r={}".format(
            escape_username(self.jid.localpart or ""),
            self.client_nonce,
        ).encode("utf-8")

        reply = await self._exchange(
            stanza.make_auth(self.mechanism.value,
                             GS2_HEADER + self.client_first_message_bare),
            timeout=self.timeout,
        )

        if stanza.reply_state(reply) != common.SASLState.CHALLENGE:
            raise self._rejected(reply)

        payload = self._decode_payload(reply)
        try:
            parsed = challenge.parse_challenge(payload)
        except UnicodeDecodeError:
            raise self._protocol_error(
                "server-first-message is not valid UTF-8"
            ) from None
        logger.debug("SCRAM-SHA-1 challenge: %r -> %r", payload, parsed)

        try:
            nonce = parsed["r"]
            salt = base64.b64decode(parsed["s"], validate=True)
            iteration_count = int(parsed["i"])
        except (ValueError, KeyError):
            raise self._protocol_error(
                "malformed server message: {!r}".format(payload)
            ) from None

        if not nonce.startswith(self.client_nonce):
            raise self._protocol_error("server nonce doesn't fit our nonce")

        if iteration_count < 1:
            raise self._protocol_error(
                "invalid iteration count {}".format(iteration_count)
            )

        if (self.enforce_minimum_iteration_count and
                iteration_count < MINIMUM_ITERATION_COUNT):
            raise self._protocol_error(
                "minimum iteration count for {} violated "
                "({} is less than {})".format(
                    self.mechanism.value,
                    iteration_count,
                    MINIMUM_ITERATION_COUNT,
                )
            )

        self.server_first_message = payload
        self.nonce = nonce
        self.salt = salt
        self.iteration_count = iteration_count
        self._state = common.SessionState.CHALLENGE_RECEIVED

    async def _auth(self, password: str) -> None:
        t0 = time.time()
        salted_password = hi(password.encode("utf-8"),
                             self.salt,
                             self.iteration_count)
        logger.debug("Hi timing: %f seconds", time.time() - t0)

        client_final_message_without_proof = "c={},r={}".format(
            base64.b64encode(GS2_HEADER).decode("ascii"),
            self.nonce,
        ).encode("utf-8")

        auth_message = b",".join([
            self.client_first_message_bare,
            self.server_first_message,
            client_final_message_without_proof,
        ])

        proof = client_proof(salted_password, auth_message)

        self._state = common.SessionState.RESPONSE_SENT
        reply = await self._exchange(
            stanza.make_response(
                client_final_message_without_proof +
                b",p=" + base64.b64encode(proof)
            ),
            timeout=self.timeout,
        )

        if stanza.reply_state(reply) != common.SASLState.SUCCESS:
            raise self._rejected(reply)

        payload = self._decode_payload(reply)
        try:
            parsed = challenge.parse_challenge(payload)
            signature = base64.b64decode(parsed["v"], validate=True)
        except (ValueError, KeyError):
            raise self._fail(common.ServerAuthenticationFailed(
                None,
                text="no valid server signature in {!r}".format(payload),
            )) from None

        if not hmac.compare_digest(
                signature,
                server_signature(salted_password, auth_message)):
            raise self._fail(common.ServerAuthenticationFailed(
                None,
                text="authentication successful, but server signature "
                "invalid",
            ))

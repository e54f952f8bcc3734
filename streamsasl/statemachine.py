########################################################################
# File name: statemachine.py
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
import abc
import logging
import typing

import lxml.etree as etree

from . import common, stanza


logger = logging.getLogger(__name__)


class SASLChannel(metaclass=abc.ABCMeta):
    """
    This class serves as an abstract base class for the connection to the
    peer used by :class:`SASLSession`. The XML stream implementation subclasses
    it to hand SASL elements to the stream and to deliver the matching reply.

    The channel does not need to implement any state checking; that is done by
    the sessions. It is responsible for correlating the reply with the element
    sent.

    .. automethod:: send
    """

    @abc.abstractmethod
    async def send(
            self,
            element: etree._Element,
            timeout: typing.Optional[float] = None,
            ) -> etree._Element:
        """
        Send `element` to the peer, wait for the reply and return it.

        If `timeout` is not :data:`None` and no reply has arrived after
        `timeout` seconds, :class:`asyncio.TimeoutError` must be raised.
        """


class SASLSession(metaclass=abc.ABCMeta):
    """
    A single SASL authentication exchange with one mechanism over one
    :class:`SASLChannel`.

    :param channel: The channel to the peer.
    :type channel: :class:`SASLChannel`
    :param jid: The address to authenticate as.
    :param timeout: Timeout in seconds for waiting for replies, or
        :data:`None` to wait forever.
    :type timeout: :class:`float` or :data:`None`

    The session is driven by first awaiting :meth:`initiate` and then
    :meth:`auth`. Each method either returns normally or raises a
    :class:`~.SASLError`, after which the session is in the
    :attr:`~.SessionState.FAILURE` state and cannot be used anymore.

    Timeouts reported by the channel are re-raised as
    :class:`asyncio.TimeoutError` unless documented otherwise by the
    mechanism.

    .. autoattribute:: mechanism

    .. autoattribute:: state

    .. automethod:: initiate

    .. automethod:: auth
    """

    #: The :class:`~.Mechanism` implemented by the session class.
    mechanism = None  # type: common.Mechanism

    def __init__(
            self,
            channel: SASLChannel,
            jid: typing.Any,
            *,
            timeout: typing.Optional[float] = None):
        super().__init__()
        self.channel = channel
        self.jid = jid
        self.timeout = timeout
        self._state = common.SessionState.INITIAL
        self._initiated = False
        self._busy = False

    @property
    def state(self) -> common.SessionState:
        """
        The current :class:`~.SessionState` of the session.
        """
        return self._state

    async def _exchange(
            self,
            element: etree._Element,
            timeout: typing.Optional[float] = None,
            ) -> etree._Element:
        """
        Send `element` and return the reply. A failing send moves the session
        to the failure state.
        """
        try:
            return await self.channel.send(element, timeout=timeout)
        except BaseException:
            self._state = common.SessionState.FAILURE
            raise

    def _fail(self, exc: common.SASLError) -> common.SASLError:
        self._state = common.SessionState.FAILURE
        return exc

    def _rejected(self, reply: etree._Element) -> common.SASLError:
        reason = stanza.failure_reason(reply)
        logger.debug("%s rejected by server: %s",
                     self.mechanism.value, reason)
        return self._fail(common.AuthenticationFailed(reason))

    def _decode_payload(self, reply: etree._Element) -> bytes:
        try:
            return stanza.reply_payload(reply)
        except ValueError:
            raise self._fail(common.ProtocolError(
                None,
                text="malformed base64 in server message: {!r}".format(
                    reply.text
                ),
            )) from None

    async def initiate(self) -> None:
        """
        Start the authentication. Mechanisms which need a challenge before
        the credentials can be used perform the first round-trip here.
        """
        if self._initiated:
            raise RuntimeError("initiate has already been called")
        self._initiated = True
        self._busy = True
        logger.info("attempting %s mechanism", self.mechanism.value)
        try:
            await self._initiate()
        finally:
            self._busy = False

    async def _initiate(self) -> None:
        pass

    async def auth(self, password: str) -> None:
        """
        Authenticate with `password`. Returns normally if the authentication
        was successful.

        If :meth:`initiate` has not been awaited yet, it is awaited first.

        :raises AuthenticationFailed: if the server rejected the credentials
        :raises ProtocolError: if the server violated the protocol
        """
        if self._busy:
            raise RuntimeError("another operation is in progress")
        if not self._initiated:
            await self.initiate()
        if self._state not in (common.SessionState.INITIAL,
                               common.SessionState.CHALLENGE_RECEIVED):
            raise RuntimeError(
                "authentication already finished or in progress"
            )
        self._busy = True
        try:
            await self._auth(password)
        finally:
            self._busy = False
        self._state = common.SessionState.SUCCESS

    @abc.abstractmethod
    async def _auth(self, password: str) -> None:
        """
        Perform the mechanism specific part of :meth:`auth`. Must raise the
        error returned by :meth:`_fail` or :meth:`_rejected` on failure.
        """

########################################################################
# File name: stanza.py
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
Construction and inspection of the SASL negotiation elements of an XMPP
stream (:rfc:`6120`, section 6.4).

Outgoing elements are :mod:`lxml.etree` elements; incoming replies may be
any :mod:`lxml.etree` element.
"""
import typing

import lxml.etree as etree

from . import common, utils


def _sasl_element(tag, payload):
    el = etree.Element(
        "{{{}}}{}".format(common.NS_SASL, tag),
        nsmap={None: common.NS_SASL},
    )
    if payload is not None:
        el.text = utils.b64encode(payload)
    return el


def make_auth(
        mechanism: str,
        payload: typing.Optional[bytes] = None,
        ) -> etree._Element:
    """
    Create an ``<auth/>`` element selecting `mechanism`. If `payload` is not
    :data:`None`, it is sent base64 encoded as initial response.
    """
    el = _sasl_element("auth", payload)
    el.set("mechanism", mechanism)
    return el


def make_response(
        payload: typing.Optional[bytes] = None,
        ) -> etree._Element:
    """
    Create a ``<response/>`` element carrying the base64 encoded `payload`,
    or no text at all if `payload` is :data:`None`.
    """
    return _sasl_element("response", payload)


def reply_state(element: etree._Element) -> common.SASLState:
    """
    Classify the reply `element`. Only ``<challenge/>`` and ``<success/>``
    elements in the SASL namespace are recognized; everything else is
    :attr:`~.SASLState.FAILURE`.
    """
    qname = etree.QName(element)
    if qname.namespace != common.NS_SASL:
        return common.SASLState.FAILURE
    return common.SASLState.from_reply(qname.localname)


def reply_payload(element: etree._Element) -> bytes:
    """
    Return the base64 decoded text of `element`.

    :raises ValueError: if the text is not valid base64
    """
    return utils.b64decode(element.text)


def failure_reason(element: etree._Element) -> typing.Optional[str]:
    """
    Return the local name of the first child element of `element` (for
    example ``"not-authorized"`` for a ``<failure/>``), or :data:`None` if
    there is no child element.
    """
    for child in element:
        if isinstance(child.tag, str):
            return etree.QName(child).localname
    return None

########################################################################
# File name: mocks.py
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
import base64

import lxml.etree as etree

import streamsasl


def run_coroutine(coroutine, timeout=5.0):
    return asyncio.run(asyncio.wait_for(coroutine, timeout=timeout))


def sasl_element(tag, payload=None, *children):
    """
    Build a reply element in the SASL namespace with the base64 encoded
    `payload` as text and empty child elements named by `children`.
    """
    el = etree.Element(
        "{{{}}}{}".format(streamsasl.NS_SASL, tag),
        nsmap={None: streamsasl.NS_SASL},
    )
    if payload is not None:
        el.text = base64.b64encode(payload).decode("ascii")
    for child in children:
        etree.SubElement(el, "{{{}}}{}".format(streamsasl.NS_SASL, child))
    return el


class SASLChannelMock(streamsasl.SASLChannel):
    """
    Channel which checks each sent element against a script of
    ``(tag, mechanism, payload, result)`` tuples. `result` is returned as
    reply, or raised if it is an exception.
    """

    def __init__(self, testobj, action_sequence):
        super().__init__()
        self._testobj = testobj
        self._action_sequence = action_sequence
        self.timeouts = []

    async def send(self, element, timeout=None):
        try:
            (next_tag,
             next_mechanism,
             next_payload,
             result) = self._action_sequence.pop(0)
        except IndexError:
            raise AssertionError(
                "SASL action performed unexpectedly: "
                "{}".format(etree.tostring(element)))

        qname = etree.QName(element)
        self._testobj.assertEqual(
            streamsasl.NS_SASL,
            qname.namespace,
            "SASL element in wrong namespace")

        self._testobj.assertEqual(
            next_tag,
            qname.localname,
            "SASL action sequence violated")

        self._testobj.assertEqual(
            next_mechanism,
            element.get("mechanism"),
            "SASL mechanism expectation violated")

        if element.text is None:
            payload = None
        else:
            payload = base64.b64decode(element.text)

        self._testobj.assertEqual(
            next_payload,
            payload,
            "SASL payload expectation violated")

        self.timeouts.append(timeout)

        if isinstance(result, BaseException):
            raise result
        return result

    def finalize(self):
        self._testobj.assertFalse(
            self._action_sequence,
            "Not all actions performed")


class SlowSASLChannelMock(SASLChannelMock):
    """
    Like :class:`SASLChannelMock`, but yields to the event loop before
    handling each element, so that concurrent calls can interleave.
    """

    async def send(self, element, timeout=None):
        await asyncio.sleep(0)
        return await super().send(element, timeout=timeout)

########################################################################
# File name: test_stanza.py
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
import unittest

import lxml.etree as etree

import streamsasl
import streamsasl.stanza as stanza
import streamsasl.utils as utils

from streamsasl.structs import JID


class TestMakeElements(unittest.TestCase):
    def test_auth_with_payload(self):
        el = stanza.make_auth("PLAIN", b"\0user\0pencil")
        self.assertEqual(
            "{urn:ietf:params:xml:ns:xmpp-sasl}auth",
            el.tag
        )
        self.assertEqual("PLAIN", el.get("mechanism"))
        self.assertEqual(
            base64.b64encode(b"\0user\0pencil").decode("ascii"),
            el.text
        )

    def test_auth_without_payload(self):
        el = stanza.make_auth("DIGEST-MD5")
        self.assertEqual("DIGEST-MD5", el.get("mechanism"))
        self.assertIsNone(el.text)

    def test_auth_serialization(self):
        self.assertEqual(
            b'<auth xmlns="urn:ietf:params:xml:ns:xmpp-sasl"'
            b' mechanism="DIGEST-MD5"/>',
            etree.tostring(stanza.make_auth("DIGEST-MD5"))
        )

    def test_response(self):
        el = stanza.make_response(b"foo")
        self.assertEqual(
            "{urn:ietf:params:xml:ns:xmpp-sasl}response",
            el.tag
        )
        self.assertEqual("Zm9v", el.text)
        self.assertIsNone(el.get("mechanism"))

    def test_empty_response(self):
        self.assertEqual(
            b'<response xmlns="urn:ietf:params:xml:ns:xmpp-sasl"/>',
            etree.tostring(stanza.make_response())
        )


class TestReplies(unittest.TestCase):
    def _el(self, tag, ns=streamsasl.NS_SASL):
        return etree.Element("{{{}}}{}".format(ns, tag))

    def test_reply_state(self):
        self.assertEqual(
            streamsasl.SASLState.CHALLENGE,
            stanza.reply_state(self._el("challenge"))
        )
        self.assertEqual(
            streamsasl.SASLState.SUCCESS,
            stanza.reply_state(self._el("success"))
        )
        self.assertEqual(
            streamsasl.SASLState.FAILURE,
            stanza.reply_state(self._el("failure"))
        )
        self.assertEqual(
            streamsasl.SASLState.FAILURE,
            stanza.reply_state(self._el("challenge", "jabber:client"))
        )
        self.assertEqual(
            streamsasl.SASLState.FAILURE,
            stanza.reply_state(etree.Element("success"))
        )

    def test_reply_payload(self):
        el = self._el("challenge")
        el.text = "Zm9v\n YmFy"
        self.assertEqual(b"foobar", stanza.reply_payload(el))

    def test_reply_payload_empty(self):
        self.assertEqual(b"", stanza.reply_payload(self._el("success")))

    def test_reply_payload_invalid(self):
        el = self._el("challenge")
        el.text = "Zm9vY"
        with self.assertRaises(ValueError):
            stanza.reply_payload(el)

    def test_failure_reason(self):
        el = etree.fromstring(
            b"<failure xmlns='urn:ietf:params:xml:ns:xmpp-sasl'>"
            b"<!-- comment --><not-authorized/>"
            b"<text>bad password</text></failure>"
        )
        self.assertEqual("not-authorized", stanza.failure_reason(el))

    def test_failure_reason_without_children(self):
        self.assertIsNone(stanza.failure_reason(self._el("failure")))


class TestUtils(unittest.TestCase):
    def test_xor_bytes(self):
        self.assertEqual(b"\x03\x00", utils.xor_bytes(b"\x01\x02",
                                                       b"\x02\x02"))

    def test_generate_nonce_format(self):
        nonce = utils.generate_nonce()
        self.assertRegex(nonce, r"^[0-9a-f]{32}$")
        self.assertNotEqual(nonce, utils.generate_nonce())

    def test_b64encode(self):
        self.assertEqual("Zm9v", utils.b64encode(b"foo"))
        self.assertEqual("Zm9v", utils.b64encode("foo"))


class TestJID(unittest.TestCase):
    def test_fromstr(self):
        jid = JID.fromstr("alice@example.com/laptop")
        self.assertEqual(jid.localpart, "alice")
        self.assertEqual(jid.domain, "example.com")
        self.assertEqual(jid.resource, "laptop")

    def test_fromstr_domain_only(self):
        jid = JID.fromstr("example.com")
        self.assertIsNone(jid.localpart)
        self.assertEqual(jid.domain, "example.com")

    def test_str(self):
        self.assertEqual(
            "alice@example.com/laptop",
            str(JID("alice", "example.com", "laptop"))
        )

    def test_bare(self):
        jid = JID("alice", "example.com", "laptop").bare()
        self.assertTrue(jid.is_bare)
        self.assertEqual("alice@example.com", str(jid))

    def test_reject_empty_domain(self):
        with self.assertRaises(ValueError):
            JID("alice", "")

########################################################################
# File name: structs.py
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
import collections


class JID(collections.namedtuple("JID", ["localpart", "domain", "resource"])):
    """
    Minimal representation of a Jabber ID.

    Only the parts needed for authentication are provided; no stringprep is
    applied. The sessions access :attr:`localpart`, :attr:`domain` and
    :meth:`bare` only, so any richer JID type with those attributes (such as
    :class:`aioxmpp.JID`) can be used instead.

    .. automethod:: fromstr

    .. automethod:: bare
    """

    __slots__ = []

    def __new__(cls, localpart, domain, resource=None):
        if not domain:
            raise ValueError("domain must not be empty")
        return super().__new__(cls, localpart or None, domain,
                               resource or None)

    def __str__(self):
        result = self.domain
        if self.localpart:
            result = self.localpart + "@" + result
        if self.resource:
            result += "/" + self.resource
        return result

    def bare(self):
        """
        Return this JID with the :attr:`resource` set to :data:`None`.
        """
        return self._replace(resource=None)

    @property
    def is_bare(self):
        return not self.resource

    @classmethod
    def fromstr(cls, s):
        """
        Construct a JID out of the string `s`.

        :raises ValueError: if the domain part is empty
        """
        nodedomain, sep, resource = s.partition("/")
        if not sep:
            resource = None

        localpart, sep, domain = nodedomain.partition("@")
        if not sep:
            domain = localpart
            localpart = None
        return cls(localpart, domain, resource)

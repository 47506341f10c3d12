"""
EPP XML Builder

Builds the session and poll commands (RFC 5730) the queue client needs.
"""

import secrets
import string
from typing import List

from lxml import etree

# Namespace URIs
EPP_NS = "urn:ietf:params:xml:ns:epp-1.0"
DOMAIN_NS = "urn:ietf:params:xml:ns:domain-1.0"
CONTACT_NS = "urn:ietf:params:xml:ns:contact-1.0"
HOST_NS = "urn:ietf:params:xml:ns:host-1.0"


def _generate_cl_trid() -> str:
    """Generate client transaction ID."""
    chars = string.ascii_uppercase + string.digits
    return "POLL-" + "".join(secrets.choice(chars) for _ in range(8))


def _create_command() -> tuple:
    """Create <epp><command/></epp> and return (root, command)."""
    root = etree.Element("{%s}epp" % EPP_NS, nsmap={None: EPP_NS})
    command = etree.SubElement(root, "{%s}command" % EPP_NS)
    return root, command


def _finish(root: etree._Element, command: etree._Element, cl_trid: str = None) -> bytes:
    """Append clTRID and serialise."""
    etree.SubElement(command, "{%s}clTRID" % EPP_NS).text = cl_trid or _generate_cl_trid()
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8")


class XMLBuilder:
    """
    Builds EPP XML commands.

    All methods are static and return XML bytes ready to send.
    """

    @staticmethod
    def build_hello() -> bytes:
        """Build hello command."""
        root = etree.Element("{%s}epp" % EPP_NS, nsmap={None: EPP_NS})
        etree.SubElement(root, "{%s}hello" % EPP_NS)
        return etree.tostring(root, xml_declaration=True, encoding="UTF-8")

    @staticmethod
    def build_login(
        client_id: str,
        password: str,
        version: str = "1.0",
        lang: str = "en",
        obj_uris: List[str] = None,
        ext_uris: List[str] = None,
        cl_trid: str = None,
    ) -> bytes:
        """
        Build login command.

        Args:
            client_id: Client identifier
            password: Password
            version: EPP version
            lang: Language
            obj_uris: Object URIs to use (default: domain, contact, host)
            ext_uris: Extension URIs to use
            cl_trid: Client transaction ID
        """
        if obj_uris is None:
            obj_uris = [DOMAIN_NS, CONTACT_NS, HOST_NS]

        root, command = _create_command()
        login = etree.SubElement(command, "{%s}login" % EPP_NS)

        etree.SubElement(login, "{%s}clID" % EPP_NS).text = client_id
        etree.SubElement(login, "{%s}pw" % EPP_NS).text = password

        options = etree.SubElement(login, "{%s}options" % EPP_NS)
        etree.SubElement(options, "{%s}version" % EPP_NS).text = version
        etree.SubElement(options, "{%s}lang" % EPP_NS).text = lang

        svcs = etree.SubElement(login, "{%s}svcs" % EPP_NS)
        for uri in obj_uris:
            etree.SubElement(svcs, "{%s}objURI" % EPP_NS).text = uri

        if ext_uris:
            svc_ext = etree.SubElement(svcs, "{%s}svcExtension" % EPP_NS)
            for uri in ext_uris:
                etree.SubElement(svc_ext, "{%s}extURI" % EPP_NS).text = uri

        return _finish(root, command, cl_trid)

    @staticmethod
    def build_logout(cl_trid: str = None) -> bytes:
        """Build logout command."""
        root, command = _create_command()
        etree.SubElement(command, "{%s}logout" % EPP_NS)
        return _finish(root, command, cl_trid)

    @staticmethod
    def build_poll_request(cl_trid: str = None) -> bytes:
        """Build <poll op="req"/> command."""
        root, command = _create_command()
        etree.SubElement(command, "{%s}poll" % EPP_NS, op="req")
        return _finish(root, command, cl_trid)

    @staticmethod
    def build_poll_ack(msg_id: str, cl_trid: str = None) -> bytes:
        """Build <poll op="ack" msgID="..."/> command."""
        root, command = _create_command()
        etree.SubElement(command, "{%s}poll" % EPP_NS, op="ack", msgID=str(msg_id))
        return _finish(root, command, cl_trid)

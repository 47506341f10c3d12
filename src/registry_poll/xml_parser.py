"""
EPP XML Parser

Parses the EPP greeting, generic responses and poll messages
(RFC 5730 msgQ plus RFC 5731 domain data).
"""

import logging
from datetime import datetime
from typing import List, Optional

from dateutil import parser as date_parser
from lxml import etree

from registry_poll.exceptions import EPPXMLError
from registry_poll.models import EPPResponse, Greeting, PollMessage, TransferData, to_utc

logger = logging.getLogger("regpoll.parser")

# Namespaces
NS = {
    "epp": "urn:ietf:params:xml:ns:epp-1.0",
    "domain": "urn:ietf:params:xml:ns:domain-1.0",
}

# resData element -> raw poll message type
POLL_DATA_TYPES = {
    "trnData": "transfer",
    "panData": "pending",
    "renData": "renew",
    "creData": "create",
    "infData": "info",
}

# Secure parser
_parser = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    remove_blank_text=True,
)


def _parse_datetime(text: str) -> Optional[datetime]:
    """Parse an EPP dateTime into aware UTC; None if absent or malformed."""
    if not text:
        return None
    try:
        return to_utc(date_parser.isoparse(text.strip()))
    except ValueError:
        logger.debug(f"Unparseable dateTime: {text!r}")
        return None


def _find_text(elem: etree._Element, path: str, default: str = None) -> Optional[str]:
    """Find element and return text."""
    found = elem.find(path, NS)
    if found is not None and found.text:
        return found.text.strip()
    return default


def _find_all_text(elem: etree._Element, path: str) -> List[str]:
    """Find all elements and return their text."""
    return [e.text for e in elem.findall(path, NS) if e.text]


def _parse_xml(xml_data: bytes) -> etree._Element:
    """Parse XML with secure parser."""
    try:
        return etree.fromstring(xml_data, _parser)
    except etree.XMLSyntaxError as e:
        raise EPPXMLError(f"XML parse error: {e}")


class XMLParser:
    """
    Parses EPP XML responses.

    All methods are static and return structured response objects.
    """

    @staticmethod
    def parse_greeting(xml_data: bytes) -> Greeting:
        """Parse EPP greeting."""
        root = _parse_xml(xml_data)

        greeting = root.find("epp:greeting", NS)
        if greeting is None:
            raise EPPXMLError("No greeting element found")

        return Greeting(
            server_id=_find_text(greeting, "epp:svID", ""),
            server_date=_parse_datetime(_find_text(greeting, "epp:svDate")),
            version=_find_all_text(greeting, "epp:svcMenu/epp:version"),
            lang=_find_all_text(greeting, "epp:svcMenu/epp:lang"),
            obj_uris=_find_all_text(greeting, "epp:svcMenu/epp:objURI"),
            ext_uris=_find_all_text(greeting, "epp:svcMenu/epp:svcExtension/epp:extURI"),
        )

    @staticmethod
    def parse_response(xml_data: bytes) -> EPPResponse:
        """Parse result code, message and transaction ids of any response."""
        root = _parse_xml(xml_data)

        response = root.find("epp:response", NS)
        if response is None:
            raise EPPXMLError("No response element found")

        result = response.find("epp:result", NS)
        if result is None:
            raise EPPXMLError("No result element found")

        try:
            code = int(result.get("code", "2400"))
        except ValueError:
            raise EPPXMLError(f"Invalid result code: {result.get('code')!r}")

        trn_id = response.find("epp:trID", NS)
        cl_trid = sv_trid = None
        if trn_id is not None:
            cl_trid = _find_text(trn_id, "epp:clTRID")
            sv_trid = _find_text(trn_id, "epp:svTRID")

        return EPPResponse(
            code=code,
            message=_find_text(result, "epp:msg", "Unknown error"),
            cl_trid=cl_trid,
            sv_trid=sv_trid,
            raw_xml=xml_data.decode("utf-8", errors="replace"),
        )

    @staticmethod
    def parse_poll_message(xml_data: bytes) -> Optional[PollMessage]:
        """
        Parse a poll op="req" response.

        Returns:
            PollMessage, or None if the response carries no msgQ
        """
        root = _parse_xml(xml_data)

        msg_q = root.find(".//epp:msgQ", NS)
        if msg_q is None:
            return None

        try:
            count = int(msg_q.get("count", "0"))
        except ValueError:
            raise EPPXMLError(f"Invalid msgQ count: {msg_q.get('count')!r}")

        msg_type = "message"
        domain = None
        transfer = None

        res_data = root.find(".//epp:resData", NS)
        if res_data is not None and len(res_data):
            data = res_data[0]
            local_name = etree.QName(data).localname
            msg_type = POLL_DATA_TYPES.get(local_name, local_name)
            domain = _find_text(data, "domain:name")

            if local_name == "trnData":
                transfer = TransferData(
                    name=domain or "",
                    tr_status=_find_text(data, "domain:trStatus", ""),
                    re_id=_find_text(data, "domain:reID", ""),
                    re_date=_parse_datetime(_find_text(data, "domain:reDate")),
                    ac_id=_find_text(data, "domain:acID", ""),
                    ac_date=_parse_datetime(_find_text(data, "domain:acDate")),
                )

        return PollMessage(
            id=msg_q.get("id"),
            count=count,
            qdate=_parse_datetime(_find_text(msg_q, "epp:qDate")),
            message=_find_text(msg_q, "epp:msg", ""),
            msg_type=msg_type,
            domain=domain,
            transfer=transfer,
            raw_xml=xml_data.decode("utf-8", errors="replace"),
        )

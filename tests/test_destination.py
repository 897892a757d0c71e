"""Tests for destination encoding and decoding."""

import pytest

from ntsapi.models.destination import (
    TAG_TYPES,
    TYPE_TAGS,
    Destination,
    DestinationType,
    parse_destination,
)


class TestDestinationEncode:
    """Tests for Destination.encode."""

    def test_telephone(self):
        dest = Destination(number="441234567890")
        assert dest.type is DestinationType.TELEPHONE
        assert dest.encode() == "441234567890"

    def test_telephone_without_number(self):
        assert Destination().encode() is None

    def test_sip(self):
        dest = Destination(type=DestinationType.SIP, username="bob", host="sip.example.com")
        assert dest.encode() == "S:bob@sip.example.com"

    def test_sip_with_password(self):
        dest = Destination(
            type=DestinationType.SIP, username="bob", password="x", host="sip.example.com"
        )
        assert dest.encode() == "S:bob:x@sip.example.com"

    @pytest.mark.parametrize(
        "dest_type,tag",
        [
            (DestinationType.SIP_INBAND_DTMF, "s"),
            (DestinationType.IAX, "I"),
            (DestinationType.TLS, "E"),
        ],
    )
    def test_sip_family_tags(self, dest_type, tag):
        dest = Destination(type=dest_type, username="bob", password="pw", host="pbx.example.com")
        assert dest.encode() == f"{tag}:bob:pw@pbx.example.com"

    def test_fax(self):
        dest = Destination(type=DestinationType.FAX, username="fax", host="example.com")
        assert dest.encode() == "F:fax@example.com"

    def test_voicemail_ignores_password(self):
        dest = Destination(
            type=DestinationType.VOICEMAIL, username="vm", password="x", host="example.com"
        )
        assert dest.encode() == "V:vm@example.com"

    def test_missing_host(self):
        dest = Destination(type=DestinationType.SIP, username="bob")
        assert dest.encode() is None
        assert dest.is_complete is False

    def test_missing_username(self):
        dest = Destination(type=DestinationType.FAX, host="example.com")
        assert dest.encode() is None

    def test_unset_type(self):
        dest = Destination(type=None, username="bob", host="sip.example.com")
        assert dest.encode() is None

    def test_str(self):
        assert str(Destination(number="441234567890")) == "441234567890"
        assert str(Destination(type=None)) == ""

    def test_email(self):
        dest = Destination(type=DestinationType.FAX, username="fax", host="example.com")
        assert dest.email == "fax@example.com"
        assert Destination(type=DestinationType.FAX, username="fax").email is None


class TestDestinationFields:
    """Field cleaning and validation on assignment."""

    def test_text_fields_lose_whitespace_and_plus(self):
        dest = Destination(type=DestinationType.SIP, username=" b ob+ ", host="sip.example.com\n")
        assert dest.username == "bob"
        assert dest.host == "sip.example.com"

    def test_number_keeps_only_digits(self):
        assert Destination(number="+44 (0)1234-567890").number == "4401234567890"

    def test_assignment_is_cleaned(self):
        dest = Destination(type=DestinationType.SIP)
        dest.username = "  alice "
        dest.host = "pbx .example.com"
        dest.password = "s e c"
        assert dest.encode() == "S:alice:sec@pbx.example.com"

    @pytest.mark.parametrize("field", ["number", "username", "password", "host"])
    def test_non_string_rejected(self, field):
        dest = Destination()
        with pytest.raises(ValueError):
            setattr(dest, field, 234)

    def test_none_allowed(self):
        dest = Destination(type=DestinationType.SIP, username="bob")
        dest.username = None
        assert dest.username is None

    def test_type_from_int(self):
        dest = Destination(type=3, username="bob", host="h")
        assert dest.type is DestinationType.SIP

    def test_tag_tables_are_inverse(self):
        assert all(TAG_TYPES[tag] is kind for kind, tag in TYPE_TAGS.items())
        assert DestinationType.TELEPHONE not in TYPE_TAGS


class TestDestinationDecode:
    """Tests for Destination.decode."""

    def test_telephone(self):
        dest = Destination.decode("441234567890")
        assert dest.type is DestinationType.TELEPHONE
        assert dest.number == "441234567890"

    def test_telephone_with_plus(self):
        assert Destination.decode("+441234567890").number == "441234567890"

    def test_sip_with_password(self):
        dest = Destination.decode("S:bob:x@sip.example.com")
        assert dest.type is DestinationType.SIP
        assert dest.username == "bob"
        assert dest.password == "x"
        assert dest.host == "sip.example.com"

    def test_sip_without_password(self):
        dest = Destination.decode("S:bob@sip.example.com")
        assert dest.type is DestinationType.SIP
        assert dest.username == "bob"
        assert dest.password is None
        assert dest.host == "sip.example.com"

    def test_fax(self):
        dest = Destination.decode("F:fax@example.com")
        assert dest.type is DestinationType.FAX
        assert dest.email == "fax@example.com"

    def test_missing_at_leaves_host_unset(self):
        dest = Destination.decode("S:bob")
        assert dest.type is DestinationType.SIP
        assert dest.username == "bob"
        assert dest.host is None
        assert dest.encode() is None

    def test_unknown_tag(self):
        dest = Destination.decode("Q:bob@example.com")
        assert dest.type is None
        assert dest.username == "bob"
        assert dest.host == "example.com"

    @pytest.mark.parametrize("text", ["garbage", "", "S:a:b:c@d", "0800-CALL-NOW"])
    def test_unrecognized_format(self, text):
        dest = Destination.decode(text)
        assert dest.type is None
        assert dest.number is None
        assert dest.username is None
        assert dest.host is None

    @pytest.mark.parametrize(
        "text",
        [
            "441234567890",
            "F:fax@example.com",
            "V:vm@example.com",
            "S:bob@sip.example.com",
            "S:bob:x@sip.example.com",
            "s:bob:x@sip.example.com",
            "I:bob:x@iax.example.com",
            "E:bob@tls.example.com",
        ],
    )
    def test_wire_text_survives_decode_and_encode(self, text):
        assert Destination.decode(text).encode() == text

    def test_decoded_equals_constructed(self):
        dest = Destination(
            type=DestinationType.SIP, username="bob", password="x", host="sip.example.com"
        )
        assert Destination.decode(dest.encode()) == dest

    def test_parse_destination_alias(self):
        assert parse_destination("S:bob@h") == Destination.decode("S:bob@h")

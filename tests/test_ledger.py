import pytest

from stableshare.services.ledger import ClientInfo, anonymize_ip


@pytest.mark.parametrize(
    "ip, expected",
    [
        ("192.168.1.100", "192.168.1.0"),
        ("8.8.8.8", "8.8.8.0"),
        (" 10.0.0.255 ", "10.0.0.0"),
        ("2001:0db8:85a3:0000:0000:8a2e:0370:7334", "2001:db8:85a3::0"),
        ("2001:db8::1", "2001:db8:0::0"),
        ("::1", "0:0:0::0"),
        ("not-an-ip", "anonymous"),
        ("999.1.1.1", "anonymous"),
    ],
)
def test_anonymize_ip(ip, expected):
    assert anonymize_ip(ip) == expected


def test_client_info_prefers_first_forwarded_hop():
    info = ClientInfo.from_headers(
        {"x-forwarded-for": "203.0.113.7, 10.0.0.1"},
        peer_ip="127.0.0.1",
    )

    assert info.ip_address == "203.0.113.0"


def test_client_info_falls_back_to_peer():
    info = ClientInfo.from_headers({}, peer_ip="198.51.100.23")

    assert info.ip_address == "198.51.100.0"
    assert info.user_agent is None
    assert info.country is None


def test_client_info_reads_edge_geo_headers():
    info = ClientInfo.from_headers(
        {"cf-ipcountry": "NO", "cf-ipcity": "Bergen", "cf-region": "Vestland"}
    )

    assert (info.country, info.city, info.region) == ("NO", "Bergen", "Vestland")
    assert info.ip_address is None


def test_client_info_truncates_long_headers():
    info = ClientInfo.from_headers({"user-agent": "a" * 2000, "referer": "r" * 3000})

    assert len(info.user_agent) == 512
    assert len(info.referer) == 1024

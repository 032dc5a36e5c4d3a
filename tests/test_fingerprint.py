import pytest

from hits.fingerprint import VisitorDescriptor, make_hash, primary_language


def test_make_hash_is_deterministic():
    assert make_hash("TestAgent/1.0|192.168.1.42|EN") == make_hash("TestAgent/1.0|192.168.1.42|EN")


@pytest.mark.parametrize("width", [1, 10, 32, 64])
def test_make_hash_width(width):
    assert len(make_hash("anything", width)) == width


def test_make_hash_default_width_is_ten():
    assert len(make_hash("")) == 10


@pytest.mark.parametrize("width", [0, -1, 65])
def test_make_hash_rejects_bad_width(width):
    with pytest.raises(ValueError):
        make_hash("x", width)


def test_canonical_form(descriptor):
    assert descriptor.canonical() == "TestAgent/1.0|192.168.1.42|EN"
    assert descriptor.fingerprint() == make_hash("TestAgent/1.0|192.168.1.42|EN", 10)


def test_different_address_changes_fingerprint(descriptor):
    other = VisitorDescriptor("TestAgent/1.0", "10.0.0.1", "EN")
    assert other.fingerprint() != descriptor.fingerprint()


@pytest.mark.parametrize("header,expected", [
    ("en-GB,en;q=0.9", "EN-GB"),
    ("fr", "FR"),
    (" de , en", "DE"),
    ("", ""),
    (None, ""),
])
def test_primary_language(header, expected):
    assert primary_language(header) == expected


def test_from_headers_fills_missing_values():
    d = VisitorDescriptor.from_headers(None, "1.2.3.4", "pt-br,pt")
    assert d == VisitorDescriptor("", "1.2.3.4", "PT-BR")
    assert d.canonical() == "|1.2.3.4|PT-BR"

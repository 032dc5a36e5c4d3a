import pytest

from hits.errors import StorageUnavailable
from hits.visitors import VisitorRegistry


def test_save_then_lookup(registry):
    registry.save("1a2b3c4d5e", "TestAgent/1.0|192.168.1.42|EN")
    assert registry.lookup("1a2b3c4d5e") == "TestAgent/1.0|192.168.1.42|EN"


def test_file_holds_raw_descriptor(registry, log_dir):
    registry.save("abcdef0123", "Mozilla/5.0 (X11; Linux) ünïcode|::1|DE")
    assert (log_dir / "agents" / "abcdef0123").read_bytes() == "Mozilla/5.0 (X11; Linux) ünïcode|::1|DE".encode("utf-8")


def test_save_overwrites(registry):
    registry.save("abcdef0123", "first|1.1.1.1|EN")
    registry.save("abcdef0123", "second|2.2.2.2|FR")
    assert registry.lookup("abcdef0123") == "second|2.2.2.2|FR"


def test_no_temp_files_left_behind(registry, log_dir):
    registry.save("abcdef0123", "a|b|C")
    assert [p.name for p in (log_dir / "agents").iterdir()] == ["abcdef0123"]


def test_lookup_missing(registry):
    assert registry.lookup("0000000000") is None


@pytest.mark.parametrize("fingerprint", ["../etc/passwd", "", "ABCDEF", "xyz"])
def test_lookup_rejects_non_fingerprints(registry, fingerprint):
    assert registry.lookup(fingerprint) is None


def test_save_rejects_non_fingerprints(registry):
    with pytest.raises(ValueError):
        registry.save("../oops", "x")


def test_save_storage_error(tmp_path):
    root = tmp_path / "logs"
    root.mkdir()
    (root / "agents").write_text("not a directory")
    with pytest.raises(StorageUnavailable):
        VisitorRegistry(root).save("abcdef0123", "x|y|Z")

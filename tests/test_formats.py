import pytest
from jks.util import KeystoreSignatureException

from devkeystore.entries import GENERATED_ALIAS, TRUSTED_ALIAS, KeyEntry, StoreContents
from devkeystore.forge import forge
from devkeystore.format_identify import guess_format
from devkeystore.formats import jks as fmt_jks
from devkeystore.formats import pkcs12 as fmt_pkcs12

from _util import cert_der, key_der, shared_key


@pytest.fixture(scope="module")
def contents():
    key = shared_key()
    return StoreContents.for_identity("JKS", key, forge(key))


def test_guess_format():
    assert guess_format(b"\xfe\xed\xfe\xed\x00\x00\x00\x02") == "JKS"
    assert guess_format(b"\x30\x82\x01\x00") == "PKCS12"
    assert guess_format(b"hello", filename="store.p12") == "PKCS12"
    assert guess_format(b"hello") == "UNKNOWN"
    assert guess_format(b"") == "UNKNOWN"


def test_jks_round_trip(contents):
    loaded = fmt_jks.load(fmt_jks.dump(contents))
    assert loaded.format == "JKS"
    entry = loaded.private_keys[GENERATED_ALIAS]
    expected = contents.private_keys[GENERATED_ALIAS]
    assert key_der(entry.private_key) == key_der(expected.private_key)
    assert [cert_der(c) for c in entry.chain] == [cert_der(c) for c in expected.chain]
    assert cert_der(loaded.trusted[TRUSTED_ALIAS]) == cert_der(contents.trusted[TRUSTED_ALIAS])


def test_jks_with_password(contents):
    data = fmt_jks.dump(contents, "changeit")
    loaded = fmt_jks.load(data, "changeit")
    assert set(loaded.private_keys) == {GENERATED_ALIAS}
    with pytest.raises(KeystoreSignatureException):
        fmt_jks.load(data, "wrongpass")


def test_pkcs12_round_trip(contents):
    data = fmt_pkcs12.dump(contents)
    loaded = fmt_pkcs12.load(data)
    assert loaded.format == "PKCS12"
    assert set(loaded.private_keys) == {GENERATED_ALIAS}
    assert set(loaded.trusted) == {TRUSTED_ALIAS}
    entry = loaded.private_keys[GENERATED_ALIAS]
    assert key_der(entry.private_key) == key_der(contents.private_keys[GENERATED_ALIAS].private_key)
    assert len(entry.chain) == 1


def test_pkcs12_with_password(contents):
    data = fmt_pkcs12.dump(contents, "changeit")
    assert set(fmt_pkcs12.load(data, "changeit").private_keys) == {GENERATED_ALIAS}
    with pytest.raises(ValueError):
        fmt_pkcs12.load(data, "wrongpass")


def test_pkcs12_holds_a_single_key(contents):
    entry = contents.private_keys[GENERATED_ALIAS]
    two = StoreContents(
        format="PKCS12",
        private_keys={"a": KeyEntry("a", entry.private_key, entry.chain), "b": KeyEntry("b", entry.private_key, entry.chain)},
    )
    with pytest.raises(ValueError):
        fmt_pkcs12.dump(two)

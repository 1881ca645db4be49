from typing import Dict, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from ..entries import GENERATED_ALIAS, STORE_PASSWORD, KeyEntry, StoreContents


def _password(password: str) -> Optional[bytes]:
    # An empty passphrase means an unencrypted container
    return password.encode("utf-8") if password else None


def _encryption(password: str) -> serialization.KeySerializationEncryption:
    if not password:
        return serialization.NoEncryption()
    return serialization.BestAvailableEncryption(password.encode("utf-8"))


def _alias(friendly_name: Optional[bytes], default: str) -> str:
    return friendly_name.decode("utf-8") if friendly_name else default


def dump(contents: StoreContents, password: str = STORE_PASSWORD) -> bytes:
    if len(contents.private_keys) != 1:
        raise ValueError("A PKCS#12 store holds exactly one private key entry")
    entry = next(iter(contents.private_keys.values()))
    cas = [pkcs12.PKCS12Certificate(c, None) for c in entry.chain[1:]]
    cas.extend(pkcs12.PKCS12Certificate(c, alias.encode("utf-8")) for alias, c in contents.trusted.items())
    return pkcs12.serialize_key_and_certificates(
        name=entry.alias.encode("utf-8"),
        key=entry.private_key,
        cert=entry.chain[0] if entry.chain else None,
        cas=cas or None,
        encryption_algorithm=_encryption(password),
    )


def load(data: bytes, password: str = STORE_PASSWORD, key_alias: str = GENERATED_ALIAS) -> StoreContents:
    bundle = pkcs12.load_pkcs12(data, _password(password))

    # Both copies of the certificate match the key, so OpenSSL may report either
    # one as the key's own; friendly names tell them apart.
    bags = ([bundle.cert] if bundle.cert is not None else []) + list(bundle.additional_certs)
    chain = []
    trusted: Dict[str, x509.Certificate] = {}
    for bag in bags:
        alias = _alias(bag.friendly_name, key_alias)
        if alias == key_alias:
            chain.append(bag.certificate)
        else:
            trusted[alias] = bag.certificate

    private_keys: Dict[str, KeyEntry] = {}
    if bundle.key is not None:
        private_keys[key_alias] = KeyEntry(key_alias, bundle.key, tuple(chain))
    return StoreContents(format="PKCS12", private_keys=private_keys, trusted=trusted)

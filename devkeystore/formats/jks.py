# devkeystore/formats/jks.py
from __future__ import annotations
from typing import Dict, Tuple
import logging

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from ..entries import STORE_PASSWORD, KeyEntry, StoreContents

log = logging.getLogger(__name__)

MAGIC = b"\xfe\xed\xfe\xed"  # JKS store header


def _decrypt_jks_epki(encrypted_epki_der: bytes, password: str) -> Tuple[bytes, str]:
    """
    Decrypt a JKS EncryptedPrivateKeyInfo (Sun proprietary key protection)
    with the pyjks.sun_crypto primitives.
    Returns (pkcs8_private_key_info_der, algo_oid_dotted).
    """
    from pyasn1.codec.ber import decoder
    from pyasn1_modules import rfc5208
    from jks import sun_crypto  # type: ignore

    epki = decoder.decode(encrypted_epki_der, asn1Spec=rfc5208.EncryptedPrivateKeyInfo())[0]
    algo_oid_tuple = epki["encryptionAlgorithm"]["algorithm"].asTuple()
    algo_oid = ".".join(str(i) for i in algo_oid_tuple)
    # 'parameters' is NULL or absent here, never touch it
    ciphertext = epki["encryptedData"].asOctets()

    if algo_oid_tuple == sun_crypto.SUN_JKS_ALGO_ID:
        plaintext = sun_crypto.jks_pkey_decrypt(ciphertext, password)
    elif algo_oid_tuple == sun_crypto.SUN_JCE_ALGO_ID:
        raise ValueError("Unexpected JCEKS algorithm in JKS store")
    else:
        raise ValueError(f"Unknown JKS key protection algorithm: {algo_oid}")

    return plaintext, algo_oid


def _chain_der(entry) -> list[bytes]:
    out = []
    for item in getattr(entry, "cert_chain", []) or []:
        # pyjks keeps (cert_type, der) tuples
        out.append(item[1] if isinstance(item, tuple) else item.cert)
    return out


def dump(contents: StoreContents, password: str = STORE_PASSWORD) -> bytes:
    import jks  # type: ignore

    entries = []
    for alias, e in contents.private_keys.items():
        pkcs8 = e.private_key.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
        certs = [c.public_bytes(serialization.Encoding.DER) for c in e.chain]
        entries.append(jks.PrivateKeyEntry.new(alias, certs, pkcs8, "pkcs8"))
    for alias, cert in contents.trusted.items():
        entries.append(jks.TrustedCertEntry.new(alias, cert.public_bytes(serialization.Encoding.DER)))

    ks = jks.KeyStore.new("jks", entries)
    return ks.saves(password)


def load(data: bytes, password: str = STORE_PASSWORD) -> StoreContents:
    import jks  # type: ignore

    # Entries are decrypted below, pyjks trips over the NULL parameters otherwise
    ks = jks.KeyStore.loads(data, password, try_decrypt_keys=False)

    private_keys: Dict[str, KeyEntry] = {}
    for alias, e in ks.private_keys.items():
        epki_der: bytes = getattr(e, "_encrypted", b"") or b""
        if not epki_der:
            raise ValueError(f"Private key entry {alias!r} carries no key material")
        pkcs8_der, oid = _decrypt_jks_epki(epki_der, password)
        log.debug("Decrypted JKS key entry %s (%s)", alias, oid)
        key = serialization.load_der_private_key(pkcs8_der, password=None)
        chain = tuple(x509.load_der_x509_certificate(der) for der in _chain_der(e))
        private_keys[alias] = KeyEntry(alias, key, chain)

    trusted = {alias: x509.load_der_x509_certificate(e.cert) for alias, e in ks.certs.items()}
    return StoreContents(format="JKS", private_keys=private_keys, trusted=trusted)

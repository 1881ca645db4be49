
import datetime as dt
from typing import Dict, Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from .common import iso_utc
from .contracts import IdentitySummary

_DN_KEYS: Dict[str, x509.ObjectIdentifier] = {
    "CN": NameOID.COMMON_NAME,
    "OU": NameOID.ORGANIZATIONAL_UNIT_NAME,
    "O": NameOID.ORGANIZATION_NAME,
    "L": NameOID.LOCALITY_NAME,
    "ST": NameOID.STATE_OR_PROVINCE_NAME,
    "C": NameOID.COUNTRY_NAME,
    "STREET": NameOID.STREET_ADDRESS,
    "DC": NameOID.DOMAIN_COMPONENT,
    "UID": NameOID.USER_ID,
    "EMAILADDRESS": NameOID.EMAIL_ADDRESS,
}
_DN_LABELS = {oid: key for key, oid in _DN_KEYS.items()}


def build_name(dn: str) -> x509.Name:
    """
    Parse ``"CN=localhost, OU=..., C=CY"`` into a Name whose attributes are
    encoded in the written order (leftmost first).
    """
    attrs = []
    for part in dn.split(","):
        key, sep, value = part.strip().partition("=")
        oid = _DN_KEYS.get(key.strip().upper())
        if not sep or oid is None:
            raise ValueError(f"Unsupported distinguished name component: {part.strip()!r}")
        attrs.append(x509.NameAttribute(oid, value.strip()))
    if not attrs:
        raise ValueError("Empty distinguished name")
    return x509.Name(attrs)


def dn_string(name: x509.Name) -> str:
    parts = []
    for attr in name:
        label = _DN_LABELS.get(attr.oid, attr.oid.dotted_string)
        parts.append(f"{label}={attr.value}")
    return ", ".join(parts)


def _key_info(cert: x509.Certificate) -> tuple[str, Optional[int]]:
    pk = cert.public_key()
    if isinstance(pk, rsa.RSAPublicKey):
        return "RSA", pk.key_size
    return pk.__class__.__name__, getattr(pk, "key_size", None)


def _sig_hash(cert: x509.Certificate) -> Optional[str]:
    try:
        algo = cert.signature_hash_algorithm
    except Exception:
        return None
    return algo.name if isinstance(algo, hashes.HashAlgorithm) else None


def validity(cert: x509.Certificate) -> tuple[dt.datetime, dt.datetime]:
    return cert.not_valid_before_utc, cert.not_valid_after_utc


def describe(cert: x509.Certificate, alias: str) -> IdentitySummary:
    nb, na = validity(cert)
    key_algo, key_size = _key_info(cert)
    return IdentitySummary(
        alias=alias,
        subject=dn_string(cert.subject),
        issuer=dn_string(cert.issuer),
        serial_number=str(cert.serial_number),
        not_before=iso_utc(nb),
        not_after=iso_utc(na),
        fingerprint_sha256=cert.fingerprint(hashes.SHA256()).hex(),
        key_algo=key_algo,
        key_size=key_size,
        sig_algo=_sig_hash(cert),
    )

# devkeystore/forge.py
"""
Self-signed X.509v3 certificates for the development key store.

The TBSCertificate is assembled with pyasn1 (RFC 5280 structures) so the
declared signature algorithm can be corrected after a first signing pass:
the signer records the algorithm identifier it really used, and the final
certificate is re-signed with that identifier declared in the TBS as well.
"""
from __future__ import annotations

import datetime as dt
import logging
import secrets
from typing import Callable, Dict, Optional, Tuple, Type

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from pyasn1.codec.der import decoder, encoder
from pyasn1.type import univ, useful
from pyasn1_modules import rfc5280

from .common import utc_now
from .settings import DN_NAME, MIN_KEY_SIZE
from .x509meta import build_name

log = logging.getLogger(__name__)

SERIAL_BITS = 64
VALIDITY_SECONDS = 50 * 365 * 24 * 60 * 60

_SIGNATURE_ALGORITHMS: Dict[str, Tuple[univ.ObjectIdentifier, Type[hashes.HashAlgorithm]]] = {
    "SHA1withRSA": (univ.ObjectIdentifier("1.2.840.113549.1.1.5"), hashes.SHA1),
    "SHA256withRSA": (univ.ObjectIdentifier("1.2.840.113549.1.1.11"), hashes.SHA256),
}
_DER_NULL = encoder.encode(univ.Null(""))


def generate_key_pair(key_size: int = MIN_KEY_SIZE) -> rsa.RSAPrivateKey:
    if key_size < MIN_KEY_SIZE:
        raise ValueError(f"RSA key size must be at least {MIN_KEY_SIZE} bits, got {key_size}")
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def _lookup(signature_algorithm: str) -> Tuple[univ.ObjectIdentifier, Type[hashes.HashAlgorithm]]:
    try:
        return _SIGNATURE_ALGORITHMS[signature_algorithm]
    except KeyError:
        raise UnsupportedAlgorithm(f"Unsupported signature algorithm: {signature_algorithm}") from None


def _algorithm_id(oid: univ.ObjectIdentifier, with_null: bool) -> rfc5280.AlgorithmIdentifier:
    alg = rfc5280.AlgorithmIdentifier()
    alg["algorithm"] = oid
    if with_null:
        alg["parameters"] = _DER_NULL
    return alg


def _time(when: dt.datetime) -> rfc5280.Time:
    # RFC 5280 4.1.2.5: UTCTime covers 1950-2049, GeneralizedTime everything else
    t = rfc5280.Time()
    if 1950 <= when.year < 2050:
        t["utcTime"] = useful.UTCTime(when.strftime("%y%m%d%H%M%SZ"))
    else:
        t["generalTime"] = useful.GeneralizedTime(when.strftime("%Y%m%d%H%M%SZ"))
    return t


def _name(name: x509.Name) -> rfc5280.Name:
    return decoder.decode(name.public_bytes(), asn1Spec=rfc5280.Name())[0]


def _spki(public_key: rsa.RSAPublicKey) -> rfc5280.SubjectPublicKeyInfo:
    der = public_key.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)
    return decoder.decode(der, asn1Spec=rfc5280.SubjectPublicKeyInfo())[0]


def _sign(tbs: rfc5280.TBSCertificate, private_key: rsa.RSAPrivateKey, signature_algorithm: str) -> bytes:
    """
    Sign ``tbs`` and return the DER certificate. The outer signatureAlgorithm is
    the identifier of the signer actually used (OID + NULL parameters, RFC 3279),
    whatever the TBS declares.
    """
    oid, hash_cls = _lookup(signature_algorithm)
    signature = private_key.sign(encoder.encode(tbs), padding.PKCS1v15(), hash_cls())

    cert = rfc5280.Certificate()
    cert["tbsCertificate"] = tbs
    cert["signatureAlgorithm"] = _algorithm_id(oid, with_null=True)
    cert["signature"] = univ.BitString.fromOctetString(signature)
    return encoder.encode(cert)


def forge(
    private_key: rsa.RSAPrivateKey,
    dn: str = DN_NAME,
    signature_algorithm: str = "SHA1withRSA",
    now_fn: Optional[Callable[[], dt.datetime]] = None,
) -> x509.Certificate:
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise ValueError(f"Expected an RSA private key, got {private_key.__class__.__name__}")
    if private_key.key_size < MIN_KEY_SIZE:
        raise ValueError(f"RSA key size must be at least {MIN_KEY_SIZE} bits, got {private_key.key_size}")
    oid, _ = _lookup(signature_algorithm)

    valid_from = (now_fn or utc_now)().astimezone(dt.timezone.utc).replace(microsecond=0)
    valid_to = valid_from + dt.timedelta(seconds=VALIDITY_SECONDS)

    validity = rfc5280.Validity()
    validity["notBefore"] = _time(valid_from)
    validity["notAfter"] = _time(valid_to)

    owner = build_name(dn)

    tbs = rfc5280.TBSCertificate()
    tbs["version"] = "v3"
    tbs["serialNumber"] = secrets.randbits(SERIAL_BITS)
    tbs["signature"] = _algorithm_id(oid, with_null=False)
    tbs["issuer"] = _name(owner)
    tbs["validity"] = validity
    tbs["subject"] = _name(owner)
    tbs["subjectPublicKeyInfo"] = _spki(private_key.public_key())

    first = decoder.decode(_sign(tbs, private_key, signature_algorithm), asn1Spec=rfc5280.Certificate())[0]

    # Declare what the signer recorded, then sign again
    actual = first["signatureAlgorithm"]
    if encoder.encode(actual) != encoder.encode(tbs["signature"]):
        log.debug("Signer recorded a different algorithm identifier than declared; re-signing")
    tbs["signature"] = actual
    cert = x509.load_der_x509_certificate(_sign(tbs, private_key, signature_algorithm))
    log.debug("Forged certificate serial=%x not_after=%s", cert.serial_number, valid_to.isoformat())
    return cert

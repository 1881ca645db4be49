# devkeystore/keystore.py
"""
Get-or-create cache of the development TLS identity.

The store file is the only state: a missing file triggers key generation and
certificate forging, an existing one is loaded as is. Callers must serialize
calls against the same path (first-start races and non-atomic writes are known
limitations; a half-written store fails to load and has to be deleted).
"""
from __future__ import annotations

import logging
import os
import ssl
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from .contracts import IdentitySummary
from .entries import GENERATED_ALIAS, STORE_PASSWORD, StoreContents
from .errors import KeyStoreInitError
from .forge import forge, generate_key_pair
from .format_identify import guess_format
from .formats import jks as fmt_jks
from .formats import pkcs12 as fmt_pkcs12
from .path_utils import keystore_path, resolve_path
from .settings import Settings
from .x509meta import describe

log = logging.getLogger(__name__)

Dumper = Callable[[StoreContents, str], bytes]
Loader = Callable[[bytes, str], StoreContents]

_CODECS: Dict[str, Tuple[Dumper, Loader]] = {
    "JKS": (fmt_jks.dump, fmt_jks.load),
    "PKCS12": (fmt_pkcs12.dump, fmt_pkcs12.load),
}


def _spki(public_key) -> bytes:
    return public_key.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)


@dataclass(frozen=True)
class KeyManagerHandle:
    """Key material of the ``generated`` entry, ready for a TLS server context."""

    alias: str
    private_key: PrivateKeyTypes
    certificate_chain: Tuple[x509.Certificate, ...]
    trusted_certificates: Dict[str, x509.Certificate]
    store_format: str

    @classmethod
    def from_store(cls, contents: StoreContents, alias: str = GENERATED_ALIAS) -> "KeyManagerHandle":
        entry = contents.private_keys.get(alias)
        if entry is None:
            raise ValueError(f"Key store has no private key entry {alias!r}")
        if not entry.chain:
            raise ValueError(f"Private key entry {alias!r} has an empty certificate chain")
        if _spki(entry.chain[0].public_key()) != _spki(entry.private_key.public_key()):
            raise ValueError(f"Certificate of entry {alias!r} does not match its private key")
        return cls(
            alias=alias,
            private_key=entry.private_key,
            certificate_chain=entry.chain,
            trusted_certificates=dict(contents.trusted),
            store_format=contents.format,
        )

    @property
    def certificate(self) -> x509.Certificate:
        return self.certificate_chain[0]

    def private_key_pem(self) -> bytes:
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def certificate_chain_pem(self) -> bytes:
        return b"".join(c.public_bytes(serialization.Encoding.PEM) for c in self.certificate_chain)

    def ssl_context(self) -> ssl.SSLContext:
        """
        Server-side TLS context holding this identity. The OpenSSL security
        level is lowered to 0 so the 1024-bit / SHA-1 development certificate
        is accepted.
        """
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        ctx.set_ciphers("DEFAULT:@SECLEVEL=0")
        with tempfile.TemporaryDirectory(prefix="devkeystore-") as tmp:
            cert_file = Path(tmp) / "cert.pem"
            key_file = Path(tmp) / "key.pem"
            cert_file.write_bytes(self.certificate_chain_pem())
            key_file.write_bytes(self.private_key_pem())
            ctx.load_cert_chain(cert_file, key_file)
        return ctx

    def summary(self) -> IdentitySummary:
        return describe(self.certificate, self.alias)


def _codec(store_format: str) -> Tuple[Dumper, Loader]:
    try:
        return _CODECS[store_format.upper()]
    except KeyError:
        raise KeyStoreInitError("provider-unavailable", f"Unsupported key store format: {store_format}") from None


def _generate(path: Path, settings: Settings) -> StoreContents:
    dump, _ = _codec(settings.STORE_FORMAT)

    log.info(
        "Generating HTTPS key pair in %s - this may take some time. If nothing happens, "
        "try moving the mouse/typing on the keyboard to generate some entropy.",
        path,
    )

    try:
        private_key = generate_key_pair(settings.KEY_SIZE)
    except UnsupportedAlgorithm as e:
        raise KeyStoreInitError("provider-unavailable") from e
    except Exception as e:
        raise KeyStoreInitError("key-generation") from e

    try:
        cert = forge(private_key, settings.DN_NAME, settings.SIGNATURE_ALGORITHM)
        contents = StoreContents.for_identity(settings.STORE_FORMAT.upper(), private_key, cert)
        data = dump(contents, STORE_PASSWORD)
    except UnsupportedAlgorithm as e:
        raise KeyStoreInitError("provider-unavailable") from e
    except Exception as e:
        raise KeyStoreInitError("signing") from e

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(data)
    except OSError as e:
        raise KeyStoreInitError("store-io") from e
    return contents


def _load(path: Path) -> StoreContents:
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except OSError as e:
        raise KeyStoreInitError("store-io") from e

    fmt = guess_format(data, filename=path.name)
    if fmt not in _CODECS:
        raise KeyStoreInitError("store-parse", f"Unrecognised key store format in {path}")
    _, load = _codec(fmt)
    try:
        return load(data, STORE_PASSWORD)
    except Exception as e:
        raise KeyStoreInitError("store-parse") from e


def get_or_create(store_path: str | os.PathLike[str], settings: Optional[Settings] = None) -> KeyManagerHandle:
    settings = settings or Settings()
    path = resolve_path(store_path)

    if not path.exists():
        contents = _generate(path, settings)
    else:
        contents = _load(path)

    try:
        handle = KeyManagerHandle.from_store(contents)
    except ValueError as e:
        raise KeyStoreInitError("store-parse") from e

    summary = handle.summary()
    log.info(
        "Using HTTPS identity %s (serial %s, sha256 %s, valid until %s) from %s",
        summary.subject,
        summary.serial_number,
        summary.fingerprint_sha256,
        summary.not_after,
        path,
    )
    return handle


def key_manager_for_app(app_root: str | os.PathLike[str], settings: Optional[Settings] = None) -> KeyManagerHandle:
    settings = settings or Settings()
    return get_or_create(keystore_path(app_root, settings.KEYSTORE_PATH), settings)

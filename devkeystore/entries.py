from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

GENERATED_ALIAS = "generated"
TRUSTED_ALIAS = "generated-trusted"
STORE_PASSWORD = ""


@dataclass(frozen=True)
class KeyEntry:
    alias: str
    private_key: PrivateKeyTypes
    chain: Tuple[x509.Certificate, ...]


@dataclass(frozen=True)
class StoreContents:
    format: str
    private_keys: Dict[str, KeyEntry] = field(default_factory=dict)
    trusted: Dict[str, x509.Certificate] = field(default_factory=dict)

    @classmethod
    def for_identity(cls, store_format: str, private_key: PrivateKeyTypes, cert: x509.Certificate) -> "StoreContents":
        # Same certificate twice: once to terminate TLS, once to import into a trust store
        return cls(
            format=store_format,
            private_keys={GENERATED_ALIAS: KeyEntry(GENERATED_ALIAS, private_key, (cert,))},
            trusted={TRUSTED_ALIAS: cert},
        )

from typing import Optional

from .formats.jks import MAGIC as _JKS_MAGIC


def guess_format(data: bytes, filename: Optional[str] = None) -> str:
    if data.startswith(_JKS_MAGIC):
        return "JKS"
    if filename and filename.lower().endswith((".p12", ".pfx")):
        return "PKCS12"
    # PFX is a DER SEQUENCE
    if data[:1] == b"\x30":
        return "PKCS12"
    return "UNKNOWN"

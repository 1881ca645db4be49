# devkeystore/contracts.py
from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field


class IdentitySummary(BaseModel):
    alias: str = Field(..., examples=["generated"])
    subject: str
    issuer: str
    serial_number: str
    not_before: str
    not_after: str
    fingerprint_sha256: str
    key_algo: str = Field(..., examples=["RSA"])
    key_size: Optional[int] = None
    sig_algo: Optional[str] = Field(default=None, examples=["sha1"])

    @property
    def self_signed(self) -> bool:
        return self.subject == self.issuer

from __future__ import annotations

from typing import Literal, Optional

ErrorKind = Literal[
    "provider-unavailable",
    "key-generation",
    "signing",
    "store-parse",
    "store-io",
]


class KeyStoreInitError(Exception):
    """The development key store could not be created or loaded.

    ``kind`` says which stage failed; the underlying exception is chained as
    ``__cause__`` and also available as ``cause``.
    """

    def __init__(self, kind: ErrorKind, message: str = "Error loading fake key store") -> None:
        super().__init__(f"{message} ({kind})")
        self.kind = kind
        self.message = message

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__

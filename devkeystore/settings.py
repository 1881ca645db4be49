import os
from dataclasses import dataclass, field

DN_NAME = "CN=localhost, OU=Unit Testing, O=Mavericks, L=Moon Base 1, ST=Cyberspace, C=CY"
GENERATED_KEYSTORE = "conf/generated.keystore"
MIN_KEY_SIZE = 1024
STORE_FORMATS = ("JKS", "PKCS12")

@dataclass(frozen=True)
class Settings:
    LOG_LEVEL: str = field(default="INFO")
    KEYSTORE_PATH: str = field(default=GENERATED_KEYSTORE)
    DN_NAME: str = field(default=DN_NAME)
    KEY_SIZE: int = field(default=MIN_KEY_SIZE)
    STORE_FORMAT: str = field(default="JKS")
    SIGNATURE_ALGORITHM: str = field(default="SHA1withRSA")

    @staticmethod
    def from_env() -> "Settings":
        log_level = os.getenv("DEVKEYSTORE_LOG_LEVEL", "INFO").upper()
        try:
            key_size = int(os.getenv("DEVKEYSTORE_KEY_SIZE", str(MIN_KEY_SIZE)))
            if key_size < MIN_KEY_SIZE:
                raise ValueError
        except ValueError:
            key_size = MIN_KEY_SIZE
        store_format = os.getenv("DEVKEYSTORE_FORMAT", "JKS").upper()
        if store_format not in STORE_FORMATS:
            store_format = "JKS"
        return Settings(
            LOG_LEVEL=log_level,
            KEYSTORE_PATH=os.getenv("DEVKEYSTORE_PATH", GENERATED_KEYSTORE),
            DN_NAME=os.getenv("DEVKEYSTORE_DN", DN_NAME),
            KEY_SIZE=key_size,
            STORE_FORMAT=store_format,
            SIGNATURE_ALGORITHM=os.getenv("DEVKEYSTORE_SIGNATURE_ALGORITHM", "SHA1withRSA"),
        )

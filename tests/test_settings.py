# tests/test_settings.py
from devkeystore.settings import DN_NAME, Settings

def test_settings_defaults(monkeypatch):
    for var in ("LOG_LEVEL", "PATH", "DN", "KEY_SIZE", "FORMAT", "SIGNATURE_ALGORITHM"):
        monkeypatch.delenv(f"DEVKEYSTORE_{var}", raising=False)

    s = Settings.from_env()
    assert s == Settings()
    assert s.LOG_LEVEL == "INFO"
    assert s.KEYSTORE_PATH == "conf/generated.keystore"
    assert s.DN_NAME == DN_NAME
    assert s.KEY_SIZE == 1024
    assert s.STORE_FORMAT == "JKS"
    assert s.SIGNATURE_ALGORITHM == "SHA1withRSA"

def test_settings_parsing(monkeypatch):
    monkeypatch.setenv("DEVKEYSTORE_LOG_LEVEL", "debug")
    monkeypatch.setenv("DEVKEYSTORE_PATH", "var/dev.p12")
    monkeypatch.setenv("DEVKEYSTORE_DN", "CN=dev.local")
    monkeypatch.setenv("DEVKEYSTORE_KEY_SIZE", "2048")
    monkeypatch.setenv("DEVKEYSTORE_FORMAT", "pkcs12")
    monkeypatch.setenv("DEVKEYSTORE_SIGNATURE_ALGORITHM", "SHA256withRSA")

    s = Settings.from_env()
    assert s.LOG_LEVEL == "DEBUG"
    assert s.KEYSTORE_PATH == "var/dev.p12"
    assert s.DN_NAME == "CN=dev.local"
    assert s.KEY_SIZE == 2048
    assert s.STORE_FORMAT == "PKCS12"
    assert s.SIGNATURE_ALGORITHM == "SHA256withRSA"

def test_settings_fall_back_on_bad_values(monkeypatch):
    monkeypatch.setenv("DEVKEYSTORE_KEY_SIZE", "512")
    monkeypatch.setenv("DEVKEYSTORE_FORMAT", "bks")
    s = Settings.from_env()
    assert s.KEY_SIZE == 1024
    assert s.STORE_FORMAT == "JKS"

    monkeypatch.setenv("DEVKEYSTORE_KEY_SIZE", "lots")
    assert Settings.from_env().KEY_SIZE == 1024

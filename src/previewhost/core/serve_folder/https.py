"""TLS material for HTTPS preview servers."""
from __future__ import annotations

import ssl
import tempfile
from dataclasses import dataclass
from pathlib import Path

from previewhost.core.exceptions import ConfigError
from previewhost.data import read_text

BUNDLED_CERT = "dev-cert.pem"
BUNDLED_KEY = "dev-key.pem"


@dataclass(frozen=True)
class HttpsConfiguration:
    """PEM-encoded certificate and private key used verbatim by HTTPS listeners."""

    cert: str
    key: str

    @classmethod
    def from_files(cls, cert_path: str | Path, key_path: str | Path) -> HttpsConfiguration:
        try:
            cert = Path(cert_path).expanduser().read_text(encoding="utf-8")
            key = Path(key_path).expanduser().read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(
                f"Cannot read TLS material: {exc}",
                context={"cert_file": str(cert_path), "key_file": str(key_path)},
            ) from exc
        return cls(cert=cert, key=key)

    @classmethod
    def bundled(cls) -> HttpsConfiguration:
        """The self-signed localhost certificate shipped for development previews."""
        return cls(cert=read_text("certs", BUNDLED_CERT), key=read_text("certs", BUNDLED_KEY))

    @classmethod
    def resolve(cls, cert_file: str | None, key_file: str | None) -> HttpsConfiguration:
        if cert_file is None and key_file is None:
            return cls.bundled()
        if not cert_file or not key_file:
            raise ConfigError(
                "serve_folder.https needs both cert_file and key_file",
                context={"cert_file": cert_file, "key_file": key_file},
            )
        return cls.from_files(cert_file, key_file)

    def ssl_context(self) -> ssl.SSLContext:
        """Build a server-side context (TLS 1.2+).

        Raises ``ssl.SSLError`` or ``OSError`` for unusable material.
        """
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        ctx.minimum_version = ssl.TLSVersion.TLSv1_2
        # load_cert_chain only accepts paths.
        with tempfile.TemporaryDirectory(prefix="previewhost-tls-") as tmp:
            cert_path = Path(tmp) / "cert.pem"
            key_path = Path(tmp) / "key.pem"
            cert_path.write_text(self.cert, encoding="utf-8")
            key_path.write_text(self.key, encoding="utf-8")
            key_path.chmod(0o600)
            ctx.load_cert_chain(certfile=str(cert_path), keyfile=str(key_path))
        return ctx


__all__ = ["HttpsConfiguration"]

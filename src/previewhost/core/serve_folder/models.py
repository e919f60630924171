from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Hashable

from previewhost.core.exceptions import ConfigError

if TYPE_CHECKING:
    from .listener import PreviewListener

WindowId = Hashable

DEFAULT_PORT_RANGE = (2929, 4000)

DEFAULT_NO_CACHE_HEADERS: dict[str, str] = {
    "Surrogate-Control": "no-store",
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Expires": "0",
}

DEFAULT_CONTENT_TYPES: dict[str, str] = {
    ".html": "text/html",
    ".js": "text/javascript",
    ".css": "text/css",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".mp4": "video/mp4",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
}


@dataclass(frozen=True)
class ServeFolderConfig:
    """Settings shared by every preview server a manager starts."""

    host: str = "127.0.0.1"
    min_port: int = DEFAULT_PORT_RANGE[0]
    max_port: int = DEFAULT_PORT_RANGE[1]
    index_file: str = "index.html"
    confine_to_root: bool = True
    keep_alive_timeout_seconds: float = 5.0
    no_cache_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_NO_CACHE_HEADERS))
    content_types: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CONTENT_TYPES))
    default_content_type: str = "application/octet-stream"
    cert_file: str | None = None
    key_file: str | None = None

    @classmethod
    def from_raw(cls, raw: Any, *, base_dir: Path | None = None) -> ServeFolderConfig:
        """Build from the ``serve_folder`` config section.

        Relative certificate paths resolve against ``base_dir`` when given.
        """
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ConfigError("serve_folder config must be a mapping")

        ports = raw.get("port_range") or {}
        min_port = int(ports.get("min", DEFAULT_PORT_RANGE[0]))
        max_port = int(ports.get("max", DEFAULT_PORT_RANGE[1]))
        if min_port > max_port:
            raise ConfigError(
                f"serve_folder.port_range.min ({min_port}) is greater than max ({max_port})",
                context={"min_port": min_port, "max_port": max_port},
            )

        headers = raw.get("no_cache_headers")
        content_types = raw.get("content_types")
        https = raw.get("https") or {}

        def _path(v: Any) -> str | None:
            if v is None or not str(v).strip():
                return None
            p = Path(str(v).strip()).expanduser()
            if base_dir is not None and not p.is_absolute():
                p = base_dir / p
            return str(p)

        return cls(
            host=str(raw.get("host") or "127.0.0.1").strip(),
            min_port=min_port,
            max_port=max_port,
            index_file=str(raw.get("index_file") or "index.html"),
            confine_to_root=bool(raw.get("confine_to_root", True)),
            keep_alive_timeout_seconds=float(raw.get("keep_alive_timeout_seconds", 5.0)),
            no_cache_headers=(
                {str(k): str(v) for k, v in headers.items()}
                if isinstance(headers, dict)
                else dict(DEFAULT_NO_CACHE_HEADERS)
            ),
            content_types=(
                {str(k).lower(): str(v) for k, v in content_types.items()}
                if isinstance(content_types, dict)
                else dict(DEFAULT_CONTENT_TYPES)
            ),
            default_content_type=str(raw.get("default_content_type") or "application/octet-stream"),
            cert_file=_path(https.get("cert_file")),
            key_file=_path(https.get("key_file")),
        )

    @classmethod
    def load(cls, repo_root: Path | None = None) -> ServeFolderConfig:
        """Load from the layered YAML configuration of ``repo_root``."""
        from previewhost.core.config import ConfigManager

        manager = ConfigManager(repo_root)
        return cls.from_raw(manager.load_config().get("serve_folder"), base_dir=manager.repo_root)

    def content_type_for(self, path: str) -> str:
        suffix = Path(path).suffix.lower()
        return self.content_types.get(suffix, self.default_content_type)


@dataclass(frozen=True)
class ServerParams:
    """Effective parameters of one running preview server."""

    port: int
    root: str
    use_https: bool
    host: str = "127.0.0.1"

    @property
    def scheme(self) -> str:
        return "https" if self.use_https else "http"

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}/"

    def to_dict(self) -> dict[str, Any]:
        return {
            "port": self.port,
            "root": self.root,
            "use_https": self.use_https,
            "host": self.host,
            "url": self.url,
        }


@dataclass
class ServerRecord:
    window_id: WindowId
    params: ServerParams
    listener: PreviewListener


@dataclass(frozen=True)
class CloseFailure:
    window_id: WindowId
    port: int
    message: str


@dataclass
class ShutdownReport:
    """Outcome of a best-effort teardown of every preview server."""

    closed: list[WindowId] = field(default_factory=list)
    failures: list[CloseFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

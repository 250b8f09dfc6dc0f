"""Publishing backends and the factory that builds them from config."""

from __future__ import annotations

from config import Config
from publisher.backends.base import Backend, PublishResult
from publisher.backends.devto import DevtoBackend
from publisher.backends.hashnode import HashnodeBackend

BACKENDS = {
    "devto": DevtoBackend,
    "hashnode": HashnodeBackend,
}


def build_backends(cfg: Config, names: list[str] | None = None) -> list[Backend]:
    """Instantiate the selected backends (all of them by default), in order."""
    selected = names or list(BACKENDS)
    backends: list[Backend] = []
    for name in selected:
        if name not in BACKENDS:
            raise ValueError(f"Unknown backend: {name}")
        # config records are named after the backend key
        backends.append(BACKENDS[name](getattr(cfg, name)))
    return backends


__all__ = [
    "BACKENDS",
    "Backend",
    "DevtoBackend",
    "HashnodeBackend",
    "PublishResult",
    "build_backends",
]

"""
Collaborators the processor talks to but does not implement: the resource
fetcher, the request throttler, and the values passed between them.
"""
import os
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from loguru import logger

# on_exceeded(identity, ban_seconds)
BanCallback = Callable[[str, int], None]


class LocalHandle:
    """
    A fetched resource available on the local filesystem.

    Used as a context manager; ``release`` runs on every exit path.
    Subclasses own whatever cleanup the fetcher needs.
    """

    def __init__(self, path: str):
        self.path = str(path)

    def release(self) -> None:
        pass

    def __enter__(self) -> "LocalHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.path!r})"


class TemporaryFileHandle(LocalHandle):
    """Local handle for a downloaded temporary file; the file is removed on release."""

    def release(self) -> None:
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary file {self.path}: {e}")


class Fetcher(Protocol):
    def fetch(self, url: str) -> LocalHandle:
        """Make ``url`` available locally; errors propagate to the caller"""
        ...


class Throttler(Protocol):
    def is_exceeded(self, identity: str, on_exceeded: BanCallback) -> bool:
        """True when ``identity`` is over its limit; ``on_exceeded`` is invoked on a new ban"""
        ...


@dataclass(frozen=True)
class RequestContext:
    """Per-request facts supplied by the embedding service."""
    client_ip: Optional[str] = None
    # Prefixed to every log line of the request
    request_id: Optional[str] = None

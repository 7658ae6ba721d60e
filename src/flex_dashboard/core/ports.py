# src/flex_dashboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the state store, identity provider and UI swappable and makes testing easier.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..notify.notifier import Popup
    from ..view.renderer import ViewModel


class _ServerTimestamp:
    """Sentinel asking the store to fill in its own write time."""

    _instance: "_ServerTimestamp | None" = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(slots=True, frozen=True)
class DocumentSnapshot:
    """Point-in-time view of one document. data is None when the document does not exist."""

    id: str
    path: str
    data: dict[str, Any] | None = None

    @property
    def exists(self) -> bool:
        return self.data is not None


@dataclass(slots=True, frozen=True)
class CollectionSnapshot:
    """
    Full view of a collection as delivered by a live subscription.

    change_count mirrors the backend's "docChanges" length; it is informational only.
    """

    path: str
    documents: tuple[DocumentSnapshot, ...] = field(default_factory=tuple)
    change_count: int = 0

    @property
    def size(self) -> int:
        return len(self.documents)

    @property
    def empty(self) -> bool:
        return not self.documents


DocumentListener = Callable[[DocumentSnapshot], None]
CollectionListener = Callable[[CollectionSnapshot], None]
ErrorListener = Callable[[BaseException], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class StateStore(Protocol):
    """
    Path-addressed document store with live subscriptions.

    Listeners may be called from any thread; consumers must marshal onto their own loop.
    Any value equal to SERVER_TIMESTAMP is replaced by the store's write time.
    """

    async def get_document(self, path: str) -> DocumentSnapshot: ...
    async def set_document(self, path: str, data: dict[str, Any]) -> None: ...
    async def update_document(self, path: str, data: dict[str, Any]) -> None: ...  # DocumentNotFound if missing
    async def delete_document(self, path: str) -> None: ...
    async def add_document(self, collection_path: str, data: dict[str, Any]) -> str: ...

    def watch_document(
            self,
            path: str,
            on_snapshot: DocumentListener,
            on_error: ErrorListener,
    ) -> Subscription: ...

    def watch_collection(
            self,
            path: str,
            on_snapshot: CollectionListener,
            on_error: ErrorListener,
    ) -> Subscription: ...


class IdentityProvider(Protocol):
    """Yields a stable opaque user id. Raises InitializationError on failure."""

    async def sign_in(self) -> str: ...


class Presenter(Protocol):
    """Presentation layer: draws view-models and popups."""

    def draw(self, view: "ViewModel") -> None: ...
    def show_popup(self, popup: "Popup") -> None: ...
    def show_user(self, user_id: str) -> None: ...


class SoundPlayer(Protocol):
    """Fire-and-forget audio cue playback."""

    def play(self, cue: str) -> None: ...
    def shutdown(self) -> None: ...

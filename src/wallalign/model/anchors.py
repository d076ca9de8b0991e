"""
Spatial Anchor Store (collaborator interface)
=============================================
Persists a solved calibration so it can be restored on the next session.

Durable storage (WebXR persistent anchors, files, databases) lives outside this
package. The aligner only talks to the `AnchorStore` protocol; `MemoryAnchorStore`
is the in-process implementation used by the CLI and tests.
"""
from __future__ import annotations

import copy
import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class AnchorStore(Protocol):
    def save(self, key: str, payload: dict) -> None: ...
    def load(self, key: str) -> Optional[dict]: ...
    def delete(self, key: str) -> None: ...


class MemoryAnchorStore:
    """Dict-backed anchor store. Payloads are deep-copied in and out."""

    def __init__(self) -> None:
        self._anchors: dict[str, dict] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._anchors

    def __len__(self) -> int:
        return len(self._anchors)

    def save(self, key: str, payload: dict) -> None:
        logger.debug(f"Saving anchor '{key}'")
        self._anchors[key] = copy.deepcopy(payload)

    def load(self, key: str) -> Optional[dict]:
        payload = self._anchors.get(key)
        if payload is None:
            logger.debug(f"No anchor stored for '{key}'")
            return None
        return copy.deepcopy(payload)

    def delete(self, key: str) -> None:
        self._anchors.pop(key, None)

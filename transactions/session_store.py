from __future__ import annotations

import copy
import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("transactions.sessions")


class SessionStore:
    """Conversation-scoped data keyed by session id, optionally persisted to disk."""

    def __init__(self, path: Optional[Path] = None, max_sessions: Optional[int] = None) -> None:
        """Purpose: Initialize the session store and hydrate from disk if available.
        Inputs/Outputs: Inputs are an optional file path and max_sessions cap; no return.
        Side Effects / State: Loads and caches conversation data in memory.
        Dependencies: Calls _load.
        Failure Modes: JSON decode errors are logged and leave empty caches.
        If Removed: Delivery addresses are forgotten between turns.
        Testing Notes: Verify load on startup populates caches and respects max_sessions.
        """
        # Keep configuration and preload persisted sessions if present.
        self._path = path
        self._max_sessions = max_sessions
        self._lock = threading.RLock()
        self._data: Dict[str, Dict[str, Any]] = {}
        self._updated_at: Dict[str, float] = {}
        self._load()

    def _load(self) -> None:
        """Purpose: Load persisted conversation data from disk into memory.
        Inputs/Outputs: Reads from self._path; no return value.
        Side Effects / State: Populates _data and _updated_at caches.
        Dependencies: Uses json.loads.
        Failure Modes: Missing file or JSONDecodeError results in an empty cache.
        If Removed: Sessions in flight are lost on restart.
        Testing Notes: Corrupt JSON should not crash; valid JSON should hydrate caches.
        """
        # Read and decode persisted JSON if present.
        if not self._path or not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("session file %s is not valid JSON, starting empty", self._path)
            return
        sessions = payload.get("sessions", {}) if isinstance(payload, dict) else {}
        for session_id, entry in sessions.items():
            if not isinstance(entry, dict) or not isinstance(entry.get("data"), dict):
                continue
            self._data[session_id] = entry["data"]
            self._updated_at[session_id] = float(entry.get("updated_at", 0.0))
        if self._prune_sessions():
            self._persist()

    def _persist(self) -> None:
        """Purpose: Persist in-memory conversation data to disk.
        Inputs/Outputs: Writes to self._path; no return value.
        Side Effects / State: Writes a JSON file with one entry per session.
        Dependencies: Uses json.dumps and Path.write_text.
        Failure Modes: IO errors raise exceptions (not caught here).
        If Removed: Conversation data is never saved across restarts.
        Testing Notes: Ensure file is created/updated after set_data and clear.
        """
        # Serialize current caches to disk for persistence.
        if not self._path:
            return
        payload = {
            "sessions": {
                session_id: {"data": data, "updated_at": self._updated_at.get(session_id, 0.0)}
                for session_id, data in self._data.items()
            }
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")

    def get_data(self, session_id: str) -> Dict[str, Any]:
        """Purpose: Fetch the conversation data for a session.
        Inputs/Outputs: Input is session_id; output is a deep copy of the data dict.
        Side Effects / State: None.
        Dependencies: Uses in-memory _data cache.
        Failure Modes: Missing session returns empty dict.
        If Removed: Handlers lose everything stored in earlier turns.
        Testing Notes: Mutate the returned dict and verify the store is unchanged.
        """
        # Return a copy so one turn cannot mutate another session's cache.
        with self._lock:
            return copy.deepcopy(self._data.get(session_id, {}))

    def set_data(self, session_id: str, data: Dict[str, Any]) -> None:
        """Purpose: Save a session's conversation data after a turn.
        Inputs/Outputs: Inputs are session_id and data dict; no return value.
        Side Effects / State: Mutates cache, prunes old sessions, and writes to disk.
        Dependencies: Uses _prune_sessions and _persist.
        Failure Modes: Persist can raise IO errors.
        If Removed: Follow-up turns lose the stored delivery address.
        Testing Notes: Set data and verify it appears in persisted JSON.
        """
        with self._lock:
            self._data.pop(session_id, None)
            self._data[session_id] = copy.deepcopy(data)
            self._updated_at[session_id] = time.time()
            self._prune_sessions()
            self._persist()

    def clear(self, session_id: str) -> bool:
        """Drop a session's data; returns True if anything was stored."""
        with self._lock:
            existed = self._data.pop(session_id, None) is not None
            self._updated_at.pop(session_id, None)
            if existed:
                self._persist()
            return existed

    def list_sessions(self) -> List[str]:
        """Session ids, most recently updated first."""
        with self._lock:
            return self._recency_order()

    def _recency_order(self) -> List[str]:
        # Ties on updated_at fall back to insertion order; set_data re-inserts at the end.
        position = {session_id: index for index, session_id in enumerate(self._data)}
        return sorted(
            self._data,
            key=lambda sid: (self._updated_at.get(sid, 0.0), position[sid]),
            reverse=True,
        )

    def _prune_sessions(self) -> bool:
        """Purpose: Enforce max_sessions by dropping least recently updated sessions.
        Inputs/Outputs: No inputs; returns True if any sessions were removed.
        Side Effects / State: Mutates _data/_updated_at caches.
        Dependencies: Uses _max_sessions and updated_at ordering.
        Failure Modes: None; no-op when max_sessions is unset or not exceeded.
        If Removed: Abandoned sessions accumulate forever.
        Testing Notes: Set a low max_sessions and verify pruning order.
        """
        # Remove least-recent sessions when above the configured cap.
        if not self._max_sessions or self._max_sessions <= 0:
            return False
        if len(self._data) <= self._max_sessions:
            return False

        ordered = self._recency_order()
        keep_ids = set(ordered[: self._max_sessions])
        removed = [session_id for session_id in list(self._data) if session_id not in keep_ids]
        for session_id in removed:
            self._data.pop(session_id, None)
            self._updated_at.pop(session_id, None)
        logger.info("pruned sessions count=%d", len(removed))
        return bool(removed)

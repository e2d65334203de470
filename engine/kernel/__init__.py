"""
EPK Kernel — the pure engine.

Components:
  sections   — ordered section list operations (pure)
  profile    — default profile constructor and item-list helpers (pure)
  gate       — vault PIN gate state machine
  renderer   — (profile, gate state) → HTML  (pure, deterministic)
  analytics  — counter increments and the editor summary (pure)
  assembly   — bootstrap, public lookup and best-effort counters (IO)
  store      — DocumentStore interface, in-memory implementation
"""

from engine.kernel.assembly import ensure_profile, record_view, resolve_public
from engine.kernel.gate import GateState, VaultGate
from engine.kernel.profile import default_profile
from engine.kernel.renderer import render_page, visible_sections
from engine.kernel.sections import (
    add_custom,
    default_sections,
    delete,
    move,
    toggle_visibility,
    update_field,
)
from engine.kernel.store import DocumentStore, MemoryDocumentStore

__all__ = [
    "add_custom",
    "default_sections",
    "delete",
    "move",
    "toggle_visibility",
    "update_field",
    "default_profile",
    "ensure_profile",
    "resolve_public",
    "record_view",
    "GateState",
    "VaultGate",
    "render_page",
    "visible_sections",
    "DocumentStore",
    "MemoryDocumentStore",
]

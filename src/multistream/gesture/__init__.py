"""Gesture module

- types: GestureEvent / Intent
- translator: GestureTranslator (raw events -> intents)
- dispatcher: IntentDispatcher (intents -> LayoutManager)
"""

from .dispatcher import DispatchResult, IntentDispatcher
from .translator import GestureTranslator
from .types import GestureEvent, GestureKind, GesturePhase, Intent, IntentKind

__all__ = [
    "GestureEvent",
    "GestureKind",
    "GesturePhase",
    "Intent",
    "IntentKind",
    "GestureTranslator",
    "IntentDispatcher",
    "DispatchResult",
]

from .persisted_state import PersistedState, StateStore

__all__ = ["PersistedState", "StateStore"]

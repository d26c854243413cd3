"""
Todo stores for Pagekit.

One adapter per todo list backend, all behind the TodoStore contract.
All backend IO lives here and ONLY here.
"""

from backend.stores.base import Disposer, Listener, StoreError, TodoNotFound, TodoStore
from backend.stores.firebase_store import FirebaseTodoStore
from backend.stores.memory_store import MemoryTodoStore
from backend.stores.postgres_store import PostgresTodoStore
from backend.stores.supabase_store import SupabaseTodoStore

__all__ = [
    "TodoStore",
    "TodoNotFound",
    "StoreError",
    "Listener",
    "Disposer",
    "MemoryTodoStore",
    "PostgresTodoStore",
    "SupabaseTodoStore",
    "FirebaseTodoStore",
]

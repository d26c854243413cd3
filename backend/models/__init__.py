"""
Pydantic models for Pagekit.

All data shapes defined here. No imports from db, stores, or routes.
"""

from backend.models.auth import LogoutResponse, SessionResponse, SignInRequest
from backend.models.guis import GuiEvent, GuiEventResponse, SourceListing
from backend.models.todo import CreateTodoRequest, Todo, TodoActionResponse, TodoListResponse

__all__ = [
    # Auth models
    "SignInRequest",
    "SessionResponse",
    "LogoutResponse",
    # Seven GUIs models
    "GuiEvent",
    "GuiEventResponse",
    "SourceListing",
    # Todo models
    "Todo",
    "CreateTodoRequest",
    "TodoListResponse",
    "TodoActionResponse",
]

"""
Patch errors and warnings

Fatal errors abort a patch run and are raised as exceptions. Recoverable
problems are recorded as PatchWarning entries and never raised.
"""
from typing import Any, Optional, Tuple
from pydantic import BaseModel, Field
from enum import Enum


class PatchError(Exception):
    """Base class for every patch error"""
    pass


class FatalPatchError(PatchError):
    """
    Error that aborts the whole patch run

    Attributes:
        position: Path of action indices, outermost first (e.g. (3, 1) is
            nested action 1 of top-level action 3)
        scope: Collection the failing action targeted (e.g. "anims[10].trans")
        snapshot: Last good model, attached by the engine once the run aborts.
            For diagnostics only.
    """

    def __init__(self, message: str, position: Tuple[int, ...] = (), scope: str = ""):
        super().__init__(message)
        self.message = message
        self.position = tuple(position)
        self.scope = scope
        self.snapshot: Optional[Any] = None

    def __str__(self) -> str:
        if not self.position:
            return self.message
        where = ".".join(str(p) for p in self.position)
        return f"action {where} ({self.scope}): {self.message}"


class DuplicateIdError(FatalPatchError):
    """An add would create an element whose id already exists"""
    pass


class MalformedActionError(FatalPatchError):
    """Action is structurally invalid"""
    pass


class InvalidNestedScopeError(FatalPatchError):
    """Nested action list targets a collection that does not exist at that level"""
    pass


class WarningKind(str, Enum):
    """Recoverable per-action problems"""
    TARGET_NOT_FOUND = "target_not_found"
    ZERO_MATCH_DELETE = "zero_match_delete"


class PatchWarning(BaseModel):
    """Recoverable problem recorded while applying a patch"""
    kind: WarningKind = Field(..., description="Warning kind")
    position: Tuple[int, ...] = Field(..., description="Action position path, outermost first")
    scope: str = Field(..., description="Collection the action targeted")
    message: str = Field(..., description="Human readable description")

    def __str__(self) -> str:
        where = ".".join(str(p) for p in self.position)
        return f"action {where} ({self.scope}): {self.message}"

"""
Patch module

Declarative add / update / delete actions over the keyframe-motion model,
the matcher resolving their identifiers and the engine applying them.
"""
from .schema import (
    LiteralId, PatternId, IdSpec, AddAnimation, UpdateAnimation, DeleteAnimation,
    AddTransition, UpdateTransition, DeleteTransition, PatchFile
)
from .errors import (
    PatchError, FatalPatchError, DuplicateIdError, MalformedActionError, InvalidNestedScopeError,
    PatchWarning, WarningKind
)
from .config import PatchConfig, get_patch_config
from .engine import (
    apply, apply_to_collection, PatchEngine, PatchRun, RunStatus, ANIMATION_SCOPE, TRANSITION_SCOPE
)
from .parser import parse_patch, dump_patch

__all__ = [
    'LiteralId', 'PatternId', 'IdSpec', 'AddAnimation', 'UpdateAnimation', 'DeleteAnimation',
    'AddTransition', 'UpdateTransition', 'DeleteTransition', 'PatchFile',
    'PatchError', 'FatalPatchError', 'DuplicateIdError', 'MalformedActionError',
    'InvalidNestedScopeError', 'PatchWarning', 'WarningKind',
    'PatchConfig', 'get_patch_config',
    'apply', 'apply_to_collection', 'PatchEngine', 'PatchRun', 'RunStatus',
    'ANIMATION_SCOPE', 'TRANSITION_SCOPE',
    'parse_patch', 'dump_patch'
]

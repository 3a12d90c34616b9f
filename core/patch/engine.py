"""
Patch Engine

Applies an ordered list of actions to a keyframe motion model. Action i+1
always sees the model exactly as action i left it.

Errors:
- DuplicateIdError, MalformedActionError, InvalidNestedScopeError abort the
  run (raised).
- A missing update target or a delete matching nothing is recorded as a
  PatchWarning and the run continues.

Nested transition actions know the ids of the animations around their owner:
an add only creates transitions to live animations other than the owner.
InvalidNestedScopeError comes from actions built in code (or passed to
apply_to_collection) for the wrong level; parse_patch reports those while
parsing.

Every action validates before it mutates, and an update with nested actions
works on a copy of the child collection that is committed only once the
whole nested list succeeded. A fatal error therefore always leaves the
working model at the state after the last fully applied action.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple, Union
from pydantic import BaseModel, Field

from core.ir.collection import insert_at, move_to, reindex, remove_matching
from core.ir.kfm import KfmModel
from .config import PatchConfig, get_patch_config
from .errors import (
    DuplicateIdError, FatalPatchError, InvalidNestedScopeError, MalformedActionError,
    PatchWarning, WarningKind
)
from .matcher import AmbiguousTargetError, id_exists, match_all, match_one, matching_ids
from .schema import (
    ACTION_OPS, AddAnimation, AddTransition, AnimationAction, DeleteAnimation, DeleteTransition,
    LiteralId, PatchFile, PatternId, UpdateAnimation, UpdateTransition
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionScope:
    """
    One entity level the engine can patch

    Attributes:
        name: Collection name ("anims", "trans")
        noun: Short element name used in messages
        add_type / update_type / delete_type: Action classes valid at this level
        child_attr: Attribute holding the owned child collection, if any
        child: Scope of the child collection
    """
    name: str
    noun: str
    add_type: type
    update_type: type
    delete_type: type
    child_attr: Optional[str] = None
    child: Optional["CollectionScope"] = None


TRANSITION_SCOPE = CollectionScope(
    name="trans", noun="tran",
    add_type=AddTransition, update_type=UpdateTransition, delete_type=DeleteTransition
)

ANIMATION_SCOPE = CollectionScope(
    name="anims", noun="anim",
    add_type=AddAnimation, update_type=UpdateAnimation, delete_type=DeleteAnimation,
    child_attr="trans", child=TRANSITION_SCOPE
)


@dataclass(frozen=True)
class _Targets:
    """Ids a nested add may point at, and the element owning the collection"""
    owner: Optional[int]
    ids: Tuple[int, ...]
    noun: str


@dataclass
class _RunState:
    config: PatchConfig
    warnings: List[PatchWarning] = field(default_factory=list)
    applied: int = 0


class RunStatus(str, Enum):
    """Terminal state of a patch run"""
    DONE = "done"
    FAILED = "failed"


class PatchRun(BaseModel):
    """Outcome of PatchEngine.run"""
    status: RunStatus = Field(..., description="done or failed")
    model: Optional[KfmModel] = Field(None, description="Patched model; last good snapshot when failed")
    warnings: List[PatchWarning] = Field(default_factory=list, description="Recoverable warnings in order")
    error: Optional[str] = Field(None, description="Fatal error message")
    error_type: Optional[str] = Field(None, description="Fatal error class name")
    failed_at: Optional[Tuple[int, ...]] = Field(None, description="Position of the failing action")

    @property
    def done(self) -> bool:
        return self.status == RunStatus.DONE


def apply(model: KfmModel, actions: Union[PatchFile, Iterable[AnimationAction]],
          config: Optional[PatchConfig] = None) -> Tuple[KfmModel, List[PatchWarning]]:
    """
    Apply animation actions to a model.

    The given model is never mutated; the result is a new model.

    Args:
        model: Model to patch
        actions: PatchFile or ordered animation actions
        config: Engine configuration (defaults to PatchConfig())

    Returns:
        (patched model, warnings in the order they occurred)

    Raises:
        FatalPatchError: DuplicateIdError, MalformedActionError or
            InvalidNestedScopeError; `snapshot` holds the last good model
    """
    if isinstance(actions, PatchFile):
        actions = actions.anims
    actions = list(actions)

    state = _RunState(config=config or PatchConfig())
    working = model.model_copy(deep=True)
    reindex(working.anims)

    logger.info(f"Applying {len(actions)} anim action(s) to {len(working.anims)} anim(s)")
    for i, action in enumerate(actions):
        try:
            _apply_action(state, working.anims, action, ANIMATION_SCOPE, (i,), ANIMATION_SCOPE.name)
        except FatalPatchError as e:
            e.snapshot = working
            logger.error(f"Patch aborted: {e}")
            raise
        state.applied += 1

    logger.info(
        f"Patch done: {state.applied} action(s) applied, {len(state.warnings)} warning(s), "
        f"{len(working.anims)} anim(s)"
    )
    return working, state.warnings


def apply_to_collection(collection: List[Any], actions: Iterable[Any], scope: CollectionScope,
                        config: Optional[PatchConfig] = None,
                        position: Tuple[int, ...] = (), label: Optional[str] = None,
                        owner: Optional[int] = None,
                        target_ids: Optional[Iterable[int]] = None) -> List[PatchWarning]:
    """
    Apply actions of one scope to a collection in place.

    Unlike apply(), the collection is mutated directly and a fatal error may
    leave it with the actions before the failing one applied.

    Args:
        collection: Elements of `scope` (mutated)
        actions: Ordered actions valid for `scope`
        scope: ANIMATION_SCOPE or TRANSITION_SCOPE
        config: Engine configuration
        position: Position prefix for warnings and errors
        label: Scope label for warnings and errors (defaults to scope.name)
        owner: ID of the animation owning a transition collection
        target_ids: Animation IDs a transition add may point at. Without them
            literal adds are taken as given and pattern adds are malformed.

    Returns:
        Warnings in order
    """
    state = _RunState(config=config or PatchConfig())
    label = label or scope.name
    targets = None
    if target_ids is not None:
        targets = _Targets(owner=owner, ids=tuple(target_ids), noun=ANIMATION_SCOPE.noun)
    for i, action in enumerate(actions):
        _apply_action(state, collection, action, scope, position + (i,), label, targets)
    return state.warnings


class PatchEngine:
    """
    Patch engine with configuration and a done/failed run result

    Usage:
        engine = PatchEngine()
        run = engine.run(model, patch_file)
        if run.done:
            ...
    """

    def __init__(self, config: Optional[PatchConfig] = None):
        """
        Initialize engine

        Args:
            config: Engine configuration (read from the environment if None)
        """
        self.config = config or get_patch_config()

    def apply(self, model: KfmModel,
              actions: Union[PatchFile, Iterable[AnimationAction]]) -> Tuple[KfmModel, List[PatchWarning]]:
        """Apply actions; fatal errors are raised"""
        return apply(model, actions, self.config)

    def run(self, model: KfmModel, actions: Union[PatchFile, Iterable[AnimationAction]]) -> PatchRun:
        """Apply actions; fatal errors end in a failed PatchRun instead of raising"""
        try:
            patched, warnings = self.apply(model, actions)
        except FatalPatchError as e:
            return PatchRun(
                status=RunStatus.FAILED,
                model=e.snapshot,
                error=str(e),
                error_type=type(e).__name__,
                failed_at=e.position
            )
        return PatchRun(status=RunStatus.DONE, model=patched, warnings=warnings)


def _apply_action(state: _RunState, collection: List[Any], action: Any, scope: CollectionScope,
                  position: Tuple[int, ...], label: str, targets: Optional[_Targets] = None) -> None:
    if isinstance(action, scope.add_type):
        _on_add(state, collection, action, scope, position, label, targets)
    elif isinstance(action, scope.update_type):
        _on_update(state, collection, action, scope, position, label)
    elif isinstance(action, scope.delete_type):
        _on_delete(state, collection, action, scope, position, label)
    elif _is_action(action):
        raise InvalidNestedScopeError(
            f"{type(action).__name__} cannot target '{scope.name}'", position, label
        )
    else:
        raise MalformedActionError(f"not an action: {action!r}", position, label)
    logger.debug(f"Applied action {position} ({label}): {action.op} {action.id}")


def _on_add(state: _RunState, collection: List[Any], action: Any, scope: CollectionScope,
            position: Tuple[int, ...], label: str, targets: Optional[_Targets]) -> None:
    new_ids = _resolve_add_ids(state, action, scope, position, label, targets)
    if not new_ids:
        return

    for new_id in new_ids:
        if id_exists(collection, new_id):
            raise DuplicateIdError(f"{scope.noun} `{new_id}` already exists", position, label)

    if scope.child_attr:
        children = getattr(action, scope.child_attr)
        seen = set()
        for child in children:
            if child.id in seen:
                raise DuplicateIdError(
                    f"{scope.noun} `{action.id}` would have duplicate {scope.child.noun} `{child.id}`",
                    position, label
                )
            seen.add(child.id)

    index = _checked_index(state, action.index, len(collection), position, label)
    for offset, new_id in enumerate(new_ids):
        # A pattern add keeps its expansion together, in target order
        insert_at(collection, None if index is None else index + offset, action.build(new_id))


def _resolve_add_ids(state: _RunState, action: Any, scope: CollectionScope,
                     position: Tuple[int, ...], label: str, targets: Optional[_Targets]) -> List[int]:
    """IDs of the elements an add creates, in insert order"""
    spec = action.id
    if isinstance(spec, int):
        return [spec]

    if targets is None:
        if isinstance(spec, PatternId):
            raise MalformedActionError(
                f"{scope.noun} pattern {spec} has no {ANIMATION_SCOPE.noun} ids to expand against",
                position, label
            )
        return [spec.value]

    if isinstance(spec, LiteralId) and spec.value == targets.owner:
        raise MalformedActionError(
            f"{targets.noun} `{targets.owner}` cannot have a {scope.noun} to itself", position, label
        )

    new_ids = [i for i in matching_ids(targets.ids, spec) if i != targets.owner]
    if not new_ids:
        _warn(state, WarningKind.TARGET_NOT_FOUND, position, label,
              f"no {targets.noun} matches `{spec}`; add skipped")
    return new_ids


def _on_update(state: _RunState, collection: List[Any], action: Any, scope: CollectionScope,
               position: Tuple[int, ...], label: str) -> None:
    if isinstance(action.id, PatternId):
        raise MalformedActionError(
            f"update needs a literal {scope.noun} id, got pattern {action.id}", position, label
        )
    try:
        target = match_one(collection, action.id)
    except AmbiguousTargetError as e:
        raise DuplicateIdError(str(e), position, label) from e

    if target is None:
        _warn(state, WarningKind.TARGET_NOT_FOUND, position, label,
              f"{scope.noun} `{action.id}` not found; update skipped")
        return

    # Validate everything before touching the target
    fields = action.merge_fields()
    element_fields = type(target).model_fields
    for name, value in fields.items():
        if name not in element_fields:
            raise MalformedActionError(f"{scope.noun} has no field '{name}'", position, label)
        if value is None and element_fields[name].default is not None:
            raise MalformedActionError(f"'{name}' of {scope.noun} cannot be null", position, label)

    if action.index is not None:
        _checked_index(state, action.index, len(collection) - 1, position, label)

    nested = _nested_actions(action, scope)
    new_children = None
    if nested is not None:
        child_label = f"{label}[{target.id}].{scope.child_attr}"
        targets = _Targets(owner=target.id, ids=tuple(e.id for e in collection), noun=scope.noun)
        new_children = [child.model_copy(deep=True) for child in getattr(target, scope.child_attr)]
        for j, child_action in enumerate(nested):
            _apply_action(state, new_children, child_action, scope.child, position + (j,), child_label, targets)

    # Commit
    for name, value in fields.items():
        setattr(target, name, value.model_copy(deep=True) if isinstance(value, BaseModel) else value)
    if new_children is not None:
        setattr(target, scope.child_attr, new_children)
    if action.index is not None:
        move_to(collection, target, action.index)


def _on_delete(state: _RunState, collection: List[Any], action: Any, scope: CollectionScope,
               position: Tuple[int, ...], label: str) -> None:
    matches = match_all(collection, action.id)
    if not matches:
        _warn(state, WarningKind.ZERO_MATCH_DELETE, position, label,
              f"no {scope.noun} matches `{action.id}`; delete skipped")
        return

    deleted_ids = {element.id for element in matches}
    removed = remove_matching(collection, lambda element: element.id in deleted_ids)

    if scope.child_attr:
        # Owned children go with their parent
        cascaded = sum(len(getattr(element, scope.child_attr)) for element in matches)
        logger.debug(f"Deleted {removed} {scope.noun}(s) with {cascaded} owned {scope.child.noun}(s)")

        if state.config.prune_inbound_transitions:
            pruned = 0
            for element in collection:
                pruned += remove_matching(
                    getattr(element, scope.child_attr), lambda child: child.id in deleted_ids
                )
            if pruned:
                logger.debug(f"Pruned {pruned} inbound {scope.child.noun}(s) to deleted {scope.noun}(s)")


def _nested_actions(action: Any, scope: CollectionScope) -> Optional[List[Any]]:
    if scope.child_attr is None:
        return None
    return getattr(action, scope.child_attr, None)


def _checked_index(state: _RunState, index: Optional[int], last: int,
                   position: Tuple[int, ...], label: str) -> Optional[int]:
    """Validate a target position; `last` is the largest position that is in range"""
    if index is None:
        return None
    if index < 0:
        raise MalformedActionError(f"negative index {index}", position, label)
    if index > last and not state.config.clamp_index:
        raise MalformedActionError(f"index {index} out of range (max {max(last, 0)})", position, label)
    return index


def _is_action(value: Any) -> bool:
    return isinstance(value, BaseModel) and getattr(value, "op", None) in ACTION_OPS


def _warn(state: _RunState, kind: WarningKind, position: Tuple[int, ...], label: str, message: str) -> None:
    warning = PatchWarning(kind=kind, position=position, scope=label, message=message)
    state.warnings.append(warning)
    logger.warning(f"Patch warning: {warning}")

"""
Patch Schema

A patch is an ordered list of add / update / delete actions per entity
level. Animation-level updates may carry a nested, ordered list of
transition-level actions.

Textual form (one-key mapping per action):

    anims:
    - add:
        id: 4
        path: ./mech/mech_gunbot_h_ondie.kf
    - update:
        id: 1
        trans:
        - delete:
            id: /.*/
        - add:
            id: 3
            type: chain_animation
"""
import re
from typing import Any, ClassVar, Dict, List, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_serializer

from core.ir.kfm import Animation, Transition, TransitionExt, TransitionType

ACTION_OPS = ("add", "update", "delete")


class LiteralId(BaseModel):
    """Identifier matching exactly one id"""
    value: int = Field(..., ge=0, description="Element ID")

    def matches(self, element_id: int) -> bool:
        return str(element_id) == str(self.value)

    @model_serializer
    def _serialize(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


class PatternId(BaseModel):
    """
    Identifier matching every id whose decimal form contains a regex match.

    The search is unanchored: `/1/` matches 1, 10 and 21. Use `^...$` to
    anchor.
    """
    pattern: str = Field(..., description="Regular expression (without delimiters)")

    _regex: Any = PrivateAttr(default=None)

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regex /{value}/: {e}") from e
        return value

    def model_post_init(self, __context: Any) -> None:
        self._regex = re.compile(self.pattern)

    def matches(self, element_id: int) -> bool:
        return self._regex.search(str(element_id)) is not None

    @model_serializer
    def _serialize(self) -> str:
        return f"/{self.pattern}/"

    def __str__(self) -> str:
        return f"/{self.pattern}/"


IdSpec = Union[LiteralId, PatternId]


def coerce_id_spec(value: Any) -> Any:
    """
    Turn a raw identifier into a LiteralId or PatternId.

    Integers (and digit-only strings) are literals; strings wrapped in
    slashes are patterns.
    """
    if isinstance(value, (LiteralId, PatternId)):
        return value
    if isinstance(value, bool):
        raise ValueError(f"expected an integer id or a /regex/ pattern, got {value!r}")
    if isinstance(value, int):
        return LiteralId(value=value)
    if isinstance(value, str):
        text = value.strip()
        if len(text) >= 2 and text.startswith("/") and text.endswith("/"):
            return PatternId(pattern=text[1:-1])
        if text.isdigit():
            return LiteralId(value=int(text))
        raise ValueError(f"expected an integer id or a /regex/ pattern, got {value!r}")
    return value


class _Action(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Fields that never merge onto the target element
    control_fields: ClassVar[Tuple[str, ...]] = ("op", "id", "index")

    def merge_fields(self) -> Dict[str, Any]:
        """Fields explicitly given on this action that overwrite element attributes"""
        return {
            name: getattr(self, name)
            for name in sorted(self.model_fields_set)
            if name not in self.control_fields
        }

    def to_patch_entry(self) -> Dict[str, Any]:
        """Render as the one-key mapping used in patch files"""
        body = self.model_dump(mode="json", exclude={"op"}, exclude_unset=True)
        return {self.op: body}


class _MatchingAction(_Action):
    """Action that locates its target(s) through a literal id or an id pattern"""

    @field_validator("id", mode="before", check_fields=False)
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return coerce_id_spec(value)


class AddTransition(_MatchingAction):
    """
    Add transitions to the owning animation

    A literal id adds one transition. A pattern adds one transition to every
    matching animation except the owner, in animation order.
    """
    op: Literal["add"] = Field(default="add", description="Operation type")
    id: IdSpec = Field(..., description="Target animation ID or /regex/ pattern")
    type: TransitionType = Field(default=TransitionType.DEFAULT_NON_SYNC, description="Transition type")
    ext: Optional[TransitionExt] = Field(None, description="Extra data")
    index: Optional[int] = Field(None, ge=0, description="Insert position (None = append)")

    def build(self, tran_id: int) -> Transition:
        """Create the transition to `tran_id` this action adds"""
        ext = self.ext.model_copy(deep=True) if self.ext else None
        return Transition(id=tran_id, type=self.type, ext=ext)


class UpdateTransition(_MatchingAction):
    """Update fields of an existing transition"""
    op: Literal["update"] = Field(default="update", description="Operation type")
    id: IdSpec = Field(..., description="Literal ID of the transition to update")
    type: Optional[TransitionType] = Field(None, description="New transition type")
    ext: Optional[TransitionExt] = Field(None, description="New extra data (explicit null clears it)")
    index: Optional[int] = Field(None, ge=0, description="New position")


class DeleteTransition(_MatchingAction):
    """Delete one transition (literal id) or every matching transition (pattern)"""
    op: Literal["delete"] = Field(default="delete", description="Operation type")
    id: IdSpec = Field(..., description="Literal ID or /regex/ pattern")


TransitionAction = Union[AddTransition, UpdateTransition, DeleteTransition]

TRANSITION_ACTIONS = {"add": AddTransition, "update": UpdateTransition, "delete": DeleteTransition}


class AddAnimation(_Action):
    """
    Add an animation

    `trans` is the literal starting list of transitions, not an action list.
    """
    op: Literal["add"] = Field(default="add", description="Operation type")
    id: int = Field(..., ge=0, description="ID of the new animation")
    path: str = Field(default="", description="Path to the .kf clip")
    index: Optional[int] = Field(None, ge=0, description="Insert position (None = append)")
    trans: List[Transition] = Field(default_factory=list, description="Starting transitions")

    @field_validator("trans", mode="before")
    @classmethod
    def _reject_nested_actions(cls, value: Any) -> Any:
        for item in value or []:
            if isinstance(item, _Action) or _looks_like_action_entry(item):
                raise ValueError(
                    "nested actions are not allowed on add; give the starting transitions directly"
                )
        return value

    def build(self, anim_id: int) -> Animation:
        """Create the animation this action adds (index is assigned on insert)"""
        return Animation(
            id=anim_id,
            path=self.path,
            trans=[t.model_copy(deep=True) for t in self.trans]
        )


class UpdateAnimation(_MatchingAction):
    """Update fields of an existing animation, optionally patching its transitions"""
    op: Literal["update"] = Field(default="update", description="Operation type")
    id: IdSpec = Field(..., description="Literal ID of the animation to update")
    path: Optional[str] = Field(None, description="New clip path")
    index: Optional[int] = Field(None, ge=0, description="New position")
    trans: Optional[List[TransitionAction]] = Field(None, description="Nested transition actions")

    control_fields: ClassVar[Tuple[str, ...]] = ("op", "id", "index", "trans")

    @field_validator("trans", mode="before")
    @classmethod
    def _unwrap_nested(cls, value: Any) -> Any:
        if value is None:
            return value
        return [unwrap_action_entry(item, TRANSITION_ACTIONS) for item in value]

    def to_patch_entry(self) -> Dict[str, Any]:
        entry = super().to_patch_entry()
        if self.trans is not None:
            entry["update"]["trans"] = [action.to_patch_entry() for action in self.trans]
        return entry


class DeleteAnimation(_MatchingAction):
    """Delete one animation (literal id) or every matching animation (pattern)"""
    op: Literal["delete"] = Field(default="delete", description="Operation type")
    id: IdSpec = Field(..., description="Literal ID or /regex/ pattern")


AnimationAction = Union[AddAnimation, UpdateAnimation, DeleteAnimation]

ANIMATION_ACTIONS = {"add": AddAnimation, "update": UpdateAnimation, "delete": DeleteAnimation}


class PatchFile(BaseModel):
    """Ordered animation actions"""
    anims: List[AnimationAction] = Field(default_factory=list, description="Animation actions in source order")

    @field_validator("anims", mode="before")
    @classmethod
    def _unwrap_entries(cls, value: Any) -> Any:
        if value is None:
            return []
        return [unwrap_action_entry(item, ANIMATION_ACTIONS) for item in value]

    def to_patch_document(self) -> Dict[str, Any]:
        """Render as the mapping used in patch files"""
        return {"anims": [action.to_patch_entry() for action in self.anims]}


def _looks_like_action_entry(item: Any) -> bool:
    return isinstance(item, dict) and len(item) == 1 and next(iter(item)) in ACTION_OPS


def unwrap_action_entry(entry: Any, variants: Dict[str, type]) -> Any:
    """
    Build an action from its one-key mapping form.

    Accepts `{"add": {...}}`, a flat mapping carrying `op`, or an already
    built action (returned as is).
    """
    if isinstance(entry, _Action):
        return entry
    if not isinstance(entry, dict):
        raise ValueError(f"action must be a mapping, got {type(entry).__name__}")
    if _looks_like_action_entry(entry):
        op, body = next(iter(entry.items()))
        if not isinstance(body, dict):
            raise ValueError(f"body of '{op}' must be a mapping")
        return variants[op].model_validate(body)
    op = entry.get("op")
    if op in variants:
        return variants[op].model_validate(entry)
    raise ValueError(f"action must have exactly one of the keys {', '.join(ACTION_OPS)}")

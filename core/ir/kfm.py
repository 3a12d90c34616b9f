"""
Keyframe Motion Internal Representation (KFM-IR)

Models a keyframe-motion (.kfm) document: the mesh it drives, its default
transitions, the ordered animations and the transitions owned by each one.
"""
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator
from enum import Enum


class TransitionType(str, Enum):
    """Transition behaviour"""
    BLEND = "blend"
    MORPH = "morph"
    CROSSFADE = "crossfade"
    CHAIN_ANIMATION = "chain_animation"
    DEFAULT_SYNC = "default_sync"
    DEFAULT_NON_SYNC = "default_non_sync"


class KfmHeader(BaseModel):
    """File header"""
    version: int = Field(default=2, ge=0, le=255, description="Format version byte")
    is_little_endian: bool = Field(default=True, description="Byte order of the body")


class ModelRef(BaseModel):
    """Mesh the motion file animates"""
    path: str = Field(..., description="Path to the .nif model")
    root: str = Field(..., description="Name of the accumulation root node")


class DefaultTransitions(BaseModel):
    """Transitions used when an animation does not declare its own"""
    sync_type: TransitionType = Field(default=TransitionType.MORPH, description="Default sync transition type")
    sync_duration: float = Field(default=0.25, description="Default sync transition duration (s)")
    non_sync_type: TransitionType = Field(default=TransitionType.BLEND, description="Default non-sync transition type")
    non_sync_duration: float = Field(default=0.25, description="Default non-sync transition duration (s)")


class IntermediateAnimation(BaseModel):
    """Intermediate animation played between two text keys"""
    start_key: str = Field(..., description="Text key in the source animation")
    target_key: str = Field(..., description="Text key in the target animation")


class ChainAnimation(BaseModel):
    """One link of a chained transition"""
    id: int = Field(..., ge=0, description="Animation ID to chain through")
    duration: float = Field(..., description="Duration of this link (s)")


class TransitionExt(BaseModel):
    """Extra data carried by non-default transition types"""
    duration: float = Field(..., description="Transition duration (s)")
    intermediate_anims: List[IntermediateAnimation] = Field(default_factory=list, description="Intermediate animations")
    chain_anims: List[ChainAnimation] = Field(default_factory=list, description="Chained animations")


class Transition(BaseModel):
    """
    Transition from the owning animation to the animation with the same ID.

    Position inside the owning list is the only ordering information a
    transition carries.
    """
    id: int = Field(..., ge=0, description="Target animation ID (unique within the owning animation)")
    type: TransitionType = Field(default=TransitionType.DEFAULT_NON_SYNC, description="Transition type")
    ext: Optional[TransitionExt] = Field(None, description="Extra data (absent for default_* types)")


class Animation(BaseModel):
    """Animation sequence"""
    id: int = Field(..., ge=0, description="Unique animation identifier")
    path: str = Field(default="", description="Path to the .kf clip")
    index: int = Field(default=0, ge=0, description="Position within the animation list")
    trans: List[Transition] = Field(default_factory=list, description="Transitions owned by this animation")

    @model_validator(mode="after")
    def _check_unique_transition_ids(self) -> "Animation":
        duplicates = _duplicate_ids(self.trans)
        if duplicates:
            raise ValueError(f"anim {self.id} has duplicate tran ids: {duplicates}")
        return self


class Layer(BaseModel):
    """Layer of a layer group"""
    id: int = Field(..., ge=0, description="Animation ID")
    priority: int = Field(default=0, description="Layer priority")
    weight: float = Field(default=1.0, description="Blend weight")
    ease_in_time: float = Field(default=0.0, description="Ease in time (s)")
    ease_out_time: float = Field(default=0.0, description="Ease out time (s)")
    sync_id: int = Field(default=0, ge=0, description="Animation ID to synchronise with")


class LayerGroup(BaseModel):
    """Named group of layered animations"""
    id: int = Field(..., ge=0, description="Layer group identifier")
    name: str = Field(..., description="Layer group name")
    layers: List[Layer] = Field(default_factory=list, description="Layers in this group")


class KfmModel(BaseModel):
    """
    Complete keyframe motion body

    `anims` is the collection the patch engine operates on.
    """
    model: ModelRef = Field(..., description="Animated model")
    default_trans: DefaultTransitions = Field(default_factory=DefaultTransitions, description="Default transitions")
    anims: List[Animation] = Field(default_factory=list, description="Ordered animations")
    layer_groups: List[LayerGroup] = Field(default_factory=list, description="Layer groups")

    @model_validator(mode="after")
    def _check_unique_animation_ids(self) -> "KfmModel":
        duplicates = _duplicate_ids(self.anims)
        if duplicates:
            raise ValueError(f"duplicate anim ids: {duplicates}")
        return self

    def get_anim(self, anim_id: int) -> Optional[Animation]:
        """Get animation by ID"""
        return next((a for a in self.anims if a.id == anim_id), None)

    class Config:
        json_schema_extra = {
            "example": {
                "model": {
                    "path": "./../../mesh/newenemies/mech_order_darkling_1.nif",
                    "root": "Accumulation_Root"
                },
                "default_trans": {
                    "sync_type": "morph",
                    "sync_duration": 0.25,
                    "non_sync_type": "blend",
                    "non_sync_duration": 0.25
                },
                "anims": [
                    {
                        "id": 0,
                        "path": "./mech/mech_gunbot_m_idle.kf",
                        "index": 0,
                        "trans": [
                            {"id": 1, "type": "default_non_sync"}
                        ]
                    },
                    {
                        "id": 1,
                        "path": "./mech/mech_gunbot_m_run.kf",
                        "index": 1,
                        "trans": [
                            {
                                "id": 0,
                                "type": "blend",
                                "ext": {"duration": 0.3, "intermediate_anims": [], "chain_anims": []}
                            }
                        ]
                    }
                ],
                "layer_groups": []
            }
        }


class KfmDocument(BaseModel):
    """Header plus body, as stored in a .kfm file or its YAML form"""
    header: KfmHeader = Field(default_factory=KfmHeader, description="File header")
    body: KfmModel = Field(..., description="Motion body")


def _duplicate_ids(elements) -> List[int]:
    seen = set()
    duplicates = []
    for element in elements:
        if element.id in seen and element.id not in duplicates:
            duplicates.append(element.id)
        seen.add(element.id)
    return duplicates

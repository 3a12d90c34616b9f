"""
Internal Representation (IR) module
Contains the keyframe-motion (KFM-IR) schema and ordered collection helpers
"""

from .kfm import (
    TransitionType, KfmHeader, ModelRef, DefaultTransitions, IntermediateAnimation,
    ChainAnimation, TransitionExt, Transition, Animation, Layer, LayerGroup, KfmModel, KfmDocument
)
from .collection import reindex, insert_at, remove_matching, find, move_to

__all__ = [
    'TransitionType', 'KfmHeader', 'ModelRef', 'DefaultTransitions', 'IntermediateAnimation',
    'ChainAnimation', 'TransitionExt', 'Transition', 'Animation', 'Layer', 'LayerGroup',
    'KfmModel', 'KfmDocument',
    'reindex', 'insert_at', 'remove_matching', 'find', 'move_to'
]

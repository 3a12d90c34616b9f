"""
Identifier matching

Resolves a LiteralId / PatternId against a collection as it stands right
now. Nothing is cached between calls, so every action sees the effect of
the actions before it.
"""
from typing import Iterable, List, Optional, TypeVar
from pydantic import BaseModel

from core.ir.collection import find
from .schema import IdSpec, LiteralId, PatternId

E = TypeVar("E", bound=BaseModel)


class AmbiguousTargetError(LookupError):
    """A literal id resolved to more than one element"""
    pass


def match_all(collection: List[E], spec: IdSpec) -> List[E]:
    """Every element whose id matches spec, in collection order"""
    return find(collection, lambda element: spec.matches(element.id))


def match_one(collection: List[E], spec: LiteralId) -> Optional[E]:
    """
    Resolve a literal id to at most one element

    Args:
        collection: Collection to search
        spec: Literal identifier

    Returns:
        Matching element or None

    Raises:
        TypeError: spec is a pattern
        AmbiguousTargetError: more than one element carries the id
    """
    if isinstance(spec, PatternId):
        raise TypeError(f"pattern {spec} cannot select a single target")
    matches = match_all(collection, spec)
    if len(matches) > 1:
        raise AmbiguousTargetError(f"id {spec} matches {len(matches)} elements")
    return matches[0] if matches else None


def id_exists(collection: List[E], element_id: int) -> bool:
    """Whether an element with exactly this id exists"""
    return any(element.id == element_id for element in collection)


def matching_ids(ids: Iterable[int], spec: IdSpec) -> List[int]:
    """IDs matching spec, in the given order"""
    return [element_id for element_id in ids if spec.matches(element_id)]

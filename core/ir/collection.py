"""
Ordered collection helpers

Animations and transitions live in plain lists whose order is their
position. Every structural change goes through these helpers so that an
element's `index` (where it has one) always equals its list position.
"""
from typing import Callable, List, Optional, TypeVar
from pydantic import BaseModel

E = TypeVar("E", bound=BaseModel)


def reindex(collection: List[E]) -> None:
    """Rewrite `index` of every element that has one to its zero-based position"""
    for position, element in enumerate(collection):
        if "index" in type(element).model_fields:
            element.index = position


def insert_at(collection: List[E], index: Optional[int], element: E) -> int:
    """
    Insert an element, displacing whatever currently sits at `index`.

    Args:
        collection: Target collection (mutated)
        index: Insert position; None or anything past the end appends
        element: Element to insert

    Returns:
        Position the element ended up at
    """
    if index is None or index > len(collection):
        index = len(collection)
    if index < 0:
        raise ValueError(f"Negative index: {index}")
    collection.insert(index, element)
    reindex(collection)
    return index


def remove_matching(collection: List[E], predicate: Callable[[E], bool]) -> int:
    """
    Remove every element matching predicate

    Returns:
        Number of removed elements
    """
    kept = [element for element in collection if not predicate(element)]
    removed = len(collection) - len(kept)
    if removed:
        collection[:] = kept
        reindex(collection)
    return removed


def find(collection: List[E], predicate: Callable[[E], bool]) -> List[E]:
    """Return matching elements in collection order"""
    return [element for element in collection if predicate(element)]


def move_to(collection: List[E], element: E, index: int) -> int:
    """
    Move an element already in the collection to a new position.

    Positions past the end move the element to the end.

    Returns:
        Position the element ended up at
    """
    current = next(i for i, e in enumerate(collection) if e is element)
    del collection[current]
    return insert_at(collection, index, element)

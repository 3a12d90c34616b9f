"""
Patch Source Parser

Reads the YAML patch format into a PatchFile and writes it back. JSON is
accepted as well, being a subset of YAML.

Any structural problem is reported as MalformedActionError carrying the
position of the offending action. Nested actions under a transition
are reported as InvalidNestedScopeError.
"""
import logging
from typing import Any, Dict, Tuple, Union

import yaml
from pydantic import ValidationError

from .errors import InvalidNestedScopeError, MalformedActionError
from .schema import ACTION_OPS, ANIMATION_ACTIONS, TRANSITION_ACTIONS, PatchFile

logger = logging.getLogger(__name__)

COLLECTION_KEYS = ("anims",)


def parse_patch(source: Union[str, bytes]) -> PatchFile:
    """
    Parse patch source text

    Args:
        source: YAML (or JSON) text

    Returns:
        PatchFile with actions in source order

    Raises:
        MalformedActionError: invalid YAML, unknown keys or invalid actions
        InvalidNestedScopeError: nested actions under a transition action
    """
    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise MalformedActionError(f"patch source is not valid YAML: {e}") from e

    if data is None:
        return PatchFile()
    if not isinstance(data, dict):
        raise MalformedActionError("patch source must be a mapping with an 'anims' key")

    unknown = [str(key) for key in data if key not in COLLECTION_KEYS]
    if unknown:
        raise MalformedActionError(f"unknown top-level key(s): {', '.join(unknown)}")

    entries = data.get("anims") or []
    if not isinstance(entries, list):
        raise MalformedActionError("'anims' must be a list of actions")

    actions = [_parse_anim_entry(entry, i) for i, entry in enumerate(entries)]
    logger.debug(f"Parsed {len(actions)} anim action(s)")
    return PatchFile(anims=actions)


def dump_patch(patch_file: PatchFile) -> str:
    """Render a PatchFile as YAML patch source"""
    return yaml.safe_dump(patch_file.to_patch_document(), sort_keys=False, default_flow_style=False)


def _parse_anim_entry(entry: Any, i: int) -> Any:
    position = (i,)
    op, body = _split_entry(entry, position, "anims")

    if op == "update" and isinstance(body.get("trans"), list):
        label = f"anims[{body.get('id')}].trans"
        body = dict(body)
        body["trans"] = [
            _parse_tran_entry(nested, position + (j,), label) for j, nested in enumerate(body["trans"])
        ]

    return _build(ANIMATION_ACTIONS, op, body, position, "anims")


def _parse_tran_entry(entry: Any, position: Tuple[int, ...], label: str) -> Any:
    op, body = _split_entry(entry, position, label)
    if "trans" in body:
        raise InvalidNestedScopeError("tran has no nested collection 'trans'", position, label)
    return _build(TRANSITION_ACTIONS, op, body, position, label)


def _split_entry(entry: Any, position: Tuple[int, ...], label: str) -> Tuple[str, Dict[str, Any]]:
    if not isinstance(entry, dict) or len(entry) != 1:
        raise MalformedActionError(
            f"action must be a mapping with exactly one of the keys {', '.join(ACTION_OPS)}",
            position, label
        )
    op, body = next(iter(entry.items()))
    if op not in ACTION_OPS:
        raise MalformedActionError(f"unknown action '{op}'", position, label)
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise MalformedActionError(f"body of '{op}' must be a mapping", position, label)
    return op, body


def _build(variants: Dict[str, type], op: str, body: Dict[str, Any],
           position: Tuple[int, ...], label: str) -> Any:
    try:
        return variants[op].model_validate(body)
    except ValidationError as e:
        raise MalformedActionError(f"invalid {op}: {_describe(e)}", position, label) from e


def _describe(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        loc = ".".join(str(p) for p in detail.get("loc", ()))
        parts.append(f"{loc}: {detail.get('msg')}" if loc else str(detail.get("msg")))
    return "; ".join(parts)

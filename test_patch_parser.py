"""
Tests for the patch schema and YAML patch parser
"""
import pytest
from pydantic import ValidationError

from core.ir.kfm import TransitionType
from core.patch.errors import InvalidNestedScopeError, MalformedActionError
from core.patch.parser import dump_patch, parse_patch
from core.patch.schema import (
    AddAnimation, AddTransition, DeleteAnimation, DeleteTransition, LiteralId, PatchFile, PatternId,
    UpdateAnimation, UpdateTransition
)

GUNBOT_PATCH = """\
anims:
- add:
    id: 4
    path: ./mech/mech_gunbot_h_ondie.kf
    index: 0
    trans:
    - id: 0
      type: blend
      ext:
        duration: 0.2
- update:
    id: 1
    path: ./mech/mech_gunbot_m_walk.kf
    trans:
    - delete:
        id: /.*/
    - add:
        id: 3
        type: chain_animation
        ext:
          duration: 0.5
          chain_anims:
          - id: 2
            duration: 0.1
    - update:
        id: 0
        ext: null
- delete:
    id: /^2$/
"""


def test_parse_keeps_source_order():
    patch = parse_patch(GUNBOT_PATCH)
    assert [type(a) for a in patch.anims] == [AddAnimation, UpdateAnimation, DeleteAnimation]


def test_parse_add_animation():
    add = parse_patch(GUNBOT_PATCH).anims[0]
    assert add.id == 4
    assert add.index == 0
    assert add.trans[0].id == 0
    assert add.trans[0].type == TransitionType.BLEND
    assert add.trans[0].ext.duration == 0.2


def test_parse_nested_transition_actions():
    update = parse_patch(GUNBOT_PATCH).anims[1]
    assert update.id == LiteralId(value=1)
    assert update.path == "./mech/mech_gunbot_m_walk.kf"
    delete, add, nested_update = update.trans
    assert isinstance(delete, DeleteTransition)
    assert delete.id == PatternId(pattern=".*")
    assert isinstance(add, AddTransition)
    assert add.type == TransitionType.CHAIN_ANIMATION
    assert add.ext.chain_anims[0].id == 2
    assert isinstance(nested_update, UpdateTransition)
    assert "ext" in nested_update.model_fields_set
    assert nested_update.ext is None


def test_parse_delete_pattern():
    delete = parse_patch(GUNBOT_PATCH).anims[2]
    assert delete.id == PatternId(pattern="^2$")


def test_merge_fields_only_explicit():
    update = parse_patch(GUNBOT_PATCH).anims[1]
    assert update.merge_fields() == {"path": "./mech/mech_gunbot_m_walk.kf"}
    nested_update = update.trans[2]
    assert nested_update.merge_fields() == {"ext": None}


def test_empty_source():
    assert parse_patch("").anims == []
    assert parse_patch("anims: []").anims == []


def test_dump_and_parse_again():
    patch = parse_patch(GUNBOT_PATCH)
    again = parse_patch(dump_patch(patch))
    assert again.to_patch_document() == patch.to_patch_document()


def test_to_patch_entry():
    action = UpdateAnimation(id=1, trans=[DeleteTransition(id="/.*/")])
    assert action.to_patch_entry() == {"update": {"id": 1, "trans": [{"delete": {"id": "/.*/"}}]}}


def test_patch_file_accepts_entry_mappings():
    patch = PatchFile(anims=[{"add": {"id": 3}}, {"op": "delete", "id": 1}])
    assert isinstance(patch.anims[0], AddAnimation)
    assert isinstance(patch.anims[1], DeleteAnimation)


def test_invalid_yaml():
    with pytest.raises(MalformedActionError):
        parse_patch("anims: [")


def test_unknown_top_level_key():
    with pytest.raises(MalformedActionError):
        parse_patch("anims: []\nlayers: []\n")


def test_anims_must_be_list():
    with pytest.raises(MalformedActionError):
        parse_patch("anims:\n  add:\n    id: 1\n")


def test_entry_with_two_actions():
    with pytest.raises(MalformedActionError) as exc_info:
        parse_patch("anims:\n- add: {id: 1}\n  delete: {id: 2}\n")
    assert exc_info.value.position == (0,)
    assert exc_info.value.scope == "anims"


def test_unknown_action():
    with pytest.raises(MalformedActionError) as exc_info:
        parse_patch("anims:\n- add: {id: 1}\n- replace: {id: 2}\n")
    assert exc_info.value.position == (1,)


def test_unknown_field():
    with pytest.raises(MalformedActionError) as exc_info:
        parse_patch("anims:\n- add: {id: 1, pth: ./a.kf}\n")
    assert "pth" in str(exc_info.value)


def test_invalid_regex():
    with pytest.raises(MalformedActionError):
        parse_patch("anims:\n- delete: {id: '/(/'}\n")


def test_add_requires_literal_id():
    with pytest.raises(MalformedActionError):
        parse_patch("anims:\n- add: {id: '/.*/'}\n")


def test_add_rejects_nested_actions():
    with pytest.raises(MalformedActionError):
        parse_patch("anims:\n- add:\n    id: 1\n    trans:\n    - add: {id: 2}\n")


def test_nested_error_position():
    source = (
        "anims:\n"
        "- delete: {id: 7}\n"
        "- update:\n"
        "    id: 10\n"
        "    trans:\n"
        "    - delete: {id: 1}\n"
        "    - add: {id: 2, type: warp}\n"
    )
    with pytest.raises(MalformedActionError) as exc_info:
        parse_patch(source)
    assert exc_info.value.position == (1, 1)
    assert exc_info.value.scope == "anims[10].trans"


def test_update_transition_rejects_unknown_field():
    with pytest.raises(ValidationError):
        UpdateTransition(id=1, duration=0.5)


def test_parse_pattern_transition_add():
    patch = parse_patch("anims:\n- update:\n    id: 5\n    trans:\n    - add: {id: /.*/, type: blend}\n")
    add = patch.anims[0].trans[0]
    assert isinstance(add, AddTransition)
    assert add.id == PatternId(pattern=".*")
    assert add.to_patch_entry() == {"add": {"id": "/.*/", "type": "blend"}}


def test_nested_actions_under_transition():
    source = (
        "anims:\n"
        "- update:\n"
        "    id: 10\n"
        "    trans:\n"
        "    - update:\n"
        "        id: 1\n"
        "        trans:\n"
        "        - delete: {id: 2}\n"
    )
    with pytest.raises(InvalidNestedScopeError) as exc_info:
        parse_patch(source)
    assert exc_info.value.position == (0, 0)
    assert exc_info.value.scope == "anims[10].trans"

import pytest

from core.ir.kfm import Animation, KfmModel, ModelRef, Transition

GUNBOT_CLIPS = [
    "./mech/mech_gunbot_m_idle.kf",
    "./mech/mech_gunbot_m_run.kf",
    "./mech/mech_gunbot_m_attack.kf",
    "./mech/mech_gunbot_h_die.kf",
]

GUNBOT_MESH = "./../../mesh/newenemies/mech_order_darkling_1.nif"


@pytest.fixture
def gunbot_model():
    """
    Four animations, each with a default transition to every other one.
    """
    anims = []
    for anim_id, clip in enumerate(GUNBOT_CLIPS):
        trans = [Transition(id=other) for other in range(len(GUNBOT_CLIPS)) if other != anim_id]
        anims.append(Animation(id=anim_id, path=clip, index=anim_id, trans=trans))
    return KfmModel(model=ModelRef(path=GUNBOT_MESH, root="Accumulation_Root"), anims=anims)


@pytest.fixture
def make_model():
    """
    Build a model from animation ids; `trans` maps an animation id to its
    transition ids.
    """
    def _make(anim_ids, trans=None):
        trans = trans or {}
        anims = [
            Animation(
                id=anim_id,
                path=f"./anim_{anim_id}.kf",
                index=i,
                trans=[Transition(id=t) for t in trans.get(anim_id, [])]
            )
            for i, anim_id in enumerate(anim_ids)
        ]
        return KfmModel(model=ModelRef(path="./mesh.nif", root="Root"), anims=anims)
    return _make


GUNBOT_SOURCE = """\
header:
  version: 2
  is_little_endian: true
body:
  model:
    path: ./../../mesh/newenemies/mech_order_darkling_1.nif
    root: Accumulation_Root
  default_trans:
    sync_type: morph
    sync_duration: 0.25
    non_sync_type: blend
    non_sync_duration: 0.25
  anims:
  - id: 0
    path: ./mech/mech_gunbot_m_idle.kf
    index: 0
    trans:
    - id: 1
      type: default_non_sync
  - id: 1
    path: ./mech/mech_gunbot_m_run.kf
    index: 1
    trans:
    - id: 0
      type: blend
      ext:
        duration: 0.3
        intermediate_anims:
        - start_key: end
          target_key: start
        chain_anims: []
  layer_groups: []
"""


@pytest.fixture
def gunbot_source():
    """YAML form of a two-animation gunbot document"""
    return GUNBOT_SOURCE.encode("utf-8")

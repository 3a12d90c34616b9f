"""
Tests for the YAML keyframe motion adapter
"""
import pytest

from adapters.kfm import FormatError, KfmExporter, KfmImporter, YamlFormatAdapter
from core.ir.kfm import KfmDocument, TransitionType


def test_decode_document(gunbot_source):
    document = KfmImporter().decode(gunbot_source)

    assert document.header.version == 2
    assert document.header.is_little_endian is True
    assert document.body.model.root == "Accumulation_Root"
    assert [a.id for a in document.body.anims] == [0, 1]
    tran = document.body.get_anim(1).trans[0]
    assert tran.type == TransitionType.BLEND
    assert tran.ext.duration == 0.3
    assert tran.ext.intermediate_anims[0].start_key == "end"


def test_decode_bare_body():
    source = "model: {path: ./a.nif, root: Root}\nanims:\n- id: 3\n  path: ./a.kf\n"

    document = KfmImporter().decode(source)

    assert document.header.version == 2
    assert document.body.anims[0].id == 3
    assert document.body.anims[0].trans == []


def test_decode_model(gunbot_source):
    model = KfmImporter().decode_model(gunbot_source)
    assert model.get_anim(0).path == "./mech/mech_gunbot_m_idle.kf"


@pytest.mark.parametrize("raw", [
    b"body: [",
    b"- just\n- a list\n",
    b"layer_groups: []\n",
    b"\xff\xfe\x00",
])
def test_decode_rejects_malformed_input(raw):
    with pytest.raises(FormatError):
        KfmImporter().decode(raw)


def test_decode_rejects_duplicate_anim_ids():
    source = "model: {path: ./a.nif, root: Root}\nanims:\n- id: 1\n- id: 1\n"
    with pytest.raises(FormatError):
        KfmImporter().decode(source)


def test_decode_rejects_missing_model():
    with pytest.raises(FormatError):
        KfmImporter().decode("anims: []\n")


def test_encode_omits_absent_ext(gunbot_source):
    document = KfmImporter().decode(gunbot_source)

    data = KfmExporter().to_dict(document)

    idle_tran = data["body"]["anims"][0]["trans"][0]
    assert idle_tran == {"id": 1, "type": "default_non_sync"}
    assert list(data) == ["header", "body"]


def test_encode_decode(gunbot_source):
    adapter = YamlFormatAdapter()
    document = adapter.decode(gunbot_source)

    again = adapter.decode(adapter.encode(document))

    assert isinstance(again, KfmDocument)
    assert again == document

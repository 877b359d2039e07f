# tests/test_presets.py
from edital_tutor.presets import get_preset, load_presets


def test_presets_load():
    presets = load_presets()
    assert [p.id for p in presets] == ["pc-rs-2024", "pp-sp-2025"]
    for preset in presets:
        assert preset.disciplines
        assert all(d.topics for d in preset.disciplines)


def test_preset_ids_are_unique():
    for preset in load_presets():
        ids = [d.id for d in preset.disciplines] + [t.id for d in preset.disciplines for t in d.topics]
        assert len(ids) == len(set(ids))


def test_get_preset():
    assert get_preset("pp-sp-2025").disciplines[0].id == "ppsp-d1"
    assert get_preset("missing") is None

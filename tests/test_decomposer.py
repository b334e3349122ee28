"""
Unit tests for opening, repairing, rendering and saving skins.
"""

import itertools
import logging

import numpy as np
import pytest

from ears_skin.config import Config
from ears_skin.container import Container, EraseRegion, read_container, write_container
from ears_skin.emissive import EmissivePalette
from ears_skin.errors import DecodeError, EncodeError, InconsistentStateError, InvalidArgumentError
from ears_skin.features import (
    EarAnchor,
    EarData,
    EarMode,
    FeatureModel,
    SnoutData,
    TailData,
    TailMode,
    WingData,
    WingMode,
    from_feature_model,
    write_raw_features,
)
from ears_skin.io import decode_image, encode_image
from ears_skin.layers import (
    LAYER_BASE,
    LAYER_CAPE,
    LAYER_EMISSIVE_BASE,
    LAYER_EMISSIVE_CAPE,
    LAYER_EMISSIVE_WING,
    LAYER_WING,
    SkinEdit,
    check_consistency,
    decompose_for_render,
    decompose_skin,
    open_session,
    recompose_for_save,
    recompose_skin,
    repair_features,
)

RED = (255, 0, 0)


@pytest.fixture
def full_model() -> FeatureModel:
    return FeatureModel(
        ear=EarData(mode=EarMode.ABOVE, anchor=EarAnchor.FRONT),
        tail=TailData(mode=TailMode.DOWN, segments=2, bends=(15.0, 0.0, -15.0, 30.0)),
        snout=SnoutData(width=3, height=2, depth=1),
        wing=WingData(mode=WingMode.SYMMETRIC_DUAL, animated=True),
        claws=True,
        chest_size=0.25,
        cape_enabled=True,
        emissive=True,
    )


@pytest.fixture
def decorated_skin(blank_skin, full_model, wing_png, legacy_cape_png) -> bytes:
    """A skin with every feature, its textures, a palette and one erase region."""
    blank_skin[10, 40] = (*RED, 255)
    session = open_session(encode_image(blank_skin))
    edit = SkinEdit(
        features=full_model,
        base=blank_skin,
        wing_image=wing_png,
        cape_image=legacy_cape_png,
        erase_regions=[EraseRegion(0, 0, 8, 8)],
        palette=EmissivePalette((RED,)),
    )
    return recompose_for_save(session, edit)


class TestOpenSession:
    """Tests for open_session."""

    def test_blank_skin(self, blank_skin_png):
        """Test that a plain skin has no features and an empty container."""
        session = open_session(blank_skin_png)
        assert session.features is None
        assert session.palette is None
        assert session.container == Container(version=0)

    def test_default_container_version(self, blank_skin_png):
        """Test that new containers take the configured version."""
        session = open_session(blank_skin_png, Config(default_container_version=5))
        assert session.container.version == 5

    def test_decorated_skin(self, decorated_skin, full_model, wing_png, legacy_cape_png):
        """Test that a saved skin reopens with the same state."""
        session = open_session(decorated_skin)
        assert session.features == full_model
        assert session.palette == EmissivePalette((RED,))
        assert session.container.get("wing") == wing_png
        assert session.container.get("cape") == legacy_cape_png
        assert session.container.get_erase_regions() == [EraseRegion(0, 0, 8, 8)]

    def test_repairs_on_load(self, blank_skin, caplog):
        """Test that flags without backing data are cleared when opening."""
        model = FeatureModel(cape_enabled=True, emissive=True, wing=WingData(mode=WingMode.ASYMMETRIC_LEFT))
        write_raw_features(blank_skin, from_feature_model(model), 1)
        with caplog.at_level(logging.INFO, logger="ears_skin.layers.decomposer"):
            session = open_session(encode_image(blank_skin))
        assert session.features == FeatureModel()
        assert "disabling cape" in caplog.text
        assert "disabling wings" in caplog.text
        assert "disabling emissive" in caplog.text

    def test_corrupt_image(self):
        """Test that undecodable bytes are reported."""
        with pytest.raises(DecodeError):
            open_session(b"not an image")


class TestRepair:
    """Tests for repair_features and check_consistency."""

    @pytest.mark.parametrize("has_wing,has_cape,has_palette", list(itertools.product([False, True], repeat=3)))
    def test_idempotent(self, has_wing, has_cape, has_palette):
        """Test that repairing twice equals repairing once for every data combination."""
        container = Container()
        if has_wing:
            container.set("wing", b"w")
        if has_cape:
            container.set("cape", b"c")
        palette = EmissivePalette((RED,)) if has_palette else None
        model = FeatureModel(wing=WingData(mode=WingMode.SYMMETRIC_SINGLE), cape_enabled=True, emissive=True)

        once = repair_features(model, container, palette)
        twice = repair_features(once, container, palette)
        assert once == twice
        assert (once.wing is not None) == has_wing
        assert once.cape_enabled == has_cape
        assert once.emissive == has_palette
        check_consistency(once, container, palette)

    def test_scenario_b_wing_without_texture(self):
        """Test that wings without a texture are disabled."""
        model = FeatureModel(wing=WingData(mode=WingMode.SYMMETRIC_DUAL, animated=True))
        assert repair_features(model, Container(), None).wing is None

    def test_never_enables(self):
        """Test that data alone never turns a feature on."""
        container = Container(entries={"wing": b"w", "cape": b"c"})
        model = FeatureModel()
        assert repair_features(model, container, EmissivePalette((RED,))) is model

    def test_empty_palette_is_missing(self):
        """Test that an empty palette cannot back the emissive flag."""
        model = FeatureModel(emissive=True)
        assert not repair_features(model, Container(), EmissivePalette()).emissive

    def test_empty_reserved_blob_counts_as_present(self):
        """Test that key presence decides, even for a zero-length blob."""
        model = FeatureModel(wing=WingData(mode=WingMode.SYMMETRIC_DUAL))
        assert repair_features(model, Container(entries={"wing": b""}), None) is model

    def test_check_consistency_raises(self):
        """Test that an unrepaired mismatch is reported."""
        model = FeatureModel(cape_enabled=True)
        with pytest.raises(InconsistentStateError):
            check_consistency(model, Container(), None)

    def test_no_features(self):
        """Test that skins without features pass through."""
        assert repair_features(None, Container(), None) is None
        check_consistency(None, Container(), None)


class TestDecompose:
    """Tests for decompose_for_render."""

    def test_all_layers(self, decorated_skin):
        """Test that every layer is produced for a fully decorated skin."""
        layers = decompose_skin(decorated_skin)
        assert set(layers) == {
            LAYER_BASE,
            LAYER_WING,
            LAYER_CAPE,
            LAYER_EMISSIVE_BASE,
            LAYER_EMISSIVE_WING,
            LAYER_EMISSIVE_CAPE,
        }
        assert layers[LAYER_WING].shape == (12, 12, 4)
        assert layers[LAYER_CAPE].shape == (32, 64, 4)

    def test_base_is_erased_and_opaque(self, decorated_skin):
        """Test that hosting alpha is stripped and erase regions applied."""
        base = decompose_skin(decorated_skin)[LAYER_BASE]
        assert not base[0:8, 0:8].any()
        assert (base[0:8, 8:24, 3] == 255).all()
        assert (base[8:16, :, 3] == 255).all()

    def test_erase_does_not_touch_textures(self, decorated_skin):
        """Test that wing and cape layers ignore erase regions."""
        layers = decompose_skin(decorated_skin)
        assert (layers[LAYER_WING][..., 3] == 255).all()

    def test_emissive_overlay(self, decorated_skin):
        """Test that palette colors glow and the rest is transparent."""
        layers = decompose_skin(decorated_skin)
        overlay = layers[LAYER_EMISSIVE_BASE]
        assert tuple(overlay[10, 40]) == (*RED, 255)
        assert not overlay[20, 20].any()
        assert not layers[LAYER_EMISSIVE_WING].any()

    def test_emissive_disabled_by_config(self, decorated_skin):
        """Test that overlays can be turned off."""
        layers = decompose_skin(decorated_skin, Config(render_emissive=False))
        assert set(layers) == {LAYER_BASE, LAYER_WING, LAYER_CAPE}

    def test_legacy_cape_kept_when_conversion_off(self, decorated_skin):
        """Test that the cape is left in its stored layout when asked."""
        layers = decompose_skin(decorated_skin, Config(convert_legacy_cape=False))
        assert layers[LAYER_CAPE].shape == (16, 20, 4)

    def test_blank_skin_only_base(self, blank_skin_png, blank_skin):
        """Test that a plain skin renders as its base only."""
        layers = decompose_skin(blank_skin_png)
        assert list(layers) == [LAYER_BASE]
        assert np.array_equal(layers[LAYER_BASE], blank_skin)

    def test_repairs_session_before_render(self, blank_skin_png):
        """Test that a session edited into an inconsistent state is repaired."""
        session = open_session(blank_skin_png)
        session.features = FeatureModel(cape_enabled=True)
        layers = decompose_for_render(session)
        assert LAYER_CAPE not in layers
        assert session.features == FeatureModel()

    def test_empty_wing_blob_fails_to_render(self, blank_skin):
        """Test that a present but empty wing texture is a decode error."""
        write_raw_features(blank_skin, from_feature_model(FeatureModel(wing=WingData(WingMode.SYMMETRIC_DUAL))), 1)
        write_container(Container(entries={"wing": b""}), blank_skin)
        session = open_session(encode_image(blank_skin))
        assert session.features.wing is not None
        with pytest.raises(DecodeError):
            decompose_for_render(session)


class TestRecompose:
    """Tests for recompose_for_save."""

    def test_scenario_b_wing_disabled_on_save(self, blank_skin_png):
        """Test that saving wings without a texture disables them."""
        model = FeatureModel(wing=WingData(mode=WingMode.SYMMETRIC_DUAL, animated=True))
        data = recompose_skin(blank_skin_png, SkinEdit(features=model))
        session = open_session(data)
        assert session.features.wing is None
        assert "wing" not in session.container

    def test_custom_entries_survive_feature_edits(self, decorated_skin, full_model):
        """Test that unknown keys are carried through a save."""
        pixels = decode_image(decorated_skin)
        container = read_container(pixels)
        container.set("mymod:extra", bytes([1, 2, 3]))
        write_container(container, pixels)

        edit = SkinEdit(features=FeatureModel(claws=True, cape_enabled=True))
        session = open_session(recompose_skin(encode_image(pixels), edit))
        assert session.container.get("mymod:extra") == bytes([1, 2, 3])
        assert session.container.get("cape") is not None
        assert "wing" not in session.container
        assert session.features == FeatureModel(claws=True, cape_enabled=True)

    def test_replace_custom_entries(self, blank_skin_png):
        """Test that custom entries can be replaced as a whole."""
        first = recompose_skin(blank_skin_png, SkinEdit(custom_entries={"a": b"1", "b": b""}))
        second = recompose_skin(first, SkinEdit(custom_entries={"c": b"3"}))
        assert open_session(first).container.custom_entries() == {"a": b"1", "b": b""}
        assert open_session(second).container.custom_entries() == {"c": b"3"}

    def test_reserved_custom_entry(self, blank_skin_png):
        """Test that reserved keys cannot be set as custom entries."""
        with pytest.raises(InvalidArgumentError):
            recompose_skin(blank_skin_png, SkinEdit(custom_entries={"wing": b"x"}))

    def test_empty_container_strips_alpha(self, decorated_skin):
        """Test that removing every entry leaves no hidden container."""
        edit = SkinEdit(features=FeatureModel(), erase_regions=[])
        data = recompose_skin(decorated_skin, edit)
        assert read_container(decode_image(data)) is None

    def test_empty_container_kept_when_configured(self, blank_skin_png):
        """Test that an empty container can be written explicitly."""
        config = Config(strip_empty_container_alpha=False, default_container_version=2)
        data = recompose_skin(blank_skin_png, SkinEdit(), config)
        assert read_container(decode_image(data)) == Container(version=2)

    def test_emissive_without_palette(self, blank_skin_png):
        """Test that emissive is disabled when no palette is available."""
        data = recompose_skin(blank_skin_png, SkinEdit(features=FeatureModel(emissive=True)))
        assert not open_session(data).features.emissive

    def test_v0_features(self, blank_skin_png):
        """Test that the model's data version picks the block layout."""
        model = FeatureModel(claws=True, data_version=0)
        session = open_session(recompose_skin(blank_skin_png, SkinEdit(features=model)))
        assert session.features == model

    def test_session_updated(self, blank_skin_png, wing_png):
        """Test that the session reflects the saved state."""
        session = open_session(blank_skin_png)
        model = FeatureModel(wing=WingData(mode=WingMode.SYMMETRIC_DUAL))
        recompose_for_save(session, SkinEdit(features=model, wing_image=wing_png))
        assert session.features == model
        assert session.container.get("wing") == wing_png

    def test_repeated_saves_are_stable(self, decorated_skin):
        """Test that saving without edits does not change the skin state."""
        first = open_session(decorated_skin)
        session = open_session(recompose_skin(decorated_skin, SkinEdit()))
        assert session.features == first.features
        assert session.container == first.container
        assert session.palette == first.palette

    @pytest.mark.parametrize(
        "model",
        [
            FeatureModel(tail=TailData(mode=TailMode.DOWN, segments=0)),
            FeatureModel(tail=TailData(mode=TailMode.DOWN, segments=5)),
            FeatureModel(ear=EarData(mode=12)),
            FeatureModel(tail=TailData(mode=7)),
            FeatureModel(chest_size=float("nan")),
            FeatureModel(snout=SnoutData(width=300, height=1, depth=1)),
        ],
    )
    def test_unrepresentable_features_fail_to_save(self, blank_skin_png, model):
        """Test that values the reader would reject are refused at save time."""
        session = open_session(blank_skin_png)
        with pytest.raises(EncodeError):
            recompose_for_save(session, SkinEdit(features=model))
        assert session.features is None

    def test_empty_container_version_not_kept(self, blank_skin_png):
        """Test that stripping an empty container also drops its version."""
        session = open_session(blank_skin_png)
        session.container.version = 5
        data = recompose_for_save(session, SkinEdit())
        assert open_session(data).container == Container(version=0)

    def test_small_skin_without_features(self):
        """Test that non-skin images save without a container."""
        pixels = np.full((16, 16, 4), 255, dtype=np.uint8)
        data = recompose_skin(encode_image(pixels), SkinEdit())
        assert np.array_equal(decode_image(data), pixels)

    def test_small_skin_with_features(self):
        """Test that features cannot be written to images without a feature block."""
        pixels = np.full((16, 16, 4), 255, dtype=np.uint8)
        with pytest.raises(EncodeError):
            recompose_skin(encode_image(pixels), SkinEdit(features=FeatureModel()))

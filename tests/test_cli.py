"""
Tests for the command line entry point.
"""

import json

import pytest

from ears_skin.container import EraseRegion
from ears_skin.features import FeatureModel, WingData, WingMode
from ears_skin.layers import open_session
from ears_skin.main import main
from ears_skin.wire import features_to_wire


@pytest.fixture
def skin_path(tmp_path, blank_skin_png):
    path = tmp_path / "skin.png"
    path.write_bytes(blank_skin_png)
    return path


class TestInspect:
    """Tests for the inspect command."""

    def test_blank_skin(self, skin_path, capsys):
        """Test that a plain skin reports no features and an empty container."""
        main(["inspect", str(skin_path)])
        report = json.loads(capsys.readouterr().out)
        assert report["size"] == [64, 64]
        assert report["features"] is None
        assert report["container"] == {"version": 0, "entries": {}}

    def test_corrupt_file(self, tmp_path, capsys):
        """Test that unreadable skins exit with status 1."""
        path = tmp_path / "broken.png"
        path.write_bytes(b"nope")
        with pytest.raises(SystemExit) as excinfo:
            main(["inspect", str(path)])
        assert excinfo.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestErase:
    """Tests for the erase command."""

    def test_write_and_list(self, skin_path, tmp_path, capsys):
        """Test that regions are written and then listed."""
        output = tmp_path / "erased.png"
        main(["erase", str(skin_path), "--region", "0,0,8,8", "--region", "8,8,4,4", "--output", str(output)])
        session = open_session(output.read_bytes())
        assert session.container.get_erase_regions() == [EraseRegion(0, 0, 8, 8), EraseRegion(8, 8, 4, 4)]

        capsys.readouterr()
        main(["erase", str(output)])
        out = capsys.readouterr().out
        assert "Erase regions: 2" in out
        assert "8,8 4x4" in out

    def test_clear(self, skin_path, tmp_path):
        """Test that --clear removes every region."""
        output = tmp_path / "erased.png"
        main(["erase", str(skin_path), "--region", "0,0,8,8", "--output", str(output)])
        main(["erase", str(output), "--clear", "--output", str(output)])
        assert open_session(output.read_bytes()).container.get_erase_regions() is None

    def test_bad_region(self, skin_path):
        """Test that malformed regions are rejected by the parser."""
        with pytest.raises(SystemExit):
            main(["erase", str(skin_path), "--region", "0,0,300,8"])


class TestRenderAndApply:
    """Tests for the render and apply commands."""

    def test_apply_then_render(self, skin_path, tmp_path, wing_png, capsys):
        """Test that an edit file is applied and its layers rendered."""
        import base64

        model = FeatureModel(wing=WingData(mode=WingMode.SYMMETRIC_DUAL))
        edit_path = tmp_path / "edit.json"
        edit_path.write_text(
            json.dumps(
                {
                    "features": features_to_wire(model),
                    "wingImage": base64.b64encode(wing_png).decode("ascii"),
                }
            )
        )
        output = tmp_path / "out.png"
        main(["apply", str(skin_path), "--edit", str(edit_path), "--output", str(output)])
        assert open_session(output.read_bytes()).features == model

        layers_dir = tmp_path / "layers"
        main(["render", str(output), "--output-dir", str(layers_dir)])
        assert (layers_dir / "base.png").exists()
        assert (layers_dir / "wing.png").exists()
        assert "Layers: base, wing" in capsys.readouterr().out

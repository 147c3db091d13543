from __future__ import annotations

import json

from PIL import Image

import cli
from api.schemas import encode_png
from tests.factories import make_snapshot


def _write(path, snapshot: dict) -> str:
    path.write_text(json.dumps(snapshot), encoding="utf-8")
    return str(path)


class TestCompareCommand:
    def test_identical(self, tmp_path, capsys):
        before = _write(tmp_path / "a.json", make_snapshot())
        after = _write(tmp_path / "b.json", make_snapshot())
        assert cli.main(["compare", before, after]) == cli.EXIT_IDENTICAL
        assert "identical" in capsys.readouterr().out

    def test_different(self, tmp_path, capsys):
        before = _write(tmp_path / "a.json", make_snapshot())
        after = _write(tmp_path / "b.json", make_snapshot(grid_bounds={"width": 8, "height": 8}))
        assert cli.main(["compare", before, after]) == cli.EXIT_DIFFERENT
        assert "grid bounds" in capsys.readouterr().out

    def test_json_output(self, tmp_path, capsys):
        before = _write(tmp_path / "a.json", make_snapshot())
        after = _write(tmp_path / "b.json", make_snapshot(tags=[]))
        assert cli.main(["compare", "--json", before, after]) == cli.EXIT_DIFFERENT
        out = json.loads(capsys.readouterr().out)
        assert out["changed_dimensions"] == ["tags"]
        assert out["anything"] is True

    def test_unreadable_snapshot(self, tmp_path, capsys):
        before = _write(tmp_path / "a.json", make_snapshot())
        assert cli.main(["compare", before, str(tmp_path / "missing.json")]) == cli.EXIT_UNREADABLE
        assert "Could not read snapshot" in capsys.readouterr().err

    def test_oversized_tile_image(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        after = make_snapshot()
        after["tilesets"][0]["tiles"][0] = encode_png(Image.new("1", (64, 64)))
        before = _write(tmp_path / "a.json", make_snapshot())
        after_path = _write(tmp_path / "b.json", after)
        assert cli.main(["compare", before, after_path]) == cli.EXIT_UNREADABLE
        assert "Could not read snapshot" in capsys.readouterr().err

    def test_duplicate_cel_frames(self, tmp_path, capsys):
        after = make_snapshot()
        after["layers"][1]["cels"].append({"frame": 0})
        before = _write(tmp_path / "a.json", make_snapshot())
        after_path = _write(tmp_path / "b.json", after)
        assert cli.main(["compare", before, after_path]) == cli.EXIT_UNREADABLE
        assert "more than one cel" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert cli.main([]) == cli.EXIT_IDENTICAL
    assert "compare" in capsys.readouterr().out

# tests/test_cli.py

import json

from schedule_builder.app.main import cli


def _write_tree(tmp_path, tree):
    path = tmp_path / "tree.json"
    path.write_text(json.dumps(tree), encoding="utf-8")
    return str(path)


def test_cli_prints_result(tmp_path, capsys, wall_beam_tree, monkeypatch):
    monkeypatch.setenv("OUT_DIR", str(tmp_path / "unused"))

    cli([_write_tree(tmp_path, wall_beam_tree), "--parent", "Walls", "--child", "Structural Framing"])

    body = json.loads(capsys.readouterr().out)
    assert body["status"] == "succeeded"
    assert body["table_rows"][0]["mark"] == "W1"
    assert not (tmp_path / "unused").exists()


def test_cli_out_dir_overrides_settings(tmp_path, capsys, wall_beam_tree, monkeypatch):
    monkeypatch.setenv("OUT_DIR", str(tmp_path / "from_env"))
    out_dir = tmp_path / "from_flag"

    cli([_write_tree(tmp_path, wall_beam_tree), "--parent", "Walls", "--out-dir", str(out_dir)])

    assert (out_dir / "schedule_snapshot.json").exists()
    assert not (tmp_path / "from_env").exists()


def test_cli_publish_uses_configured_out_dir(tmp_path, capsys, wall_beam_tree, monkeypatch):
    out_dir = tmp_path / "configured"
    monkeypatch.setenv("OUT_DIR", str(out_dir))

    cli([_write_tree(tmp_path, wall_beam_tree), "--parent", "Walls", "--publish"])

    assert (out_dir / "schedule_snapshot.json").exists()
    assert len((out_dir / "runs.jsonl").read_text("utf-8").splitlines()) == 1

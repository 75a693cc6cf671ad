import json
from pathlib import Path

from infernomaze.cli import main
from infernomaze.persistence import FileStorage, GameState, SaveStore


def test_generate_prints_maze(capsys):
    assert main(["generate", "--width", "9", "--height", "9", "--seed", "1", "--fragments", "2"]) == 0
    lines = capsys.readouterr().out.splitlines()
    rows = lines[:9]
    assert all(len(r) == 9 for r in rows)
    assert rows[1][1] == "S"
    assert rows[7][7] == "E"
    assert sum(r.count("F") for r in rows) == 2
    assert sum(r.count("G") for r in rows) == 1
    assert lines[9] == "repaired=False entities=3"


def test_generate_without_guide(capsys):
    main(["generate", "--width", "7", "--height", "7", "--seed", "2", "--no-guide"])
    out = capsys.readouterr().out
    assert "G" not in out


def test_save_info_and_clear(tmp_path: Path, capsys):
    assert main(["save-info", "--save-dir", str(tmp_path)]) == 1
    capsys.readouterr()

    SaveStore(FileStorage(tmp_path)).save(GameState(current_level=4))
    assert main(["save-info", "--save-dir", str(tmp_path)]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["currentLevel"] == 4
    assert info["playTimeFormatted"] == "0:00:00"

    assert main(["clear-save", "--save-dir", str(tmp_path)]) == 0
    assert not list(tmp_path.glob("*.json"))


def test_generate_rejects_out_of_range_size(capsys):
    assert main(["generate", "--width", "4", "--height", "9"]) == 2
    assert capsys.readouterr().out.startswith("Invalid maze size:")

from pathlib import Path

from microscript.interpreter import Interpreter


def test_program_14_scoping_returns_and_structs(capsys):
    source = (Path(__file__).parent / "programs" / "program_14.mus").read_text(encoding="utf-8")
    interp = Interpreter()
    interp.run(source)
    captured = capsys.readouterr()
    assert captured.out.strip().splitlines() == ["seen", "-1 1", "5 -1", "after struct"]
    assert "struct Point skipped" in captured.err

from pathlib import Path

from microscript.interpreter import Interpreter


def test_program_8_lists_ranges_and_branches(capsys):
    source = (Path(__file__).parent / "programs" / "program_8.mus").read_text(encoding="utf-8")
    interp = Interpreter()
    interp.run(source)
    out = capsys.readouterr().out.strip()
    assert out.splitlines() == ["sum 14", "10 5", "ab", "B", "pass"]

from pathlib import Path

from microscript.interpreter import Interpreter


def test_program_10_math_import_and_main(capsys):
    source = (Path(__file__).parent / "programs" / "program_10.mus").read_text(encoding="utf-8")
    interp = Interpreter()
    interp.run(source)
    out = capsys.readouterr().out.strip()
    assert out.splitlines() == ["area 12.566370614359172", "4", "1024"]

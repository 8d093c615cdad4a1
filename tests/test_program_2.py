from pathlib import Path

from microscript.interpreter import Interpreter


def test_program_2_recursive_factorial(capsys):
    source = (Path(__file__).parent / "programs" / "program_2.mus").read_text(encoding="utf-8")
    interp = Interpreter()
    interp.run(source)
    out = capsys.readouterr().out.strip()
    assert out == "720"
    result = interp.evaluate("factorial(6)")
    assert result == 720.0
    assert isinstance(result, float)

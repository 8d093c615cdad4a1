from pathlib import Path

from microscript.interpreter import Interpreter


def test_program_3_loop_variable_is_scoped_to_loop(capsys):
    source = (Path(__file__).parent / "programs" / "program_3.mus").read_text(encoding="utf-8")
    interp = Interpreter()
    interp.run(source)
    captured = capsys.readouterr()
    assert captured.out.strip().splitlines() == ["0", "1", "2"]
    assert "NameError: undefined variable i" in captured.err
    assert not interp.global_env.has("i")

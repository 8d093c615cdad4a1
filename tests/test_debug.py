from microscript.interpreter import Interpreter, run_file


def test_debug_trace_is_written_to_file(tmp_path):
    debug_file = tmp_path / "debug.txt"
    interp = Interpreter(debug_level=2, debug_file=str(debug_file))
    interp.run("var x: Int32 = 4;\nfunction f() { return 1; }\nf();\n")
    trace = debug_file.read_text(encoding="utf-8")
    assert "Program start" in trace
    assert "Declared x: Int32 = 4" in trace
    assert "Defined function f()" in trace
    assert "Call f()" in trace
    assert "Program end" in trace


def test_debug_trace_to_stdout(capsys):
    interp = Interpreter(debug_level=4, debug_file=None)
    interp.run("#define TWO 2\nvar y = TWO;\nwhile (y > 0) { y--; }\n")
    out = capsys.readouterr().out
    assert "Defined macro" in out
    assert "Expanded: var y = TWO; -> var y = 2;" in out
    assert "ran 2 iterations" in out


def test_level_zero_writes_nothing(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    Interpreter().run("var z = 1;")
    assert not (tmp_path / "debug.txt").exists()
    assert capsys.readouterr().out == ""


def test_run_file_returns_interpreter(tmp_path, capsys):
    program = tmp_path / "count.mus"
    program.write_text("var total = 0;\nfor (var i = 1; i <= 3; i++) { total += i; }\nconsole.write(total);\n",
                       encoding="utf-8")
    interp = run_file(str(program))
    assert capsys.readouterr().out.strip() == "6"
    assert interp.global_env.get("total") == 6


def test_trace_is_dropped_after_the_file_is_closed(tmp_path, capsys):
    program = tmp_path / "decl.mus"
    program.write_text("var x = 1;\n", encoding="utf-8")
    debug_file = tmp_path / "debug.txt"
    interp = run_file(str(program), debug_level=2, debug_file=str(debug_file))
    trace = debug_file.read_text(encoding="utf-8")
    interp.run("var y = 2;")
    interp.debug("late line")
    assert capsys.readouterr().out == ""
    assert debug_file.read_text(encoding="utf-8") == trace
    assert interp.global_env.get("y") == 2

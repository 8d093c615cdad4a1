import pytest

from microscript.__main__ import main


def write_program(tmp_path, name, source):
    path = tmp_path / name
    path.write_text(source, encoding="utf-8")
    return str(path)


def test_run_command(tmp_path, capsys):
    program = write_program(tmp_path, "hello.mus", 'console.write("hi {}", 1 + 1);\n')
    main(["run", program])
    assert capsys.readouterr().out.strip() == "hi 2"


def test_rejects_unknown_extension(tmp_path, capsys):
    program = write_program(tmp_path, "hello.txt", 'console.write("hi");\n')
    with pytest.raises(SystemExit) as excinfo:
        main(["run", program])
    assert excinfo.value.code == 1
    assert "not a MicroScript file" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit):
        main(["run", str(tmp_path / "absent.mus")])
    assert "not found" in capsys.readouterr().err


def test_panic_exits_with_status_1(tmp_path, capsys):
    program = write_program(tmp_path, "boom.microscript", 'panic("boom");\nconsole.write("after");\n')
    with pytest.raises(SystemExit) as excinfo:
        main(["run", program])
    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert "panic: boom" in captured.err
    assert "after" not in captured.out


def test_fatal_fault_reports_runtime_error(tmp_path, capsys):
    program = write_program(tmp_path, "cond.micros", "if (missing) { console.write(1); }\n")
    with pytest.raises(SystemExit):
        main(["run", program])
    assert "Runtime error: NameError: undefined variable missing" in capsys.readouterr().err


def test_version(capsys):
    with pytest.raises(SystemExit):
        main(["--version"])
    assert "MicroScript 0.1.0" in capsys.readouterr().out

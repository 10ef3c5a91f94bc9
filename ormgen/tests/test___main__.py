from unittest.mock import patch

from ormgen import __main__


class TestCmdFunctions:
    @patch("ormgen.codegen.main.main")
    def test_cmd_generate_success(self, mock_main):
        result = __main__.cmd_generate(["schema.yaml"])
        assert result == 0
        mock_main.assert_called_once_with(["schema.yaml"])

    @patch("ormgen.codegen.main.main")
    def test_cmd_generate_failure(self, mock_main, capsys):
        mock_main.side_effect = SystemExit("Error: boom")
        result = __main__.cmd_generate([])
        assert result == 1
        assert "Error: boom" in capsys.readouterr().err

    @patch("ormgen.typemap.main.main")
    def test_cmd_types_success(self, mock_main):
        result = __main__.cmd_types(["mssql"])
        assert result == 0
        mock_main.assert_called_once_with(["mssql"])

    @patch("ormgen.typemap.main.main")
    def test_cmd_types_exit_code(self, mock_main):
        mock_main.side_effect = SystemExit(2)
        assert __main__.cmd_types([]) == 2


class TestMain:
    def test_help(self, capsys):
        assert __main__.main([]) == 0
        out = capsys.readouterr().out
        assert "Available commands:" in out
        assert "generate" in out
        assert "types" in out

    def test_help_flag(self, capsys):
        assert __main__.main(["--help"]) == 0
        assert "Usage:" in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        assert __main__.main(["build"]) == 1
        assert "Unknown command: build" in capsys.readouterr().out

    def test_dispatch(self):
        with patch.dict(__main__.COMMANDS, {"types": (lambda args: 7, "List types")}):
            assert __main__.main(["types", "pg"]) == 7

    def test_types_end_to_end(self, capsys):
        assert __main__.main(["types", "postgresql"]) == 0
        assert "jsonb" in capsys.readouterr().out

    def test_generate_end_to_end(self, snapshot_file, capsys):
        assert __main__.main(["generate", str(snapshot_file), "--generator", "tables"]) == 0
        assert "metadata = MetaData()" in capsys.readouterr().out

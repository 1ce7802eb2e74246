"""Unit tests for pagestore.cli — command parsing, output and exit codes."""

import io
import json
import logging
import pytest

import pagestore.cli as cli_mod
from pagestore.storage.store import PageStore


@pytest.fixture(autouse=True)
def _drop_console_handler():
    yield
    root = logging.getLogger("pagestore")
    for handler in list(root.handlers):
        if getattr(handler, "_pagestore_console", False):
            root.removeHandler(handler)


@pytest.fixture
def config_file(project_root):
    return str(project_root / "pagestore.yaml")


@pytest.fixture
def cli_store(project_root):
    """Store over the directory the project config points at."""
    return PageStore(project_root / "content" / "pages")


def run(config_file, *argv):
    return cli_mod.main(["--config", config_file, *argv])


class TestCLIParsing:
    def test_no_command_prints_help(self, capsys):
        assert cli_mod.main([]) == cli_mod.EXIT_OK
        assert "usage: pagestore" in capsys.readouterr().out

    def test_subcommands(self):
        parser = cli_mod.build_parser()
        args = parser.parse_args(["delete", "home", "--secure"])
        assert (args.command, args.page_id, args.secure) == ("delete", "home", True)
        args = parser.parse_args(["cleanup"])
        assert args.older_than == 3600

    def test_unknown_command_exits(self):
        with pytest.raises(SystemExit):
            cli_mod.build_parser().parse_args(["frobnicate"])

    def test_bad_config(self, tmp_path, capsys):
        bad = tmp_path / "pagestore.yaml"
        bad.write_text("storage: [unclosed", encoding="utf-8")
        assert cli_mod.main(["--config", str(bad), "list"]) == cli_mod.EXIT_ERROR
        assert "[ERROR]" in capsys.readouterr().err


class TestReadCommands:
    def test_list_empty(self, config_file, capsys):
        assert run(config_file, "list") == 0
        assert "No pages found." in capsys.readouterr().out

    def test_list_json(self, config_file, cli_store, capsys):
        cli_store.write("home", {"id": "home", "title": "Home"})
        cli_store.write("about", {"id": "about", "title": "About"})
        assert run(config_file, "list", "--json") == 0
        rows = json.loads(capsys.readouterr().out)
        assert [r["id"] for r in rows] == ["about", "home"]

    def test_search(self, config_file, cli_store, capsys):
        cli_store.write("home", {"id": "home", "title": "Home"})
        cli_store.write("about", {"id": "about", "title": "About Us"})
        assert run(config_file, "search", "US") == 0
        out = capsys.readouterr().out
        assert "about" in out
        assert "home" not in out

    def test_show(self, config_file, cli_store, capsys):
        cli_store.write("home", {"id": "home", "title": "Home"})
        assert run(config_file, "show", "home") == 0
        assert json.loads(capsys.readouterr().out)["title"] == "Home"

    def test_show_missing_exit_code(self, config_file, capsys):
        assert run(config_file, "show", "ghost") == cli_mod.EXIT_NOT_FOUND
        assert "not found" in capsys.readouterr().err

    def test_invalid_id_exit_code(self, config_file, capsys):
        assert run(config_file, "show", "../etc") == cli_mod.EXIT_ERROR
        assert "[ERROR]" in capsys.readouterr().err

    def test_stats(self, config_file, cli_store, capsys):
        cli_store.write("home", {"id": "home", "title": "Home"})
        assert run(config_file, "stats", "home") == 0
        out = capsys.readouterr().out
        assert "size_formatted" in out
        assert "640" in out


class TestWriteCommands:
    def test_export_to_file(self, config_file, cli_store, tmp_path):
        cli_store.write("home", {"id": "home", "title": "Home"})
        target = tmp_path / "home.json"
        assert run(config_file, "export", "home", "-o", str(target)) == 0
        assert json.loads(target.read_text())["id"] == "home"

    def test_import_and_conflict(self, config_file, cli_store, tmp_path, capsys):
        source = tmp_path / "page.json"
        source.write_text(json.dumps({"id": "new", "title": "New"}), encoding="utf-8")
        assert run(config_file, "import", str(source)) == 0
        assert cli_store.read("new")["title"] == "New"
        assert run(config_file, "import", str(source)) == cli_mod.EXIT_ERROR
        assert "already exists" in capsys.readouterr().err
        assert run(config_file, "import", str(source), "--overwrite") == 0

    def test_import_stdin(self, config_file, cli_store, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps({"id": "piped", "title": "P"})))
        assert run(config_file, "import", "-") == 0
        assert cli_store.exists("piped")

    def test_import_missing_file(self, config_file, tmp_path):
        assert run(config_file, "import", str(tmp_path / "nope.json")) == cli_mod.EXIT_ERROR

    def test_import_non_utf8_file(self, config_file, tmp_path, capsys):
        source = tmp_path / "page.json"
        source.write_bytes(b'{"id": "x", "title": "\xe9t\xe9"}')
        assert run(config_file, "import", str(source)) == cli_mod.EXIT_ERROR
        assert "not UTF-8" in capsys.readouterr().err

    def test_delete(self, config_file, cli_store, capsys):
        cli_store.write("home", {"id": "home", "title": "Home"})
        assert run(config_file, "delete", "home", "--secure") == 0
        assert "[OK] Deleted page 'home'" in capsys.readouterr().out
        assert not cli_store.exists("home")
        assert run(config_file, "delete", "home") == cli_mod.EXIT_NOT_FOUND

    def test_storage_dir_override(self, config_file, tmp_path):
        other = tmp_path / "elsewhere"
        PageStore(other).write("x", {"id": "x", "title": "X"})
        assert run(config_file, "--storage-dir", str(other), "show", "x") == 0

    def test_cleanup(self, config_file, capsys):
        assert run(config_file, "cleanup", "--older-than", "0") == 0
        assert "[OK] Removed 0 temp file(s)" in capsys.readouterr().out


class TestBackupCommands:
    def test_backup_default_directory(self, config_file, cli_store, project_root):
        cli_store.write("home", {"id": "home", "title": "Home"})
        assert run(config_file, "backup") == 0
        bundles = list((project_root / "backups").glob("pages_backup_*.json"))
        assert len(bundles) == 1
        assert json.loads(bundles[0].read_text())["pageCount"] == 1

    def test_restore(self, config_file, cli_store, tmp_path, capsys):
        bundle = tmp_path / "bundle.json"
        bundle.write_text(json.dumps({
            "version": "1.0",
            "timestamp": "2026-01-01T00:00:00Z",
            "pageCount": 1,
            "pages": [{"id": "home", "title": "Home"}],
        }), encoding="utf-8")
        assert run(config_file, "restore", str(bundle)) == 0
        assert "Restored 1/1 page(s)" in capsys.readouterr().out
        assert cli_store.exists("home")

    def test_restore_with_errors(self, config_file, tmp_path, capsys):
        bundle = tmp_path / "bundle.json"
        bundle.write_text(json.dumps({"version": "1.0", "pages": [{"id": "bad"}]}), encoding="utf-8")
        assert run(config_file, "restore", str(bundle)) == cli_mod.EXIT_ERROR
        assert "bad:" in capsys.readouterr().out

    def test_restore_invalid_bundle(self, config_file, tmp_path):
        bundle = tmp_path / "bundle.json"
        bundle.write_text("[]", encoding="utf-8")
        assert run(config_file, "restore", str(bundle)) == cli_mod.EXIT_ERROR

    def test_event_log_written(self, config_file, cli_store, project_root):
        cli_store.write("home", {"id": "home", "title": "Home"})
        assert run(config_file, "delete", "home") == 0
        files = list((project_root / "logs" / "execution").glob("*.jsonl"))
        assert files
        events = [json.loads(line) for line in files[0].read_text().splitlines()]
        assert any(e.get("event") == "page_delete" for e in events)

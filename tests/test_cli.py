"""Tests for the zenith CLI: app resolution, routes and migrate."""

import textwrap
from pathlib import Path

import pytest

from zenith import App
from zenith.cli import main
from zenith.cli._resolve import resolve_app

APP_MODULE = textwrap.dedent(
    """
    from zenith import App, AppConfig
    from zenith.middleware.auth import login_required

    app = App(AppConfig(template_dir="missing-templates"), db={db_url!r})

    @app.get("/")
    def home():
        return "home"

    @app.get("/logout", guards=[login_required], name="logout")
    def do_logout():
        return "bye"

    def create_app():
        return app

    not_an_app = 42
    """
)


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest):
    """A throwaway project directory holding an importable app module.

    Each test gets its own module name so imports never hit a cached module.
    """
    module_name = f"cliapp_{request.node.name.replace('[', '_').replace(']', '_')}"
    db_url = f"sqlite:///{tmp_path / 'app.db'}"
    (tmp_path / f"{module_name}.py").write_text(APP_MODULE.format(db_url=db_url))
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "001_create_notes.sql").write_text("CREATE TABLE notes (id INTEGER PRIMARY KEY);")
    monkeypatch.chdir(tmp_path)
    monkeypatch.syspath_prepend(str(tmp_path))
    return module_name, migrations


class TestResolveApp:
    def test_module_and_attribute(self, project) -> None:
        module_name, _ = project
        assert isinstance(resolve_app(f"{module_name}:app"), App)

    def test_default_attribute(self, project) -> None:
        module_name, _ = project
        assert isinstance(resolve_app(module_name), App)

    def test_factory(self, project) -> None:
        module_name, _ = project
        assert isinstance(resolve_app(f"{module_name}:create_app"), App)

    def test_not_an_app(self, project) -> None:
        module_name, _ = project
        with pytest.raises(TypeError, match="not a zenith.App"):
            resolve_app(f"{module_name}:not_an_app")

    def test_missing_module(self, project) -> None:
        with pytest.raises(ModuleNotFoundError):
            resolve_app("no_such_module_here:app")


class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "migrate" in capsys.readouterr().out


class TestRoutes:
    def test_lists_routes(self, project, capsys: pytest.CaptureFixture[str]) -> None:
        module_name, _ = project
        main(["routes", f"{module_name}:app"])
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split() == ["METHOD", "PATH", "HANDLER", "GUARDS"]
        assert lines[2].split() == ["GET", "/", "home"]
        assert lines[3].split() == ["GET", "/logout", "do_logout", "(logout)", "login_required"]

    def test_bad_import_exits_1(self, project, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "no_such_module_here:app"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestMigrate:
    def test_applies_then_reports_up_to_date(
        self, project, capsys: pytest.CaptureFixture[str]
    ) -> None:
        module_name, migrations = project
        main(["migrate", f"{module_name}:app", "--dir", str(migrations)])
        assert "Applied 1 migration(s): 001_create_notes" in capsys.readouterr().out

        main(["migrate", f"{module_name}:app", "--dir", str(migrations)])
        assert "Already up to date (1 migrations applied)" in capsys.readouterr().out

    def test_status(self, project, capsys: pytest.CaptureFixture[str]) -> None:
        module_name, migrations = project
        main(["migrate", f"{module_name}:app", "--dir", str(migrations), "--status"])
        assert capsys.readouterr().out.strip() == "[ ] 001_create_notes"

        main(["migrate", f"{module_name}:app", "--dir", str(migrations)])
        capsys.readouterr()
        main(["migrate", f"{module_name}:app", "--dir", str(migrations), "--status"])
        assert capsys.readouterr().out.startswith("[x] 001_create_notes  ")

    def test_without_directory_exits_1(
        self, project, capsys: pytest.CaptureFixture[str]
    ) -> None:
        module_name, _ = project
        with pytest.raises(SystemExit) as exc_info:
            main(["migrate", f"{module_name}:app"])
        assert exc_info.value.code == 1
        assert "no migrations directory" in capsys.readouterr().err

    def test_failing_migration_exits_1(
        self, project, capsys: pytest.CaptureFixture[str]
    ) -> None:
        module_name, migrations = project
        (migrations / "002_broken.sql").write_text("CREATE TABLE (;")
        with pytest.raises(SystemExit) as exc_info:
            main(["migrate", f"{module_name}:app", "--dir", str(migrations)])
        assert exc_info.value.code == 1
        assert "002_broken" in capsys.readouterr().err

    def test_missing_directory_exits_1(
        self, project, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        module_name, _ = project
        with pytest.raises(SystemExit) as exc_info:
            main(["migrate", f"{module_name}:app", "--dir", str(tmp_path / "nowhere")])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err

import json

from typer.testing import CliRunner

from querybridge_cli.main import app

runner = CliRunner()


def test_drivers_lists_builtin_engines():
    result = runner.invoke(app, ["drivers"])

    assert result.exit_code == 0
    for engine in ("sqlserver", "postgres", "mysql", "sqlite"):
        assert engine in result.output


def test_query_prints_rows(databases_config):
    result = runner.invoke(app, ["query", "1", "SELECT name FROM birds ORDER BY id", "--config", str(databases_config)])

    assert result.exit_code == 0
    assert "Toucan" in result.output
    assert "Kiwi" in result.output


def test_query_failure_exits_non_zero(databases_config):
    result = runner.invoke(app, ["query", "1", "SELECT ZID FROM birds", "--config", str(databases_config)])

    assert result.exit_code == 1
    assert "no such column: ZID" in result.output


def test_query_unknown_database_exits_non_zero(databases_config):
    result = runner.invoke(app, ["query", "9", "SELECT 1", "--config", str(databases_config)])

    assert result.exit_code == 1


def test_check_configured_database(databases_config):
    result = runner.invoke(app, ["check", "--database", "1", "--config", str(databases_config)])

    assert result.exit_code == 0
    assert "reachable" in result.output


def test_check_reports_humanized_error(tmp_path):
    details = json.dumps({"db": str(tmp_path / "missing.db")})

    result = runner.invoke(app, ["check", "sqlite", "--details", details])

    assert result.exit_code == 1
    assert "database name is incorrect" in result.output


def test_check_rejects_unknown_engine():
    result = runner.invoke(app, ["check", "h2", "--details", "{}"])

    assert result.exit_code == 1
    assert "h2" in result.output


def test_check_rejects_invalid_details_json():
    result = runner.invoke(app, ["check", "sqlite", "--details", "not json"])

    assert result.exit_code == 1
    assert "JSON object" in result.output


def test_sync_prints_field_metadata(databases_config):
    result = runner.invoke(app, ["sync", "1", "--config", str(databases_config)])

    assert result.exit_code == 0
    assert "birds" in result.output
    assert "Synced 1 table(s)." in result.output

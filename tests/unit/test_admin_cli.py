"""
Unit tests for the admin CLI argument handling and exit codes.

Commands that need a database are replaced with stubs.
"""

from uuid import uuid4

import pytest

from stockflow.cli import admin_cli
import psycopg

from stockflow.core.errors import ImportErrorKind, ImportPipelineError


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STOCKFLOW_CONFIG", raising=False)
    monkeypatch.delenv("DB_PASSWORD", raising=False)


@pytest.mark.unit
class TestParser:
    def test_global_db_flags(self):
        args = admin_cli.build_parser().parse_args(
            ["--db-host", "db", "--db-port", "6543", "promote", "--job-id", "x"]
        )

        assert args.db_host == "db"
        assert args.db_port == 6543
        assert args.command == "promote"
        assert args.job_id == "x"

    def test_every_command_registered(self):
        parser = admin_cli.build_parser()
        for command in admin_cli.COMMANDS:
            argv = [command]
            if command == "ingest":
                argv.append("products.csv")
            if command in ("promote", "show-job", "invalid-rows", "delete-job"):
                argv += ["--job-id", str(uuid4())]
            assert parser.parse_args(argv).command == command

    def test_job_id_required(self):
        with pytest.raises(SystemExit):
            admin_cli.build_parser().parse_args(["promote"])


@pytest.mark.unit
class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert admin_cli.main([]) == admin_cli.EXIT_ERROR
        assert "usage" in capsys.readouterr().out.lower()

    def test_bad_job_id_is_an_error(self, capsys):
        assert admin_cli.main(["promote", "--job-id", "not-a-uuid"]) == admin_cli.EXIT_ERROR
        assert "not a valid UUID" in capsys.readouterr().out

    def test_delete_all_requires_confirmation(self, capsys):
        assert admin_cli.main(["delete-all-jobs"]) == admin_cli.EXIT_ERROR
        assert "--yes" in capsys.readouterr().out

    def test_ingest_missing_file(self, capsys):
        assert admin_cli.main(["ingest", "nowhere.csv"]) == admin_cli.EXIT_ERROR
        assert "File not found" in capsys.readouterr().out

    def test_not_found_exit_code(self, monkeypatch, capsys):
        job_id = uuid4()

        def raise_not_found(args, settings):
            raise ImportPipelineError.not_found(job_id)

        monkeypatch.setitem(admin_cli.COMMANDS, "show-job", raise_not_found)

        assert admin_cli.main(["show-job", "--job-id", str(job_id)]) == admin_cli.EXIT_NOT_FOUND
        assert "Not found" in capsys.readouterr().out

    def test_pipeline_error_prints_reason(self, monkeypatch, capsys):
        def raise_missing(args, settings):
            raise ImportPipelineError(ImportErrorKind.MISSING_COLUMN, "Missing column: threshold", column="threshold")

        monkeypatch.setitem(admin_cli.COMMANDS, "ingest", raise_missing)

        assert admin_cli.main(["ingest", "products.csv"]) == admin_cli.EXIT_ERROR
        assert "missing-column:threshold" in capsys.readouterr().out

    def test_success(self, monkeypatch):
        calls = []
        monkeypatch.setitem(admin_cli.COMMANDS, "list-jobs", lambda args, settings: calls.append(args.limit))

        assert admin_cli.main(["list-jobs", "--limit", "5"]) == 0
        assert calls == [5]

    def test_missing_password_is_an_error(self, monkeypatch, capsys):
        monkeypatch.setattr(admin_cli, "load_dotenv", lambda: False)

        assert admin_cli.main(["list-jobs"]) == admin_cli.EXIT_ERROR
        assert "Database password must be provided" in capsys.readouterr().out

    def test_unreachable_database_is_an_error(self, monkeypatch, capsys):
        def raise_unreachable(args, settings):
            raise psycopg.OperationalError("connection refused")

        monkeypatch.setitem(admin_cli.COMMANDS, "list-jobs", raise_unreachable)

        assert admin_cli.main(["list-jobs"]) == admin_cli.EXIT_ERROR
        assert "Error: connection refused" in capsys.readouterr().out

    def test_metrics_port_starts_server(self, monkeypatch):
        ports = []
        monkeypatch.setattr(admin_cli.metrics, "start_metrics_server", ports.append)
        monkeypatch.setitem(admin_cli.COMMANDS, "list-jobs", lambda args, settings: None)

        assert admin_cli.main(["--metrics-port", "9200", "list-jobs"]) == 0
        assert ports == [9200]

    def test_no_metrics_server_by_default(self, monkeypatch):
        ports = []
        monkeypatch.setattr(admin_cli.metrics, "start_metrics_server", ports.append)
        monkeypatch.setitem(admin_cli.COMMANDS, "list-jobs", lambda args, settings: None)

        assert admin_cli.main(["list-jobs"]) == 0
        assert ports == []


@pytest.mark.unit
def test_format_timestamp_handles_none():
    assert admin_cli.format_timestamp(None) == "N/A"

"""Tests for the command line entry point."""
import json

from src.main import main

from tests.fakes import HEADER, OWNER, make_row


def _write_csv(tmp_path, text):
    path = tmp_path / "videos.csv"
    path.write_text(text, encoding="utf-8")
    return path


def test_ingest_prints_summary(tmp_path, capsys, store, fake_client):
    """Test ingest writes rows and prints the summary."""
    path = _write_csv(tmp_path, f"{HEADER}\nCool Clip,2024-01-05,@bob,1234.50\n")
    output = tmp_path / "summary.json"

    code = main(["ingest", str(path), "--owner", OWNER, "--output", str(output)], store=store)

    assert code == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["newEntries"] == 1
    assert json.loads(output.read_text()) == printed
    assert fake_client.rows()[0]["creator_username"] == "bob"


def test_ingest_dry_run_needs_no_store(tmp_path, capsys):
    """Test a dry run parses without Supabase."""
    path = _write_csv(tmp_path, f"{HEADER}\nA,2024-01-05,bob,1\nB,2024-01-05,bob,x\n")
    code = main(["ingest", str(path), "--owner", OWNER, "--dry-run"])
    assert code == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["newEntries"] == 1
    assert printed["errors"] == 1


def test_ingest_strict_dates(tmp_path, capsys):
    """Test --strict-dates rejects unreadable dates."""
    path = _write_csv(tmp_path, f"{HEADER}\nA,someday,bob,1\n")
    main(["ingest", str(path), "--owner", OWNER, "--dry-run", "--strict-dates"])
    printed = json.loads(capsys.readouterr().out)
    assert printed["errorMessages"] == ["Line 2: Invalid date: someday"]


def test_ingest_file_error_exit_code(tmp_path, store):
    """Test file-level errors give a non-zero exit code."""
    path = _write_csv(tmp_path, HEADER)
    assert main(["ingest", str(path), "--owner", OWNER], store=store) == 1


def test_ingest_store_error_exit_code(tmp_path, store, fake_client):
    """Test store failures give a non-zero exit code."""
    fake_client.fail_ops = {"upsert"}
    path = _write_csv(tmp_path, f"{HEADER}\nA,2024-01-05,bob,1\n")
    assert main(["ingest", str(path), "--owner", OWNER], store=store) == 1


def test_list(capsys, store, fake_client):
    """Test list prints the owner's videos."""
    fake_client.tables["videos"] = [make_row()]
    assert main(["list", "--owner", OWNER], store=store) == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed[0]["id"] == "vid-1"


def test_delete_all_requires_confirmation(store, fake_client):
    """Test delete-all refuses without --yes."""
    fake_client.tables["videos"] = [make_row()]
    assert main(["delete-all", "--owner", OWNER], store=store) == 1
    assert len(fake_client.rows()) == 1
    assert main(["delete-all", "--owner", OWNER, "--yes"], store=store) == 0
    assert fake_client.rows() == []


def test_ingest_unreadable_file_exit_code(tmp_path, store):
    """Test missing and non-UTF-8 files give a non-zero exit code."""
    assert main(["ingest", str(tmp_path / "absent.csv"), "--owner", OWNER], store=store) == 1
    path = tmp_path / "latin1.csv"
    path.write_bytes(f"{HEADER}\nCaf\xe9,2024-01-05,bob,1\n".encode("latin-1"))
    assert main(["ingest", str(path), "--owner", OWNER], store=store) == 1

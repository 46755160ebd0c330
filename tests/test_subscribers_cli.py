"""
CLI tests for the guarded subscriber commands.
"""
import json

import pytest
from typer.testing import CliRunner

from cli.main import app

runner = CliRunner()


@pytest.fixture
def emails_file(tmp_path):
    path = tmp_path / "emails.csv"
    path.write_text("email\na@x.com\nb@x.com\nc@x.com\nd@x.com\ne@x.com\n", encoding="utf-8")
    return path


def mutating_calls(client):
    return [call for call in client.calls if call[0] != "find_subscriber"]


def test_no_targets_is_a_usage_error(cli_env):
    result = runner.invoke(app, ["subscribers", "unsubscribe", "--confirm"])

    assert result.exit_code == 2
    assert "--email" in result.output
    assert cli_env["client"].calls == []


def test_email_and_file_together_is_a_usage_error(cli_env, emails_file):
    result = runner.invoke(
        app, ["subscribers", "unsubscribe", "--email", "a@x.com", "--file", str(emails_file)]
    )

    assert result.exit_code == 2


def test_invalid_rows_exit_six_and_change_nothing(cli_env, tmp_path):
    path = tmp_path / "list.txt"
    path.write_text("a@x.com\nnot-an-email\nb@x.com\nalso bad\n", encoding="utf-8")

    result = runner.invoke(app, ["subscribers", "unsubscribe", "--file", str(path), "--confirm"])

    assert result.exit_code == 6
    assert "Found 2 invalid row(s)" in result.output
    assert "not-an-email" in result.output
    assert cli_env["client"].calls == []


def test_invalid_rows_json_lists_every_row(cli_env, tmp_path):
    path = tmp_path / "list.txt"
    path.write_text("a@x.com\nnot-an-email\nb@x.com\nalso bad\n", encoding="utf-8")

    result = runner.invoke(app, ["--json", "subscribers", "unsubscribe", "--file", str(path)])

    assert result.exit_code == 6
    envelope = json.loads(result.stdout)
    assert envelope["success"] is False
    assert [row["row"] for row in envelope["data"]] == [2, 4]
    assert [row["value"] for row in envelope["data"]] == ["not-an-email", "also bad"]


def test_invalid_single_email(cli_env):
    result = runner.invoke(app, ["subscribers", "subscribe", "--email", "nope", "--confirm"])

    assert result.exit_code == 6
    assert cli_env["client"].calls == []


def test_missing_file_is_an_error(cli_env, tmp_path):
    result = runner.invoke(
        app, ["subscribers", "unsubscribe", "--file", str(tmp_path / "missing.csv"), "--confirm"]
    )

    assert result.exit_code == 1
    assert "not found" in result.output.lower()
    assert cli_env["client"].calls == []


def test_limit_and_sample_fail_before_reading_the_file(cli_env, tmp_path):
    missing = tmp_path / "missing.csv"

    result = runner.invoke(
        app,
        ["subscribers", "unsubscribe", "--file", str(missing), "--limit", "5", "--sample", "5"],
    )

    assert result.exit_code == 1
    assert "not both" in result.output
    assert "not found" not in result.output.lower()


@pytest.mark.parametrize("value", ["0", "-3", "abc", "2.5"])
def test_bad_limit_value(cli_env, emails_file, value):
    result = runner.invoke(
        app, ["subscribers", "unsubscribe", "--file", str(emails_file), f"--limit={value}"]
    )

    assert result.exit_code == 1
    assert "--limit" in result.output
    assert cli_env["client"].calls == []


def test_dangerous_non_interactive_without_confirm_is_refused(cli_env, emails_file):
    result = runner.invoke(app, ["subscribers", "unsubscribe", "--file", str(emails_file)])

    assert result.exit_code == 1
    assert "--confirm" in result.output
    assert cli_env["client"].calls == []


def test_confirm_acts_on_every_target(cli_env, emails_file):
    result = runner.invoke(app, ["subscribers", "unsubscribe", "--file", str(emails_file), "--confirm"])

    assert result.exit_code == 0, result.output
    assert cli_env["client"].calls == [
        ("unsubscribe", "a@x.com"),
        ("unsubscribe", "b@x.com"),
        ("unsubscribe", "c@x.com"),
        ("unsubscribe", "d@x.com"),
        ("unsubscribe", "e@x.com"),
    ]
    assert "Unsubscribed 5 subscriber(s)." in result.output
    assert cli_env["client"].closed


def test_limit_acts_on_prefix(cli_env, emails_file):
    result = runner.invoke(
        app, ["subscribers", "subscribe", "--file", str(emails_file), "--limit", "2", "--confirm"]
    )

    assert result.exit_code == 0, result.output
    assert cli_env["client"].calls == [("subscribe", "a@x.com"), ("subscribe", "b@x.com")]


def test_sample_acts_on_distinct_subset(cli_env, emails_file):
    result = runner.invoke(
        app, ["subscribers", "subscribe", "--file", str(emails_file), "--sample", "3", "--confirm"]
    )

    assert result.exit_code == 0, result.output
    targets = [call[1] for call in cli_env["client"].calls]
    assert len(targets) == 3
    assert len(set(targets)) == 3
    assert "random" in result.output


def test_dry_run_json_envelope(cli_env, emails_file):
    result = runner.invoke(
        app, ["--json", "subscribers", "unsubscribe", "--file", str(emails_file), "--dry-run", "--limit", "3"]
    )

    assert result.exit_code == 0
    envelope = json.loads(result.stdout)
    assert envelope["success"] is True
    assert envelope["error"] is None
    assert envelope["data"]["dry_run"] is True
    assert envelope["data"]["count"] == 3
    assert envelope["data"]["preview"] == [{"email": "a@x.com"}, {"email": "b@x.com"}, {"email": "c@x.com"}]
    assert envelope["meta"] == {"total": 5, "working_set": 3}
    assert cli_env["client"].calls == []


def test_dry_run_human_output(cli_env, emails_file):
    result = runner.invoke(app, ["subscribers", "unsubscribe", "--file", str(emails_file), "--dry-run"])

    assert result.exit_code == 0
    assert "Dry run" in result.output
    assert "a@x.com" in result.output
    assert cli_env["client"].calls == []


def test_interactive_decline_aborts(cli_env, emails_file):
    cli_env["gate"].interactive = True
    cli_env["gate"].answer = False

    result = runner.invoke(app, ["subscribers", "unsubscribe", "--file", str(emails_file)])

    assert result.exit_code == 0
    assert "Aborted" in result.output
    assert cli_env["gate"].prompts[0]["count"] == 5
    assert cli_env["client"].calls == []


def test_interactive_accept_executes(cli_env, emails_file):
    cli_env["gate"].interactive = True
    cli_env["gate"].answer = True

    result = runner.invoke(app, ["subscribers", "unsubscribe", "--file", str(emails_file)])

    assert result.exit_code == 0, result.output
    assert len(cli_env["client"].calls) == 5


def test_per_target_failure_is_reported_and_batch_continues(cli_env, emails_file):
    cli_env["client"].fail_for = {"c@x.com"}

    result = runner.invoke(app, ["subscribers", "unsubscribe", "--file", str(emails_file), "--confirm"])

    assert result.exit_code == 1
    assert len(cli_env["client"].calls) == 5
    assert "1 of 5 target(s) failed; 4 succeeded." in result.output


def test_add_tag_needs_no_confirmation(cli_env, emails_file):
    result = runner.invoke(
        app, ["subscribers", "tag", "--tag", "vip", "--file", str(emails_file), "--limit", "1"]
    )

    assert result.exit_code == 0, result.output
    assert cli_env["client"].calls == [("add_tag", "a@x.com", "vip")]
    assert cli_env["gate"].prompts == []


def test_remove_tag_is_dangerous(cli_env, emails_file):
    result = runner.invoke(app, ["subscribers", "tag", "--tag", "vip", "--remove", "--file", str(emails_file)])

    assert result.exit_code == 1
    assert cli_env["client"].calls == []


def test_empty_tag_is_rejected(cli_env):
    result = runner.invoke(app, ["subscribers", "tag", "--tag", "  ", "--email", "a@x.com"])

    assert result.exit_code == 1
    assert cli_env["client"].calls == []


def test_import_runs_without_confirmation(cli_env, emails_file):
    result = runner.invoke(app, ["subscribers", "import", "--file", str(emails_file)])

    assert result.exit_code == 0, result.output
    assert [call[0] for call in cli_env["client"].calls] == ["import_subscriber"] * 5
    assert "Imported 5 subscriber(s)." in result.output


def test_search_found(cli_env):
    cli_env["client"].subscriber = {
        "id": "sub_1",
        "attributes": {"email": "a@x.com", "cached_tag_ids": ["t1"], "unsubscribed_at": None},
    }

    result = runner.invoke(app, ["--json", "subscribers", "search", "--email", " A@X.com "])

    assert result.exit_code == 0
    assert cli_env["client"].calls == [("find_subscriber", "a@x.com")]
    assert json.loads(result.stdout)["data"]["id"] == "sub_1"


def test_search_not_found(cli_env):
    result = runner.invoke(app, ["subscribers", "search", "--email", "a@x.com"])

    assert result.exit_code == 0
    assert "No subscriber found" in result.output


def test_search_rejects_invalid_email(cli_env):
    result = runner.invoke(app, ["subscribers", "search", "--email", "bad"])

    assert result.exit_code == 2
    assert cli_env["client"].calls == []


def test_suppress_is_refused_without_confirm(cli_env, emails_file):
    result = runner.invoke(app, ["subscribers", "suppress", "--file", str(emails_file)])

    assert result.exit_code == 1
    assert "--confirm" in result.output
    assert cli_env["client"].calls == []


def test_suppress_with_confirm(cli_env, emails_file):
    result = runner.invoke(
        app, ["subscribers", "suppress", "--file", str(emails_file), "--limit", "2", "--confirm"]
    )

    assert result.exit_code == 0, result.output
    assert cli_env["client"].calls == [("suppress", "a@x.com"), ("suppress", "b@x.com")]
    assert "Suppressed 2 subscriber(s)." in result.output


def test_suppress_dry_run(cli_env):
    result = runner.invoke(app, ["--json", "subscribers", "suppress", "--email", "a@x.com", "--dry-run"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["data"]["preview"] == [{"email": "a@x.com"}]
    assert cli_env["client"].calls == []


def test_unsuppress_with_confirm(cli_env):
    result = runner.invoke(app, ["subscribers", "unsuppress", "--email", "a@x.com", "--confirm"])

    assert result.exit_code == 0, result.output
    assert cli_env["client"].calls == [("unsuppress", "a@x.com")]


def test_rejected_credentials_stop_the_batch_with_partial_result(cli_env, emails_file):
    cli_env["client"].reject_auth_for = {"b@x.com"}

    result = runner.invoke(
        app, ["--json", "subscribers", "unsubscribe", "--file", str(emails_file), "--confirm"]
    )

    assert result.exit_code == 1
    assert cli_env["client"].calls == [("unsubscribe", "a@x.com"), ("unsubscribe", "b@x.com")]
    envelope = json.loads(result.stdout)
    assert envelope["success"] is False
    assert "Authentication failed" in envelope["error"]
    assert envelope["data"]["action"] == "unsubscribe"
    assert envelope["data"]["succeeded"] == 1
    assert envelope["data"]["failed"] == 0
    assert envelope["meta"] == {"total": 5, "working_set": 5}


def test_rejected_credentials_human_output(cli_env, emails_file):
    cli_env["client"].reject_auth_for = {"c@x.com"}

    result = runner.invoke(app, ["subscribers", "unsubscribe", "--file", str(emails_file), "--confirm"])

    assert result.exit_code == 1
    assert "2 target(s) were processed before the batch stopped." in result.output
    assert "Authentication failed" in result.output
    assert len(cli_env["client"].calls) == 3

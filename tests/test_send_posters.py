import json

import pytest

import send_posters
from posterkit import batch
from posterkit.mailer import settings as mailer_settings


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(send_posters, "setup_logging", lambda verbose=False: None)


def _seed(store, photo_path):
    store.create_member(
        name="Jane Doe", email="jane@example.com", phone="1", designation="Wealth Manager", photo_url=str(photo_path)
    )
    store.create_member(
        name="Asha", email="asha@example.com", phone="2", designation="Health Insurance Advisor", photo_url="/uploads/gone.jpg"
    )


def test_dry_run_keeps_files_and_reports_failures(store, photo_path, template_path, tmp_path, capsys, monkeypatch, poster_config):
    _seed(store, photo_path)
    monkeypatch.setattr(batch.PosterConfig, "from_settings", classmethod(lambda cls, **kw: poster_config))
    out_dir = tmp_path / "cli-out"

    code = send_posters.main(
        ["--template", str(template_path), "--designation", "both", "--dry-run", "--output-dir", str(out_dir)]
    )

    report = json.loads(capsys.readouterr().out)
    assert code == 1
    assert report["recipientCount"] == 2
    assert report["sent"] == 1
    assert report["failed"] == 1
    assert len(list(out_dir.iterdir())) == 1


def test_missing_template_exits_nonzero(store, tmp_path):
    assert send_posters.main(["--template", str(tmp_path / "nope.jpg")]) == 1


def test_no_recipients_exits_nonzero(store, template_path):
    assert send_posters.main(["--template", str(template_path), "--designation", "partner"]) == 1


def _smtp_settings(monkeypatch, password):
    monkeypatch.setattr(mailer_settings, "SMTP_USER", "bot@example.com")
    monkeypatch.setattr(mailer_settings, "SMTP_PASSWORD", password)
    monkeypatch.setattr(mailer_settings, "EMAIL_FROM", "bot@example.com")


def test_check_email_reports_login_result(monkeypatch, fake_smtp):
    _smtp_settings(monkeypatch, "app-password")
    assert send_posters.main(["--check-email"]) == 0
    assert ("login", "bot@example.com") in fake_smtp.instances[0].calls

    _smtp_settings(monkeypatch, "wrong")
    assert send_posters.main(["--check-email"]) == 1


def test_template_required_without_check_email():
    with pytest.raises(SystemExit) as exc:
        send_posters.main(["--designation", "both"])
    assert exc.value.code == 2

"""
Shared fixtures: generated images, an isolated SQLite member store,
a recording mailer and a Flask test client.
"""
import os
import tempfile
from pathlib import Path

# Keep settings-created directories out of the project tree.
os.environ.setdefault("DATA_ROOT", tempfile.mkdtemp(prefix="member-posters-test-"))

import aiosmtplib
import pytest
from PIL import Image, ImageDraw

from dashboard import create_app
from posterkit import mailer as mailer_module
from posterkit import member_store
from posterkit.members import Member
from posterkit.poster import PosterConfig

LOGO_COLOR = (200, 30, 30)


class FakeMailer:
    """Records poster sends instead of talking to SMTP."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send_poster(self, member, poster_path, brand):
        path = Path(poster_path)
        self.sent.append(
            {
                "email": member.email,
                "designation": member.designation,
                "path": path,
                "existed": path.is_file(),
                "size": path.stat().st_size if path.is_file() else 0,
                "brand": brand,
            }
        )
        return member.email not in self.fail_for


class FakeSMTP:
    """Stands in for aiosmtplib.SMTP; rejects the password "wrong"."""

    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.calls = []
        FakeSMTP.instances.append(self)

    async def connect(self):
        self.calls.append("connect")

    async def login(self, username, password):
        self.calls.append(("login", username))
        if password == "wrong":
            raise aiosmtplib.SMTPAuthenticationError(535, "authentication failed")

    async def quit(self):
        self.calls.append("quit")


@pytest.fixture
def make_image(tmp_path):
    def _make(name, size=(400, 300), color=(90, 140, 200), fmt="JPEG", mode="RGB"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        img = Image.new(mode, size, color)
        draw = ImageDraw.Draw(img)
        w, h = size
        draw.rectangle([w // 4, h // 4, w * 3 // 4, h * 3 // 4], fill=(250, 220, 40) if mode == "RGB" else None)
        img.save(path, fmt)
        return path

    return _make


@pytest.fixture
def template_path(make_image):
    return make_image("template.jpg", size=(800, 600), color=(20, 60, 120))


@pytest.fixture
def logo_path(tmp_path):
    """300x300 PNG with a transparent background and an opaque red disk."""
    path = tmp_path / "logo.png"
    img = Image.new("RGBA", (300, 300), (0, 0, 0, 0))
    ImageDraw.Draw(img).ellipse([30, 30, 270, 270], fill=(*LOGO_COLOR, 255))
    img.save(path, "PNG")
    return path


@pytest.fixture
def upload_root(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir(exist_ok=True)
    return path


@pytest.fixture
def photo_path(make_image, upload_root):
    return make_image("uploads/jane.jpg", size=(400, 300), color=(180, 120, 90))


@pytest.fixture
def poster_config(logo_path, upload_root):
    return PosterConfig(logo_path=logo_path, upload_root=upload_root, brand="WealthPlus")


@pytest.fixture
def member(photo_path):
    return Member(
        id="m1",
        name="Jane & Co",
        email="jane@example.com",
        phone="555-1234",
        designation="wealth manager",
        photo=str(photo_path),
    )


@pytest.fixture
def store(tmp_path):
    member_store.configure(f"sqlite:///{tmp_path / 'members.db'}")
    member_store.ensure_schema()
    yield member_store
    member_store.configure(None)


@pytest.fixture
def make_mailer():
    return FakeMailer


@pytest.fixture
def fake_mailer(make_mailer):
    return make_mailer()


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mailer_module.aiosmtplib, "SMTP", FakeSMTP)
    return FakeSMTP


@pytest.fixture
def app(tmp_path, upload_root, poster_config, fake_mailer):
    output_dir = tmp_path / "output"
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "SESSION_COOKIE_SECURE": False,
            "SESSION_COOKIE_SAMESITE": "Lax",
            "DATABASE_URL": f"sqlite:///{tmp_path / 'app.db'}",
            "UPLOADS_DIR": upload_root,
            "OUTPUT_DIR": output_dir,
            "ADMIN_USERNAME": "admin",
            "ADMIN_PASSWORD": "s3cret",
            "DASHBOARD_API_TOKEN": "api-token",
            "MAILER": fake_mailer,
            "POSTER_CONFIG": poster_config,
            "POSTER_WORKERS": 1,
        }
    )
    yield app
    member_store.configure(None)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    resp = client.post("/api/admin-login", json={"username": "admin", "password": "s3cret"})
    assert resp.status_code == 200
    return client

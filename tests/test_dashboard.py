import io

from openpyxl import load_workbook
from PIL import Image

from dashboard.services.export import EXPORT_COLUMNS


def _jpeg_bytes(size=(320, 240), color=(180, 120, 90)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, "JPEG")
    return buf.getvalue()


def _register(client, designation="Wealth Manager", email="jane@example.com", photo=None):
    return client.post(
        "/api/register",
        data={
            "name": "Jane Doe",
            "phone": "555-1234",
            "email": email,
            "designation": designation,
            "photo": (io.BytesIO(photo or _jpeg_bytes()), "jane.jpg", "image/jpeg"),
        },
        content_type="multipart/form-data",
    )


def _template_file(template_path):
    return (io.BytesIO(template_path.read_bytes()), "poster.jpg", "image/jpeg")


def test_ping(client):
    resp = client.get("/api/ping")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_admin_login_flow(client):
    assert client.get("/api/admin-auth").status_code == 401
    assert client.post("/api/admin-login", json={"username": "admin", "password": "nope"}).status_code == 401

    assert client.post("/api/admin-login", json={"username": "admin", "password": "s3cret"}).status_code == 200
    assert client.get("/api/admin-auth").get_json() == {"authenticated": True}

    client.post("/api/admin/logout")
    assert client.get("/api/admin-auth").status_code == 401


def test_login_without_configured_credentials(app, client):
    app.config["ADMIN_PASSWORD"] = ""
    resp = client.post("/api/admin-login", json={"username": "admin", "password": ""})
    assert resp.status_code == 500


def test_api_token_grants_admin(client):
    assert client.get("/api/users").status_code == 401
    assert client.get("/api/users", headers={"X-API-Token": "api-token"}).status_code == 200
    assert client.get("/api/users", headers={"Authorization": "Bearer api-token"}).status_code == 200
    assert client.get("/api/users", headers={"X-API-Token": "wrong"}).status_code == 401


def test_register_stores_normalized_photo(client, upload_root):
    resp = _register(client)
    assert resp.status_code == 200
    user = resp.get_json()["user"]

    assert user["designation"] == "Wealth Manager"
    assert user["photo_url"].startswith("/uploads/jane_doe_")
    stored = upload_root / user["photo_url"].rsplit("/", 1)[1]
    with Image.open(stored) as img:
        assert img.format == "JPEG"

    served = client.get(user["photo_url"])
    assert served.status_code == 200


def test_register_both_creates_two_profiles(admin_client):
    resp = _register(admin_client, designation="both")
    assert resp.status_code == 200
    users = resp.get_json()["users"]
    assert [u["designation"] for u in users] == ["Health Insurance Advisor", "Wealth Manager"]
    assert users[0]["photo_url"] == users[1]["photo_url"]
    assert len(admin_client.get("/api/users").get_json()) == 2


def test_register_validation(client, upload_root):
    missing = client.post("/api/register", data={"name": "Jane"}, content_type="multipart/form-data")
    assert missing.status_code == 400

    not_image = client.post(
        "/api/register",
        data={
            "name": "Jane",
            "phone": "1",
            "email": "jane@example.com",
            "designation": "Wealth Manager",
            "photo": (io.BytesIO(b"plain text"), "notes.txt", "text/plain"),
        },
        content_type="multipart/form-data",
    )
    assert not_image.status_code == 400
    assert list(upload_root.iterdir()) == []


def test_duplicate_registration_discards_photo(client, upload_root):
    assert _register(client).status_code == 200
    before = set(upload_root.iterdir())

    resp = _register(client)
    assert resp.status_code == 400
    assert "already registered" in resp.get_json()["error"]
    assert set(upload_root.iterdir()) == before


def test_update_user(admin_client):
    user = _register(admin_client).get_json()["user"]
    payload = {"name": "Jane Q", "email": "jane@example.com", "phone": "999", "designation": "Partner"}

    resp = admin_client.put(f"/api/users/{user['id']}", json=payload)
    assert resp.status_code == 200
    assert resp.get_json()["user"]["designation"] == "Partner"

    assert admin_client.put("/api/users/missing", json=payload).status_code == 404
    assert admin_client.put(f"/api/users/{user['id']}", json={"name": "x"}).status_code == 400


def test_update_user_conflict(admin_client):
    _register(admin_client)
    other = _register(admin_client, email="other@example.com").get_json()["user"]
    payload = {"name": "Jane", "email": "jane@example.com", "phone": "1", "designation": "Wealth Manager"}
    assert admin_client.put(f"/api/users/{other['id']}", json=payload).status_code == 409


def test_delete_user_keeps_shared_photo(admin_client, upload_root):
    users = _register(admin_client, designation="both").get_json()["users"]
    photo = upload_root / users[0]["photo_url"].rsplit("/", 1)[1]

    assert admin_client.delete(f"/api/users/{users[0]['id']}").status_code == 200
    assert photo.exists()
    assert admin_client.delete(f"/api/users/{users[1]['id']}").status_code == 200
    assert not photo.exists()
    assert admin_client.delete(f"/api/users/{users[1]['id']}").status_code == 404


def test_replace_and_delete_photo(admin_client, upload_root):
    user = _register(admin_client).get_json()["user"]
    old = upload_root / user["photo_url"].rsplit("/", 1)[1]

    resp = admin_client.put(
        f"/api/users/{user['id']}/photo",
        data={"photo": (io.BytesIO(_jpeg_bytes(color=(1, 2, 3))), "new.jpg", "image/jpeg")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200
    new = upload_root / resp.get_json()["photoUrl"].rsplit("/", 1)[1]
    assert new.exists()
    assert not old.exists()

    assert admin_client.delete(f"/api/users/{user['id']}/photo").status_code == 200
    assert not new.exists()
    assert admin_client.delete(f"/api/users/{user['id']}/photo").status_code == 404


def test_send_posters_reports_tally(admin_client, template_path, fake_mailer, upload_root):
    _register(admin_client, designation="both")
    _register(admin_client, designation="Partner", email="p@example.com")

    resp = admin_client.post(
        "/api/send-posters",
        data={"designation": "both", "template": _template_file(template_path)},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["recipientCount"] == 2
    assert body["sent"] == 2
    assert body["failed"] == 0

    assert sorted(s["designation"] for s in fake_mailer.sent) == ["Health Insurance Advisor", "Wealth Manager"]
    assert all(s["existed"] for s in fake_mailer.sent)
    assert not any(p.name.startswith("template_") for p in upload_root.iterdir())


def test_send_posters_requires_admin_and_input(client, admin_client, template_path):
    anon = client.application.test_client()
    assert anon.post("/api/send-posters", data={"designation": "both"}).status_code == 401

    no_template = admin_client.post(
        "/api/send-posters", data={"designation": "both"}, content_type="multipart/form-data"
    )
    assert no_template.status_code == 400

    nobody = admin_client.post(
        "/api/send-posters",
        data={"designation": "partner", "template": _template_file(template_path)},
        content_type="multipart/form-data",
    )
    assert nobody.status_code == 404


def test_send_posters_counts_missing_photo(admin_client, template_path, upload_root, fake_mailer):
    user = _register(admin_client).get_json()["user"]
    (upload_root / user["photo_url"].rsplit("/", 1)[1]).unlink()

    resp = admin_client.post(
        "/api/send-posters",
        data={"designation": "wealth", "template": _template_file(template_path)},
        content_type="multipart/form-data",
    )
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["failed"] == 1
    assert body["results"][0]["kind"] == "missing_asset"
    assert fake_mailer.sent == []


def test_preview_poster(admin_client, template_path, tmp_path):
    user = _register(admin_client).get_json()["user"]

    resp = admin_client.post(
        "/api/posters/preview",
        data={"member_id": user["id"], "template": _template_file(template_path)},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200
    assert resp.mimetype == "image/jpeg"
    with Image.open(io.BytesIO(resp.data)) as img:
        assert img.width == 800
        assert img.height > 600
    assert list((tmp_path / "output").iterdir()) == []


def test_preview_errors(admin_client, template_path, upload_root):
    missing = admin_client.post(
        "/api/posters/preview",
        data={"member_id": "nope", "template": _template_file(template_path)},
        content_type="multipart/form-data",
    )
    assert missing.status_code == 404

    user = _register(admin_client).get_json()["user"]
    (upload_root / user["photo_url"].rsplit("/", 1)[1]).unlink()
    resp = admin_client.post(
        "/api/posters/preview",
        data={"member_id": user["id"], "template": _template_file(template_path)},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 422
    assert resp.get_json()["asset"] == "photo"


def test_cors_headers_for_allowed_origin(client):
    resp = client.get("/api/ping", headers={"Origin": "http://localhost:5173"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
    other = client.get("/api/ping", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in other.headers


def test_export_members_requires_admin(client):
    anon = client.application.test_client()
    assert anon.get("/api/export-members").status_code == 401


def test_export_members_workbook(admin_client):
    _register(admin_client)
    resp = admin_client.get("/api/export-members")

    assert resp.status_code == 200
    assert resp.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert "members.xlsx" in resp.headers["Content-Disposition"]

    ws = load_workbook(io.BytesIO(resp.data)).active
    rows = list(ws.iter_rows(values_only=True))
    assert ws.title == "Members"
    assert rows[0] == EXPORT_COLUMNS
    assert len(rows) == 2
    record = dict(zip(EXPORT_COLUMNS, rows[1]))
    assert record["email"] == "jane@example.com"
    assert record["designation"] == "Wealth Manager"
    assert record["photo_url"].startswith("/uploads/")

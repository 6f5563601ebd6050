from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from conftest import ADMIN_PASSWORD
from sparkmindz_core.app import create_app
from sparkmindz_core.ui.static_files import ASSET_CACHE_CONTROL, HTML_CACHE_CONTROL


def test_public_pages_render(sparkmindz_env: Path) -> None:
    with TestClient(create_app()) as client:
        home = client.get("/")
        assert home.status_code == 200
        assert "SparkMindz" in home.text

        login = client.get("/admin")
        assert login.status_code == 200
        assert "Admin login" in login.text
        assert login.headers["cache-control"] == HTML_CACHE_CONTROL


def test_admin_panel_redirects_to_login_when_unauthenticated(sparkmindz_env: Path) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/admin-panel", follow_redirects=False)
        assert r.status_code == 302
        assert r.headers["location"] == "/admin"


def test_admin_panel_served_after_login_and_gone_after_logout(sparkmindz_env: Path) -> None:
    with TestClient(create_app()) as client:
        assert client.post("/api/login", json={"password": ADMIN_PASSWORD}).status_code == 200

        panel = client.get("/admin-panel", follow_redirects=False)
        assert panel.status_code == 200
        assert "Admin panel" in panel.text
        assert panel.headers["cache-control"] == HTML_CACHE_CONTROL

        assert client.post("/api/logout").status_code == 200

        r = client.get("/admin-panel", follow_redirects=False)
        assert r.status_code == 302
        assert r.headers["location"] == "/admin"


def test_unknown_page_renders_not_found(sparkmindz_env: Path) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/no-such-page")
        assert r.status_code == 404
        assert "Page not found" in r.text
        assert "/no-such-page" in r.text


def test_packaged_assets_are_cacheable(sparkmindz_env: Path) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/static/app.css")
        assert r.status_code == 200
        assert r.headers["cache-control"] == ASSET_CACHE_CONTROL


def test_public_dir_is_served_with_cache_headers(sparkmindz_env: Path) -> None:
    public = sparkmindz_env / "public"
    public.mkdir(parents=True, exist_ok=True)
    (public / "about.html").write_text("<h1>About us</h1>", encoding="utf-8")
    (public / "robots.txt").write_text("User-agent: *\n", encoding="utf-8")

    with TestClient(create_app()) as client:
        page = client.get("/about")
        assert page.status_code == 200
        assert "About us" in page.text
        assert page.headers["cache-control"] == HTML_CACHE_CONTROL

        same = client.get("/about.html")
        assert same.status_code == 200

        robots = client.get("/robots.txt")
        assert robots.status_code == 200
        assert robots.headers["cache-control"] == ASSET_CACHE_CONTROL


def test_public_404_page_is_used_when_present(sparkmindz_env: Path) -> None:
    public = sparkmindz_env / "public"
    public.mkdir(parents=True, exist_ok=True)
    (public / "404.html").write_text("<h1>Lost?</h1>", encoding="utf-8")

    with TestClient(create_app()) as client:
        r = client.get("/missing")
        assert r.status_code == 404
        assert "Lost?" in r.text


def test_public_dir_cannot_shadow_page_routes(sparkmindz_env: Path) -> None:
    public = sparkmindz_env / "public"
    public.mkdir(parents=True, exist_ok=True)
    (public / "admin-panel.html").write_text("<h1>leaked</h1>", encoding="utf-8")

    with TestClient(create_app()) as client:
        r = client.get("/admin-panel", follow_redirects=False)
        assert r.status_code == 302

        leaked = client.get("/admin-panel.html")
        assert leaked.status_code == 404
        assert "leaked" not in leaked.text


def test_unmatched_page_with_other_methods_is_not_found(sparkmindz_env: Path) -> None:
    with TestClient(create_app()) as client:
        r = client.post("/some-page")
        assert r.status_code == 404
        assert "Page not found" in r.text

import pytest


class TestRoot:
    def test_root_links(self, client):
        body = client.get("/").json()

        assert body["app"] == "/app"
        assert body["health"] == "/health"
        assert body["environment"] == "development"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "operational"
        assert body["store"] == "healthy"
        assert body["identity"] == "healthy"


class TestPages:
    @pytest.mark.parametrize(
        "path, page, marker",
        [
            ("/app", "login", 'id="login-form"'),
            ("/app/menu", "menu", 'id="menu-grid"'),
            ("/app/orders", "orders", 'id="order-list"'),
            ("/app/admin", "admin", 'id="menu-form"'),
        ],
    )
    def test_page_renders(self, client, path, page, marker):
        response = client.get(path)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert f'data-page="{page}"' in response.text
        assert marker in response.text
        assert "app.js" in response.text

    def test_login_page_has_no_nav(self, client):
        assert 'id="logout"' not in client.get("/app").text

    def test_static_assets(self, client):
        script = client.get("/static/app.js")

        assert script.status_code == 200
        assert "function boot" in script.text
        assert client.get("/static/style.css").status_code == 200

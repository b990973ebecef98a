from fastapi.testclient import TestClient

from src.imgdrop.main import SECURITY_HEADERS


def test_unhandled_error_is_500_with_security_headers(app):
    @app.get("/boom")
    async def boom():
        message = "unexpected"
        raise RuntimeError(message)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    for header, value in SECURITY_HEADERS.items():
        assert response.headers[header] == value

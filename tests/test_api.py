from fastapi.testclient import TestClient

from explorer.gemini import ProviderError
from explorer.main import create_app


def _client(controller):
    return TestClient(create_app(controller))


def _open(client):
    resp = client.post("/sessions", json={"autostart": False})
    assert resp.status_code == 201
    return resp.json()


def test_health(make_controller):
    controller, _ = make_controller()
    with _client(controller) as client:
        assert client.get("/health").json() == {"status": "ok"}


def test_presets_listed(make_controller):
    controller, _ = make_controller()
    with _client(controller) as client:
        data = client.get("/presets").json()
    assert len(data) == 6
    assert data[0]["index"] == 0
    assert "Cold" in data[0]["label"]


def test_index_page_renders_controls(make_controller):
    controller, _ = make_controller(text="About 20 minutes by car.")
    with _client(controller) as client:
        resp = client.get("/", headers={"Sec-CH-Prefers-Color-Scheme": '"light"'})
    assert resp.status_code == 200
    html = resp.text
    assert 'data-theme="light"' in html
    assert 'id="embed-map"' in html
    assert html.count('data-index="') == 6
    assert 'value="Bren Mercury"' in html
    assert 'value="Chartered Beverly Hills"' in html
    assert resp.headers["Accept-CH"] == "Sec-CH-Prefers-Color-Scheme"
    assert len(controller.sessions) == 1


def test_index_page_dark_has_no_theme(make_controller):
    controller, _ = make_controller()
    with _client(controller) as client:
        html = client.get("/", headers={"Sec-CH-Prefers-Color-Scheme": '"dark"'}).text
    assert "data-theme" not in html.split("<head>")[0]


def test_open_session_snapshot(make_controller):
    controller, _ = make_controller()
    with _client(controller) as client:
        state = _open(client)
        again = client.get(f"/sessions/{state['session_id']}").json()
    assert state == again
    assert state["origin"] == "Bren Mercury"
    assert state["caption_visible"] is False


def test_unknown_session_404(make_controller):
    controller, _ = make_controller()
    with _client(controller) as client:
        assert client.get("/sessions/nope").status_code == 404
        assert client.post("/sessions/nope/directions", json={"origin": "a", "destination": "b"}).status_code == 404


def test_directions_endpoint(make_controller):
    controller, client_fake = make_controller(text="About 4.5 hours by car.")
    with _client(controller) as client:
        sid = _open(client)["session_id"]
        state = client.post(f"/sessions/{sid}/directions", json={"origin": "Paris", "destination": "Lyon"}).json()
    assert state["directions_result"] == "About 4.5 hours by car."
    assert state["directions_visible"] is True
    assert "origin=Paris&destination=Lyon" in state["map_src"]
    assert len(client_fake.once_calls) == 1


def test_directions_provider_error_is_bad_gateway(make_controller):
    controller, _ = make_controller(once_error=ProviderError("quota exceeded"))
    with _client(controller) as client:
        sid = _open(client)["session_id"]
        resp = client.post(f"/sessions/{sid}/directions", json={"origin": "Paris", "destination": "Lyon"})
        assert resp.status_code == 502
        assert "quota exceeded" in resp.json()["detail"]
        state = client.get(f"/sessions/{sid}").json()
    assert state["directions_visible"] is False


def test_preset_endpoint(make_controller, make_place_chunk):
    controller, fake = make_controller(chunks=[make_place_chunk("Socotra, Yemen", "Dragon trees.")])
    with _client(controller) as client:
        sid = _open(client)["session_id"]
        state = client.post(f"/sessions/{sid}/presets/5").json()
    assert state["caption"] == "Dragon trees."
    assert state["caption_visible"] is True
    assert "Socotra%2C%20Yemen" in state["map_src"]
    assert len(fake.stream_calls) == 1


def test_unknown_preset_404(make_controller):
    controller, _ = make_controller()
    with _client(controller) as client:
        sid = _open(client)["session_id"]
        assert client.post(f"/sessions/{sid}/presets/42").status_code == 404


def test_recommend_free_text_swallows_errors(make_controller):
    controller, _ = make_controller(stream_error=ProviderError("boom"))
    with _client(controller) as client:
        sid = _open(client)["session_id"]
        resp = client.post(f"/sessions/{sid}/recommend", json={"prompt": "Somewhere with pink lakes"})
    assert resp.status_code == 200
    assert resp.json()["caption"] == ""

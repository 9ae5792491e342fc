# tests/test_api_core.py

def test_root(client):
    res = client.get("/")
    assert res.status_code == 200
    data = res.json()
    assert "message" in data
    assert data["scores_router_loaded"] is True
    assert data["chatbot_router_loaded"] is True


def test_global_index(client):
    res = client.get("/api/v1/scores/global", params={"territory": "Valencia", "period": 2024})
    assert res.status_code == 200
    data = res.json()
    assert data["index"] == 86.7
    assert data["breakdown"]["Capital Humano"] == 100.0


def test_global_index_without_data_is_null(client):
    res = client.get("/api/v1/scores/global", params={"territory": "España", "period": 2024})
    assert res.status_code == 200
    assert res.json()["index"] is None


def test_unknown_territory_is_404(client):
    res = client.get("/api/v1/scores/global", params={"territory": "Narnia"})
    assert res.status_code == 404


def test_subdimension_score(client):
    res = client.get(
        "/api/v1/scores/subdimension",
        params={"name": "Digitalización Básica", "territory": "valencia", "period": 2024},
    )
    assert res.status_code == 200
    assert res.json()["value"] == 80.0


def test_indicator_without_data(client):
    res = client.get("/api/v1/scores/indicator", params={"name": "Inexistente", "territory": "Alicante"})
    assert res.status_code == 200
    assert res.json()["value"] is None


def test_dimension_requires_name(client):
    res = client.get("/api/v1/scores/dimension")
    assert res.status_code == 422


def test_provinces(client):
    res = client.get("/api/v1/scores/provinces", params={"period": 2024})
    assert res.status_code == 200
    data = res.json()
    assert [p["territory"] for p in data] == ["Valencia", "Alicante", "Castellón"]
    assert data[0]["top_dimension"] == "Capital Humano"


def test_chatbot_ask(client):
    res = client.post("/api/v1/chatbot/ask", json={"query": "¿Cuál es el índice BRAINNOVA de Alicante?"})
    assert res.status_code == 200
    data = res.json()
    assert data["intent"] == "province_index"
    assert "66.8" in data["answer"]


def test_chatbot_knowledge(client):
    res = client.get("/api/v1/chatbot/knowledge", params={"q": "cobertura 5G"})
    assert res.status_code == 200
    hits = res.json()
    assert hits[0]["title"] == "Cuál es la cobertura 5G en la Comunidad Valenciana"
    assert hits[0]["relevance"] >= hits[-1]["relevance"]


def test_chatbot_refresh_provinces(client):
    res = client.post("/api/v1/chatbot/province-summaries/refresh", params={"period": 2024})
    assert res.status_code == 200
    assert res.json()[0]["territory_key"] == "valencia"


def test_refresh_changes_later_answers(client):
    before = client.post("/api/v1/chatbot/ask", json={"query": "índice de Valencia"}).json()
    assert "69.5" in before["answer"]

    client.post("/api/v1/chatbot/province-summaries/refresh", params={"period": 2024})

    after = client.post("/api/v1/chatbot/ask", json={"query": "índice de Valencia"}).json()
    assert "86.7" in after["answer"]

def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy"}


def test_supabase_probe_reports_configuration(client, monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_PROJECT_URL", raising=False)
    r = client.get("/__supabase")
    assert r.status_code == 200
    data = r.json()
    assert data["configured"] is False
    assert data["url_set"] is False
    assert "score_backend_enabled" in data

# tests/test_score_backend.py

import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from services.errors import ScoreBackendError
from services.score_backend import ScoreBackendClient, parse_score_response
from services.scoring_engine import ScoringEngine


def _response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    resp.text = str(payload)
    return resp


def test_parse_weighted_index_shape():
    res = parse_score_response({"weightedIndex": 72.44, "breakdown": {"Capital Humano": 70, "x": "bad"}})
    assert res.weighted_index == 72.44
    assert res.breakdown == {"Capital Humano": 70.0}


def test_parse_legacy_shape():
    res = parse_score_response({
        "brainnova_global_score": 61.2,
        "desglose_por_dimension": [
            {"dimension": "Capital Humano", "score_valencia": 58},
            {"dimension": "", "score_valencia": 10},
        ],
    })
    assert res.weighted_index == 61.2
    assert res.breakdown == {"Capital Humano": 58.0}


def test_parse_clamps_and_rejects():
    assert parse_score_response({"weightedIndex": 140}).weighted_index == 100.0
    with pytest.raises(ScoreBackendError):
        parse_score_response({"weightedIndex": None})
    with pytest.raises(ScoreBackendError):
        parse_score_response([1, 2])


def test_request_body_uses_empty_strings():
    session = MagicMock()
    session.post.return_value = _response(payload={"weightedIndex": 50})
    client = ScoreBackendClient("https://api.example.org/", session=session)

    client.compute_score(country="Valencia", period=2024, province="Valencia")

    url = session.post.call_args.args[0]
    body = session.post.call_args.kwargs["json"]
    assert url == "https://api.example.org/api/v1/brainnova-score"
    assert body == {"periodo": 2024, "pais": "Valencia", "provincia": "Valencia", "sector": "", "tamano_empresa": ""}


def test_http_error_raises():
    session = MagicMock()
    session.post.return_value = _response(status=503, payload={"detail": "down"})
    with pytest.raises(ScoreBackendError) as exc:
        ScoreBackendClient("https://api.example.org", session=session).compute_score(country="Valencia", period=2024)
    assert "503" in str(exc.value)


def test_engine_prefers_backend(repository, territories, config):
    session = MagicMock()
    session.post.return_value = _response(payload={"weightedIndex": 71.26, "breakdown": {"Capital Humano": 80}})
    engine = ScoringEngine(repository, territories, config, backend=ScoreBackendClient("http://backend", session=session))

    report = asyncio.run(engine.index_report("Valencia", 2024))
    assert report.source == "backend"
    assert report.index == 71.3


def test_engine_falls_back_to_local_when_backend_down(repository, territories, config):
    client = ScoreBackendClient("http://backend")
    engine = ScoringEngine(repository, territories, config, backend=client)

    with patch.object(client._session, "post", side_effect=requests.ConnectionError("refused")):
        report = asyncio.run(engine.index_report("Valencia", 2024))

    assert report.source == "local"
    assert report.index == 86.7


LEGACY_PAYLOAD = {
    "brainnova_global_score": 61.2,
    "desglose_por_dimension": [{"dimension": "Capital Humano", "score_valencia": 58}],
}


def _legacy_engine(repository, territories, config, payload=LEGACY_PAYLOAD):
    session = MagicMock()
    session.post.return_value = _response(payload=payload)
    return ScoringEngine(repository, territories, config, backend=ScoreBackendClient("http://backend", session=session))


def test_parse_legacy_shape_is_valencia_only():
    assert parse_score_response(LEGACY_PAYLOAD).valencia_only
    res = parse_score_response({**LEGACY_PAYLOAD, "pais": "España"})
    assert not res.valencia_only
    assert res.territory == "España"


def test_valencia_only_answer_is_used_for_valencia(repository, territories, config):
    engine = _legacy_engine(repository, territories, config)
    for name in ("Valencia", "Comunitat Valenciana"):
        report = asyncio.run(engine.index_report(name, 2024))
        assert report.source == "backend"
        assert report.index == 61.2


def test_valencia_only_answer_is_not_reused_for_other_territories(repository, territories, config):
    engine = _legacy_engine(repository, territories, config)

    alicante = asyncio.run(engine.index_report("Alicante", 2024))
    assert alicante.source == "local"
    assert alicante.index == 63.3

    castellon = asyncio.run(engine.index_report("Castellón", 2024))
    assert castellon.source == "local"
    assert castellon.index == 0.0

    assert asyncio.run(engine.index_report("España", 2024)).source != "backend"


def test_echoed_territory_must_match_request(repository, territories, config):
    engine = _legacy_engine(repository, territories, config, payload={**LEGACY_PAYLOAD, "provincia": "Alicante"})
    assert asyncio.run(engine.index_report("Alicante", 2024)).source == "backend"
    assert asyncio.run(engine.index_report("Valencia", 2024)).source == "local"

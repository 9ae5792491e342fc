# tests/test_repository.py

import asyncio

import pytest

from services.brainnova_repository import BrainnovaRepository
from services.errors import StoreError
from tests.fake_supabase import FakeSupabase


def test_dimensions_ordered_by_weight(repository):
    dims = asyncio.run(repository.list_dimensions())
    assert [d.name for d in dims] == [
        "Transformación Digital Empresarial",
        "Capital Humano",
        "Infraestructura Digital",
    ]
    assert dims[0].weight == 30


def test_subdimensions_deduplicated_and_filtered(repository):
    subs = asyncio.run(repository.list_subdimensions("Infraestructura Digital"))
    assert [s.name for s in subs] == ["Conectividad"]


def test_malformed_definitions_are_skipped(repository):
    defs = asyncio.run(repository.list_indicator_definitions())
    names = [d.name for d in defs]
    assert "" not in names
    # VHCN spelling variants collapse to the canonical definition
    assert "Cobertura de redes de muy alta capacidad (VHCN)" in names
    assert "Cobertura De Redes Vhcn" not in names


def test_definitions_by_subdimension(repository):
    defs = asyncio.run(repository.list_indicator_definitions(["digitalización básica"]))
    assert {d.name for d in defs} == {"Empresas con página web", "Empresas que usan ERP"}


def test_malformed_results_are_skipped(repository):
    values = asyncio.run(repository.reference_values("Empresas que usan ERP", 2024))
    assert sorted(values) == [30.0, 40.0, 50.0]


def test_latest_result_prefers_requested_period(repository):
    r = asyncio.run(repository.latest_result("Empresas que usan inteligencia artificial", ["Valencia"], 2023))
    assert r.period == 2023
    assert r.value == 5.0

    r = asyncio.run(repository.latest_result("Empresas que usan inteligencia artificial", ["Valencia"], 2030))
    assert r.period == 2024


def test_results_found_through_name_alias(repository):
    rows = asyncio.run(repository.fetch_results("Cobertura de redes de muy alta capacidad (VHCN)", ["Alicante"]))
    assert len(rows) == 1
    assert rows[0].value == 80.0


def test_count_results(repository):
    assert asyncio.run(repository.count_results("Cobertura 5G")) == 4


def test_search_indicator_definitions(repository):
    defs = asyncio.run(repository.search_indicator_definitions(["inteligencia"]))
    assert [d.name for d in defs] == ["Empresas que usan inteligencia artificial"]


def test_search_terms_are_sanitized(repository):
    # filter syntax characters are stripped before building or=(...)
    assert asyncio.run(repository.search_indicator_definitions(["%,()"])) == []
    defs = asyncio.run(repository.search_indicator_definitions(["ERP)"]))
    assert [d.name for d in defs] == ["Empresas que usan ERP"]


def test_active_surveys_only(repository):
    surveys = asyncio.run(repository.active_surveys())
    assert [s.title for s in surveys] == ["Encuesta de digitalización de pymes"]


def test_store_failure_raises_store_error(dataset):
    repo = BrainnovaRepository(FakeSupabase(dataset, fail_tables={"surveys"}))
    with pytest.raises(StoreError) as exc:
        asyncio.run(repo.active_surveys())
    assert exc.value.table == "surveys"


def test_unconfigured_client_raises_store_error():
    with pytest.raises(StoreError):
        asyncio.run(BrainnovaRepository(None).list_dimensions())


def test_get_indicator_definition(repository):
    d = asyncio.run(repository.get_indicator_definition("Empresas que usan ERP"))
    assert d.importance == "Media"
    assert d.subdimension_name == "Digitalización Básica"
    assert asyncio.run(repository.get_indicator_definition("Inexistente")) is None

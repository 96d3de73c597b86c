import math
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from src.skimeval.main import create_app
from src.skimeval.schemas.evaluation import DepartureWindow, RouteModel

ELASTICITIES = [
    {"cluster": cluster, "segment": "Fr", "skim_type": skim_type, "elasticity0": e0, "min": -5.0, "max": 5.0, "f_min": 0.1, "f_max": 10.0}
    for cluster in (1, 2)
    for skim_type, e0 in (("JRT", -1.0), ("ADT", -0.5), ("NTR", -0.2))
]


def _route(destination: str, minutes: float, demand: float, transfers: int = 0, departure: float = 3000.0) -> dict:
    return {
        "destination_zone": destination,
        "departure_time": departure,
        "arrival_time": departure + minutes * 60,
        "transfers": transfers,
        "demand": demand,
    }


def _payload(**overrides) -> dict:
    window = {"start": 3000.0, "end": 3100.0}
    payload = {
        "zones": [
            {"zone_id": "A", "cluster": "CH"},
            {"zone_id": "B", "cluster": "CH"},
            {"zone_id": "X", "cluster": "DE"},
        ],
        "demand": [
            {"from_zone": "A", "to_zone": "B", "demand": 10.0},
            {"from_zone": "A", "to_zone": "X", "demand": 5.0},
            {"from_zone": "B", "to_zone": "A", "demand": 8.0},
        ],
        "reference": {
            "name": "reference",
            "departure_window": window,
            "routes": [
                {
                    "origin_zone": "A",
                    "routes": [_route("B", 20, 10.0, transfers=1), _route("X", 60, 5.0, departure=2100.0)],
                }
            ],
            "unroutable": [{"from_zone": "B", "to_zone": "A", "demand": 8.0}],
        },
        "variants": [
            {
                "name": "timetable-2030",
                "departure_window": window,
                "routes": [
                    {
                        "origin_zone": "A",
                        "routes": [_route("B", 10, 10.0), _route("X", 60, 5.0, departure=2100.0)],
                    }
                ],
            }
        ],
        "segment": "Fr",
        "elasticities": ELASTICITIES,
        "thread_count": 2,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def api_client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    app = create_app()
    client = TestClient(app)

    from src.skimeval.services.evaluation import service as evaluation_service
    from src.skimeval.persistence.filesystem import FileStorage

    monkeypatch.setattr(evaluation_service, "FileStorage", lambda: FileStorage(root=tmp_path))

    return client


def test_health_endpoint(api_client: TestClient) -> None:
    response = api_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_evaluation_endpoint_returns_skims_and_factors(api_client: TestClient) -> None:
    response = api_client.post("/api/evaluations", json=_payload())

    assert response.status_code == 200
    payload = response.json()
    assert sorted(payload["completed_zones"]) == ["A", "B", "X"]
    assert payload["failed_zones"] == {}

    scenarios = {scenario["name"]: scenario for scenario in payload["scenarios"]}
    assert list(scenarios) == ["reference", "timetable-2030"]

    reference_skims = scenarios["reference"]["skims"]
    assert reference_skims["A"]["B"][3] == pytest.approx(1200.0)
    assert reference_skims["A"]["B"][4] == pytest.approx(1.0)
    # departs 900 s before the desired window
    assert reference_skims["A"]["X"][5] == pytest.approx(15.0)
    assert reference_skims["B"] == {}

    unroutable = scenarios["reference"]["unroutable"]
    assert unroutable["total"] == 8.0
    assert unroutable["percent"] == pytest.approx(8.0 / 23.0)
    assert unroutable["largest_zone"] == "B"
    assert unroutable["largest_zone_demand"] == 8.0
    assert scenarios["timetable-2030"]["unroutable"]["total"] == 0.0

    factors = {(row["from_zone"], row["to_zone"]): row for row in payload["factors"]}
    assert set(factors) == {("A", "B"), ("A", "X")}
    assert factors[("A", "B")]["variant"] == "timetable-2030"
    assert factors[("A", "B")]["f_jrt"] == pytest.approx(2.0)
    assert factors[("A", "B")]["f_adt"] == pytest.approx(1.0)
    assert factors[("A", "B")]["f_ntr"] == pytest.approx(3 ** 0.2)
    assert factors[("A", "B")]["total_factor"] == pytest.approx(2.0 * 3 ** 0.2)
    assert factors[("A", "X")]["total_factor"] == pytest.approx(1.0)
    assert factors[("A", "B")]["demand"] == 10.0
    assert factors[("A", "B")]["adjusted_demand"] == pytest.approx(20.0 * 3 ** 0.2)
    assert payload["metadata"]["time_windows"] == 1
    assert "output_dir" not in payload["metadata"]


def test_evaluation_endpoint_persists_outputs(api_client: TestClient, tmp_path: Path) -> None:
    response = api_client.post("/api/evaluations", json=_payload(persist=True, run_label="eval_2030"))

    assert response.status_code == 200
    output_dirs = list((tmp_path / "outputs").glob("eval_2030_*"))
    assert len(output_dirs) == 1
    run_dir = output_dirs[0]
    assert Path(response.json()["metadata"]["output_dir"]).name == run_dir.name
    for name in ("skims.csv", "factors.csv", "unroutable_demand.csv", "unroutable_stats.json"):
        assert (run_dir / name).exists()


def test_assignment_only_run_has_no_factors(api_client: TestClient) -> None:
    response = api_client.post("/api/evaluations", json=_payload(variants=[], elasticities=None, origin_zones=["A"]))

    assert response.status_code == 200
    payload = response.json()
    assert payload["factors"] == []
    assert payload["completed_zones"] == ["A"]
    assert [scenario["name"] for scenario in payload["scenarios"]] == ["reference"]


def test_unknown_demand_zone_returns_404(api_client: TestClient) -> None:
    demand = [{"from_zone": "A", "to_zone": "Q", "demand": 1.0}]
    response = api_client.post("/api/evaluations", json=_payload(demand=demand))

    assert response.status_code == 404


def test_unknown_origin_zone_returns_400(api_client: TestClient) -> None:
    response = api_client.post("/api/evaluations", json=_payload(origin_zones=["A", "Q"]))

    assert response.status_code == 400


def test_missing_segment_returns_400(api_client: TestClient) -> None:
    response = api_client.post("/api/evaluations", json=_payload(segment="Pe"))

    assert response.status_code == 400
    assert "Pe" in response.json()["detail"]


def test_zone_without_cluster_is_reported_as_failed(api_client: TestClient) -> None:
    zones = [{"zone_id": "A", "cluster": "CH"}, {"zone_id": "B"}, {"zone_id": "X", "cluster": "DE"}]
    response = api_client.post("/api/evaluations", json=_payload(zones=zones))

    assert response.status_code == 200
    payload = response.json()
    assert list(payload["failed_zones"]) == ["A"]
    assert sorted(payload["completed_zones"]) == ["B", "X"]


def test_duplicate_scenario_names_are_rejected(api_client: TestClient) -> None:
    payload = _payload()
    payload["variants"][0]["name"] = "reference"

    response = api_client.post("/api/evaluations", json=payload)

    assert response.status_code == 422


def test_health_config_endpoint(api_client: TestClient) -> None:
    response = api_client.get("/api/health/config")

    assert response.status_code == 200
    payload = response.json()
    assert payload["delta_t_policy"] in {"boundaries", "center"}
    assert isinstance(payload["elasticities_file_exists"], bool)


def test_clusters_fall_back_to_configured_zones_file(
    api_client: TestClient, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    from src.skimeval.config import settings

    zones_file = tmp_path / "zones.csv"
    zones_file.write_text("NO;NAME;MARKTGEBIETVARELAST\n0;A;CH\n1;B;CH\n2;X;DE\n", encoding="utf-8")
    monkeypatch.setattr(settings, "zones_file", zones_file)

    zones = [{"zone_id": "A"}, {"zone_id": "B"}, {"zone_id": "X"}]
    response = api_client.post("/api/evaluations", json=_payload(zones=zones))

    assert response.status_code == 200
    payload = response.json()
    assert payload["failed_zones"] == {}
    factors = {(row["from_zone"], row["to_zone"]): row for row in payload["factors"]}
    assert factors[("A", "B")]["f_jrt"] == pytest.approx(2.0)


def test_non_finite_route_times_are_rejected() -> None:
    with pytest.raises(ValidationError):
        RouteModel(destination_zone="B", departure_time=math.inf, arrival_time=math.inf)
    with pytest.raises(ValidationError):
        DepartureWindow(start=math.nan, end=3600.0)

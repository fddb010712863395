from __future__ import annotations
import dataclasses
import json
import pytest
from fastapi.testclient import TestClient
import app as app_module
from gaitcore.pipeline.synthetic import synthetic_run_session


@pytest.fixture(scope="module")
def client():
    return TestClient(app_module.app)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_analyze_demo_session(client):
    r = client.post("/api/analyze/", data={"mass_kg": "70"})
    assert r.status_code == 200
    body = r.json()
    assert body["mode"] == "full"
    assert body["meta"]["source"] == "demo"
    assert body["summary"]["nSteps"] == 12
    assert len(body["steps"]) == 12
    assert body["groundTrackSource"] == "imu"


def test_analyze_uploaded_json(client):
    raw = synthetic_run_session(acc_in_g=True)
    files = {"file": ("run.json", json.dumps(raw).encode("utf-8"), "application/json")}
    r = client.post("/api/analyze/", data={"origin_lat": "10.0", "origin_lng": "20.0"}, files=files)
    assert r.status_code == 200
    body = r.json()
    assert body["meta"]["source"] == "run.json"
    assert body["meta"]["units"]["acc_unit"] == "g"
    assert body["groundTrack"][0]["lat"] == pytest.approx(10.0)
    assert body["groundTrack"][0]["lng"] == pytest.approx(20.0)


def test_analyze_quick_mode(client):
    raw = synthetic_run_session(acc_in_g=True)
    r = client.post("/api/analyze/json", json={"samples": raw, "mode": "quick"})
    assert r.status_code == 200
    body = r.json()
    assert body["mode"] == "quick"
    assert len(body["steps"]) == 12


def test_analyze_json_body(client):
    raw = synthetic_run_session()
    r = client.post("/api/analyze/json", json={"samples": raw, "mass_kg": 50.0})
    assert r.status_code == 200
    steps = r.json()["steps"]
    assert steps[0]["Fpeak"] == pytest.approx(50.0 * steps[0]["apeak"])


def test_insufficient_data_is_422(client):
    raw = synthetic_run_session()[:5]
    r = client.post("/api/analyze/json", json={"samples": raw})
    assert r.status_code == 422
    assert r.json()["detail"] == "insufficient_data"


def test_unknown_mode_is_400(client):
    r = client.post("/api/analyze/", data={"mode": "turbo"})
    assert r.status_code == 400


def test_malformed_upload_is_400(client):
    files = {"file": ("run.json", b"{not json", "application/json")}
    assert client.post("/api/analyze/", files=files).status_code == 400
    files = {"file": ("run.csv", b"ax,ay,az\n0,0,1\n", "text/csv")}
    assert client.post("/api/analyze/", files=files).status_code == 400


def test_oversize_upload_is_413(client, monkeypatch):
    monkeypatch.setattr(app_module, "settings", dataclasses.replace(app_module.settings, max_upload_mb=0))
    files = {"file": ("run.json", b"[]", "application/json")}
    assert client.post("/api/analyze/", files=files).status_code == 413


def test_lowered_min_samples_option_is_still_insufficient(client):
    r = client.post("/api/analyze/json", json={"samples": [], "options": {"min_samples": 0}})
    assert r.status_code == 422
    assert r.json()["detail"] == "insufficient_data"


def test_uploaded_csv_is_parsed(client):
    lines = ["timestamp,ax,ay,az,gx,gy,gz"]
    for e in synthetic_run_session():
        if e["type"] == "imu":
            d = e["data"]
            lines.append(",".join(str(v) for v in (e["timestamp"], d["ax"], d["ay"], d["az"], d["gx"], d["gy"], d["gz"])))
    files = {"file": ("run.csv", "\n".join(lines).encode("utf-8"), "text/csv")}
    r = client.post("/api/analyze/", files=files)
    assert r.status_code == 200
    assert r.json()["summary"]["nSteps"] == 12

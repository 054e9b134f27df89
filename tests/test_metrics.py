from datetime import datetime, timedelta, timezone

import pytest

from services.metric_service import MetricService, average, classify_trend
from conftest import USER_ID

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def log_values(db, template, column, values_by_days_ago):
    for days_ago, value in values_by_days_ago:
        MetricService.add_log(db, USER_ID, template.id, {
            column: value,
            "value_diastolic": 80 if column == "value_systolic" else None,
            "measurement_date": NOW - timedelta(days=days_ago),
        })


def test_classify_trend():
    assert classify_trend(101, 100) == "steady"
    assert classify_trend(99, 100) == "steady"
    assert classify_trend(102, 100) == "increase"
    assert classify_trend(90, 100) == "decrease"
    assert classify_trend(None, 100) == "unknown"
    assert classify_trend(5, None) == "unknown"
    assert classify_trend(5, 0) == "unknown"
    assert classify_trend(-90, -100) == "increase"
    assert classify_trend(-110, -100) == "decrease"
    assert classify_trend(-100.5, -100) == "steady"


def test_average_skips_missing_values():
    assert average([1, None, 3]) == 2
    assert average([]) is None
    assert average([float("nan")]) is None


def test_number_trend_increase(db):
    t = MetricService.create_template(db, USER_ID, {"name": "Weight", "unit": "kg"})
    log_values(db, t, "value_numeric", [(1, 82), (3, 84), (9, 78), (12, 80)])
    result = MetricService.get_trend(db, USER_ID, t.id, 7, NOW)
    assert result["trend"] == "increase"
    assert result["current_average"] == 83
    assert result["previous_average"] == 79


def test_blood_pressure_uses_systolic(db):
    t = MetricService.create_template(db, USER_ID, {"name": "BP", "value_type": "bloodpressure"})
    log_values(db, t, "value_systolic", [(2, 120), (10, 140)])
    assert MetricService.get_trend(db, USER_ID, t.id, 7, NOW)["trend"] == "decrease"


def test_blood_sugar_steady(db):
    t = MetricService.create_template(db, USER_ID, {"name": "Glucose", "value_type": "bloodsugar"})
    log_values(db, t, "value_bloodsugar", [(1, 100.5), (5, 100), (8, 100)])
    assert MetricService.get_trend(db, USER_ID, t.id, 7, NOW)["trend"] == "steady"


def test_trend_unknown_without_previous_window(db):
    t = MetricService.create_template(db, USER_ID, {"name": "Steps"})
    log_values(db, t, "value_numeric", [(1, 9000)])
    assert MetricService.get_trend(db, USER_ID, t.id, 7, NOW)["trend"] == "unknown"


def test_required_value_depends_on_type(db):
    t = MetricService.create_template(db, USER_ID, {"name": "BP", "value_type": "bloodpressure"})
    with pytest.raises(ValueError):
        MetricService.add_log(db, USER_ID, t.id, {"value_systolic": 120})
    with pytest.raises(ValueError):
        MetricService.create_template(db, USER_ID, {"name": "Odd", "value_type": "colour"})


def test_template_and_log_routes(client, auth_headers, other_headers):
    resp = client.post("/api/v1/metrics/templates", json={"name": "Sleep", "unit": "h"}, headers=auth_headers)
    assert resp.status_code == 201
    template = resp.json()["data"]
    base = f"/api/v1/metrics/templates/{template['id']}"

    log = client.post(f"{base}/logs", json={"value_numeric": 7.5}, headers=auth_headers)
    assert log.status_code == 201
    assert client.post(f"{base}/logs", json={"notes": "no value"}, headers=auth_headers).status_code == 400

    logs = client.get(f"{base}/logs", headers=auth_headers).json()
    assert [l["value_numeric"] for l in logs] == [7.5]
    assert client.get(f"{base}/logs", headers=other_headers).status_code == 404

    log_id = log.json()["data"]["id"]
    assert client.delete(f"{base}/logs/{log_id}", headers=auth_headers).status_code == 200
    assert client.delete(base, headers=auth_headers).status_code == 200
    assert client.get(base, headers=auth_headers).status_code == 404


@pytest.mark.parametrize("days_back", [0, 366, -3])
def test_trend_route_rejects_out_of_range_days(client, auth_headers, days_back):
    template = client.post("/api/v1/metrics/templates", json={"name": "Sleep"}, headers=auth_headers).json()["data"]
    resp = client.post("/api/v1/metrics/trend",
                       json={"metric_template_id": template["id"], "days_back": days_back},
                       headers=auth_headers)
    assert resp.status_code == 400


def test_trend_route_defaults(client, auth_headers):
    template = client.post("/api/v1/metrics/templates", json={"name": "Sleep"}, headers=auth_headers).json()["data"]
    resp = client.post("/api/v1/metrics/trend", json={"metric_template_id": template["id"]}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["trend"] == "unknown"
    resp = client.post("/api/v1/metrics/trend", json={"metric_template_id": "missing"}, headers=auth_headers)
    assert resp.status_code == 404

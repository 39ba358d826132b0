from conftest import auth_headers

FINANCE = "Finance Office"
LEGAL = "Legal Service"


def create(client, role="risk_admin", department=FINANCE, **overrides):
    body = {
        "title": "Vendor payment fraud",
        "category": "Financial",
        "likelihood": 80,
        "impact": 90,
        "control_effectiveness": 60,
    }
    body.update(overrides)
    return client.post("/risks", json=body, headers=auth_headers(role, department))


def test_missing_identity_is_unauthorized(client):
    assert client.get("/risks").status_code == 401


def test_create_scores_and_tags_department(client):
    r = create(client, role="business_user")
    assert r.status_code == 201
    risk = r.json()
    assert risk["risk_id"] == "FO-01"
    assert risk["department"] == FINANCE
    assert risk["owner_id"] == "u-1"
    assert risk["inherent_matrix_value"] == 19
    assert risk["inherent_rating"] == "High"
    assert risk["residual_rating"] == "Low"
    assert risk["risk_rating"] == "Low"
    assert abs(risk["risk_score"] - 31.6667) < 1e-3
    assert risk["date_reported"]

    assert create(client, role="business_user").json()["risk_id"] == "FO-02"


def test_create_denied_for_read_only_roles(client):
    for role in ("reviewer", "auditor", "chief_office"):
        assert create(client, role=role).status_code == 403
    assert client.get("/risks", headers=auth_headers("superadmin", FINANCE)).json() == []


def test_create_rejects_out_of_range_scores(client):
    r = create(client, likelihood=120)
    assert r.status_code == 422
    assert r.json()["field"] == "likelihood"

    r = create(client, control_effectiveness=-5)
    assert r.status_code == 422
    assert r.json()["field"] == "control_effectiveness"


def test_listing_is_department_filtered(client):
    create(client, department=FINANCE)
    create(client, department=LEGAL)
    create(client, department=FINANCE)

    scoped = client.get("/risks", headers=auth_headers("reviewer", FINANCE)).json()
    assert [r["risk_id"] for r in scoped] == ["FO-01", "FO-02"]

    everything = client.get("/risks", headers=auth_headers("auditor", LEGAL)).json()
    assert [r["risk_id"] for r in everything] == ["FO-01", "LS-01", "FO-02"]

    unknown = client.get("/risks", headers=auth_headers("admin", LEGAL)).json()
    assert [r["risk_id"] for r in unknown] == ["LS-01"]


def test_read_single_risk(client):
    create(client, department=FINANCE)
    assert client.get("/risks/FO-01", headers=auth_headers("reviewer", FINANCE)).status_code == 200
    assert client.get("/risks/FO-01", headers=auth_headers("reviewer", LEGAL)).status_code == 403
    assert client.get("/risks/FO-01", headers=auth_headers("auditor", LEGAL)).status_code == 200
    assert client.get("/risks/XX-99", headers=auth_headers("superadmin", LEGAL)).status_code == 404


def test_update_recomputes_scores(client):
    create(client, department=FINANCE)
    r = client.put(
        "/risks/FO-01",
        json={"control_effectiveness": None, "status": "Mitigating"},
        headers=auth_headers("business_user", FINANCE),
    )
    assert r.status_code == 200
    risk = r.json()
    assert risk["status"] == "Mitigating"
    assert risk["residual_score"] is None
    assert risk["risk_rating"] == "High"
    assert abs(risk["risk_score"] - risk["inherent_score"]) < 1e-9

    r = client.put("/risks/FO-01", json={"likelihood": 10}, headers=auth_headers("risk_admin", FINANCE))
    assert r.json()["inherent_matrix_value"] == 4
    assert r.json()["inherent_rating"] == "Very Low"


def test_update_denied_outside_department(client):
    create(client, department=FINANCE)
    for role, department in [("risk_admin", LEGAL), ("auditor", FINANCE), ("reviewer", FINANCE)]:
        r = client.put("/risks/FO-01", json={"status": "Closed"}, headers=auth_headers(role, department))
        assert r.status_code == 403


def test_moving_department_regenerates_id(client):
    create(client, department=FINANCE)
    assert client.put(
        "/risks/FO-01", json={"department": LEGAL}, headers=auth_headers("risk_admin", FINANCE)
    ).status_code == 403

    r = client.put("/risks/FO-01", json={"department": LEGAL}, headers=auth_headers("superadmin", FINANCE))
    assert r.status_code == 200
    assert r.json()["risk_id"] == "LS-01"
    assert r.json()["department"] == LEGAL


def test_delete_rules(client):
    create(client, department=FINANCE)
    assert client.delete("/risks/FO-01", headers=auth_headers("business_user", FINANCE)).status_code == 403
    assert client.delete("/risks/FO-01", headers=auth_headers("risk_admin", LEGAL)).status_code == 403
    assert client.delete("/risks/FO-01", headers=auth_headers("risk_admin", FINANCE)).status_code == 204
    assert client.get("/risks/FO-01", headers=auth_headers("superadmin", FINANCE)).status_code == 404


def test_statistics_and_matrix_follow_visibility(client):
    create(client, department=FINANCE)
    create(client, department=LEGAL, likelihood=10, impact=10, control_effectiveness=None)

    scoped = client.get("/risks/statistics", headers=auth_headers("risk_admin", LEGAL)).json()
    assert scoped["total"] == 1
    assert scoped["by_rating"]["Very Low"] == 1
    assert "by_department" not in scoped

    full = client.get("/risks/statistics", headers=auth_headers("superadmin", LEGAL)).json()
    assert full["total"] == 2
    assert full["by_department"] == {FINANCE: 1, LEGAL: 1}

    matrix = client.get("/risks/matrix", headers=auth_headers("reviewer", FINANCE)).json()["matrix"]
    assert matrix[3][4] == 1
    assert sum(map(sum, matrix)) == 1


def test_score_preview(client):
    r = client.post("/scores", json={"likelihood": 21, "impact": 21})
    assert r.status_code == 200
    body = r.json()
    assert body["inherent_risk"]["matrix_value"] == 6
    assert body["inherent_risk"]["rating"] == "Low"
    assert body["residual_risk"] is None
    assert client.post("/scores", json={"likelihood": 21, "impact": 101}).status_code == 422


def test_request_id_is_echoed(client):
    r = client.get("/risks", headers={**auth_headers("reviewer", FINANCE), "x-request-id": "abc"})
    assert r.headers["x-request-id"] == "abc"


def test_deleted_id_is_not_reused(client):
    create(client, department=FINANCE)
    create(client, department=FINANCE)
    assert client.delete("/risks/FO-02", headers=auth_headers("risk_admin", FINANCE)).status_code == 204

    r = create(client, department=FINANCE)
    assert r.status_code == 201
    assert r.json()["risk_id"] == "FO-03"
    listed = client.get("/risks", headers=auth_headers("reviewer", FINANCE)).json()
    assert [risk["risk_id"] for risk in listed] == ["FO-01", "FO-03"]


def test_moved_id_is_not_reused(client):
    create(client, department=FINANCE)
    client.put("/risks/FO-01", json={"department": LEGAL}, headers=auth_headers("superadmin", FINANCE))
    assert create(client, department=FINANCE).json()["risk_id"] == "FO-02"


def test_update_ignores_null_required_fields(client):
    create(client, department=FINANCE)
    r = client.put(
        "/risks/FO-01",
        json={"title": None, "category": None, "status": None, "department": None, "impact": 10},
        headers=auth_headers("risk_admin", FINANCE),
    )
    assert r.status_code == 200
    risk = r.json()
    assert risk["title"] == "Vendor payment fraud"
    assert risk["category"] == "Financial"
    assert risk["status"] == "Open"
    assert risk["department"] == FINANCE
    assert risk["risk_id"] == "FO-01"


def test_update_rejects_empty_department(client):
    create(client, department=FINANCE)
    for department in ("", "   "):
        r = client.put(
            "/risks/FO-01", json={"department": department}, headers=auth_headers("superadmin", FINANCE)
        )
        assert r.status_code == 422
    assert client.get("/risks/FO-01", headers=auth_headers("superadmin", FINANCE)).json()["department"] == FINANCE


def test_statistics_include_trend_and_department_controls(client):
    create(client, department=FINANCE)
    create(client, department=LEGAL, control_effectiveness=20)

    full = client.get("/risks/statistics", headers=auth_headers("superadmin", LEGAL)).json()
    assert len(full["trend"]) == 12
    assert full["trend"][-1]["count"] == 2
    assert full["average_control_effectiveness_by_department"] == {FINANCE: 60.0, LEGAL: 20.0}

    scoped = client.get("/risks/statistics", headers=auth_headers("risk_admin", LEGAL)).json()
    assert "average_control_effectiveness_by_department" not in scoped


def test_settings_are_loaded_once_at_startup(client, csv_path, monkeypatch, tmp_path):
    assert client.app.state.settings.csv_path == str(csv_path)

    monkeypatch.setenv("RISK_REGISTER_CSV", str(tmp_path / "elsewhere.csv"))
    create(client, department=FINANCE)
    assert csv_path.exists()
    assert not (tmp_path / "elsewhere.csv").exists()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}

from factories import NOW, add_table
from possync import create_app
from possync.extensions import db
from possync.services import sync_log_service
from possync.services.sync_service import run_sync_once


def test_health_reports_both_stores(client, db_session):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["status"] == "healthy"
    assert body["checks"]["source"]["status"] == "healthy"


def test_health_without_source_store_is_degraded(db_session):
    no_source = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_BINDS': {},
    })
    with no_source.app_context():
        db.create_all(bind_key=None)

    response = no_source.test_client().get("/health")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "degraded"
    assert body["checks"]["database"]["status"] == "healthy"
    assert body["checks"]["source"]["status"] == "degraded"
    assert body["checks"]["source"]["reason"] == "not_configured"


def test_health_includes_last_batch(client, db_session):
    result = run_sync_once(now=NOW)

    details = client.get("/health").get_json()["checks"]["database"]["details"]
    assert details["last_batch_id"] == result.batch_id
    assert details["last_batch_status"] == "OK"
    assert details["last_batch_finished_at"] is not None


def test_version(client):
    body = client.get("/version").get_json()

    assert body["api_version"]
    assert body["sync_interval_seconds"] == 0
    assert "sqlite" not in str(body)


def test_list_runs(client, db_session):
    add_table("T1", "OCUPADA")
    first = run_sync_once(now=NOW)
    second = run_sync_once(now=NOW)

    response = client.get("/api/sync/runs?limit=5")

    assert response.status_code == 200
    body = response.get_json()
    assert body["count"] == 2
    assert [b["batch_id"] for b in body["batches"]] == [second.batch_id, first.batch_id]
    assert [t["job_name"] for t in body["batches"][0]["tasks"]] == [
        "SYNC_TABLES", "SYNC_ORDERS", "SYNC_EXPENSES", "SYNC_CASH",
    ]
    assert body["batches"][0]["tasks"][0]["message"] == "Tables upserted: 1"


def test_list_runs_rejects_bad_limit(client, db_session):
    assert client.get("/api/sync/runs?limit=abc").status_code == 400
    assert client.get("/api/sync/runs?limit=0").status_code == 400


def test_get_run(client, db_session):
    sync_log_service.start_batch("b-1")

    response = client.get("/api/sync/runs/b-1")
    assert response.status_code == 200
    body = response.get_json()
    assert body["entries"][0]["job_name"] == "SYNC_ALL"
    assert body["entries"][0]["finished_at"] is None

    assert client.get("/api/sync/runs/unknown").status_code == 404

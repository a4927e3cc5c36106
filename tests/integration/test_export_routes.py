from unittest.mock import patch

from fastapi.testclient import TestClient

from histview.errors import AuthenticationExpired, ExportFailure
from histview.services.viewer import HistoricalViewer


def test_export_csv_download(client: TestClient):
    response = client.get("/export/temperature", params={"range_class": "1h"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="temperature_data_1h_' in response.headers["content-disposition"]

    lines = response.text.strip().splitlines()
    assert lines[0] == "channel,timestamp,value"
    # full fidelity: both channels, every demo sample of the 1h span
    assert len(lines) == 1 + 2 * 720


def test_export_defaults_to_active_range(client: TestClient):
    client.put("/viewer/range", params={"range_class": "7d"})
    response = client.get("/export/humidity")
    assert response.status_code == 200
    assert "humidity_data_7d_" in response.headers["content-disposition"]


def test_export_unknown_tab(client: TestClient):
    assert client.get("/export/pressure").status_code == 422


def test_export_auth_expired_is_401(client: TestClient):
    with patch.object(HistoricalViewer, "export_csv", side_effect=AuthenticationExpired()):
        response = client.get("/export/electrical")
    assert response.status_code == 401
    assert "Session expired" in response.json()["detail"]


def test_export_upstream_failure_is_502(client: TestClient):
    with patch.object(HistoricalViewer, "export_csv", side_effect=ExportFailure("Export failed: Bad Gateway", status_code=500)):
        response = client.get("/export/electrical")
    assert response.status_code == 502

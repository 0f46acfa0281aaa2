import json

import httpx
import pytest

from conftest import auth
from services.ai_ml_client import AIMLClient, MLServiceError


class TestAIRoutes:
    def test_diagnose(self, client, fake_ai, patient):
        response = client.post("/ai/diagnose", json={"symptoms": ["cough", "fever"]}, headers=auth(patient))
        assert response.status_code == 200
        body = response.json()
        assert body["diagnosis"]["analysis"] == "Likely viral"
        assert body["performedBy"]["uid"] == patient.uid
        assert ("diagnose", ["cough", "fever"]) in fake_ai.calls

    def test_requires_at_least_one_symptom(self, client, fake_ai, patient):
        response = client.post("/ai/diagnose", json={"symptoms": []}, headers=auth(patient))
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid request"

    def test_service_down_is_503(self, client, fake_ai, patient):
        fake_ai.available = False
        assert client.post("/ai/diagnose", json={"symptoms": ["cough"]}, headers=auth(patient)).status_code == 503

    def test_service_error_is_503(self, client, fake_ai, patient):
        fake_ai.fail = True
        response = client.post("/ai/analyze-symptoms", json={"symptoms": ["cough"]}, headers=auth(patient))
        assert response.status_code == 503

    def test_symptom_analysis_carries_disclaimer(self, client, fake_ai, doctor):
        response = client.post("/ai/analyze-symptoms", json={"symptoms": ["rash"]}, headers=auth(doctor))
        assert "informational purposes only" in response.json()["disclaimer"]

    def test_image_analysis_is_for_clinicians(self, client, fake_ai, patient, doctor):
        files = {"image": ("scan.png", b"\x89PNG fake", "image/png")}
        assert client.post("/ai/analyze-image", files=files, headers=auth(patient)).status_code == 403

        response = client.post("/ai/analyze-image", files=files, headers=auth(doctor))
        assert response.status_code == 200
        assert response.json()["imageInfo"]["size"] == len(b"\x89PNG fake")
        assert ("analyze_image", None, len(b"\x89PNG fake")) in fake_ai.calls

    def test_image_analysis_needs_image_or_url(self, client, fake_ai, doctor):
        response = client.post("/ai/analyze-image", data={"patientId": "p"}, headers=auth(doctor))
        assert response.status_code == 400

        by_url = client.post("/ai/analyze-image", data={"imageUrl": "https://img.example/x.png"},
                             headers=auth(doctor))
        assert by_url.json()["imageInfo"]["url"] == "https://img.example/x.png"

    def test_image_analysis_rejects_other_formats(self, client, fake_ai, doctor):
        files = {"image": ("scan.tiff", b"II*", "image/tiff")}
        assert client.post("/ai/analyze-image", files=files, headers=auth(doctor)).status_code == 400


class TestBlockchainRoutes:
    def test_patient_reads_own_records_only(self, client, fake_ai, patient, make_user):
        fake_ai.records = [{"fileId": "f1"}]
        own = client.get(f"/blockchain/records?patientId={patient.patient.uid}", headers=auth(patient))
        assert own.status_code == 200
        assert own.json()["totalRecords"] == 1

        other = make_user("patient")
        response = client.get(f"/blockchain/records?patientId={other.patient.uid}", headers=auth(patient))
        assert response.status_code == 403

    def test_records_for_unknown_patient(self, client, fake_ai, doctor):
        assert client.get("/blockchain/records?patientId=nobody", headers=auth(doctor)).status_code == 404

    def test_store_forwards_form_fields(self, client, fake_ai, doctor):
        response = client.post(
            "/blockchain/store",
            data={"patientId": "patient_1", "labels": json.dumps(["lab"]), "tags": json.dumps(["cbc"])},
            files={"file": ("panel.pdf", b"%PDF", "application/pdf")},
            headers=auth(doctor),
        )
        assert response.status_code == 200
        assert response.json()["data"]["fileId"] == "file-1"
        assert ("upload", "panel.pdf", "patient_1", ["lab"], ["cbc"]) in fake_ai.calls

    def test_store_rejects_bad_json(self, client, fake_ai, doctor):
        response = client.post(
            "/blockchain/store",
            data={"patientId": "patient_1", "metadata": "{not json"},
            files={"file": ("panel.pdf", b"%PDF", "application/pdf")},
            headers=auth(doctor),
        )
        assert response.status_code == 400

    def test_verify(self, client, fake_ai, doctor):
        fake_ai.verified["file-1"] = {"hash": "abc", "valid": True}
        ok = client.get("/blockchain/verify?fileId=file-1", headers=auth(doctor)).json()
        assert ok["verified"] is True
        assert ok["verificationDetails"]["hash"] == "abc"

        missing = client.get("/blockchain/verify?fileId=file-2", headers=auth(doctor))
        assert missing.status_code == 404
        assert missing.json() == {
            "verified": False,
            "message": "Record verification failed or record not found in blockchain",
            "fileId": "file-2",
        }


class TestAIMLClient:
    def make_client(self, handler) -> AIMLClient:
        return AIMLClient(base_url="http://ml.test", transport=httpx.MockTransport(handler))

    def test_diagnose_unwraps_payload(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "diagnosis": {"confidence": 0.4}})

        assert self.make_client(handler).diagnose(["cough"], patient_id="p1") == {"confidence": 0.4}
        assert seen["body"] == {"symptoms": ["cough"], "patientId": "p1"}

    def test_diagnose_raises_on_error_response(self):
        def handler(request):
            return httpx.Response(500, json={"error": "model offline"})

        with pytest.raises(MLServiceError, match="model offline"):
            self.make_client(handler).diagnose(["cough"])

    def test_best_effort_calls_swallow_failures(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        ml = self.make_client(handler)
        assert ml.is_service_available() is False
        assert ml.get_patient_records("p1") == []
        assert ml.store_medical_record("p1", "f1", "x.pdf") is None
        assert ml.verify_medical_record("f1") is None

    def test_records_require_success_flag(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "records": [{"fileId": "f1"}]})

        assert self.make_client(handler).get_patient_records("p1") == []

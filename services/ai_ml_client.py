"""
Client for the external ML service, which also fronts the blockchain record store.

Primary calls (diagnose, analyze_image, upload_medical_record) raise
``MLServiceError``; best-effort calls (patient records, store, verify) log
and return an empty result instead.
"""
import base64
import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from core.config import ML_SERVICE_URL, ML_TIMEOUT_SECONDS, ML_PROBE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class MLServiceError(Exception):
    pass


class AIMLClient:
    def __init__(self, base_url: str = ML_SERVICE_URL, timeout: float = ML_TIMEOUT_SECONDS,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url
        self.client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self):
        self.client.close()

    def _post(self, path: str, **kwargs) -> dict:
        try:
            response = self.client.post(path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            try:
                detail = e.response.json().get("error")
            except ValueError:
                detail = None
            raise MLServiceError(f"AI/ML service error: {detail or e}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise MLServiceError(f"AI/ML service unavailable: {e}") from e

    # ---------------- health ----------------
    def is_service_available(self) -> bool:
        try:
            self.client.get("/chain", timeout=ML_PROBE_TIMEOUT_SECONDS).raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning("AI/ML service probe failed: %s", e)
            return False

    # ---------------- diagnosis ----------------
    def diagnose(self, symptoms: List[str], patient_id: Optional[str] = None,
                 description: Optional[str] = None) -> Dict[str, Any]:
        body = {"symptoms": symptoms}
        if patient_id:
            body["patientId"] = patient_id
        if description:
            body["description"] = description
        data = self._post("/ai/diagnose", json=body)
        if not data.get("success") or not data.get("diagnosis"):
            raise MLServiceError("Invalid response format from ML service")
        return data["diagnosis"]

    def analyze_symptoms(self, symptoms: List[str], description: Optional[str] = None) -> Dict[str, Any]:
        return self.diagnose(symptoms, description=description)

    def analyze_image(self, image_bytes: Optional[bytes] = None, image_url: Optional[str] = None,
                      patient_id: Optional[str] = None) -> Dict[str, Any]:
        body = {}
        if image_bytes is not None:
            body["imageBase64"] = base64.b64encode(image_bytes).decode("ascii")
        if image_url:
            body["imageUrl"] = image_url
        if patient_id:
            body["patientId"] = patient_id
        data = self._post("/ai/analyze-image", json=body)
        if not data.get("success") or not data.get("analysis"):
            raise MLServiceError("Invalid response format from ML service")
        return data["analysis"]

    # ---------------- blockchain ----------------
    def get_patient_records(self, patient_id: str) -> List[dict]:
        try:
            response = self.client.get(f"/records/patient/{patient_id}")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to fetch blockchain records for %s: %s", patient_id, e)
            return []
        if not data.get("success"):
            return []
        return data.get("records") or []

    def upload_medical_record(self, content: bytes, filename: str, content_type: str, patient_id: str,
                              metadata: Optional[dict] = None, labels: Optional[List[str]] = None,
                              tags: Optional[List[str]] = None) -> dict:
        form = {
            "patientId": patient_id,
            "metadata": json.dumps(metadata or {}),
            "labels": json.dumps(labels or ["healthcare"]),
            "tags": json.dumps(tags or ["medical_record"]),
        }
        data = self._post("/upload", data=form, files={"file": (filename, content, content_type)})
        if not data.get("success"):
            raise MLServiceError("Upload failed")
        return data

    def store_medical_record(self, patient_id: str, file_id: str, filename: str,
                             metadata: Optional[dict] = None) -> Optional[dict]:
        body = {
            "patientId": patient_id,
            "fileId": file_id,
            "filename": filename,
            "metadata": metadata or {},
            "tags": ["medical_record"],
            "labels": ["healthcare"],
        }
        try:
            data = self._post("/blockchain/store", json=body)
        except MLServiceError as e:
            logger.warning("Failed to store record %s in blockchain: %s", file_id, e)
            return None
        return data if data.get("success") else None

    def verify_medical_record(self, file_id: str) -> Optional[dict]:
        try:
            response = self.client.get(f"/verify/file/{file_id}")
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to verify record %s: %s", file_id, e)
            return None


ai_ml_client = AIMLClient()


def get_ai_client() -> AIMLClient:
    return ai_ml_client

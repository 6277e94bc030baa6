"""
Document staging and upload for the intake wizard.

Files are staged under ``UPLOAD_FOLDER`` when picked, then pushed to the
backend one by one.
"""

import logging
import os
from typing import Any, Dict

from werkzeug.utils import secure_filename

from .api_client import ApiClient, ApiError
from .endpoints import DOCUMENT_END_POINTS

logger = logging.getLogger(__name__)


def stage_upload(file_storage: Any, upload_folder: str, document_id: str) -> str:
    """Save an incoming file under ``upload_folder`` and return its path."""
    os.makedirs(upload_folder, exist_ok=True)
    filename = secure_filename(file_storage.filename or 'document')
    path = os.path.join(upload_folder, f"{document_id}_{filename}")
    file_storage.save(path)
    return path


def discard_upload(path: str) -> None:
    if path and os.path.exists(path):
        os.remove(path)


class DocumentService:
    def __init__(self, client: ApiClient):
        self.client = client

    def upload(self, document: Dict[str, Any], case_number: str = '') -> Dict[str, Any]:
        """Push a staged document to the backend and return the response data."""
        path = document.get('stored_path') or ''
        if not path or not os.path.exists(path):
            raise ApiError(f"Staged file for {document.get('name')} is missing")
        try:
            with open(path, 'rb') as handle:
                response = self.client.post(
                    DOCUMENT_END_POINTS['UPLOAD'],
                    files={'file': (document.get('name'), handle, document.get('type'))},
                    data={'documentId': document.get('id'), 'caseNumber': case_number},
                )
        except ApiError as e:
            logger.error("Error uploading document %s: %s", document.get('name'), e)
            raise
        return response.data if isinstance(response.data, dict) else {}

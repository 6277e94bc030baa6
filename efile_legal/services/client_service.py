"""
Client contacts and case submission.
"""

import logging
from typing import Any, Dict, List

from ..domain.models import Client
from .api_client import ApiClient, ApiError, ApiResponse
from .endpoints import CLIENT_END_POINTS

logger = logging.getLogger(__name__)

CREATE_CLIENT_FAILED_MESSAGE = 'Failed to create client. Please try again.'


class ClientService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_all_clients(self) -> List[Client]:
        try:
            body, _ = self.client.request('GET', CLIENT_END_POINTS['GETALLCLIENTSLIST'])
        except ApiError as e:
            logger.error("Error fetching clients: %s", e)
            raise
        # The endpoint answers either {data: [...]}, {clients: [...]} or a bare list
        if isinstance(body, dict):
            rows = body.get('data') or body.get('clients') or []
        else:
            rows = body or []
        return [Client.from_api(row) for row in rows if isinstance(row, dict)]

    def add_client_contact(self, client: Client) -> Client:
        try:
            response = self.client.post(CLIENT_END_POINTS['ADDCLIENTCONTACT'], json=client.to_api())
        except ApiError as e:
            logger.error("Error creating client %s: %s", client.email, e)
            raise
        created = response.data if isinstance(response.data, dict) else {}
        result = Client.from_api({**client.to_api(), **created})
        if not result.id:
            raise ApiError('Client was created without an id', status=response.status)
        return result

    def add_client_case(self, summary: Dict[str, Any]) -> ApiResponse:
        payload = {
            'clientId': summary.get('client_id', ''),
            'caseNumber': summary.get('case_number', ''),
            'priorityDate': summary.get('priority_date', ''),
            'assignedStaff': summary.get('assigned_staff', ''),
            'category': summary.get('category', ''),
            'subcategory': summary.get('subcategory', ''),
            'foiaRequired': summary.get('foia_required', False),
            'foiaStatus': summary.get('foia_status', ''),
            'documents': summary.get('documents', []),
            'forms': summary.get('forms', []),
        }
        try:
            return self.client.post(CLIENT_END_POINTS['ADDCLIENTCASES'], json=payload)
        except ApiError as e:
            logger.error("Error submitting case %s: %s", payload['caseNumber'], e)
            raise

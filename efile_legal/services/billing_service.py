"""
Subscription plan and billing calls.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional

from ..domain.models import BillingCycle, Subscription, SubscriptionPlan
from .api_client import ApiClient, ApiError, ApiResponse, expand_path
from .endpoints import SUBSCRIPTION_END_POINTS

logger = logging.getLogger(__name__)

MAX_LOOKUP_WORKERS = 8


class BillingService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_subscription_plans(self) -> ApiResponse:
        try:
            return self.client.get(SUBSCRIPTION_END_POINTS['GET_PLANS'])
        except ApiError as e:
            logger.error("Error fetching subscription plans: %s", e)
            raise

    def get_subscription_plan_by_id(self, plan_id: str) -> ApiResponse:
        try:
            return self.client.get(expand_path(SUBSCRIPTION_END_POINTS['GET_PLAN_BY_ID'], id=plan_id))
        except ApiError as e:
            logger.error("Error fetching subscription plan %s: %s", plan_id, e)
            raise

    def subscribe_to_plan(self, company_id: str, plan_id: str, billing_cycle: str,
                          payment_method: Dict[str, str]) -> ApiResponse:
        BillingCycle(billing_cycle)  # monthly or yearly only
        payload = {
            'companyId': company_id,
            'planId': plan_id,
            'billingCycle': billing_cycle,
            'paymentMethod': {
                'type': payment_method.get('type', ''),
                'token': payment_method.get('token', ''),
            },
        }
        try:
            return self.client.post(SUBSCRIPTION_END_POINTS['SUBSCRIBE'], json=payload)
        except ApiError as e:
            logger.error("Error subscribing company %s to plan %s: %s", company_id, plan_id, e)
            raise

    def cancel_subscription(self, company_id: str) -> ApiResponse:
        try:
            return self.client.post(SUBSCRIPTION_END_POINTS['CANCEL'], json={'companyId': company_id})
        except ApiError as e:
            logger.error("Error cancelling subscription for %s: %s", company_id, e)
            raise

    def get_company_subscription(self, company_id: str) -> ApiResponse:
        try:
            path = expand_path(SUBSCRIPTION_END_POINTS['GET_COMPANY_SUBSCRIPTION'], companyId=company_id)
            return self.client.get(path)
        except ApiError as e:
            logger.error("Error fetching subscription for %s: %s", company_id, e)
            raise

    def list_plans(self) -> List[SubscriptionPlan]:
        response = self.get_subscription_plans()
        return [SubscriptionPlan.from_api(p) for p in response.data or [] if isinstance(p, dict)]

    def _lookup_subscription(self, company_id: str) -> Optional[Subscription]:
        try:
            response = self.get_company_subscription(company_id)
        except ApiError as e:
            logger.warning("Subscription lookup failed for company %s: %s", company_id, e)
            return None
        if not isinstance(response.data, dict):
            return None
        return Subscription.from_api(response.data)

    def get_subscriptions_for(self, company_ids: Iterable[str]) -> Dict[str, Optional[Subscription]]:
        """Fetch every company's subscription concurrently.

        A failed lookup maps to None; this never raises for a single company.
        """
        ids = [cid for cid in dict.fromkeys(company_ids) if cid]
        if not ids:
            return {}
        workers = min(MAX_LOOKUP_WORKERS, len(ids))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(self._lookup_subscription, ids))
        return dict(zip(ids, results))

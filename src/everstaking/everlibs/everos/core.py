import asyncio
import logging
from typing import List, Optional

import requests

from everstaking.everlibs.toncommon.exceptions import EverosException

log = logging.getLogger("everos")


class EverosClient(object):
    """
    Thin GraphQL client for everos/evercloud endpoints
    """
    FILTER_TYPES = {
        "accounts": "AccountFilter",
        "blocks": "BlockFilter",
        "blocks_signatures": "BlockSignaturesFilter",
        "messages": "MessageFilter",
        "transactions": "TransactionFilter",
    }

    def __init__(self, endpoints: List[str], query_timeout: int = 300, session: requests.Session = None):
        if not endpoints:
            raise ValueError("At least one everos endpoint is required")
        self._endpoints = [self._to_url(endpoint) for endpoint in endpoints]
        self._timeout = query_timeout
        self._session = session or requests.Session()

    @staticmethod
    def _to_url(endpoint: str) -> str:
        if not endpoint.startswith("http"):
            endpoint = f"https://{endpoint}"
        if not endpoint.rstrip("/").endswith("graphql"):
            endpoint = f"{endpoint.rstrip('/')}/graphql"
        return endpoint

    def _post(self, query: str, variables: dict) -> dict:
        last_error = None
        for endpoint in self._endpoints:
            try:
                resp = self._session.post(endpoint, json={"query": query, "variables": variables},
                                          timeout=self._timeout)
                resp.raise_for_status()
                body = resp.json()
            except (requests.RequestException, ValueError) as ex:
                log.warning("Everos endpoint {} failed: {}".format(endpoint, ex))
                last_error = ex
                continue
            if body.get("errors"):
                raise EverosException("GraphQL errors: {}".format(body["errors"]))
            return body.get("data") or {}
        raise EverosException("All everos endpoints failed, last error: {}".format(last_error))

    async def query(self, query: str, variables: dict = None) -> dict:
        log.debug("GraphQL query: {}".format(query))
        return await asyncio.to_thread(self._post, query, variables or {})

    async def query_collection(self, collection: str, result: str, filter: dict = None,
                               order: Optional[List[dict]] = None, limit: Optional[int] = None) -> List[dict]:
        filter_type = self.FILTER_TYPES.get(collection)
        if not filter_type:
            raise ValueError("Unsupported collection: {}".format(collection))
        query = (f"query q($filter: {filter_type}, $orderBy: [QueryOrderBy], $limit: Int) "
                 f"{{ {collection}(filter: $filter, orderBy: $orderBy, limit: $limit) {{ {result} }} }}")
        data = await self.query(query, {"filter": filter or {}, "orderBy": order, "limit": limit})
        return data.get(collection) or []

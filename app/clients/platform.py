"""Client for the hosted platform ("Server B").

Server B validates coupon codes through a REST RPC and keeps a copy of our
plans, users and payments through its edge functions. Every outbound call
to it goes through :class:`PlatformClient` so URLs and keys live in one place.
"""
from typing import Any, Dict, List, Optional
import httpx
from app.config import get_settings
from app.utils.logger import logger


class PlatformError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PlatformClient:
    def __init__(
        self,
        rest_url: str,
        functions_url: str,
        anon_key: str,
        product_id: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rest_url = rest_url.rstrip("/")
        self.functions_url = functions_url.rstrip("/")
        self.anon_key = anon_key
        self.product_id = product_id
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}

    async def validate_coupon(self, code: str) -> Optional[Dict[str, Any]]:
        """Return the coupon descriptor for ``code`` or ``None``.

        The RPC answers with either a list of rows or a single object.
        """
        async with self._client() as client:
            response = await client.post(
                f"{self.rest_url}/rpc/validate_coupon",
                headers={"apikey": self.anon_key, "Content-Type": "application/json"},
                json={"p_coupon_code": code.strip(), "p_product_id": self.product_id},
            )
        data = self._parse_body(response)
        if response.status_code >= 400:
            raise PlatformError("Coupon validation failed", response.status_code, data)

        if isinstance(data, list):
            return data[0] if data else None
        return data or None

    async def _call_function(self, name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.post(
                f"{self.functions_url}/{name}",
                headers={"Authorization": f"Bearer {self.anon_key}"},
                json=payload,
            )
        data = self._parse_body(response)
        logger.info(f"[PLATFORM] {name} responded", status=response.status_code, action=payload.get("action"))
        return {"ok": response.is_success, "status_code": response.status_code, "data": data}

    async def sync_payment(self, payment: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call_function("sync-unified-data", {"action": "sync_payment", "payment": payment})

    async def sync_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call_function("sync-unified-data", {"action": "sync_user", "user": user})

    async def sync_plans(self, plans: List[Dict[str, Any]]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"product_id": self.product_id}
        if len(plans) == 1:
            payload["action"] = "sync_plan"
            payload["plan"] = plans[0]
        else:
            payload["action"] = "sync_plans"
            payload["plans"] = plans
        return await self._call_function("sync-plans", payload)


def build_platform_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> PlatformClient:
    settings = get_settings()
    return PlatformClient(
        rest_url=settings.PLATFORM_REST_URL,
        functions_url=settings.PLATFORM_FUNCTIONS_URL,
        anon_key=settings.PLATFORM_ANON_KEY,
        product_id=settings.PLATFORM_PRODUCT_ID,
        timeout=settings.PLATFORM_TIMEOUT_SECONDS,
        transport=transport,
    )


platform_client = build_platform_client()

import json
import logging
from urllib import error, request
from urllib.parse import urlencode, urlparse

from pydantic import ValidationError

from poultry_stock.config import get_settings
from poultry_stock.core.constants import InventoryType, StockType
from poultry_stock.schemas.stock import StockRecord

logger = logging.getLogger(__name__)

_ALLOWED_HTTP_SCHEMES = {"http", "https"}

# Create endpoints per (inventory type, record type). Opening stock is posted
# through the purchase endpoint with an explicit type.
CREATE_PATHS = {
    (InventoryType.BIRD, StockType.OPENING): "/inventory-stock/purchase",
    (InventoryType.BIRD, StockType.PURCHASE): "/inventory-stock/purchase",
    (InventoryType.BIRD, StockType.SALE): "/inventory-stock/sale",
    (InventoryType.BIRD, StockType.RECEIPT): "/inventory-stock/receipt",
    (InventoryType.BIRD, StockType.MORTALITY): "/inventory-stock/mortality",
    (InventoryType.BIRD, StockType.WEIGHT_LOSS): "/inventory-stock/weight-loss",
    (InventoryType.FEED, StockType.OPENING): "/inventory-stock/feed-purchase",
    (InventoryType.FEED, StockType.PURCHASE): "/inventory-stock/feed-purchase",
    (InventoryType.FEED, StockType.CONSUME): "/inventory-stock/feed-consume",
}


class StockApiError(RuntimeError):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def validate_base_url(base_url):
    parsed = urlparse(base_url or "")
    scheme = parsed.scheme.lower()
    if scheme not in _ALLOWED_HTTP_SCHEMES or not parsed.netloc:
        raise StockApiError("STOCK_API_BASE_URL must be an absolute HTTP(S) URL")
    return base_url.rstrip("/")


def build_url(base_url, path, params=None):
    url = validate_base_url(base_url) + "/" + path.lstrip("/")
    if params:
        query = {key: value for key, value in params.items() if value is not None}
        if query:
            url = url + "?" + urlencode(query)
    return url


def _auth_header(token):
    token = (token or "").strip()
    if not token:
        return None
    if token.lower().startswith("bearer "):
        return token
    return "Bearer {}".format(token)


def _error_message(body, fallback):
    if not body:
        return fallback
    try:
        payload = json.loads(body)
    except ValueError:
        return body
    if isinstance(payload, dict):
        return payload.get("message") or payload.get("error") or fallback
    return fallback


def unwrap_envelope(payload):
    """Return ``data`` from a ``{success, data, message}`` response body."""
    if not isinstance(payload, dict):
        return payload
    if payload.get("success") is False:
        raise StockApiError(
            payload.get("message") or payload.get("error") or "Stock API request failed"
        )
    if "data" in payload:
        return payload["data"]
    return payload


class StockApiClient:
    def __init__(self, base_url=None, token=None, timeout=None):
        settings = get_settings()
        self.base_url = base_url if base_url is not None else settings.STOCK_API_BASE_URL
        self.token = token if token is not None else settings.STOCK_API_TOKEN
        self.timeout = timeout if timeout is not None else settings.STOCK_API_TIMEOUT_SECONDS

    def _request(self, method, path, params=None, body=None):
        url = build_url(self.base_url, path, params)
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        auth_header = _auth_header(self.token)
        if auth_header:
            headers["Authorization"] = auth_header
        data = json.dumps(body).encode("utf-8") if body is not None else None

        req = request.Request(url, data=data, method=method, headers=headers)
        logger.debug("%s %s", method, url)
        try:
            with request.urlopen(req, timeout=self.timeout) as response:  # nosec B310
                raw = response.read().decode("utf-8")
        except error.HTTPError as exc:
            body_text = ""
            try:
                body_text = exc.read().decode("utf-8", errors="replace").strip()
            except (OSError, ValueError):
                body_text = ""
            message = _error_message(body_text, "HTTP {}".format(exc.code))
            logger.warning("Stock API %s %s failed: HTTP %s", method, path, exc.code)
            raise StockApiError(
                "Stock API error: {}".format(message), status_code=exc.code
            ) from exc
        except error.URLError as exc:
            raise StockApiError("Stock API error: {}".format(exc.reason)) from exc

        try:
            payload = json.loads(raw) if raw else {}
        except ValueError as exc:
            raise StockApiError("Stock API returned a non-JSON body") from exc
        return unwrap_envelope(payload)

    def fetch_stock_records(self, start_date=None, end_date=None):
        params = {
            "startDate": start_date.isoformat() if start_date else None,
            "endDate": end_date.isoformat() if end_date else None,
        }
        data = self._request("GET", "/inventory-stock", params=params)
        if not isinstance(data, list):
            raise StockApiError("Stock API returned an unexpected record list")
        try:
            records = [StockRecord.model_validate(item) for item in data]
        except ValidationError as exc:
            raise StockApiError("Stock API returned an invalid record: {}".format(exc)) from exc
        logger.info(
            "Fetched %d stock records (%s to %s)",
            len(records),
            params["startDate"] or "start",
            params["endDate"] or "now",
        )
        return records

    def fetch_daily_stats(self, year, month):
        return self._request(
            "GET",
            "/inventory-stock/stats/daily",
            params={"year": int(year), "month": int(month)},
        )

    def fetch_monthly_stats(self, year):
        return self._request(
            "GET",
            "/inventory-stock/stats/monthly",
            params={"year": int(year)},
        )

    def create_stock_record(self, record):
        key = (InventoryType(record.inventory_type), StockType(record.type))
        path = CREATE_PATHS.get(key)
        if path is None:
            raise ValueError(
                "Cannot create {} {} records".format(key[0].value, key[1].value)
            )
        body = record.model_dump(mode="json", by_alias=True, exclude_none=True)
        body.pop("id", None)
        data = self._request("POST", path, body=body)
        if isinstance(data, dict):
            return StockRecord.model_validate(data)
        return None

    def update_stock_record(self, record_id, changes):
        body = changes.model_dump(mode="json", by_alias=True, exclude_unset=True)
        if body.get("date", False) is None:
            body.pop("date")
        data = self._request("PUT", "/inventory-stock/{}".format(record_id), body=body)
        if isinstance(data, dict):
            return StockRecord.model_validate(data)
        return None

    def delete_stock_record(self, record_id):
        self._request("DELETE", "/inventory-stock/{}".format(record_id))

    def get_stock_record(self, record_id):
        data = self._request("GET", "/inventory-stock/{}".format(record_id))
        if not isinstance(data, dict):
            raise StockApiError("Stock API returned an unexpected record")
        return StockRecord.model_validate(data)

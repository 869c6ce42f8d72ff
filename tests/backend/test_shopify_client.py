import pytest
import requests
from decimal import Decimal
from unittest.mock import MagicMock, patch

from resolution_hub.core.errors import LookupFailure
from resolution_hub.integrations.shopify_client import build_search_query, lookup_orders, normalize_order
from resolution_hub.models.order import CustomerIdentity


ORDER_NODE = {
    "id": "gid://shopify/Order/1001",
    "name": "#1001",
    "email": "jane@example.com",
    "createdAt": "2024-03-01T12:00:00Z",
    "displayFulfillmentStatus": "FULFILLED",
    "displayFinancialStatus": "PAID",
    "totalPriceSet": {"shopMoney": {"amount": "55.00", "currencyCode": "USD"}},
    "lineItems": {"edges": [
        {"node": {"id": "li-1", "title": "Dog Bed", "quantity": 1,
                  "originalUnitPriceSet": {"shopMoney": {"amount": "30.00"}},
                  "product": {"productType": "Beds"}}},
        {"node": {"id": "li-2", "title": "Training eBook", "quantity": 1,
                  "originalUnitPriceSet": {"shopMoney": {"amount": "5.00"}},
                  "product": {"productType": "Digital Download"}}},
        {"node": {"id": "li-3", "title": "Bonus Treats", "quantity": 1,
                  "originalUnitPriceSet": {"shopMoney": {"amount": "0.00"}},
                  "product": {"productType": "Upsell"}}},
    ]},
    "shippingAddress": {"firstName": "Jane"},
    "fulfillments": [{"status": "SUCCESS", "trackingInfo": [
        {"number": "YT123", "url": "https://t.example/YT123", "company": "Yanwen"}
    ]}],
    "tags": ["subscription"],
}


def _response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


@pytest.fixture
def shopify_settings():
    with patch("resolution_hub.integrations.shopify_client.settings") as mock_settings:
        mock_settings.SHOPIFY_STORE_URL = "https://shop.example.com/"
        mock_settings.SHOPIFY_ACCESS_TOKEN = "shpat_test"
        mock_settings.SHOPIFY_API_VERSION = "2024-01"
        mock_settings.HTTP_TIMEOUT = 5
        yield mock_settings


class TestSearchQuery:

    def test_order_number_wins(self):
        identity = CustomerIdentity(email="jane@example.com", order_number="#1001")
        assert build_search_query(identity) == "name:#1001"

    def test_email_then_phone(self):
        assert build_search_query(CustomerIdentity(email="jane@example.com", phone="555")) == "email:jane@example.com"
        assert build_search_query(CustomerIdentity(phone="(555) 123-4567")) == "phone:5551234567"

    def test_nothing_to_search(self):
        with pytest.raises(LookupFailure):
            build_search_query(CustomerIdentity())


class TestNormalizeOrder:

    def test_order_fields(self):
        order = normalize_order(ORDER_NODE)
        assert order.order_number == "1001"
        assert order.total_price == Decimal("55.00")
        assert order.fulfillment_status == "fulfilled"
        assert order.customer_first_name == "Jane"
        assert order.has_subscription is True
        assert order.tracking.carrier == "Yanwen"
        assert order.tracking.tracking_number == "YT123"

    def test_item_flags(self):
        bed, ebook, treats = normalize_order(ORDER_NODE).items
        assert bed.is_selectable and not bed.is_digital
        assert ebook.is_digital and not ebook.is_selectable
        assert treats.is_free and treats.is_upsell


class TestLookupOrders:

    def test_returns_orders(self, shopify_settings, mock_http):
        mock_http.return_value = _response({"data": {"orders": {"edges": [{"node": ORDER_NODE}]}}})

        orders = lookup_orders(CustomerIdentity(email="jane@example.com"))

        assert [o.id for o in orders] == ["gid://shopify/Order/1001"]
        args, kwargs = mock_http.call_args
        assert args[0] == "https://shop.example.com/admin/api/2024-01/graphql.json"
        assert kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_test"
        assert kwargs["json"]["variables"] == {"query": "email:jane@example.com"}
        assert kwargs["timeout"] == 5

    def test_no_orders(self, shopify_settings, mock_http):
        mock_http.return_value = _response({"data": {"orders": {"edges": []}}})
        with pytest.raises(LookupFailure, match="No orders found"):
            lookup_orders(CustomerIdentity(email="jane@example.com"))

    def test_http_error(self, shopify_settings, mock_http):
        mock_http.return_value = _response({}, status_code=502)
        with pytest.raises(LookupFailure):
            lookup_orders(CustomerIdentity(email="jane@example.com"))

    def test_graphql_errors(self, shopify_settings, mock_http):
        mock_http.return_value = _response({"errors": [{"message": "throttled"}]})
        with pytest.raises(LookupFailure):
            lookup_orders(CustomerIdentity(email="jane@example.com"))

    @pytest.mark.parametrize("broken", [
        {k: v for k, v in ORDER_NODE.items() if k != "totalPriceSet"},
        {**ORDER_NODE, "lineItems": None},
        {**ORDER_NODE, "createdAt": "yesterday"},
    ])
    def test_malformed_order_is_lookup_failure(self, shopify_settings, mock_http, broken):
        mock_http.return_value = _response({"data": {"orders": {"edges": [{"node": broken}]}}})
        with pytest.raises(LookupFailure, match="could not read"):
            lookup_orders(CustomerIdentity(email="jane@example.com"))

    def test_missing_configuration(self, mock_http):
        with patch("resolution_hub.integrations.shopify_client.settings") as mock_settings:
            mock_settings.SHOPIFY_STORE_URL = None
            with pytest.raises(LookupFailure, match="configuration"):
                lookup_orders(CustomerIdentity(email="jane@example.com"))
        mock_http.assert_not_called()

"""
Order lookup against the Shopify Admin GraphQL API.

Returns normalized ``OrderSnapshot`` objects; nothing downstream sees the
raw GraphQL shape.
"""
from datetime import datetime
from typing import Optional

import requests

from resolution_hub.core.config import settings
from resolution_hub.core.errors import LookupFailure
from resolution_hub.models.order import CustomerIdentity, LineItem, OrderSnapshot, TrackingInfo
from resolution_hub.utils.formatters import clean_order_number, clean_phone_number, to_decimal
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)

ORDERS_QUERY = """
query OrdersLookup($query: String!) {
  orders(first: 10, query: $query, sortKey: CREATED_AT, reverse: true) {
    edges {
      node {
        id
        name
        email
        phone
        createdAt
        displayFulfillmentStatus
        displayFinancialStatus
        totalPriceSet { shopMoney { amount currencyCode } }
        lineItems(first: 20) {
          edges {
            node {
              id
              title
              quantity
              originalUnitPriceSet { shopMoney { amount } }
              sku
              variantTitle
              product { productType }
              image { url }
            }
          }
        }
        shippingAddress { firstName lastName address1 city province country zip }
        fulfillments(first: 5) {
          trackingInfo(first: 1) { number url company }
          status
          createdAt
        }
        tags
      }
    }
  }
}
"""


def build_search_query(identity: CustomerIdentity) -> str:
    """Order number wins over email, email over phone."""
    if identity.order_number:
        return f"name:#{clean_order_number(identity.order_number)}"
    if identity.email:
        return f"email:{identity.email}"
    if identity.phone:
        return f"phone:{clean_phone_number(identity.phone)}"
    raise LookupFailure("Email or phone number is required")


def normalize_line_item(node: dict) -> LineItem:
    price = to_decimal(
        ((node.get("originalUnitPriceSet") or {}).get("shopMoney") or {}).get("amount") or "0"
    )
    product_type = (node.get("product") or {}).get("productType") or ""
    is_digital = "digital" in product_type.lower()
    return LineItem(
        id=node["id"],
        title=node.get("title") or "",
        sku=node.get("sku"),
        quantity=node.get("quantity") or 0,
        unit_price=price,
        variant_title=node.get("variantTitle"),
        product_type=product_type or None,
        image=(node.get("image") or {}).get("url"),
        is_digital=is_digital,
        is_free=price == 0,
        is_upsell="upsell" in product_type.lower(),
        is_selectable=not is_digital,
    )


def normalize_order(node: dict) -> OrderSnapshot:
    money = node["totalPriceSet"]["shopMoney"]
    fulfillment = (node.get("fulfillments") or [None])[0]
    tracking_node = ((fulfillment or {}).get("trackingInfo") or [None])[0]
    tracking = None
    if tracking_node:
        tracking = TrackingInfo(
            tracking_number=tracking_node.get("number") or "",
            tracking_url=tracking_node.get("url"),
            carrier=tracking_node.get("company") or "Unknown",
            status=(fulfillment.get("status") or "unknown").lower(),
        )

    display_status = node.get("displayFulfillmentStatus") or "UNFULFILLED"
    return OrderSnapshot(
        id=node["id"],
        order_number=(node.get("name") or "").replace("#", ""),
        display_name=node.get("name"),
        total_price=to_decimal(money.get("amount")),
        currency=money.get("currencyCode") or "USD",
        items=tuple(normalize_line_item(edge["node"]) for edge in node["lineItems"]["edges"]),
        created_at=datetime.fromisoformat(node["createdAt"].replace("Z", "+00:00")),
        fulfillment_status=display_status.lower(),
        financial_status=node.get("displayFinancialStatus"),
        email=node.get("email"),
        customer_first_name=(node.get("shippingAddress") or {}).get("firstName"),
        tracking=tracking,
        has_subscription="subscription" in (node.get("tags") or []),
    )


def lookup_orders(identity: CustomerIdentity, session: Optional[requests.Session] = None) -> list[OrderSnapshot]:
    """
    Find the customer's recent orders.

    Raises:
        LookupFailure: configuration missing, Shopify error, or no orders found
    """
    if not settings.SHOPIFY_STORE_URL or not settings.SHOPIFY_ACCESS_TOKEN:
        raise LookupFailure("Shopify configuration missing")

    search = build_search_query(identity)
    url = f"{settings.SHOPIFY_STORE_URL.rstrip('/')}/admin/api/{settings.SHOPIFY_API_VERSION}/graphql.json"
    headers = {
        "Content-Type": "application/json",
        "X-Shopify-Access-Token": settings.SHOPIFY_ACCESS_TOKEN,
    }
    logger.info(f"🛍️ SHOPIFY: Looking up orders ({search.split(':', 1)[0]})")

    http = session or requests
    try:
        response = http.post(
            url,
            json={"query": ORDERS_QUERY, "variables": {"query": search}},
            headers=headers,
            timeout=settings.HTTP_TIMEOUT,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error(f"❌ SHOPIFY: Order lookup failed: {e}")
        raise LookupFailure("Failed to fetch orders from Shopify") from e

    if payload.get("errors"):
        logger.error(f"❌ SHOPIFY: GraphQL errors: {payload['errors']}")
        raise LookupFailure("Failed to fetch orders from Shopify")

    edges = ((payload.get("data") or {}).get("orders") or {}).get("edges") or []
    try:
        orders = [normalize_order(edge["node"]) for edge in edges]
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"❌ SHOPIFY: Malformed order in response: {e}")
        raise LookupFailure("Shopify returned an order we could not read") from e
    if not orders:
        logger.warning("⚠️ SHOPIFY: No orders matched")
        raise LookupFailure("No orders found")

    logger.info(f"✅ SHOPIFY: {len(orders)} order(s) found")
    return orders

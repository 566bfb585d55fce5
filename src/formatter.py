"""Reply texts sent back over WhatsApp.

Everything here is a pure function of its arguments; the layout (line breaks,
numbering, emoji markers, separators) is what users see and is kept stable.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from schemas import AccountInfo, OrderSummary, PrescriptionReceipt, RecentOrders, SearchResults

CURRENCY = "₹"
WEBSITE_URL = "https://medihut.com"
SEARCH_DISPLAY_LIMIT = 5
RECENT_ORDERS_DISPLAY_LIMIT = 3
RECENT_ITEMS_DISPLAY_LIMIT = 5
SEPARATOR = "─" * 20

WELCOME_MESSAGE = (
    "Welcome to MediHut! How can I help you today?\n\n"
    "1️⃣ Search Medicines & Products\n"
    "2️⃣ Track your order\n"
    "3️⃣ View your recent orders\n"
    "4️⃣ Get prescription help\n"
    "5️⃣ Talk to customer support\n"
    "6️⃣ My Account Info\n\n"
    "Reply with a number (1-6) or type your request."
)

SEARCH_PROMPT = "What medicine or product are you looking for? Please type the name."
TRACK_PROMPT = (
    "Please provide your order ID to track.\n\n"
    "You can enter it with or without the # prefix, for example: "
    "#A12C1234 or #65c53a12-4c6d-4569-a756-7a16a902c2e5"
)
PRESCRIPTION_HELP = (
    "For prescription medicines, please upload your prescription through our website or app. "
    "A pharmacist will review it and help you place an order.\n\n"
    "Visit our website at: https://medihut.com/prescriptions"
)
SUPPORT_MESSAGE = (
    "Our customer support team is available Monday to Saturday from 9am to 8pm.\n\n"
    "You can call us at: +91 1234567890\n"
    "Or email at: support@medihut.com\n\n"
    "A support agent will contact you shortly."
)

GENERIC_APOLOGY = "Sorry, I encountered an error. Please try again or type 'menu' to see options."
QUERY_TOO_SHORT = (
    "Please provide a more specific medicine or product name to search for (at least 2 characters)."
)
SEARCH_UNAVAILABLE = "Sorry, I couldn't complete your search right now. Please try again later."
TRACKING_UNAVAILABLE = (
    "Sorry, I encountered an error while tracking your order. "
    "Please try again later or contact our customer support for assistance."
)
NO_RECENT_ORDERS = (
    f"You don't have any recent orders. To place an order, please visit our website at {WEBSITE_URL}"
)
NO_ORDERS_FOR_NUMBER = (
    f"No orders found for your number. To place an order, please visit our website at {WEBSITE_URL}"
)
RECENT_ORDERS_UNAVAILABLE = "Sorry, I couldn't fetch your recent orders. Please try again later."
NO_ACCOUNT = (
    "We couldn't find an account linked to this WhatsApp number. "
    f"To create one, please visit our website at {WEBSITE_URL}"
)
ACCOUNT_UNAVAILABLE = "Sorry, I couldn't fetch your account details right now. Please try again later."
PRESCRIPTION_FAILED = (
    "Sorry, we encountered an issue while processing your prescription. "
    "Please try again later or contact our customer support for assistance."
)
MEDIA_NOT_RECOGNIZED = (
    "Thank you for sending media. If this is a prescription, please resend with the caption "
    '"prescription" or reply with "upload prescription" for instructions.'
)


def format_amount(value: Any) -> str:
    """Render a number the way it is stored: 120 stays "120", 12.5 stays "12.5"."""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_date(value: Optional[str]) -> Optional[str]:
    """ISO timestamp to M/D/YYYY (UTC). Unparseable values are shown as received."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def format_search_results(results: SearchResults) -> str:
    if not results.hits:
        return f'No medicines found for "{results.query}". Please try a different search term.'

    label = "Medicine" if results.kind == "medicine" else "Product"
    shown = results.hits[:SEARCH_DISPLAY_LIMIT]
    lines = f'Search Results for "{results.query}":\n\n'
    for index, hit in enumerate(shown, start=1):
        lines += f"{index}. {hit.name} ({label})\n"
        lines += f"💊 By: {hit.manufacturer}\n"
        lines += f"💰 Price: {CURRENCY}{format_amount(hit.price)}\n"
        if hit.prescription_required:
            lines += "⚠️ Requires prescription\n"
        if index < len(shown):
            lines += "\n"

    if results.count > len(shown):
        lines += f"\nFound {results.count} results. Showing top {len(shown)} only.\n\n"

    lines += (
        f"To place an order, please visit our website: {WEBSITE_URL} "
        'or reply with "menu" to return to the main menu.'
    )
    return lines


def format_order_details(order: OrderSummary, display_id: str) -> str:
    """Tracking reply. ``display_id`` is the short id even when the full id resolved."""
    text = f"🧾 *Order #{display_id} Details*\n\n"
    text += f"*Status:* {order.status}\n"
    date = format_date(order.created_at)
    if date:
        text += f"*Date:* {date}\n"

    if order.items:
        text += "\n*Order Items:*\n"
        for item in order.items:
            text += (
                f"• {format_amount(item.quantity)}x {item.name or 'Medicine'}"
                f" - {CURRENCY}{format_amount(item.line_total)}\n"
            )

    text += "\n*Payment Details:*\n"
    text += f"*Total:* {CURRENCY}{format_amount(order.total_amount)}\n"
    return text


def format_order_not_found(display_id: str) -> str:
    return f"We couldn't find order #{display_id}. Please check the order number and try again."


def _format_recent_entry(order: OrderSummary) -> str:
    text = f"🧾 *Order #{order.id}*\n"
    text += f"📅 Date: {format_date(order.created_at) or 'Unknown date'}\n"
    text += f"📦 Status: {order.status}\n"

    if order.items:
        text += "\n*Items:*\n"
        for item in order.items[:RECENT_ITEMS_DISPLAY_LIMIT]:
            text += (
                f"• {format_amount(item.quantity)}x {item.name or 'Unknown Product'}"
                f" - {CURRENCY}{item.line_total:.2f}\n"
            )
        hidden = len(order.items) - RECENT_ITEMS_DISPLAY_LIMIT
        if hidden > 0:
            text += f"• ...and {hidden} more items\n"

    text += f"\n💰 *Total:* {CURRENCY}{format_amount(order.total_amount)}\n"
    text += f"\nTo track this order, send: *#{order.id}*\n"
    return text


def format_recent_orders(recent: RecentOrders) -> str:
    if recent.unavailable:
        return RECENT_ORDERS_UNAVAILABLE
    if recent.no_account:
        return NO_ORDERS_FOR_NUMBER
    if not recent.orders:
        if recent.account is not None:
            name = recent.account.display_name or "there"
            return f"Hello {name}! {NO_RECENT_ORDERS}"
        return NO_RECENT_ORDERS

    shown = recent.orders[:RECENT_ORDERS_DISPLAY_LIMIT]
    entries: List[str] = [_format_recent_entry(order) for order in shown]
    return "📋 *Your Recent Orders*\n\n" + f"\n{SEPARATOR}\n\n".join(entries)


def format_account_info(info: Optional[AccountInfo]) -> str:
    if info is None:
        return NO_ACCOUNT

    account = info.account
    text = "👤 *My Account*\n\n"
    text += f"Name: {account.display_name or 'Not set'}\n"
    text += f"Phone: {account.phone}\n"
    text += f"Orders on file: {len(info.orders)}\n"
    if info.orders:
        latest = info.orders[0]
        text += f"\nLatest order: *#{latest.id}* ({latest.status})\n"
    text += "\nReply with 3 to see your recent orders."
    return text


def format_prescription_receipt(receipt: PrescriptionReceipt) -> str:
    text = (
        "Thank you for uploading your prescription!\n\n"
        "Your prescription has been received and is being processed. "
        f"Reference #{receipt.reference_id}\n\n"
        "Our team will review it shortly and get back to you with available medicines and pricing."
    )
    if not receipt.via_fallback:
        text += (
            " You can check the status of your prescription by sending "
            f'"Check prescription #{receipt.reference_id}".'
        )
    return text

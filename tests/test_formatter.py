import formatter
from schemas import (
    AccountInfo,
    OrderItem,
    OrderSummary,
    PrescriptionReceipt,
    RecentOrders,
    SearchHit,
    SearchResults,
    UserAccount,
)


def _summary(order_id="65c53a12-4c6d-4569-a756-7a16a902c2e5", items=None, **kwargs):
    return OrderSummary(
        id=order_id,
        status=kwargs.get("status", "Shipped"),
        created_at=kwargs.get("created_at", "2024-03-05T10:00:00Z"),
        total_amount=kwargs.get("total_amount", 110.0),
        items=items if items is not None else [
            OrderItem(name="Paracetamol", quantity=2, unit_price=25),
            OrderItem(name=None, quantity=1, unit_price=60),
        ],
    )


def test_welcome_message_layout():
    assert formatter.WELCOME_MESSAGE == (
        "Welcome to MediHut! How can I help you today?\n\n"
        "1️⃣ Search Medicines & Products\n"
        "2️⃣ Track your order\n"
        "3️⃣ View your recent orders\n"
        "4️⃣ Get prescription help\n"
        "5️⃣ Talk to customer support\n"
        "6️⃣ My Account Info\n\n"
        "Reply with a number (1-6) or type your request."
    )


def test_order_details_layout():
    text = formatter.format_order_details(_summary(), "65c53a12")
    assert text == (
        "🧾 *Order #65c53a12 Details*\n\n"
        "*Status:* Shipped\n"
        "*Date:* 3/5/2024\n"
        "\n*Order Items:*\n"
        "• 2x Paracetamol - ₹50\n"
        "• 1x Medicine - ₹60\n"
        "\n*Payment Details:*\n"
        "*Total:* ₹110\n"
    )


def test_order_details_is_pure():
    order = _summary()
    assert formatter.format_order_details(order, "65c53a12") == formatter.format_order_details(
        order, "65c53a12"
    )


def test_order_details_without_date_or_items():
    text = formatter.format_order_details(_summary(items=[], created_at=None, total_amount=0), "A12C1234")
    assert text == (
        "🧾 *Order #A12C1234 Details*\n\n"
        "*Status:* Shipped\n"
        "\n*Payment Details:*\n"
        "*Total:* ₹0\n"
    )


def test_order_total_received_as_text_is_shown_as_received():
    order = OrderSummary.from_record({"id": "A12C1234", "total_price": "120.50"})
    text = formatter.format_order_details(order, "A12C1234")
    assert text == (
        "🧾 *Order #A12C1234 Details*\n\n"
        "*Status:* Processing\n"
        "\n*Payment Details:*\n"
        "*Total:* ₹120.50\n"
    )


def test_search_results_with_footer():
    hits = [
        SearchHit(name=f"Paracetamol {i}", manufacturer="Cipla", price=20 + i, prescription_required=(i == 1))
        for i in range(1, 8)
    ]
    text = formatter.format_search_results(SearchResults(query="paracetamol", hits=hits, count=7))

    assert text.startswith('Search Results for "paracetamol":\n\n1. Paracetamol 1 (Medicine)\n')
    assert "💊 By: Cipla\n💰 Price: ₹21\n⚠️ Requires prescription\n\n2. " in text
    assert "5. Paracetamol 5 (Medicine)" in text
    assert "6. " not in text
    assert text.endswith(
        "\nFound 7 results. Showing top 5 only.\n\n"
        'To place an order, please visit our website: https://medihut.com or reply with "menu" to return to the main menu.'
    )


def test_search_results_without_footer():
    hits = [SearchHit(name="Moisturiser", manufacturer="Nivea", price="199.5", kind="product")]
    text = formatter.format_search_results(SearchResults(query="cream", kind="product", hits=hits, count=1))
    assert text == (
        'Search Results for "cream":\n\n'
        "1. Moisturiser (Product)\n"
        "💊 By: Nivea\n"
        "💰 Price: ₹199.5\n"
        'To place an order, please visit our website: https://medihut.com or reply with "menu" to return to the main menu.'
    )


def test_search_without_hits():
    assert formatter.format_search_results(SearchResults(query="xyz")) == (
        'No medicines found for "xyz". Please try a different search term.'
    )


def test_recent_orders_layout_with_separators():
    many_items = [OrderItem(name=f"Item {i}", quantity=1, unit_price=10) for i in range(7)]
    orders = [
        _summary("o-1", items=many_items, total_amount=70),
        _summary("o-2", items=[], created_at=None, status="Delivered", total_amount=12.5),
        _summary("o-3", items=[]),
        _summary("o-4", items=[]),
    ]
    text = formatter.format_recent_orders(RecentOrders(orders=orders))

    assert text.startswith("📋 *Your Recent Orders*\n\n🧾 *Order #o-1*\n📅 Date: 3/5/2024\n📦 Status: Shipped\n")
    assert "• 1x Item 4 - ₹10.00\n• ...and 2 more items\n" in text
    assert "Item 5" not in text
    assert "\n💰 *Total:* ₹70\n\nTo track this order, send: *#o-1*\n\n" + "─" * 20 + "\n\n🧾 *Order #o-2*" in text
    assert "📅 Date: Unknown date\n📦 Status: Delivered\n\n💰 *Total:* ₹12.5\n" in text
    assert text.count("─" * 20) == 2
    assert "o-4" not in text
    assert text.endswith("To track this order, send: *#o-3*\n")


def test_recent_orders_empty_variants():
    assert formatter.format_recent_orders(RecentOrders()) == formatter.NO_RECENT_ORDERS
    assert formatter.format_recent_orders(RecentOrders(no_account=True)) == formatter.NO_ORDERS_FOR_NUMBER
    assert formatter.format_recent_orders(RecentOrders(unavailable=True)) == formatter.RECENT_ORDERS_UNAVAILABLE
    greeting = formatter.format_recent_orders(
        RecentOrders(account=UserAccount(id="u-1", phone="1234567890", display_name="Asha"))
    )
    assert greeting == (
        "Hello Asha! You don't have any recent orders. "
        "To place an order, please visit our website at https://medihut.com"
    )


def test_account_info():
    info = AccountInfo(
        account=UserAccount(id="u-1", phone="1234567890", display_name="Asha"),
        orders=[_summary("o-1", items=[])],
    )
    text = formatter.format_account_info(info)
    assert text == (
        "👤 *My Account*\n\n"
        "Name: Asha\n"
        "Phone: 1234567890\n"
        "Orders on file: 1\n"
        "\nLatest order: *#o-1* (Shipped)\n"
        "\nReply with 3 to see your recent orders."
    )
    assert formatter.format_account_info(None) == formatter.NO_ACCOUNT


def test_prescription_receipts():
    primary = formatter.format_prescription_receipt(PrescriptionReceipt(reference_id="RX-1"))
    fallback = formatter.format_prescription_receipt(PrescriptionReceipt(reference_id="abc", via_fallback=True))

    assert "Reference #RX-1" in primary
    assert primary.endswith('by sending "Check prescription #RX-1".')
    assert fallback.endswith("with available medicines and pricing.")


def test_format_date_passes_through_unparseable_values():
    assert formatter.format_date("yesterday") == "yesterday"
    assert formatter.format_date(None) is None

from stripe_payments.metadata import flatten_metadata, get_post_data, get_shipping, get_stripe_address


def test_flatten_joins_multi_values():
    assert flatten_metadata({"size": "L", "toppings": ["ham", "cheese"]}) == {
        "size": "L",
        "toppings": "ham - cheese",
    }
    assert flatten_metadata(None) == {}


def test_shipping_postal_code_falls_back_to_zip():
    shipping = get_shipping({"name": "Ada", "line1": "1 Main St", "city": "Delft", "zip": "2611", "country": "NL"})

    assert shipping["name"] == "Ada"
    assert shipping["address"]["postal_code"] == "2611"
    assert shipping["address"]["state"] == ""
    assert shipping["carrier"] == ""
    assert shipping["tracking_number"] == ""


def test_shipping_prefers_postal_code():
    shipping = get_shipping({"postal_code": "10001", "zip": "99999"})
    assert shipping["address"]["postal_code"] == "10001"


def test_stripe_address_uses_legacy_keys():
    address = get_stripe_address({"line1": "1 Main St", "zip": "62701", "country": "US"})
    assert address["address_line1"] == "1 Main St"
    assert address["address_zip"] == "62701"
    assert address["address_country"] == "US"
    assert address["address_city"] is None


def test_post_data_drops_framework_keys():
    captured = get_post_data(
        {"csrfmiddlewaretoken": "x", "action": "pay", "redirect": "/", "payment": {"amount": "100"}}
    )
    assert captured == {"payment": {"amount": "100"}}

from app.integrations.geo_fallback import fallback_address


def test_city_box_hit():
    address = fallback_address(26.9, 75.8)
    assert address["city"] == "Jaipur"
    assert address["state"] == "Rajasthan"
    assert address["source"] == "fallback"


def test_state_box_hit():
    address = fallback_address(27.5, 73.0)
    assert address["state"] == "Rajasthan"
    assert address["source"] == "state-fallback"


def test_unknown_location():
    address = fallback_address(0.0, 0.0)
    assert address["city"] == "Unknown City"
    assert address["state"] == "Unknown State"
    assert address["source"] == "unknown"

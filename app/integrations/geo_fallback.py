"""Approximate bounding boxes used when the geocoding API is unreachable."""

from typing import Dict, NamedTuple, Optional


class Box(NamedTuple):
    north: float
    south: float
    east: float
    west: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


# (city, state, box); checked in order, first hit wins
CITY_BOXES = [
    ("Mumbai", "Maharashtra", Box(19.27, 18.89, 72.97, 72.77)),
    ("Delhi", "Delhi", Box(28.88, 28.4, 77.35, 76.84)),
    ("Bangalore", "Karnataka", Box(13.14, 12.83, 77.78, 77.46)),
    ("Hyderabad", "Telangana", Box(17.56, 17.27, 78.65, 78.25)),
    ("Chennai", "Tamil Nadu", Box(13.23, 12.83, 80.35, 80.12)),
    ("Kolkata", "West Bengal", Box(22.73, 22.4, 88.51, 88.27)),
    ("Pune", "Maharashtra", Box(18.63, 18.41, 73.99, 73.73)),
    ("Ahmedabad", "Gujarat", Box(23.13, 22.96, 72.68, 72.48)),
    ("Jaipur", "Rajasthan", Box(26.95, 26.8, 75.87, 75.73)),
    ("Udaipur", "Rajasthan", Box(24.65, 24.52, 73.78, 73.65)),
    ("Jodhpur", "Rajasthan", Box(26.32, 26.2, 73.08, 72.95)),
    ("Kota", "Rajasthan", Box(25.25, 25.15, 75.9, 75.8)),
]

# (state, default city, box)
STATE_BOXES = [
    ("Rajasthan", "Jaipur", Box(30.12, 23.03, 78.17, 69.3)),
    ("Maharashtra", "Mumbai", Box(22.03, 15.6, 80.89, 72.66)),
    ("Gujarat", "Ahmedabad", Box(24.71, 20.06, 74.47, 68.16)),
    ("Delhi", "Delhi", Box(28.88, 28.4, 77.35, 76.84)),
    ("Karnataka", "Bangalore", Box(18.45, 11.31, 78.59, 74.05)),
    ("Tamil Nadu", "Chennai", Box(13.49, 8.07, 80.34, 76.23)),
    ("West Bengal", "Kolkata", Box(27.13, 21.25, 89.85, 85.82)),
    ("Telangana", "Hyderabad", Box(19.92, 15.89, 81.78, 77.27)),
]

UNKNOWN_CITY = "Unknown City"
UNKNOWN_STATE = "Unknown State"


def _address(lat: float, lng: float, city: str, state: str, source: str) -> Dict[str, Optional[str]]:
    known = city != UNKNOWN_CITY
    return {
        "city": city,
        "state": state,
        "district": city if known else None,
        "streetAddress": f"Coordinates: {lat}, {lng}",
        "sublocality": "",
        "postalCode": "",
        "country": "India" if known else None,
        "formattedAddress": f"{city}, {state}, India" if known else f"{lat}, {lng}",
        "detailedAddress": f"Coordinates: {lat}, {lng}, {city}, {state}, India",
        "source": source,
    }


def fallback_address(lat: float, lng: float) -> Dict[str, Optional[str]]:
    for city, state, box in CITY_BOXES:
        if box.contains(lat, lng):
            return _address(lat, lng, city, state, "fallback")
    for state, city, box in STATE_BOXES:
        if box.contains(lat, lng):
            return _address(lat, lng, city, state, "state-fallback")
    return _address(lat, lng, UNKNOWN_CITY, UNKNOWN_STATE, "unknown")

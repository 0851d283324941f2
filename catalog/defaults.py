# catalog/defaults.py
from .normalize import normalize_feed

# Served when every upstream source and the local catalog come back empty.
DEFAULT_PARTS = [
    # body
    {"id": "front-bumper", "name": "Front Bumper Cover", "image": "https://picsum.photos/seed/bumper/800/480", "base_price": 189.00, "year": 2020, "make": "Toyota", "model": "Camry", "category": "body", "part_type": "Bumper", "weight_lb": 30, "dim_l_in": 65, "dim_w_in": 12, "dim_h_in": 12, "stock": 6},
    {"id": "rear-bumper", "name": "Rear Bumper Cover", "image": "https://picsum.photos/seed/rear-bumper/800/480", "base_price": 199.00, "year": 2020, "make": "Toyota", "model": "Camry", "category": "body", "part_type": "Bumper", "weight_lb": 30, "dim_l_in": 65, "dim_w_in": 12, "dim_h_in": 12, "stock": 4},
    {"id": "left-fender", "name": "Fender (Driver)", "image": "https://picsum.photos/seed/fender-left/800/480", "base_price": 129.00, "year": 2019, "make": "Honda", "model": "Civic", "category": "body", "part_type": "Fender", "weight_lb": 12, "dim_l_in": 40, "dim_w_in": 24, "dim_h_in": 8, "stock": 5},
    {"id": "right-fender", "name": "Fender (Passenger)", "image": "https://picsum.photos/seed/fender-right/800/480", "base_price": 129.00, "year": 2019, "make": "Honda", "model": "Civic", "category": "body", "part_type": "Fender", "weight_lb": 12, "dim_l_in": 40, "dim_w_in": 24, "dim_h_in": 8, "stock": 5},
    {"id": "hood-panel", "name": "Hood Panel", "image": "https://picsum.photos/seed/hood/800/480", "base_price": 249.00, "year": 2021, "make": "Ford", "model": "F-150", "category": "body", "part_type": "Hood", "weight_lb": 45, "dim_l_in": 60, "dim_w_in": 50, "dim_h_in": 6, "stock": 2},
    {"id": "grille-assembly", "name": "Grille Assembly", "image": "https://picsum.photos/seed/grille/800/480", "base_price": 159.00, "year": 2018, "make": "Nissan", "model": "Altima", "category": "body", "part_type": "Grille", "weight_lb": 12, "dim_l_in": 36, "dim_w_in": 10, "dim_h_in": 6, "stock": 7},
    {"id": "side-mirror-rh", "name": "Side Mirror (RH)", "image": "https://picsum.photos/seed/mirror/800/480", "base_price": 89.00, "year": 2017, "make": "Chevy", "model": "Malibu", "category": "body", "part_type": "Mirror", "weight_lb": 5, "dim_l_in": 14, "dim_w_in": 10, "dim_h_in": 6, "stock": 9},
    {"id": "headlight", "name": "Headlight Assembly", "image": "https://picsum.photos/seed/headlight/800/480", "base_price": 129.00, "year": 2014, "make": "Audi", "model": "A4", "category": "body", "part_type": "Headlight Assembly", "weight_lb": 9, "dim_l_in": 18, "dim_w_in": 12, "dim_h_in": 10, "stock": 8},
    {"id": "taillight", "name": "Tail Light Assembly", "image": "https://picsum.photos/seed/taillight/800/480", "base_price": 119.00, "year": 2015, "make": "BMW", "model": "328i", "category": "body", "part_type": "Taillight", "weight_lb": 6, "dim_l_in": 16, "dim_w_in": 8, "dim_h_in": 8, "stock": 8},
    {"id": "door-shell", "name": "Front Door Shell", "image": "https://picsum.photos/seed/door/800/480", "base_price": 299.00, "year": 2018, "make": "Nissan", "model": "Altima", "category": "body", "part_type": "Door", "weight_lb": 55, "dim_l_in": 48, "dim_w_in": 40, "dim_h_in": 10, "stock": 1},
    {"id": "quarter-panel", "name": "Quarter Panel (LH)", "image": "https://picsum.photos/seed/quarter/800/480", "base_price": 349.00, "year": 2015, "make": "BMW", "model": "328i", "category": "body", "part_type": "Quarter Panel", "weight_lb": 35, "dim_l_in": 60, "dim_w_in": 30, "dim_h_in": 8, "stock": 2},
    {"id": "splash-shield", "name": "Engine Splash Shield", "image": "https://picsum.photos/seed/splash/800/480", "base_price": 64.00, "year": 2020, "make": "Toyota", "model": "Camry", "category": "body", "part_type": "Splash Shield", "weight_lb": 4, "dim_l_in": 40, "dim_w_in": 24, "dim_h_in": 3, "stock": 0},
    {"id": "wheel-liner", "name": "Wheel Arch Liner", "image": "https://picsum.photos/seed/liner/800/480", "base_price": 54.00, "year": 2019, "make": "Honda", "model": "Civic", "category": "body", "part_type": "Wheel Liner", "weight_lb": 3, "dim_l_in": 30, "dim_w_in": 20, "dim_h_in": 6, "stock": 10},
    # mechanical
    {"id": "alternator", "name": "Alternator", "image": "https://picsum.photos/seed/alternator/800/480", "base_price": 199.99, "year": 2019, "make": "Honda", "model": "Civic", "category": "mechanical", "part_type": "Alternator", "weight_lb": 14, "dim_l_in": 10, "dim_w_in": 8, "dim_h_in": 8, "stock": 6},
    {"id": "radiator", "name": "Radiator", "image": "https://picsum.photos/seed/radiator/800/480", "base_price": 149.99, "year": 2021, "make": "Ford", "model": "F-150", "category": "mechanical", "part_type": "Radiator", "weight_lb": 24, "dim_l_in": 32, "dim_w_in": 6, "dim_h_in": 24, "stock": 3},
    {"id": "car-battery", "name": "12V Car Battery", "image": "https://picsum.photos/seed/battery/800/480", "base_price": 139.00, "year": 2023, "make": "Tesla", "model": "Model 3", "category": "mechanical", "part_type": "Battery", "weight_lb": 38, "dim_l_in": 12, "dim_w_in": 7, "dim_h_in": 9, "stock": 12},
]

DEFAULT_IDS = tuple(p["id"] for p in DEFAULT_PARTS)


def default_catalog():
    """Return a fresh copy of the bundled catalog as Part objects."""
    return normalize_feed(DEFAULT_PARTS)

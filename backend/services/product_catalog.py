"""
Product catalog for the legacy product-signup form.

Monthly prices in GBP. The legacy encoder resolves the submitted
``selectedProduct`` id against this catalog to fill in product name,
description, unit price and the monthly total.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel


class Product(BaseModel):
    id: str
    name: str
    description: str
    price: float
    category: str


def _products(category: str, rows: List[tuple]) -> List[Product]:
    return [
        Product(id=pid, name=name, description=description, price=price, category=category)
        for pid, name, description, price in rows
    ]


PRODUCT_CATALOG: Dict[str, List[Product]] = {
    "mobile": _products("mobile", [
        ("mob_essential_5gb", "Essential 5GB", "5GB data, unlimited calls & texts", 15.00),
        ("mob_unlimited_max", "Unlimited Max", "Unlimited data, calls & texts + 5G", 35.00),
        ("mob_red_plus", "Red Plus 50GB", "50GB data + international roaming", 25.00),
        ("mob_business_sim", "Business SIM Only", "Unlimited business data + priority support", 45.00),
    ]),
    "broadband": _products("broadband", [
        ("bb_superfast_35", "Superfast 1 (35Mbps)", "Average 35Mbps download speed", 28.00),
        ("bb_superfast_67", "Superfast 2 (67Mbps)", "Average 67Mbps download speed", 35.00),
        ("bb_ultrafast_100", "Ultrafast 100", "Average 100Mbps download speed", 45.00),
        ("bb_gigafast_900", "Gigafast 900", "Average 900Mbps download speed", 65.00),
    ]),
    "business": _products("business", [
        ("biz_connectivity", "Business Connectivity", "Dedicated business internet + support", 120.00),
        ("biz_mobile_fleet", "Mobile Fleet Management", "Fleet tracking & management solution", 25.00),
        ("biz_cloud_services", "Cloud Services Package", "Cloud hosting + security + backup", 85.00),
        ("biz_unified_comms", "Unified Communications", "VoIP + video conferencing + collaboration", 40.00),
    ]),
    "iot": _products("iot", [
        ("iot_asset_tracking", "Asset Tracking Solution", "GPS tracking for vehicles & equipment", 15.00),
        ("iot_smart_agriculture", "Smart Agriculture Package", "Soil monitoring + weather sensors", 75.00),
        ("iot_fleet_telemetry", "Fleet Telemetry", "Vehicle diagnostics + driver behavior", 35.00),
        ("iot_smart_meters", "Smart Metering Solution", "Remote utility meter reading", 12.00),
    ]),
}

_PRODUCTS_BY_ID: Dict[str, Product] = {
    product.id: product
    for products in PRODUCT_CATALOG.values()
    for product in products
}


def get_product(product_id: Optional[str]) -> Optional[Product]:
    if not product_id:
        return None
    return _PRODUCTS_BY_ID.get(product_id)


def get_catalog() -> Dict[str, List[dict]]:
    """Catalog as plain dicts for API responses."""
    return {
        category: [p.model_dump() for p in products]
        for category, products in PRODUCT_CATALOG.items()
    }

"""Demonstration catalogue: three merchants, ten items and two discount codes.

`SeedSampleData` loads it only into an empty marketplace; once any merchant
exists the command does nothing.
"""

from protean import handle
from protean.utils.globals import current_domain

from marketplace.catalog.item import MerchantItem
from marketplace.catalog.merchant import Merchant
from marketplace.discount.discount import Discount
from marketplace.domain import marketplace
from marketplace.shared.repository import scan
from marketplace.utils.logging import logger


def _week(weekdays, friday, saturday, sunday):
    """Opening hours with one schedule Monday-Thursday and its own for the weekend days."""
    hours = [
        {"day": day, "open": weekdays[0], "close": weekdays[1], "is_closed": False}
        for day in ("monday", "tuesday", "wednesday", "thursday")
    ]
    for day, (opens, closes) in (("friday", friday), ("saturday", saturday), ("sunday", sunday)):
        hours.append({"day": day, "open": opens, "close": closes, "is_closed": False})
    return hours


def _choice(choice_id, name, price_delta=0.0, is_default=False):
    return {
        "choice_id": choice_id,
        "name": name,
        "price_delta": price_delta,
        "is_available": True,
        "is_default": is_default,
    }


def _group(group_id, name, selection_type, choices, required=False, max_select=None):
    group = {
        "group_id": group_id,
        "name": name,
        "selection_type": selection_type,
        "required": required,
        "choices": choices,
    }
    if max_select:
        group["max_select"] = max_select
    return group


SAMPLE_MERCHANTS = [
    {
        "id": "merchant-1",
        "name": "Sakura Sushi",
        "description": "Authentic Japanese cuisine with fresh sushi and traditional dishes",
        "category": "restaurant",
        "address": "123 Main St, Downtown",
        "phone": "(555) 123-4567",
        "hours": _week(("11:00", "22:00"), ("11:00", "23:00"), ("12:00", "23:00"), ("12:00", "21:00")),
        "rating": 4.8,
        "review_count": 342,
        "min_order_amount": 15.0,
        "delivery_fee": 3.99,
        "delivery_time": "25-35 min",
    },
    {
        "id": "merchant-2",
        "name": "Pizza Paradise",
        "description": "New York style pizza made with love and the freshest ingredients",
        "category": "restaurant",
        "address": "456 Oak Ave, Midtown",
        "phone": "(555) 234-5678",
        "hours": _week(("10:00", "23:00"), ("10:00", "00:00"), ("10:00", "00:00"), ("11:00", "22:00")),
        "rating": 4.6,
        "review_count": 528,
        "delivery_fee": 2.99,
        "delivery_time": "20-30 min",
    },
    {
        "id": "merchant-3",
        "name": "Green Garden Cafe",
        "description": "Healthy, organic meals and fresh smoothies for the health-conscious",
        "category": "cafe",
        "address": "789 Elm St, Uptown",
        "phone": "(555) 345-6789",
        "hours": _week(("07:00", "20:00"), ("07:00", "21:00"), ("08:00", "21:00"), ("08:00", "18:00")),
        "rating": 4.7,
        "review_count": 215,
        "min_order_amount": 10.0,
        "delivery_fee": 4.99,
        "delivery_time": "30-40 min",
    },
]

_PIZZA_SIZES = [
    ("Small (10\")", 0.0, False),
    ("Medium (14\")", 4.0, True),
    ("Large (18\")", 8.0, False),
]

SAMPLE_ITEMS = [
    {
        "id": "item-1",
        "merchant_id": "merchant-1",
        "name": "California Roll",
        "description": "Crab, avocado, and cucumber wrapped in rice and seaweed",
        "price": 12.99,
        "category": "Rolls",
        "option_groups": [
            _group(
                "og-1",
                "Size",
                "single",
                [_choice("c-1", "Regular (6 pcs)", 0.0, is_default=True), _choice("c-2", "Large (10 pcs)", 6.0)],
                required=True,
            ),
            _group(
                "og-2",
                "Extras",
                "multiple",
                [
                    _choice("c-3", "Extra Avocado", 1.5),
                    _choice("c-4", "Spicy Mayo", 0.5),
                    _choice("c-5", "Eel Sauce", 0.5),
                ],
                max_select=3,
            ),
        ],
        "is_featured": True,
        "sort_order": 1,
        "units_sold": 156,
        "revenue": 2026.44,
    },
    {
        "id": "item-2",
        "merchant_id": "merchant-1",
        "name": "Salmon Nigiri",
        "description": "Fresh salmon over pressed rice, 2 pieces",
        "price": 8.99,
        "category": "Nigiri",
        "sort_order": 2,
        "units_sold": 89,
        "revenue": 799.11,
    },
    {
        "id": "item-3",
        "merchant_id": "merchant-1",
        "name": "Dragon Roll",
        "description": "Eel and cucumber topped with avocado and eel sauce",
        "price": 16.99,
        "category": "Rolls",
        "option_groups": [
            _group(
                "og-3",
                "Extras",
                "multiple",
                [_choice("c-6", "Extra Eel", 3.0), _choice("c-7", "Tempura Flakes", 1.0)],
                max_select=2,
            ),
        ],
        "is_featured": True,
        "sort_order": 3,
        "units_sold": 72,
        "revenue": 1223.28,
    },
    {
        "id": "item-4",
        "merchant_id": "merchant-1",
        "name": "Miso Soup",
        "description": "Traditional Japanese soup with tofu, seaweed, and green onions",
        "price": 3.99,
        "category": "Appetizers",
        "sort_order": 0,
        "units_sold": 203,
        "revenue": 809.97,
    },
    {
        "id": "item-5",
        "merchant_id": "merchant-2",
        "name": "Margherita Pizza",
        "description": "Fresh mozzarella, tomatoes, and basil on our signature crust",
        "price": 14.99,
        "category": "Pizzas",
        "option_groups": [
            _group(
                "og-4",
                "Size",
                "single",
                [_choice(f"c-{8 + i}", name, delta, default) for i, (name, delta, default) in enumerate(_PIZZA_SIZES)],
                required=True,
            ),
            _group(
                "og-5",
                "Crust",
                "single",
                [
                    _choice("c-11", "Classic", 0.0, is_default=True),
                    _choice("c-12", "Thin Crust", 0.0),
                    _choice("c-13", "Stuffed Crust", 3.0),
                ],
                required=True,
            ),
        ],
        "is_featured": True,
        "sort_order": 1,
        "units_sold": 245,
        "revenue": 4652.55,
    },
    {
        "id": "item-6",
        "merchant_id": "merchant-2",
        "name": "Pepperoni Passion",
        "description": "Double pepperoni with our secret blend of cheeses",
        "price": 16.99,
        "category": "Pizzas",
        "option_groups": [
            _group(
                "og-6",
                "Size",
                "single",
                [_choice(f"c-{14 + i}", name, delta, default) for i, (name, delta, default) in enumerate(_PIZZA_SIZES)],
                required=True,
            ),
        ],
        "is_featured": True,
        "sort_order": 2,
        "units_sold": 312,
        "revenue": 6516.72,
    },
    {
        "id": "item-7",
        "merchant_id": "merchant-2",
        "name": "Garlic Knots",
        "description": "Fresh baked knots brushed with garlic butter (6 pcs)",
        "price": 5.99,
        "category": "Sides",
        "option_groups": [
            _group(
                "og-7",
                "Dipping Sauce",
                "single",
                [
                    _choice("c-17", "Marinara", 0.0),
                    _choice("c-18", "Ranch", 0.5),
                    _choice("c-19", "Garlic Parmesan", 0.5),
                ],
            ),
        ],
        "sort_order": 5,
        "units_sold": 187,
        "revenue": 1120.13,
    },
    {
        "id": "item-8",
        "merchant_id": "merchant-3",
        "name": "Acai Bowl",
        "description": "Organic acai blend topped with granola, fresh berries, and honey",
        "price": 11.99,
        "category": "Bowls",
        "option_groups": [
            _group(
                "og-8",
                "Toppings",
                "multiple",
                [
                    _choice("c-20", "Extra Berries", 1.5),
                    _choice("c-21", "Coconut Flakes", 0.75),
                    _choice("c-22", "Peanut Butter", 1.0),
                    _choice("c-23", "Chia Seeds", 0.5),
                ],
                max_select=4,
            ),
        ],
        "is_featured": True,
        "sort_order": 1,
        "units_sold": 134,
        "revenue": 1606.66,
    },
    {
        "id": "item-9",
        "merchant_id": "merchant-3",
        "name": "Green Goddess Smoothie",
        "description": "Spinach, kale, banana, mango, and almond milk",
        "price": 8.99,
        "category": "Smoothies",
        "option_groups": [
            _group(
                "og-9",
                "Add-ins",
                "multiple",
                [
                    _choice("c-24", "Protein Powder", 2.0),
                    _choice("c-25", "Spirulina", 1.5),
                    _choice("c-26", "Flax Seeds", 0.75),
                ],
                max_select=3,
            ),
        ],
        "is_featured": True,
        "sort_order": 2,
        "units_sold": 98,
        "revenue": 880.02,
    },
    {
        "id": "item-10",
        "merchant_id": "merchant-3",
        "name": "Avocado Toast",
        "description": "Smashed avocado on sourdough with cherry tomatoes and microgreens",
        "price": 10.99,
        "category": "Toasts",
        "option_groups": [
            _group(
                "og-10",
                "Extras",
                "multiple",
                [
                    _choice("c-27", "Poached Egg", 2.0),
                    _choice("c-28", "Feta Cheese", 1.5),
                    _choice("c-29", "Everything Seasoning", 0.0),
                ],
                max_select=2,
            ),
        ],
        "sort_order": 3,
        "units_sold": 167,
        "revenue": 1835.33,
    },
]

SAMPLE_DISCOUNTS = [
    {
        "id": "discount-1",
        "name": "First Order Special",
        "description": "20% off your first order",
        "discount_type": "percentage",
        "value": 20.0,
        "code": "WELCOME20",
        "max_discount": 15.0,
        "usage_count": 45,
    },
    {
        "id": "discount-2",
        "name": "Free Delivery",
        "description": "$5 off delivery fee",
        "discount_type": "fixed",
        "value": 5.0,
        "code": "FREEDEL",
        "min_order_amount": 25.0,
        "usage_count": 23,
    },
]


@marketplace.command(part_of="Merchant")
class SeedSampleData:
    """Load the demonstration catalogue into an empty marketplace."""


@marketplace.command_handler(part_of=Merchant)
class SeedSampleDataHandler:
    @handle(SeedSampleData)
    def seed_sample_data(self, command):
        if scan(current_domain.repository_for(Merchant)):
            logger.info("Marketplace already has merchants, skipping seed")
            return False

        for data in SAMPLE_MERCHANTS:
            current_domain.repository_for(Merchant).add(Merchant.register(**data))
        for data in SAMPLE_ITEMS:
            current_domain.repository_for(MerchantItem).add(MerchantItem.create(**data))
        for data in SAMPLE_DISCOUNTS:
            current_domain.repository_for(Discount).add(Discount.create(**data))

        logger.info(
            "Seeded sample data",
            merchants=len(SAMPLE_MERCHANTS),
            items=len(SAMPLE_ITEMS),
            discounts=len(SAMPLE_DISCOUNTS),
        )
        return True

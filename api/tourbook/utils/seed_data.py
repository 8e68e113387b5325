"""
Sample rows inserted by the seed-if-empty bootstrap step
"""
from decimal import Decimal

SAMPLE_DESTINATIONS = [
    {
        "name": "Playa Tortugas",
        "location": "Chimbote, Ancash",
        "description": "Beach with crystal-clear water, perfect for a relaxing day",
        "price": Decimal("150.00"),
        "duration_days": 1,
        "includes": ["Transport", "Lunch", "Tour guide"],
        "image_url": "/assets/logo-chimbote.jpg",
    },
    {
        "name": "Isla Blanca",
        "location": "Chimbote, Ancash",
        "description": "Island with white sand beaches and turquoise water",
        "price": Decimal("200.00"),
        "duration_days": 1,
        "includes": ["Boat transfer", "Lunch", "Snorkeling", "Guide"],
        "image_url": "/assets/logo-chimbote.jpg",
    },
    {
        "name": "Tour Gastronómico",
        "location": "Chimbote, Ancash",
        "description": "Route through the best seafood restaurants in Chimbote",
        "price": Decimal("80.00"),
        "duration_days": 1,
        "includes": ["Tasting", "Food guide", "Transport"],
        "image_url": "/assets/logo-chimbote.jpg",
    },
]

DEFAULT_SITE_CONFIG = {
    "site_name": "Chimbote Travel Tours",
    "contact_email": "chimbotetraveltours16@hotmail.es",
    "contact_phone": "+51 942 620 099",
    "social_media": {
        "facebook": "https://www.facebook.com/ChimboteTravelToursEirl",
        "instagram": "https://www.instagram.com",
        "tiktok": "https://www.tiktok.com",
        "whatsapp": "https://wa.me/51942620099",
    },
    "business_hours": {
        "weekdays": "9:00 am - 6:00 pm",
        "saturday": "9:00 am - 1:00 pm",
        "sunday": "Closed",
    },
    "payment_methods": ["Visa", "Mastercard", "Yape", "Plin"],
}

SAMPLE_EMPLOYEES = [
    {
        "first_name": "Juan",
        "last_name": "Pérez",
        "email": "juan.perez@chimbotetravel.com",
        "phone": "+51 999 888 777",
        "position": "General Manager",
        "department": "Administration",
        "salary": 5000.00,
    },
    {
        "first_name": "María",
        "last_name": "García",
        "email": "maria.garcia@chimbotetravel.com",
        "phone": "+51 999 888 778",
        "position": "Tour Guide",
        "department": "Operations",
        "salary": 2500.00,
    },
    {
        "first_name": "Carlos",
        "last_name": "Rodríguez",
        "email": "carlos.rodriguez@chimbotetravel.com",
        "phone": "+51 999 888 779",
        "position": "Accountant",
        "department": "Finance",
        "salary": 3500.00,
    },
]

SAMPLE_FINANCIAL_RECORDS = [
    {"transaction_type": "INCOME", "amount": 5000.00, "description": "Tour package sales", "category": "SALES"},
    {"transaction_type": "EXPENSE", "amount": 1200.00, "description": "Utility payments", "category": "OPERATIONS"},
    {"transaction_type": "INCOME", "amount": 3000.00, "description": "Monthly reservations", "category": "SALES"},
]

SAMPLE_INVENTORY = [
    {
        "item_name": "Tour bus, 40 seats",
        "item_type": "VEHICLES",
        "quantity": 2,
        "unit_cost": 50000.00,
        "supplier": "AutoMundo S.A.",
        "status": "AVAILABLE",
    },
    {
        "item_name": "Snorkeling kit",
        "item_type": "EQUIPMENT",
        "quantity": 20,
        "unit_cost": 150.00,
        "supplier": "Deportes Marinos",
        "status": "AVAILABLE",
    },
]

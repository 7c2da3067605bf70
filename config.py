"""
Application configuration

Values come from the environment (a local .env file is loaded first).
Fallbacks that the handlers rely on live here as named constants so that
routes receive them explicitly instead of repeating literals.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# Server
PORT = int(os.getenv("PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ImageKit
IMAGEKIT_PUBLIC_KEY = os.getenv("IMAGEKIT_PUBLIC_KEY", "")
IMAGEKIT_PRIVATE_KEY = os.getenv("IMAGEKIT_PRIVATE_KEY", "")
IMAGEKIT_URL_ENDPOINT = os.getenv("IMAGEKIT_URL_ENDPOINT", "")
DEFAULT_IMAGE_FOLDER = "/products"
SIGNED_URL_EXPIRE_SECONDS = 3600
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Accounts
ONBOARDING_CODE = os.getenv("ONBOARDING_CODE", "123456")
USER_TOKEN = "dummy-token"

# Domain defaults
DEFAULT_COUNTRY = "India"
DEFAULT_STOCK_STATUS = "in_stock"
DEFAULT_UNIT = "piece"

DEFAULT_CATEGORIES = [
    {
        "name": "Tools",
        "description": "Hand tools, power tools, and equipment for various tasks",
        "specifications": {
            "type": "Tools",
            "subcategories": "Hand Tools, Power Tools, Measuring Tools, Safety Equipment",
        },
    },
    {
        "name": "Machineries",
        "description": "Heavy machinery, industrial equipment, and mechanical devices",
        "specifications": {
            "type": "Machineries",
            "subcategories": "Heavy Machinery, Industrial Equipment, Mechanical Devices, Construction Equipment",
        },
    },
    {
        "name": "Fasteners",
        "description": "Screws, bolts, nuts, washers, and other fastening components",
        "specifications": {
            "type": "Fasteners",
            "subcategories": "Screws, Bolts, Nuts, Washers, Rivets, Anchors",
        },
    },
    {
        "name": "Gloves",
        "description": "Protective gloves for various industries and applications",
        "specifications": {
            "type": "Gloves",
            "subcategories": "Work Gloves, Safety Gloves, Chemical Resistant, Cut Resistant, Heat Resistant",
        },
    },
    {
        "name": "Others",
        "description": "Miscellaneous items and products that do not fit into other categories",
        "specifications": {
            "type": "Others",
            "subcategories": "General Items, Miscellaneous Products, Custom Items",
        },
    },
]

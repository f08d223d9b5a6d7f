# railfood/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080/api")
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", 10))
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 10))
DEFAULT_PREPARATION_MINUTES = int(os.getenv("DEFAULT_PREPARATION_MINUTES", 30))
FILTER_DEBOUNCE_SECONDS = float(os.getenv("FILTER_DEBOUNCE_SECONDS", 0.3))
CART_LOAD_MAX_RETRIES = int(os.getenv("CART_LOAD_MAX_RETRIES", 3))
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")
MERCHANT_NAME = os.getenv("MERCHANT_NAME", "Railswad")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

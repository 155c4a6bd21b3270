import os
from dotenv import load_dotenv

# Load environment variables from the .env file beside the service
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), '..', '.env'))

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
JWT_SECRET = os.getenv("JWT_SECRET", "mysecret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
FRONTEND_ORIGINS = os.getenv("FRONTEND_ORIGINS", "*")

# Label stored by the expense forms for "whoever created this record"
SELF_PLACEHOLDER = os.getenv("SELF_PLACEHOLDER", "Yo")
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "$")
try:
    HISTORY_MONTHS = int(os.getenv("HISTORY_MONTHS", "12"))
except ValueError:
    HISTORY_MONTHS = 12

# Subscription states that unlock the ledger sections
ALLOWED_SUBSCRIPTION_STATUSES = ("active", "admin", "free")

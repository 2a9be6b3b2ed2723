import os
from typing import Optional
from urllib.parse import urlparse
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def domain_from_login_url(login_url: str) -> str:
    """
    Turn a login URL into the domain the Salesforce client expects.

    https://login.salesforce.com gives "login", https://test.salesforce.com
    gives "test" and https://acme.my.salesforce.com gives "acme.my".
    """
    host = urlparse(login_url if "//" in login_url else f"https://{login_url}").hostname or ""
    return host.removesuffix(".salesforce.com") or "login"


# Salesforce login
# Password and security token are sent together, as Salesforce expects for API logins
SALESFORCE_USERNAME: Optional[str] = os.environ.get("SALESFORCE_USERNAME")
SALESFORCE_PASSWORD: Optional[str] = os.environ.get("SALESFORCE_PASSWORD")
SALESFORCE_TOKEN: str = os.environ.get("SALESFORCE_TOKEN", "")
# "login" for production, "test" for sandboxes, or a My Domain prefix
# SALESFORCE_LOGIN_URL (a full login URL) is honoured when SALESFORCE_DOMAIN is not set
SALESFORCE_DOMAIN: str = os.environ.get(
    "SALESFORCE_DOMAIN",
    domain_from_login_url(os.environ.get("SALESFORCE_LOGIN_URL", "https://login.salesforce.com")),
)
SALESFORCE_API_VERSION: Optional[str] = os.environ.get("SALESFORCE_API_VERSION")

# If true, objects and fields without any permission letter are left out of the schema
DROP_EMPTY_PERMISSIONS: bool = _flag("DROP_EMPTY_PERMISSIONS")

# If true, user and record ids must look like Salesforce ids (15 or 18 alphanumerics)
STRICT_ID_VALIDATION: bool = _flag("STRICT_ID_VALIDATION")

MAX_RECORD_IDS: int = int(os.environ.get("MAX_RECORD_IDS", "100"))

RATE_LIMIT: str = os.environ.get("RATE_LIMIT", "60/minute")
RATE_LIMIT_ENABLED: bool = _flag("RATE_LIMIT_ENABLED", "1")

# Allow requests from this origin
ALLOW_ORIGIN: Optional[str] = os.environ.get("ALLOW_ORIGIN")

# If true, enable docs and openapi.json endpoints
ENABLE_DOCS: bool = os.environ.get("ENABLE_DOCS") == "1"

LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

# Where server.py binds uvicorn
HOST: str = os.environ.get("HOST", "127.0.0.1")
PORT: int = int(os.environ.get("PORT", "3000"))
RELOAD: bool = _flag("RELOAD")

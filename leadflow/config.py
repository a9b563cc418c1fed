import os
from dotenv import load_dotenv

load_dotenv()


# ---------------------------------------------------------------------------
# Lead directory (Sales Navigator)
# ---------------------------------------------------------------------------
# The session itself is obtained outside this tool. Operators export the
# request headers of a logged-in browser session into a JSON file shaped as
#   {"common": {...}, "search": {...}, "connect": {...}, "remove": {...},
#    "cookie": "li_at=...; JSESSIONID=..."}
# or supply the cookie / CSRF token directly through the environment.
LEAD_DIRECTORY_BASE_URL = os.getenv(
    "LEAD_DIRECTORY_BASE_URL", "https://www.linkedin.com/sales-api"
)
LEAD_DIRECTORY_HEADERS_FILE = os.getenv("LEAD_DIRECTORY_HEADERS_FILE", "headers.json")
LEAD_DIRECTORY_COOKIE = os.getenv("LEAD_DIRECTORY_COOKIE", "")
LEAD_DIRECTORY_CSRF_TOKEN = os.getenv("LEAD_DIRECTORY_CSRF_TOKEN", "")

# Upstream refuses pages larger than this
PAGE_CAP = 100

# Page size used by the standalone search command
DEFAULT_SEARCH_COUNT = 25

# ---------------------------------------------------------------------------
# Qualification oracle (Gemini)
# ---------------------------------------------------------------------------
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Optional directory holding a qualify_and_compose.txt override
PROMPT_TEMPLATE_DIR = os.getenv("PROMPT_TEMPLATE_DIR", "templates/prompts")

# ---------------------------------------------------------------------------
# Request settings
# ---------------------------------------------------------------------------
REQUEST_TIMEOUT = 30  # seconds
REQUEST_HEADERS = {
    "User-Agent": "LeadflowAutomation/1.0",
    "Accept": "application/json",
}

"""High-value constants for the Process Manager MCP package."""

# Package metadata
PACKAGE_VERSION = "0.2.0"
SERVER_NAME = "process-manager-mcp"
USER_AGENT = f"{SERVER_NAME}/{PACKAGE_VERSION}"

# External API contract consts
SITE_TOKEN_PATH = "/oauth2/token"
SEARCH_TOKEN_PATH = "/search/GetSearchServiceToken"
SEARCH_PATH = "/fullsearch"
PROCESS_PATH = "/Api/v1/Processes/{process_id}"
PROCESS_SUMMARY_PATH = "/Api/v1/Processes/{process_id}/Summary"
PROCESS_LIST_PATH = "/Api/v1/Processes/List"
GROUP_TREE_PATH = "/Api/v1/Groups/TreeItems"
DIAGRAM_GENERATE_PATH = "/Api/v1/Minimode/Generate"
SCIM_BASE_URL = "https://api.promapp.com/api/scim"
SCIM_USERS_PATH = "/users"
SEARCH_SUCCESS_STATUS = "Success"

# Business logic consts
SITE_TOKEN_DURATION_SECONDS = 60000  # requested lifetime (~16.6 hours)
SITE_TOKEN_EXPIRY_FACTOR = 0.9  # use 90% of the declared lifetime
SEARCH_TOKEN_CACHE_SECONDS = 8 * 60  # real lifetime is ~10 minutes, undeclared

# Resource guards
MAX_HIERARCHY_DEPTH = 10
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_HIGHLIGHTS_PER_FIELD = 2

# Output limits
MAX_RESPONSE_TOKENS = 25000
CHARS_PER_TOKEN = 4
MAX_RESPONSE_CHARS = MAX_RESPONSE_TOKENS * CHARS_PER_TOKEN
TRUNCATION_RESERVE_CHARS = 500
SIZE_WARNING_RATIO = 0.8

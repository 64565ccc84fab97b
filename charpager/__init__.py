"""charpager - windowed, sortable browsing over a fixed-order paginated API."""

from .clients import CharacterClient
from .core import (
    CancelReason,
    ErrorCategory,
    NetworkError,
    PageNotFoundError,
    PagerError,
    ProviderError,
    RateLimitError,
    RequestCancelledError,
    RequestTimeoutError,
    SortOrder,
    ValidationError,
)
from .models import Character, CharacterLocation, PageInfo, RemotePageResult, SessionState
from .runtime import (
    PAGE_SIZE,
    CancelToken,
    ClassifiedError,
    FetchCoordinator,
    FetchPlan,
    FetchPolicy,
    WindowPlanner,
    classify_error,
    extract_window,
    plan_fetch_window,
)
from .utils import (
    HTTPClient,
    PageGap,
    PageLink,
    QueryPagePersistence,
    build_page_items,
    parse_page_param,
)

__version__ = "0.1.0"

__all__ = [
    "CharacterClient",
    "FetchCoordinator",
    "WindowPlanner",
    "FetchPlan",
    "FetchPolicy",
    "PAGE_SIZE",
    "plan_fetch_window",
    "extract_window",
    "CancelToken",
    "classify_error",
    "ClassifiedError",
    "Character",
    "CharacterLocation",
    "PageInfo",
    "RemotePageResult",
    "SessionState",
    "SortOrder",
    "ErrorCategory",
    "CancelReason",
    "PagerError",
    "ProviderError",
    "RateLimitError",
    "PageNotFoundError",
    "NetworkError",
    "RequestTimeoutError",
    "RequestCancelledError",
    "ValidationError",
    "HTTPClient",
    "PageGap",
    "PageLink",
    "QueryPagePersistence",
    "build_page_items",
    "parse_page_param",
]

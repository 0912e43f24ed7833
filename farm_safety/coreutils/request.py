from urllib3.util.retry import Retry
import requests
from requests.adapters import HTTPAdapter


DEFAULT_RETRY_STRATEGY = Retry(
    total=5,  # Total number of retries
    backoff_factor=2,  # The backoff factor (2 seconds, then 4, 8...)
    status_forcelist=[429, 500, 502, 503, 504],  # HTTP status codes to retry on
)


def new_session(retry_strategy: Retry = DEFAULT_RETRY_STRATEGY) -> requests.Session:
    """Create a new requests session with retry strategy"""
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    # Set default headers
    session.headers.update(
        {"User-Agent": "farm-safety-score/0.1", "Accept": "application/json"}
    )

    return session

DEFAULT_CONFIG = {
    "headless": True,
    "viewport": {"width": 1920, "height": 1080},
    "language": "en-US",
    "timezone_id": "America/New_York",
    "color_scheme": "light",
    "user_agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "extra_http_headers": {
        "Accept-Language": "en-US,en;q=0.9",
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
        "sec-ch-ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "Upgrade-Insecure-Requests": "1",
    },
    "launch_args": [
        "--disable-blink-features=AutomationControlled",
        "--disable-dev-shm-usage",  # Mitigate shared memory issues in Docker
        "--no-sandbox",
        "--disable-setuid-sandbox",
    ],
}

DEFAULT_ANALYSIS_CONFIG = {
    "navigation_timeout": 30000,  # ms, per navigation strategy
    "settle_delay": 2000,  # ms, after navigation succeeded
    "request_timeout": 60,  # s, whole analysis
    "scroll_wait": 1000,  # ms, infinite scroll probe
    "body_read_timeout": 500,  # ms, wait for API bodies before merging
    "analyze_patterns": True,
    "detect_flows": True,
}

# Hides the most common automation fingerprints before any page script runs.
ANTI_DETECTION_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
window.chrome = { runtime: {} };
"""


def build_browser_config(overrides=None):
    """Merge user supplied browser settings over the defaults."""
    overrides = overrides or {}
    config = {**DEFAULT_CONFIG, **overrides}
    if "viewport" in overrides:
        config["viewport"] = {**DEFAULT_CONFIG["viewport"], **overrides["viewport"]}
    return config


def build_analysis_config(overrides=None):
    return {**DEFAULT_ANALYSIS_CONFIG, **(overrides or {})}

from webpom_agent.data.models import PageAnalysis
from webpom_agent.errors import BrowserLaunchError, NavigationError, WebPomError

__all__ = ["PageAnalysis", "NavigationError", "BrowserLaunchError", "WebPomError"]

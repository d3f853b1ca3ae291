"""
Site checkers.

Each checker converts its own faults into an error CheckResult:
- TopologyChecker: scheme × www matrix, redirects, CDN
- RobotsChecker: robots.txt directives
- AnalyticsChecker: trackers, cookie consent, retargeting
- SSLChecker: certificate details and security headers
- MetaChecker: meta tags and SEO
- ContentChecker: copyright, web fonts, social links
- ImageChecker: alt text, dimensions, lazy loading
"""

from .analytics import AnalyticsChecker
from .content import ContentChecker
from .images import ImageChecker
from .meta import MetaChecker
from .robots import RobotsChecker
from .ssl_headers import SSLChecker
from .topology import TopologyChecker

__all__ = [
    "AnalyticsChecker",
    "ContentChecker",
    "ImageChecker",
    "MetaChecker",
    "RobotsChecker",
    "SSLChecker",
    "TopologyChecker",
]

"""
URL Normalizer - strip tracking parameters from job URLs.

Job boards decorate the same posting with different tracking parameters
(``utm_*``, ``trk``, ``refId`` ...), so the raw URL is useless for duplicate
detection. We store both a normalized URL and a site-specific job
identifier (``linkedin:3812345678``) on every job.

Example:
    >>> normalize_job_url("https://www.linkedin.com/jobs/view/1234/?trk=guest&utm_source=google")
    'https://www.linkedin.com/jobs/view/1234'
    >>> extract_job_identifier("https://uk.indeed.com/viewjob?jk=abc123&from=serp")
    'indeed:abc123'
"""

import logging
import re
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

TRACKING_PARAMS = {p.lower() for p in (
    # Google Analytics / UTM
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content", "utm_id",
    "utm_source_platform", "utm_creative_format", "utm_marketing_tactic",
    # Ad platform click ids
    "fbclid", "gclid", "gclsrc", "msclkid", "dclid", "twclid", "li_fat_id",
    "wbraid", "gbraid", "ttclid", "ScCid", "click_id",
    # LinkedIn
    "trk", "trkInfo", "trackingId", "refId", "eBP", "midToken", "midSig",
    "origin", "originalReferer", "originalSubdomain", "lipi", "licu",
    # Indeed
    "from", "fromage", "vjk", "advn", "xpse", "xgid", "xpnl", "tk",
    # General tracking
    "_ga", "_gl", "_hsenc", "_hsmi", "mc_cid", "mc_eid",
    "oly_enc_id", "oly_anon_id", "__s", "__hstc", "__hsfp", "hsCtaTracking",
    # Session / referral
    "ref", "referer", "referrer", "source", "src", "si", "feature",
    "position", "savedSearchId", "searchId", "searchIndex",
    # Misc
    "igshid", "fbid", "_branch_match_id", "_branch_referrer",
    "s_kwcid", "ef_id", "affiliate_id", "campaign_id",
)}

# Never stripped: these identify the job itself
ESSENTIAL_PARAMS = {p.lower() for p in ("currentJobId", "jobId", "jk", "clk", "id")}

KNOWN_SITE_PREFIXES = ("linkedin:", "indeed:", "reed:", "glassdoor:", "totaljobs:")

_LINKEDIN_VIEW = re.compile(r"/jobs/view/(\d+)")
_REED_JOB = re.compile(r"/jobs/[^/]+/(\d+)")
_GLASSDOOR_LISTING = re.compile(r"/job-listing/[^/]+/(\d+)")
_TOTALJOBS_JOB = re.compile(r"/job/(\d+)")


def normalize_job_url(url: str) -> str:
    """Remove tracking params, sort the rest, drop a trailing slash.

    Anything that does not parse as an absolute http(s) URL comes back
    unchanged.
    """
    if not url or not isinstance(url, str):
        return url

    try:
        parts = urlsplit(url.strip())
        if not parts.scheme or not parts.netloc:
            return url

        params = [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key.lower() in ESSENTIAL_PARAMS or key.lower() not in TRACKING_PARAMS
        ]
        params.sort(key=lambda item: item[0])

        path = parts.path or "/"
        if path != "/" and path.endswith("/"):
            path = path.rstrip("/") or "/"

        query = urlencode(params)
        return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, query, parts.fragment))
    except ValueError as e:
        logger.warning("Failed to normalize URL %r: %s", url, e)
        return url


def extract_job_identifier(url: str) -> str:
    """Site-specific job id (``linkedin:123``), else the normalized URL."""
    if not url or not isinstance(url, str):
        return url

    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return normalize_job_url(url)

    host = (parts.hostname or "").lower()
    path = parts.path
    query = parse_qs(parts.query)

    if "linkedin.com" in host:
        match = _LINKEDIN_VIEW.search(path)
        if match:
            return f"linkedin:{match.group(1)}"
        if query.get("currentJobId"):
            return f"linkedin:{query['currentJobId'][0]}"

    if "indeed.com" in host or "indeed.co.uk" in host:
        for key in ("jk", "clk"):
            if query.get(key):
                return f"indeed:{query[key][0]}"

    if "reed.co.uk" in host:
        match = _REED_JOB.search(path)
        if match:
            return f"reed:{match.group(1)}"

    if "glassdoor.com" in host or "glassdoor.co.uk" in host:
        match = _GLASSDOOR_LISTING.search(path)
        if match:
            return f"glassdoor:{match.group(1)}"

    if "totaljobs.com" in host:
        match = _TOTALJOBS_JOB.search(path)
        if match:
            return f"totaljobs:{match.group(1)}"

    return normalize_job_url(url)


def are_same_job(url1: str, url2: str) -> bool:
    if not url1 or not url2:
        return False

    id1 = extract_job_identifier(url1)
    id2 = extract_job_identifier(url2)
    if id1.startswith(KNOWN_SITE_PREFIXES):
        return id1 == id2

    return normalize_job_url(url1) == normalize_job_url(url2)


def is_valid_url(url: str) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)

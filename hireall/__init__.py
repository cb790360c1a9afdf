"""
HireAll API
Job-search backend for the HireAll web app and browser extension.

Architecture:
- MongoDB: every document (users, jobs, applications, sponsors, SOC codes, ...)
- FastAPI routes wrapped by ``with_api`` (auth, rate limiting, validation, envelopes)
- OpenAI-compatible AI client behind a circuit breaker (cover letters, CV analysis)
"""

__version__ = "1.0.0"

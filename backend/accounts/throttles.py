# accounts/throttles.py
"""
Rate limiting classes.

These throttles protect against:
- Brute force attacks (login)
- Runaway spend on the AI gateway (transaction classification)
"""

from rest_framework.throttling import AnonRateThrottle, UserRateThrottle


class LoginThrottle(AnonRateThrottle):
    """
    Rate limit login attempts.

    Default: 10 attempts per minute per IP.
    Configured via settings.REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['login']
    """
    scope = 'login'


class ClassifyThrottle(UserRateThrottle):
    """
    Rate limit AI classification requests.

    Default: 30 requests per minute per user.
    Configured via settings.REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['classify']
    """
    scope = 'classify'

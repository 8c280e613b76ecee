"""Password policy checks and strength scoring."""

import hashlib
import logging
import string
from dataclasses import dataclass, field
from typing import List

import requests

from gigauth.errors import BreachCheckError
from gigauth.services.common_passwords import COMMON_PASSWORDS

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 12
MAX_PASSWORD_LENGTH = 128

DEFAULT_PWNED_PASSWORDS_URL = "https://api.pwnedpasswords.com"
USER_AGENT = "gigauth-PasswordCheck"


@dataclass
class PasswordValidationResult:
    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message):
        self.valid = False
        self.errors.append(message)


class PasswordValidator:
    """Checks passwords against length rules, a common-password list and the
    Pwned Passwords breach corpus."""

    def __init__(self, base_url=DEFAULT_PWNED_PASSWORDS_URL, timeout=5, common_passwords=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.common_passwords = common_passwords if common_passwords is not None else COMMON_PASSWORDS

    def validate_password(self, password):
        """Run every check and collect the results.

        A breach-service outage is reported as a warning and does not make the
        password invalid.
        """
        password = password or ""
        result = PasswordValidationResult()

        if len(password) < MIN_PASSWORD_LENGTH:
            result.add_error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(password) > MAX_PASSWORD_LENGTH:
            result.add_error(f"Password must be no more than {MAX_PASSWORD_LENGTH} characters")

        if self.is_common_password(password):
            result.add_error("This password is too common and easily guessed")

        try:
            if self.is_breached(password):
                result.add_error("This password has been exposed in a data breach and should not be used")
        except BreachCheckError as e:
            log.warning(f"Breach check unavailable: {e.message}")
            result.warnings.append("Could not verify password against breach database")

        return result

    def is_common_password(self, password):
        return (password or "").lower() in self.common_passwords

    def is_breached(self, password):
        """Check the breach corpus using k-anonymity.

        Only the first five characters of the SHA-1 hash leave the process;
        the returned suffixes are matched locally.

        Raises:
            BreachCheckError: the corpus could not be queried
        """
        digest = hashlib.sha1((password or "").encode("utf-8")).hexdigest().upper()
        prefix, suffix = digest[:5], digest[5:]

        try:
            response = requests.get(
                f"{self.base_url}/range/{prefix}",
                headers={"User-Agent": USER_AGENT, "Add-Padding": "true"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise BreachCheckError(f"Failed to query pwned passwords: {e}") from e

        if response.status_code != 200:
            raise BreachCheckError(f"Pwned passwords API returned status {response.status_code}")

        for line in response.text.splitlines():
            candidate = line.split(":", 1)[0].strip()
            if candidate.upper() == suffix:
                return True
        return False


def calculate_password_strength(password):
    """Score a password from 0 to 100 for a strength meter.

    Length tiers give up to 40 points, each character class present gives 10,
    and a high share of distinct characters gives up to 20.
    """
    password = password or ""
    length = len(password)
    score = 0

    if length >= 12:
        score += 20
    if length >= 16:
        score += 10
    if length >= 20:
        score += 10

    classes = set()
    for c in password:
        if c in string.ascii_lowercase:
            classes.add("lower")
        elif c in string.ascii_uppercase:
            classes.add("upper")
        elif c in string.digits:
            classes.add("digit")
        else:
            classes.add("other")
    score += 10 * len(classes)

    if length > 0:
        unique_ratio = len(set(password)) / length
        if unique_ratio > 0.5 and length >= 12:
            score += 10
        if unique_ratio > 0.7 and length >= 16:
            score += 10

    return min(score, 100)


def get_strength_label(score):
    if score < 30:
        return "Weak"
    if score < 50:
        return "Fair"
    if score < 70:
        return "Good"
    if score < 90:
        return "Strong"
    return "Excellent"

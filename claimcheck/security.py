"""
Input screening and PII redaction.

Claim descriptions are free text typed by claimants and pasted straight into an
LLM prompt, so they are screened for instruction-injection patterns before the
pipeline runs. Audit records store descriptions with PII redacted.
"""

import re
from typing import Optional

from claimcheck.schemas import ValidationResult

MAX_INPUT_CHARS = 10000
MIN_DESCRIPTION_CHARS = 10
MAX_SPECIAL_CHAR_RATIO = 0.3

DANGEROUS_PATTERNS = [
    "ignore previous instructions", "ignore all previous", "disregard all",
    "forget everything", "forget all previous", "you are now",
    "new instructions:", "new role:", "system:", "system prompt",
    "admin mode", "developer mode", "jailbreak", "override", "sudo mode",
    "<script>", "eval(", "execute(", "exec(", "system(", "import os",
    "subprocess", "__import__", "base64.b64decode",
    "<!--", "*/", "/*", "';", "\"; ", "../",
]

ROLE_CHANGE_PATTERNS = [
    "you are a", "act as", "pretend to be", "simulate", "roleplay as", "imagine you are",
]

SQL_PATTERNS = ["drop table", "delete from", "insert into", "update ", "'; --", "1=1", "union select"]

_HIDDEN_UNICODE = re.compile(r"[\u200B-\u200D\uFEFF\u2060-\u2069]")
_REPEATED_CHAR = re.compile(r"(.)\1{20,}")
_BASE64 = re.compile(r"^(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?$")
_SCRIPT_TAG = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)

_SSN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
_CREDIT_CARD = re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b")
_PHONE = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")
_EMAIL = re.compile(r"\b[a-zA-Z0-9._%+-]+@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b")
_DATE_OF_BIRTH = re.compile(r"\b(0?[1-9]|1[0-2])[/\-](0?[1-9]|[12][0-9]|3[01])[/\-](19|20)\d{2}\b")
_ZIP = re.compile(r"\b\d{5}(?:-\d{4})?\b")


def scan_input(text: Optional[str]) -> tuple[bool, list[str]]:
    """Return (is_clean, threats) for a piece of user-supplied text."""
    threats: list[str] = []
    if not text:
        return True, threats

    normalized = text.lower()

    for pattern in DANGEROUS_PATTERNS:
        if pattern in normalized:
            threats.append(f"Detected suspicious pattern: '{pattern}'")

    if "ignore" in normalized:
        for pattern in ROLE_CHANGE_PATTERNS:
            if pattern in normalized:
                threats.append(f"Detected potential role manipulation: '{pattern}'")

    if _HIDDEN_UNICODE.search(text):
        threats.append("Contains hidden unicode characters that may be used for obfuscation")

    if _REPEATED_CHAR.search(text):
        threats.append("Contains excessive character repetition")

    if len(text) > MAX_INPUT_CHARS:
        threats.append(f"Input exceeds safe length limit (Length: {len(text)}, Limit: {MAX_INPUT_CHARS})")

    compact = text.replace("\n", "").replace("\r", "")
    if len(text) > 100 and _BASE64.match(compact):
        threats.append("Input appears to be base64 encoded")

    for pattern in SQL_PATTERNS:
        if pattern in normalized:
            threats.append(f"Detected SQL-like pattern: '{pattern}'")

    special = sum(1 for ch in text if not ch.isalnum() and not ch.isspace())
    ratio = special / len(text)
    if ratio > MAX_SPECIAL_CHAR_RATIO:
        threats.append(f"Excessive special characters detected ({ratio:.0%} of input)")

    return not threats, threats


def validate_claim_description(description: Optional[str], max_chars: int = 5000) -> ValidationResult:
    if not description or not description.strip():
        return ValidationResult(is_valid=False, errors=["Claim description cannot be empty"])

    is_clean, threats = scan_input(description)
    if not is_clean:
        return ValidationResult(
            is_valid=False,
            errors=threats,
            warning_message="Claim description contains potentially malicious content",
        )

    if len(description) > max_chars:
        return ValidationResult(
            is_valid=False,
            errors=[f"Claim description exceeds maximum length ({max_chars} characters)"],
        )

    warnings: list[str] = []
    if len(description) < MIN_DESCRIPTION_CHARS:
        warnings.append(
            f"Claim description is very short (minimum {MIN_DESCRIPTION_CHARS} characters recommended)"
        )
    return ValidationResult(is_valid=True, warnings=warnings)


def sanitize_input(text: Optional[str]) -> Optional[str]:
    if not text:
        return text
    text = _HIDDEN_UNICODE.sub("", text)
    text = _SCRIPT_TAG.sub("", text)
    text = re.sub(r"\s+", " ", text)
    return text[:MAX_INPUT_CHARS].strip()


def mask_policy_number(policy_number: Optional[str]) -> str:
    if not policy_number or len(policy_number) <= 4:
        return "****"
    return f"****{policy_number[-4:]}"


def redact_pii(text: Optional[str]) -> Optional[str]:
    if not text:
        return text
    text = _SSN.sub("***-**-****", text)
    # Card numbers before phones so the phone pattern cannot eat half of one.
    text = _CREDIT_CARD.sub("****-****-****-****", text)
    text = _PHONE.sub("***-***-****", text)
    text = _EMAIL.sub(lambda m: f"***@{m.group(1)}", text)
    text = _DATE_OF_BIRTH.sub("**/**/****", text)
    text = _ZIP.sub(lambda m: m.group(0).replace("-", "")[:3] + "**", text)
    return text

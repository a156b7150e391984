"""
Form validation for client applications.

Form validators return a mapping of field name to error message; an empty
mapping means the form is valid.
"""

import re
from typing import Any, Dict, List, Mapping, Optional

from ..validators import EMAIL_PATTERN

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")

PASSWORD_REQUIREMENTS = [
    ("length", "At least 8 characters", lambda pw: len(pw) >= 8),
    ("lowercase", "One lowercase letter", lambda pw: re.search(r"[a-z]", pw) is not None),
    ("uppercase", "One uppercase letter", lambda pw: re.search(r"[A-Z]", pw) is not None),
    ("number", "One number", lambda pw: re.search(r"\d", pw) is not None),
    ("special", "One special character (@$!%*?&)", lambda pw: re.search(r"[@$!%*?&]", pw) is not None),
]

STRENGTH_LABELS = {0: "weak", 1: "weak", 2: "weak", 3: "fair", 4: "good", 5: "strong"}


def check_password_requirements(password: Optional[str]) -> List[Dict[str, Any]]:
    password = password or ""
    return [
        {"id": req_id, "label": label, "met": bool(password) and test(password)}
        for req_id, label, test in PASSWORD_REQUIREMENTS
    ]


def get_password_strength(password: Optional[str]) -> Dict[str, Any]:
    """
    Score a password by the number of requirements it meets.

    Returns:
        Dict with ``score`` (0-5), ``label`` and the ``requirements`` checklist
    """
    requirements = check_password_requirements(password)
    score = sum(1 for req in requirements if req["met"])
    return {"score": score, "label": STRENGTH_LABELS[score], "requirements": requirements}


def validate_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return "Email is required"
    if not EMAIL_PATTERN.match(email):
        return "Please enter a valid email address"
    return None


def validate_password(password: Optional[str]) -> Optional[str]:
    if not password:
        return "Password is required"
    if not all(req["met"] for req in check_password_requirements(password)):
        return "Password does not meet all requirements"
    return None


def validate_full_name(name: Optional[str]) -> Optional[str]:
    if not name:
        return "Full name is required"

    trimmed = name.strip()
    if len(trimmed) < NAME_MIN_LENGTH:
        return f"Name must be at least {NAME_MIN_LENGTH} characters"
    if len(trimmed) > NAME_MAX_LENGTH:
        return f"Name must be less than {NAME_MAX_LENGTH} characters"
    if not NAME_PATTERN.match(trimmed):
        return "Name can only contain letters, spaces, hyphens, and apostrophes"
    return None


def validate_password_confirmation(password: Optional[str], confirmation: Optional[str]) -> Optional[str]:
    if not confirmation:
        return "Please confirm your password"
    if password != confirmation:
        return "Passwords do not match"
    return None


def _collect(**checks: Optional[str]) -> Dict[str, str]:
    return {field: message for field, message in checks.items() if message}


def validate_login_form(form: Mapping[str, Any]) -> Dict[str, str]:
    return _collect(
        email=validate_email(form.get("email")),
        password=None if form.get("password") else "Password is required",
    )


def validate_signup_form(form: Mapping[str, Any]) -> Dict[str, str]:
    errors = _collect(
        email=validate_email(form.get("email")),
        password=validate_password(form.get("password")),
        full_name=validate_full_name(form.get("full_name")),
    )
    if "confirm_password" in form:
        message = validate_password_confirmation(form.get("password"), form.get("confirm_password"))
        if message:
            errors["confirm_password"] = message
    return errors


def validate_profile_form(form: Mapping[str, Any]) -> Dict[str, str]:
    """Only fields present in ``form`` are checked."""
    errors: Dict[str, str] = {}
    if "email" in form:
        message = validate_email(form.get("email"))
        if message:
            errors["email"] = message
    if "full_name" in form:
        message = validate_full_name(form.get("full_name"))
        if message:
            errors["full_name"] = message
    return errors


def validate_password_change_form(form: Mapping[str, Any]) -> Dict[str, str]:
    current = form.get("current_password")
    new = form.get("new_password")

    errors = _collect(
        current_password=None if current else "Current password is required",
        new_password=validate_password(new),
    )
    if "confirm_password" in form:
        message = validate_password_confirmation(new, form.get("confirm_password"))
        if message:
            errors["confirm_password"] = message

    if current and new and current == new:
        errors["new_password"] = "New password must be different from current password"
    return errors

"""Provisioning of the administrator account that sets results and awards."""

import logging
import os
from typing import Any, Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ImproperlyConfigured


logger = logging.getLogger(__name__)

GOALTIPP_ADMIN_USER_ENV = "GOALTIPP_ADMIN_USER"
GOALTIPP_ADMIN_PASSWORD_ENV = "GOALTIPP_ADMIN_PASSWORD"


def _get_trimmed_env(name: str) -> Optional[str]:
    value = os.environ.get(name, "").strip()
    return value or None


def ensure_default_superuser(sender: Any, **kwargs: Any) -> None:
    """Create the default superuser once the auth app has migrated.

    Credentials come from ``GOALTIPP_ADMIN_USER`` and
    ``GOALTIPP_ADMIN_PASSWORD``. Nothing happens when either is unset or the
    user already exists.
    """

    if getattr(sender, "name", None) != "django.contrib.auth":
        return

    username = _get_trimmed_env(GOALTIPP_ADMIN_USER_ENV)
    password = _get_trimmed_env(GOALTIPP_ADMIN_PASSWORD_ENV)
    if not username or not password:
        return

    user_model = get_user_model()
    username_field = user_model.USERNAME_FIELD

    try:
        if user_model.objects.filter(**{username_field: username}).exists():
            return
    except Exception as exc:  # pragma: no cover - should not occur after migrate
        raise ImproperlyConfigured("Unable to query the user model") from exc

    create_kwargs = {username_field: username, "password": password}
    for field_name in getattr(user_model, "REQUIRED_FIELDS", []):
        create_kwargs.setdefault(field_name, "")

    user_model.objects.create_superuser(**create_kwargs)
    logger.info("Created default superuser %s", username)

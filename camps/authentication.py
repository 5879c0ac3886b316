"""
Authentication helpers.

``TokenAuthentication`` keeps the DRF token scheme under a stable import
path for the settings module.  :class:`Identity` is the typed value the
auth layer hands to the services: views build it from the authenticated
request user and the registration coordinator never looks at the
request itself.
"""
from __future__ import annotations

from dataclasses import dataclass

from rest_framework import authentication
from rest_framework.exceptions import NotAuthenticated

from .models import Role


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword."""

    keyword = 'Token'


@dataclass(frozen=True)
class Identity:
    """An authenticated caller as seen by the services."""
    user_id: int
    email: str
    role: Role

    @property
    def is_organizer(self) -> bool:
        return self.role == Role.ORGANIZER

    @property
    def is_participant(self) -> bool:
        return self.role == Role.PARTICIPANT

    @classmethod
    def from_user(cls, user) -> Identity:
        if not (user and getattr(user, 'is_authenticated', False)):
            raise NotAuthenticated()
        return cls(user_id=user.pk, email=user.email, role=Role(user.role))


def identity_for_request(request) -> Identity:
    """Return the :class:`Identity` of the authenticated request user."""
    return Identity.from_user(getattr(request, 'user', None))

#!/usr/bin/env python
"""Command-line entry point for the MediCamp backend.

Defaults ``DJANGO_SETTINGS_MODULE`` to ``medicamp.settings``; useful
commands beyond Django's own are ``ensure_demo_users``, ``seed_camps``
and ``recount_participants``.
"""
import os
import sys


def main() -> None:
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'medicamp.settings')
    try:
        from django.core.management import execute_from_command_line  # type: ignore
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Is it installed and available on your "
            "PYTHONPATH, and is the virtual environment active?"
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()

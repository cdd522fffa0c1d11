"""``runserver`` listening on the configured ``PORT`` by default."""
from __future__ import annotations

from django.conf import settings
from django.core.management.commands.runserver import Command as RunserverCommand


class Command(RunserverCommand):
    default_port = str(settings.WEATHERLINK_PORT)

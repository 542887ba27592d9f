"""Django app configuration for Agrostock."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class AgrostockConfig(AppConfig):
    """Configuration for Agrostock app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "agrostock"
    verbose_name = _("Stock Ledger")

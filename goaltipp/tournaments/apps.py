from django.apps import AppConfig


class TournamentsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'goaltipp.tournaments'
    verbose_name = 'Tournaments'

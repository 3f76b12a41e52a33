from django.apps import AppConfig


class PredictionsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'goaltipp.predictions'
    verbose_name = 'Predictions'

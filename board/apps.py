from django.apps import AppConfig


class BoardConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'board'

    def ready(self):
        """Build the content formatter configuration before serving requests."""
        from board.content.config import get_formatter_config

        get_formatter_config()

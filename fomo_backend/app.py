# module fomo_backend.app
from fomo_backend.app_setup.factory import create_app

# App globale
app = create_app()

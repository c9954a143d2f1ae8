# module petmarket.app
from petmarket.app_setup.factory import create_app

# App globale
app = create_app()

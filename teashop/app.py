# module teashop.app
from teashop.app_setup.factory import create_app

# App globale
app = create_app()

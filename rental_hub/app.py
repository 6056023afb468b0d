# module rental_hub.app
from rental_hub.app_setup.factory import create_app

app = create_app()

# backend/wsgi.py
# FLASK_APP=wsgi.py flask run / flask system init
from fuelpos import create_app

app = create_app()

# src/fxengine/__main__.py
from fxengine.app import app

app()

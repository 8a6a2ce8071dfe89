import os

# Keep the module-level engine off any real server while tests import the app.
os.environ.setdefault("DATABASE_URL", "sqlite://")

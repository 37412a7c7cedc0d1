# backend/settings/__init__.py
"""
PATH: backend/settings/__init__.py

Settings package entrypoint. Nothing is imported here.

Select a module with DJANGO_SETTINGS_MODULE:
- backend.settings.dev   (sqlite, localhost CORS, tests)
- backend.settings.prod  (Postgres via DATABASE_URL, WhiteNoise, Sentry)
"""

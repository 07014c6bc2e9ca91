"""
NotebookWeb.

- backend/: FastAPI application, configuration, Supabase client, screens
- frontend/: Jinja2 templates for the Auth and Notes screens
"""

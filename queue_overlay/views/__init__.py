"""View rendering module for HTML templates.

Views prepare template context from a PlaybackSnapshot and render Jinja2
templates, separate from the routers.
"""
